from __future__ import annotations

from typing import Dict, List

from .analysis import AnalysisResult
from .schemas import GraphData, GraphEdgeData, GraphNodeData, SuspiciousAccount


def report_to_json(result: AnalysisResult, indent: int = 2) -> str:
    return result.report().model_dump_json(indent=indent)


def build_graph_data(result: AnalysisResult) -> GraphData:
    """Nodes and edges for the visualization client, tagged with ring membership."""
    by_account: Dict[str, SuspiciousAccount] = {
        a.account_id: a for a in result.suspicious_accounts
    }

    nodes: List[GraphNodeData] = []
    for node_id, node in result.graph.nodes.items():
        flagged = by_account.get(node_id)
        nodes.append(
            GraphNodeData(
                id=node_id,
                label=node_id,
                suspicion_score=flagged.suspicion_score if flagged else None,
                detected_patterns=list(flagged.detected_patterns) if flagged else [],
                ring_id=flagged.ring_id if flagged else None,
                in_degree=node.in_degree,
                out_degree=node.out_degree,
            )
        )

    edges: List[GraphEdgeData] = []
    for edge in result.graph.edges:
        edges.append(
            GraphEdgeData(
                id=edge.transaction_id,
                source=edge.source,
                target=edge.target,
                amount=float(edge.amount),
                timestamp=edge.timestamp,
            )
        )

    return GraphData(nodes=nodes, edges=edges)
