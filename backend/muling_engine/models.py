from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Set, Tuple

import networkx as nx


FanType = Literal["fan_in", "fan_out"]


@dataclass(frozen=True)
class Transaction:
    transaction_id: str
    sender_id: str
    receiver_id: str
    amount: float
    timestamp: datetime


@dataclass
class GraphNode:
    id: str
    in_degree: int = 0
    out_degree: int = 0
    total_transactions: int = 0
    total_amount_sent: float = 0.0
    total_amount_received: float = 0.0
    neighbors: Set[str] = field(default_factory=set)
    incoming_from: Set[str] = field(default_factory=set)
    outgoing_to: Set[str] = field(default_factory=set)
    transactions: List[Transaction] = field(default_factory=list)

    def incoming(self) -> List[Transaction]:
        return [t for t in self.transactions if t.receiver_id == self.id]

    def outgoing(self) -> List[Transaction]:
        return [t for t in self.transactions if t.sender_id == self.id]


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    amount: float
    timestamp: datetime
    transaction_id: str


@dataclass
class DirectedGraph:
    """
    Transaction multigraph keyed by account id.

    ``nodes`` and ``edges`` follow input order. ``adjacency`` holds the
    distinct targets of each sender in first-seen order; accounts that never
    send have no entry. Cycle and shell searches iterate ``adjacency`` and
    their output order depends on it. ``pair_edges`` groups parallel edges by
    ordered (source, target) pair; edges should go through ``add_edge`` so the
    three views stay in step.
    """

    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)
    adjacency: Dict[str, List[str]] = field(default_factory=dict)
    pair_edges: Dict[Tuple[str, str], List[GraphEdge]] = field(
        default_factory=dict, repr=False
    )

    def add_edge(self, edge: GraphEdge) -> None:
        self.edges.append(edge)
        self.pair_edges.setdefault((edge.source, edge.target), []).append(edge)
        targets = self.adjacency.setdefault(edge.source, [])
        if edge.target not in targets:
            targets.append(edge.target)

    def successors(self, account_id: str) -> List[str]:
        return self.adjacency.get(account_id, [])

    def edges_between(self, source: str, target: str) -> List[GraphEdge]:
        """Parallel edges from ``source`` to ``target`` in input order."""
        return self.pair_edges.get((source, target), [])

    def to_networkx(self) -> nx.MultiDiGraph:
        g = nx.MultiDiGraph()
        for node_id, node in self.nodes.items():
            g.add_node(
                node_id,
                in_degree=node.in_degree,
                out_degree=node.out_degree,
                total_transactions=node.total_transactions,
                total_amount_sent=node.total_amount_sent,
                total_amount_received=node.total_amount_received,
            )
        for edge in self.edges:
            g.add_edge(
                edge.source,
                edge.target,
                transaction_id=edge.transaction_id,
                amount=edge.amount,
                timestamp=edge.timestamp,
            )
        return g


@dataclass(frozen=True)
class DetectedCycle:
    accounts: List[str]
    length: int


@dataclass(frozen=True)
class SmurfingPattern:
    hub_account: str
    type: FanType
    connected_accounts: List[str]
    temporal_window_hours: int

    @property
    def windowed(self) -> bool:
        return self.temporal_window_hours > 0


@dataclass(frozen=True)
class ShellChain:
    chain: List[str]
    shell_accounts: List[str]
