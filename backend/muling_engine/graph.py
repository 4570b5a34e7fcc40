from __future__ import annotations

import logging
from typing import Dict, Iterable

from .models import DirectedGraph, GraphEdge, GraphNode, Transaction


logger = logging.getLogger("money_muling_analysis.graph")


def build_graph(transactions: Iterable[Transaction]) -> DirectedGraph:
    nodes: Dict[str, GraphNode] = {}
    graph = DirectedGraph(nodes=nodes)

    def get_or_create(account_id: str) -> GraphNode:
        node = nodes.get(account_id)
        if node is None:
            node = GraphNode(id=account_id)
            nodes[account_id] = node
        return node

    for tx in transactions:
        sender = get_or_create(tx.sender_id)
        receiver = get_or_create(tx.receiver_id)

        sender.out_degree += 1
        sender.total_transactions += 1
        sender.total_amount_sent += tx.amount
        sender.neighbors.add(tx.receiver_id)
        sender.outgoing_to.add(tx.receiver_id)
        sender.transactions.append(tx)

        receiver.in_degree += 1
        receiver.total_transactions += 1
        receiver.total_amount_received += tx.amount
        receiver.neighbors.add(tx.sender_id)
        receiver.incoming_from.add(tx.sender_id)
        receiver.transactions.append(tx)

        graph.add_edge(
            GraphEdge(
                source=tx.sender_id,
                target=tx.receiver_id,
                amount=tx.amount,
                timestamp=tx.timestamp,
                transaction_id=tx.transaction_id,
            )
        )

    logger.info(
        "Graph built: nodes=%d edges=%d senders=%d",
        len(graph.nodes),
        len(graph.edges),
        len(graph.adjacency),
    )
    return graph
