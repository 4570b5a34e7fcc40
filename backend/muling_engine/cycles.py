from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

import networkx as nx

from .config import Settings, settings
from .models import DetectedCycle, DirectedGraph, GraphEdge


logger = logging.getLogger("money_muling_analysis.cycles")


def canonical_cycle(accounts: Sequence[str]) -> List[str]:
    """Rotate a cycle so it starts at its lexicographically smallest account."""
    if not accounts:
        return []
    start = min(range(len(accounts)), key=lambda i: accounts[i])
    return list(accounts[start:]) + list(accounts[:start])


def cycle_key(accounts: Sequence[str]) -> str:
    return "->".join(canonical_cycle(accounts))


def _log_graph_stats(graph: DirectedGraph, config: Settings) -> None:
    g = graph.to_networkx()
    sccs = list(nx.strongly_connected_components(g))
    largest_scc_size = max((len(c) for c in sccs), default=0)
    logger.info(
        "Graph stats: total_nodes=%d total_edges=%d scc_count=%d largest_scc_size=%d",
        g.number_of_nodes(),
        g.number_of_edges(),
        len(sccs),
        largest_scc_size,
    )
    if largest_scc_size > config.CYCLE_LARGE_SCC_WARNING:
        logger.warning(
            "Largest strongly connected component has %d accounts; "
            "bounded cycle search may be slow on this input",
            largest_scc_size,
        )


def find_raw_cycles(
    graph: DirectedGraph, config: Settings = settings
) -> List[List[str]]:
    min_len = config.CYCLE_MIN_LENGTH
    max_len = config.CYCLE_MAX_LENGTH
    cycles: List[List[str]] = []
    seen: Set[str] = set()

    def dfs(current: str, start: str, path: List[str], visited: Set[str]) -> None:
        for nbr in graph.successors(current):
            if nbr == start and min_len <= len(path) <= max_len:
                key = cycle_key(path)
                if key not in seen:
                    seen.add(key)
                    cycles.append(list(path))
                continue

            if nbr not in visited and len(path) < max_len:
                visited.add(nbr)
                path.append(nbr)
                dfs(nbr, start, path, visited)
                path.pop()
                visited.remove(nbr)

    for start in graph.adjacency:
        dfs(start, start, [start], {start})

    return cycles


def _heaviest_hop_edges(
    cycle: Sequence[str], graph: DirectedGraph
) -> Optional[List[GraphEdge]]:
    hops: List[GraphEdge] = []
    for i, source in enumerate(cycle):
        target = cycle[(i + 1) % len(cycle)]
        candidates = graph.edges_between(source, target)
        if not candidates:
            return None
        best = candidates[0]
        for edge in candidates[1:]:
            # ties go to the later transaction
            if not best.amount > edge.amount:
                best = edge
        hops.append(best)
    return hops


def is_suspicious_cycle(
    cycle: Sequence[str],
    graph: DirectedGraph,
    config: Settings = settings,
) -> bool:
    """
    Check that a structural cycle looks like routed money.

    Each hop is represented by its highest-amount transaction. The amount must
    not drop below the decay threshold between consecutive hops (including the
    wrap from last to first), and all hops must fall inside the temporal window.
    """
    hops = _heaviest_hop_edges(cycle, graph)
    if hops is None or len(hops) != len(cycle):
        logger.debug("Discarding cycle %s: missing hop edge", cycle)
        return False

    threshold = config.CYCLE_AMOUNT_DECAY_THRESHOLD
    for prev, curr in zip(hops, hops[1:]):
        if prev.amount == 0:
            continue
        if curr.amount / prev.amount < threshold:
            return False

    first, last = hops[0].amount, hops[-1].amount
    if first > 0 and last / first < threshold:
        return False

    timestamps = [e.timestamp for e in hops]
    if max(timestamps) - min(timestamps) > config.CYCLE_TEMPORAL_WINDOW:
        return False

    return True


def detect_cycles(
    graph: DirectedGraph, config: Settings = settings
) -> List[DetectedCycle]:
    """
    Detect directed cycles of length 3-5 with plausible amount/timing.

    Bounded-depth DFS from every sending account, simple paths only. Cycles
    are deduplicated by rotation (A->B->C equals B->C->A) but a cycle and its
    reverse are distinct. The search is exponential in out-degree; dense
    subgraphs can make it slow.
    """
    _log_graph_stats(graph, config)

    raw_cycles = find_raw_cycles(graph, config)
    logger.info("Cycle detection: raw_cycles=%d", len(raw_cycles))

    validated: List[DetectedCycle] = []
    for cycle in raw_cycles:
        if is_suspicious_cycle(cycle, graph, config):
            validated.append(DetectedCycle(accounts=cycle, length=len(cycle)))
            logger.debug("Cycle accepted: %s", " -> ".join(cycle))

    logger.info("Cycle detection: validated_cycles=%d", len(validated))
    return validated
