from __future__ import annotations

import logging
from typing import List, Set

from .config import Settings, settings
from .models import DirectedGraph, GraphNode, ShellChain


logger = logging.getLogger("money_muling_analysis.shells")


def is_shell(node: GraphNode, config: Settings = settings) -> bool:
    return node.total_transactions <= config.SHELL_MAX_TRANSACTIONS


def detect_shell_networks(
    graph: DirectedGraph, config: Settings = settings
) -> List[ShellChain]:
    """
    Detect layered chains: an active account pushing funds through several
    low-activity pass-through accounts to another active account.

    DFS starts from every active (non-shell) sender and only continues through
    shell accounts. Reaching an active account closes the chain; it qualifies
    when its interior holds at least SHELL_MIN_CHAIN_LENGTH shells. Endpoints
    are never reported as shells.
    """
    min_len = config.SHELL_MIN_CHAIN_LENGTH
    max_len = config.SHELL_MAX_CHAIN_LENGTH
    chains: List[ShellChain] = []
    seen: Set[str] = set()

    def dfs(current: str, path: List[str], visited: Set[str]) -> None:
        if len(path) > max_len:
            return

        for nbr in graph.successors(current):
            if nbr in visited:
                continue

            path.append(nbr)
            visited.add(nbr)

            if is_shell(graph.nodes[nbr], config):
                dfs(nbr, path, visited)
            else:
                interior_shells = [
                    acc for acc in path[1:-1] if is_shell(graph.nodes[acc], config)
                ]
                if len(path) >= min_len + 2 and len(interior_shells) >= min_len:
                    key = "->".join(path)
                    if key not in seen:
                        seen.add(key)
                        chains.append(
                            ShellChain(chain=list(path), shell_accounts=interior_shells)
                        )
                        logger.debug("Shell chain: %s", key)

            path.pop()
            visited.remove(nbr)

    for seed in graph.adjacency:
        if is_shell(graph.nodes[seed], config):
            continue
        dfs(seed, [seed], {seed})

    logger.info("Shell detection: chains=%d", len(chains))
    return chains
