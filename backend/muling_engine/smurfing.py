from __future__ import annotations

import logging
from datetime import timedelta
from statistics import mean, pstdev
from typing import List, Sequence

from .config import Settings, settings
from .models import DirectedGraph, FanType, GraphNode, SmurfingPattern, Transaction


logger = logging.getLogger("money_muling_analysis.smurfing")


def temporal_clusters(
    transactions: Sequence[Transaction],
    window: timedelta,
    min_size: int,
) -> List[List[Transaction]]:
    """
    Group time-sorted transactions into bursts starting at each transaction.

    A cluster is kept once it holds ``min_size`` transactions; the scan then
    skips ahead by half the cluster so overlapping bursts are not re-reported
    for every member.
    """
    if not transactions:
        return []

    ordered = sorted(transactions, key=lambda t: t.timestamp)
    clusters: List[List[Transaction]] = []

    i = 0
    while i < len(ordered):
        window_end = ordered[i].timestamp + window
        cluster = [ordered[i]]
        for tx in ordered[i + 1:]:
            if tx.timestamp > window_end:
                break
            cluster.append(tx)

        if len(cluster) >= min_size:
            clusters.append(cluster)
            i += len(cluster) // 2
        i += 1

    return clusters


def _has_uniform_amounts(amounts: Sequence[float], config: Settings) -> bool:
    if len(amounts) < config.LEGIT_MIN_SAMPLES:
        return False
    avg = mean(amounts)
    if avg == 0:
        return False
    return pstdev(amounts) / avg < config.LEGIT_AMOUNT_CV_THRESHOLD


def is_likely_legitimate(node: GraphNode, fan_type: FanType, config: Settings = settings) -> bool:
    """
    Heuristic: a collector that almost never sends (payroll/merchant intake)
    or a payer that almost never receives, moving near-identical amounts.
    """
    if fan_type == "fan_in":
        send_ratio = node.out_degree / max(node.in_degree, 1)
        if send_ratio < config.LEGIT_DIRECTION_RATIO:
            amounts = [t.amount for t in node.incoming()]
            return _has_uniform_amounts(amounts, config)
        return False

    receive_ratio = node.in_degree / max(node.out_degree, 1)
    if receive_ratio < config.LEGIT_DIRECTION_RATIO:
        amounts = [t.amount for t in node.outgoing()]
        return (
            _has_uniform_amounts(amounts, config)
            and len(amounts) > config.LEGIT_FAN_OUT_MIN_SAMPLES
        )
    return False


def _counterparty(tx: Transaction, fan_type: FanType) -> str:
    return tx.sender_id if fan_type == "fan_in" else tx.receiver_id


def _unique(ids: List[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def _detect_hub(
    node: GraphNode, fan_type: FanType, config: Settings
) -> List[SmurfingPattern]:
    if fan_type == "fan_in":
        counterparties = node.incoming_from
        txs = node.incoming()
    else:
        counterparties = node.outgoing_to
        txs = node.outgoing()

    threshold = config.SMURF_MIN_COUNTERPARTIES
    if len(counterparties) < threshold:
        return []

    legitimate = is_likely_legitimate(node, fan_type, config)
    if legitimate:
        logger.debug("Skipping %s hub %s: looks like a legitimate collector/payer", fan_type, node.id)
        return []

    window_hours = int(config.SMURF_WINDOW.total_seconds() // 3600)
    patterns: List[SmurfingPattern] = []
    for cluster in temporal_clusters(txs, config.SMURF_WINDOW, threshold):
        members = _unique([_counterparty(t, fan_type) for t in cluster])
        if len(members) >= threshold:
            patterns.append(
                SmurfingPattern(
                    hub_account=node.id,
                    type=fan_type,
                    connected_accounts=members,
                    temporal_window_hours=window_hours,
                )
            )

    if not patterns:
        full = _unique([_counterparty(t, fan_type) for t in txs])
        patterns.append(
            SmurfingPattern(
                hub_account=node.id,
                type=fan_type,
                connected_accounts=full,
                temporal_window_hours=config.SMURF_UNWINDOWED_HOURS,
            )
        )

    return patterns


def detect_smurfing(
    graph: DirectedGraph, config: Settings = settings
) -> List[SmurfingPattern]:
    """
    Detect fan-in (many senders -> one receiver) and fan-out (one sender ->
    many receivers) hubs. Bursts within the clustering window are reported
    as windowed patterns; otherwise a hub meeting the threshold over its full
    history is reported once with no window. The two directions are
    evaluated independently.
    """
    patterns: List[SmurfingPattern] = []
    for node in graph.nodes.values():
        patterns.extend(_detect_hub(node, "fan_in", config))
        patterns.extend(_detect_hub(node, "fan_out", config))

    logger.info(
        "Smurfing detection: fan_in=%d fan_out=%d",
        sum(1 for p in patterns if p.type == "fan_in"),
        sum(1 for p in patterns if p.type == "fan_out"),
    )
    return patterns
