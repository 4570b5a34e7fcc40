from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from .config import Settings, settings
from .models import DetectedCycle, DirectedGraph, ShellChain, SmurfingPattern, Transaction
from .schemas import FraudRing, SuspiciousAccount


logger = logging.getLogger("money_muling_analysis.scoring")


@dataclass
class AccountScore:
    account_id: str
    base_score: float = 0.0
    patterns: List[str] = field(default_factory=list)
    ring_ids: List[str] = field(default_factory=list)

    def add(self, points: float, pattern: str, ring_id: str) -> None:
        self.base_score += points
        self.patterns.append(pattern)
        self.ring_ids.append(ring_id)


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def pattern_category(pattern: str) -> str:
    if pattern.startswith("cycle"):
        return "cycle"
    if "fan_" in pattern or "smurfing" in pattern:
        return "smurfing"
    if "shell" in pattern:
        return "shell"
    return ""


def pattern_categories(patterns: Sequence[str]) -> Set[str]:
    return {c for c in map(pattern_category, patterns) if c}


def is_velocity_outlier(transactions: Sequence[Transaction], config: Settings = settings) -> bool:
    if len(transactions) < 2:
        return False
    timestamps = [t.timestamp for t in transactions]
    span_hours = (max(timestamps) - min(timestamps)).total_seconds() / 3600.0
    if span_hours <= 0:
        return False
    return len(transactions) / span_hours > config.HIGH_VELOCITY_TX_PER_HOUR


def is_anomalous_amount(amount: float, config: Settings = settings) -> bool:
    unit = config.ROUND_AMOUNT_UNIT
    if amount >= unit and amount % unit == 0:
        return True
    return any(low <= amount < high for low, high in config.JUST_UNDER_RANGES)


class RingRegistry:
    """Hands out sequential RING_NNN ids and collects the ring records."""

    def __init__(self) -> None:
        self.rings: List[FraudRing] = []

    def next_id(self) -> str:
        return f"RING_{len(self.rings) + 1:03d}"

    def register(self, members: List[str], pattern_type: str, risk: float) -> FraudRing:
        ring = FraudRing(
            ring_id=self.next_id(),
            member_accounts=members,
            pattern_type=pattern_type,
            risk_score=round_half_up(max(0.0, min(100.0, risk))),
        )
        self.rings.append(ring)
        return ring


def compute_scores(
    graph: DirectedGraph,
    cycles: Sequence[DetectedCycle],
    smurfing_patterns: Sequence[SmurfingPattern],
    shell_chains: Sequence[ShellChain],
    config: Settings = settings,
) -> Tuple[List[SuspiciousAccount], List[FraudRing]]:
    """
    Fuse detector output into ring records and per-account suspicion scores.

    Rings are numbered in detector order: cycles, then smurfing patterns, then
    shell chains. An account's exported ring_id is the first ring it was
    attributed to. Accounts implicated by two or more detector categories get
    the multi-pattern multiplier before clamping to [0, 100].
    """
    scores: Dict[str, AccountScore] = {}
    registry = RingRegistry()

    def account(account_id: str) -> AccountScore:
        if account_id not in scores:
            scores[account_id] = AccountScore(account_id=account_id)
        return scores[account_id]

    for cycle in cycles:
        ring_id = registry.next_id()
        bonus = config.SCORE_CYCLE_BY_LENGTH.get(
            cycle.length, min(config.SCORE_CYCLE_BY_LENGTH.values())
        )
        for acc in cycle.accounts:
            account(acc).add(bonus, f"cycle_length_{cycle.length}", ring_id)

        extra = (
            config.SCORE_CYCLE_RING_TRIANGLE_BONUS
            if cycle.length == 3
            else config.SCORE_CYCLE_RING_OTHER_BONUS
        )
        registry.register(
            list(cycle.accounts),
            "cycle",
            min(config.SCORE_MAX, bonus + config.SCORE_CYCLE_RING_BASE + extra),
        )

    for pattern in smurfing_patterns:
        ring_id = registry.next_id()
        hub = account(pattern.hub_account)
        hub.add(config.SCORE_SMURF_HUB, f"{pattern.type}_hub", ring_id)
        if pattern.windowed:
            hub.base_score += config.SCORE_SMURF_WINDOWED_HUB
            hub.patterns.append("high_velocity")

        member_tag = "smurfing_sender" if pattern.type == "fan_in" else "smurfing_receiver"
        for acc in pattern.connected_accounts:
            account(acc).add(config.SCORE_SMURF_MEMBER, member_tag, ring_id)

        registry.register(
            [pattern.hub_account] + list(pattern.connected_accounts),
            pattern.type,
            config.RISK_SMURF_WINDOWED if pattern.windowed else config.RISK_SMURF_UNWINDOWED,
        )

    for chain in shell_chains:
        ring_id = registry.next_id()
        for acc in chain.shell_accounts:
            account(acc).add(config.SCORE_SHELL_INTERMEDIARY, "shell_intermediary", ring_id)
        for acc in (chain.chain[0], chain.chain[-1]):
            account(acc).add(config.SCORE_SHELL_ENDPOINT, "shell_network_endpoint", ring_id)

        registry.register(list(chain.chain), "shell_network", config.RISK_SHELL_NETWORK)

    # Velocity and amount heuristics only boost already suspicious accounts
    for account_id, node in graph.nodes.items():
        score = scores.get(account_id)
        if score is None:
            continue

        if "high_velocity" not in score.patterns and is_velocity_outlier(node.transactions, config):
            score.base_score += config.SCORE_HIGH_VELOCITY
            score.patterns.append("high_velocity")

        if any(is_anomalous_amount(t.amount, config) for t in node.transactions):
            score.base_score += config.SCORE_AMOUNT_ANOMALY
            if "amount_anomaly" not in score.patterns:
                score.patterns.append("amount_anomaly")

    suspicious_accounts: List[SuspiciousAccount] = []
    for score in scores.values():
        final = score.base_score
        if len(pattern_categories(score.patterns)) >= 2:
            final *= config.MULTI_PATTERN_MULTIPLIER
        final = round_half_up(max(0.0, min(config.SCORE_MAX, final)))

        suspicious_accounts.append(
            SuspiciousAccount(
                account_id=score.account_id,
                suspicion_score=final,
                detected_patterns=list(dict.fromkeys(score.patterns)),
                ring_id=score.ring_ids[0] if score.ring_ids else "",
            )
        )

    # Stable sort keeps accumulation order for ties
    suspicious_accounts.sort(key=lambda a: a.suspicion_score, reverse=True)

    logger.info(
        "Scoring: suspicious_accounts=%d fraud_rings=%d",
        len(suspicious_accounts),
        len(registry.rings),
    )
    return suspicious_accounts, registry.rings
