from __future__ import annotations

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .config import Settings, settings
from .cycles import detect_cycles
from .graph import build_graph
from .models import DirectedGraph, Transaction
from .schemas import AnalysisReport, FraudRing, Summary, SuspiciousAccount
from .scoring import compute_scores, round_half_up
from .shells import detect_shell_networks
from .smurfing import detect_smurfing


logger = logging.getLogger("money_muling_analysis")


@dataclass(frozen=True)
class AnalysisEvent:
    phase: str
    status: str  # "started" | "completed"
    count: Optional[int] = None
    duration_seconds: Optional[float] = None


EventHook = Callable[[AnalysisEvent], None]


@dataclass
class AnalysisResult:
    suspicious_accounts: List[SuspiciousAccount]
    fraud_rings: List[FraudRing]
    summary: Summary
    graph: DirectedGraph = field(repr=False)

    def report(self) -> AnalysisReport:
        """Exportable payload; the raw graph is left out."""
        return AnalysisReport(
            suspicious_accounts=self.suspicious_accounts,
            fraud_rings=self.fraud_rings,
            summary=self.summary,
        )


def _count(result) -> int:
    if isinstance(result, DirectedGraph):
        return len(result.nodes)
    if isinstance(result, tuple):
        return len(result[0])
    return len(result)


class _Phases:
    """Times each phase and forwards progress to the optional observer."""

    def __init__(self, on_event: Optional[EventHook]):
        self.on_event = on_event

    def emit(self, event: AnalysisEvent) -> None:
        if self.on_event is None:
            return
        try:
            self.on_event(event)
        except Exception:
            logger.exception("Analysis observer failed on %s/%s", event.phase, event.status)

    def run(self, phase: str, func, *args):
        self.emit(AnalysisEvent(phase=phase, status="started"))
        start = time.perf_counter()
        result = func(*args)
        elapsed = time.perf_counter() - start
        count = _count(result)
        logger.info("Phase %s done: count=%d elapsed=%.3fs", phase, count, elapsed)
        self.emit(
            AnalysisEvent(
                phase=phase, status="completed", count=count, duration_seconds=elapsed
            )
        )
        return result


def analyze(
    transactions: Sequence[Transaction],
    config: Settings = settings,
    on_event: Optional[EventHook] = None,
    parallel: bool = False,
) -> AnalysisResult:
    """
    Run the full detection pipeline over an already validated transaction list.

    The three detectors only read the graph, so with ``parallel=True`` they run
    on a small thread pool and scoring waits for all of them.
    """
    start = time.perf_counter()
    phases = _Phases(on_event)

    logger.info("Starting analysis of %d transactions", len(transactions))
    graph = phases.run("graph", build_graph, transactions)

    if parallel:
        with concurrent.futures.ThreadPoolExecutor(max_workers=3) as pool:
            f_cycles = pool.submit(phases.run, "cycles", detect_cycles, graph, config)
            f_smurf = pool.submit(phases.run, "smurfing", detect_smurfing, graph, config)
            f_shells = pool.submit(phases.run, "shells", detect_shell_networks, graph, config)
            cycles = f_cycles.result()
            smurfing_patterns = f_smurf.result()
            shell_chains = f_shells.result()
    else:
        cycles = phases.run("cycles", detect_cycles, graph, config)
        smurfing_patterns = phases.run("smurfing", detect_smurfing, graph, config)
        shell_chains = phases.run("shells", detect_shell_networks, graph, config)

    suspicious_accounts, fraud_rings = phases.run(
        "scoring", compute_scores, graph, cycles, smurfing_patterns, shell_chains, config
    )

    processing_time = round_half_up(time.perf_counter() - start)
    summary = Summary(
        total_accounts_analyzed=len(graph.nodes),
        suspicious_accounts_flagged=len(suspicious_accounts),
        fraud_rings_detected=len(fraud_rings),
        processing_time_seconds=processing_time,
    )
    logger.info(
        "Analysis complete: accounts=%d suspicious=%d rings=%d time=%.1fs",
        summary.total_accounts_analyzed,
        summary.suspicious_accounts_flagged,
        summary.fraud_rings_detected,
        processing_time,
    )

    return AnalysisResult(
        suspicious_accounts=suspicious_accounts,
        fraud_rings=fraud_rings,
        summary=summary,
        graph=graph,
    )
