"""Sequential admission of discovered signals, one company batch at a time.

Per candidate: fingerprint point lookup, near-duplicate check against the
company's recent window, novelty, priority and format, then insert. Each
accepted signal is appended to the window (as a new tuple) before the next
candidate is checked, so two near-identical items in one batch are never
both stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from signalwatch.dedup.fingerprint import generate_stable_hash
from signalwatch.dedup.near_duplicate import (
    METHOD_EXACT_HASH,
    CandidateWindow,
    DuplicateVerdict,
    check_near_duplicate,
    compute_novelty_score,
    extend_window,
)
from signalwatch.ingestion.signal_types import CandidateSignal, RecentSignal
from signalwatch.monitoring.progress import MonitorProgress
from signalwatch.scoring.priority import (
    FormatRecommendation,
    PriorityResult,
    compute_priority_score,
    get_recommended_format,
)

logger = logging.getLogger(__name__)


DEFAULT_LOOKBACK_DAYS = 14

DECISION_CREATED = "created"
DECISION_DUPLICATE = "duplicate"
DECISION_NEAR_DUPLICATE = "near_duplicate"


@dataclass(frozen=True)
class AdmissionDecision:
    candidate: CandidateSignal
    fingerprint: str
    decision: str
    verdict: DuplicateVerdict
    signal_id: Optional[int] = None
    novelty_score: Optional[int] = None
    priority: Optional[PriorityResult] = None
    format: Optional[FormatRecommendation] = None


@dataclass(frozen=True)
class BatchResult:
    company_id: int
    decisions: Tuple[AdmissionDecision, ...]
    window: CandidateWindow
    stopped: bool = False

    @property
    def found(self) -> int:
        return len(self.decisions)

    @property
    def created(self) -> int:
        return sum(1 for d in self.decisions if d.decision == DECISION_CREATED)

    @property
    def duplicates_skipped(self) -> int:
        return sum(1 for d in self.decisions if d.decision == DECISION_DUPLICATE)

    @property
    def near_duplicates_skipped(self) -> int:
        return sum(1 for d in self.decisions if d.decision == DECISION_NEAR_DUPLICATE)


def _evaluate(
    repo,
    candidate: CandidateSignal,
    window: CandidateWindow,
    type_weights: Optional[Mapping[str, int]],
) -> AdmissionDecision:
    fingerprint = generate_stable_hash(
        candidate.company_id,
        candidate.source_url,
        candidate.citations,
        candidate.title,
        candidate.published_at,
        candidate.gathered_at,
    )

    existing = repo.get_signal_by_hash(fingerprint)
    if existing is not None:
        verdict = DuplicateVerdict(True, existing.id, 1.0, METHOD_EXACT_HASH)
        return AdmissionDecision(candidate, fingerprint, DECISION_DUPLICATE, verdict)

    verdict = check_near_duplicate(candidate.title, candidate.source_url, window)
    if verdict.is_near_duplicate:
        return AdmissionDecision(candidate, fingerprint, DECISION_NEAR_DUPLICATE, verdict)

    novelty = compute_novelty_score(candidate.title, window)
    priority = compute_priority_score(
        signal_type=candidate.type,
        sentiment=candidate.sentiment,
        citations_count=len(candidate.citations or []),
        relevance_score=candidate.relevance_score,
        novelty_score=novelty,
        type_weights=type_weights,
    )
    fmt = get_recommended_format(
        priority.label,
        candidate.type,
        candidate.sentiment,
        candidate.relevance_score,
        novelty,
    )

    signal_id = repo.insert_signal(
        candidate,
        fingerprint=fingerprint,
        novelty_score=novelty,
        priority=priority,
        recommended_format=fmt.format,
    )
    if signal_id is None:
        # Another process stored the same fingerprint first.
        verdict = DuplicateVerdict(True, None, 1.0, METHOD_EXACT_HASH)
        return AdmissionDecision(candidate, fingerprint, DECISION_DUPLICATE, verdict)

    return AdmissionDecision(
        candidate,
        fingerprint,
        DECISION_CREATED,
        verdict,
        signal_id=signal_id,
        novelty_score=novelty,
        priority=priority,
        format=fmt,
    )


def admit_company_batch(
    repo,
    company_id: int,
    candidates: Iterable[CandidateSignal],
    *,
    window: Optional[Sequence[RecentSignal]] = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    now: Optional[datetime] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    type_weights: Optional[Mapping[str, int]] = None,
) -> BatchResult:
    """Admit one company's candidates in order.

    ``window`` defaults to the company's signals from the last
    ``lookback_days``; the returned BatchResult carries the extended window.
    """
    if window is None:
        since = (now or datetime.now(timezone.utc)) - timedelta(days=lookback_days)
        window = repo.get_recent_signals_for_company(company_id, since)
    current: CandidateWindow = tuple(window)

    decisions: List[AdmissionDecision] = []
    stopped = False
    for candidate in candidates:
        if should_stop is not None and should_stop():
            stopped = True
            break
        if candidate.company_id != company_id:
            candidate = replace(candidate, company_id=company_id)

        decision = _evaluate(repo, candidate, current, type_weights)
        decisions.append(decision)

        if decision.decision == DECISION_CREATED:
            current = extend_window(current, RecentSignal(decision.signal_id, candidate.title, candidate.source_url))
            logger.info(
                f"Created signal {decision.signal_id} for company {company_id}: "
                f"priority={decision.priority.score} ({decision.priority.label}) format={decision.format.format}"
            )
        elif decision.decision == DECISION_DUPLICATE:
            logger.debug(f"Skipping exact duplicate for company {company_id}: {candidate.title!r}")
        else:
            v = decision.verdict
            logger.info(
                f"Skipping near-duplicate for company {company_id}: {candidate.title!r} "
                f"matches signal {v.matched_id} (similarity {v.similarity:.2f})"
            )

    return BatchResult(company_id=company_id, decisions=tuple(decisions), window=current, stopped=stopped)


@dataclass(frozen=True)
class MonitoringOutcome:
    progress: MonitorProgress
    results: Tuple[BatchResult, ...]
    run_id: Optional[int] = None


def run_monitoring(
    repo,
    batches: Sequence[Tuple[int, Sequence[CandidateSignal]]],
    stop_flag: Optional[Callable[[], bool]] = None,
    progress: Optional[MonitorProgress] = None,
    *,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    now: Optional[datetime] = None,
    record: bool = True,
) -> MonitoringOutcome:
    """Admit every (company_id, candidates) batch, honouring the stop flag.

    The stop flag is checked between companies and between candidates; a
    stopped run still records what it processed.
    """
    progress = (progress or MonitorProgress()).start(len(batches), now=now)
    results: List[BatchResult] = []
    stopped = False

    for company_id, candidates in batches:
        if stop_flag is not None and stop_flag():
            stopped = True
            break
        progress = progress.begin_company(company_id)
        result = admit_company_batch(
            repo,
            company_id,
            candidates,
            lookback_days=lookback_days,
            now=now,
            should_stop=stop_flag,
        )
        results.append(result)
        progress = progress.advance(
            found=result.found,
            created=result.created,
            duplicates=result.duplicates_skipped,
            near_duplicates=result.near_duplicates_skipped,
            company_done=not result.stopped,
        )
        if result.stopped:
            stopped = True
            break

    progress = progress.finish(stopped=stopped)
    if stopped:
        logger.info(f"Monitoring stopped after {progress.companies_processed}/{progress.companies_total} companies")

    run_id = repo.record_monitor_run(progress) if record else None
    logger.info(
        f"Monitoring {progress.status}: found={progress.signals_found} created={progress.signals_created} "
        f"duplicates={progress.duplicates_skipped} near_duplicates={progress.near_duplicates_skipped}"
    )
    return MonitoringOutcome(progress=progress, results=tuple(results), run_id=run_id)
