"""Duplicate cleanup service (application layer).

Wires the remote client to the pure engine: list activities, cluster them,
fetch details per cluster, resolve each cluster, and apply the decision with
optional interactive confirmation and dry-run gating. Failures on a single
activity or cluster are logged and counted; only the initial listing is fatal.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
import logging
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence, Tuple

from ..clustering import build_clusters, dedupe_by_id, sort_by_start
from ..config import MAX_WORKERS
from ..errors import IntervalsAPIError
from ..models import (
    ActivityDetail,
    ActivitySummary,
    Cluster,
    LoserVerdict,
    ResolutionDecision,
)
from ..resolution import resolve_cluster
from ..scoring import ScoringEngine, system_label
from ..utils import format_distance, format_duration

START_FORMAT = "%Y-%m-%d %H:%M:%S"


class ActivityClient(Protocol):
    def list_activities(
        self, oldest: date | datetime, newest: date | datetime
    ) -> List[ActivitySummary]: ...

    def get_activity_detail(self, activity_id: str) -> ActivityDetail: ...

    def update_activity(self, activity_id: str, updates: Mapping[str, Any]) -> None: ...

    def delete_activity(self, activity_id: str) -> None: ...


@dataclass(slots=True)
class DedupeOptions:
    dry_run: bool = False
    interactive: bool = False
    verbose: bool = False
    max_workers: int = MAX_WORKERS
    prompt: Callable[[str], str] = input


@dataclass
class RunSummary:
    scanned: int = 0
    clusters: int = 0
    resolved: int = 0
    renamed: int = 0
    metadata_updated: int = 0
    deleted: int = 0
    mismatched: int = 0
    skipped: int = 0
    failures: int = 0
    decisions: List[ResolutionDecision] = field(default_factory=list)


def _describe(detail: ActivityDetail, score: float) -> str:
    return (
        f"[{system_label(detail)}] (ID: {detail.id}, Score: {score:.2f}) - "
        f"{detail.name} ({format_distance(detail.distance)}, "
        f"{format_duration(detail.moving_time)})"
    )


class DedupeService:
    def __init__(
        self,
        client: ActivityClient,
        engine: ScoringEngine,
        options: DedupeOptions | None = None,
    ) -> None:
        self.client = client
        self.engine = engine
        self.options = options or DedupeOptions()
        if self.options.max_workers <= 0:
            raise ValueError("max_workers must be positive")
        self._log = logging.getLogger(self.__class__.__name__)

    # --- Discovery ------------------------------------------------------
    def find_clusters(
        self, oldest: date | datetime, newest: date | datetime
    ) -> Tuple[List[ActivitySummary], List[Cluster]]:
        """List activities in the window and group suspected duplicates.

        Raises:
            IntervalsAPIError: When the listing itself fails.
        """

        activities = dedupe_by_id(self.client.list_activities(oldest, newest))
        if self.options.verbose:
            self._log.info("Scanned %d total activities", len(activities))
            for activity in activities:
                started = (
                    activity.start_date_local.strftime(START_FORMAT)
                    if activity.start_date_local
                    else "?"
                )
                self._log.info("   - [%s] %s (%s)", activity.id, activity.name, started)
        clusters = build_clusters(sort_by_start(activities))
        return activities, clusters

    def fetch_details(self, cluster: Sequence[ActivitySummary]) -> List[ActivityDetail]:
        """Fetch details for ``cluster`` concurrently, skipping failures."""

        def fetch(summary: ActivitySummary) -> Optional[ActivityDetail]:
            try:
                return self.client.get_activity_detail(summary.id)
            except IntervalsAPIError as exc:
                self._log.warning("Failed to fetch details for %s: %s", summary.id, exc)
                return None

        workers = max(1, min(self.options.max_workers, len(cluster)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(fetch, cluster))
        return [detail for detail in results if detail is not None]

    def resolve(self, cluster: Sequence[ActivitySummary]) -> Optional[ResolutionDecision]:
        details = self.fetch_details(cluster)
        if len(details) < 2:
            self._log.info(
                "Skipping cluster around %s: only %d of %d details available",
                cluster[0].id,
                len(details),
                len(cluster),
            )
            return None
        return resolve_cluster(details, self.engine)

    # --- Execution ------------------------------------------------------
    def _confirm(self, question: str, default: bool) -> bool:
        if not self.options.interactive:
            return True
        suffix = "[Y/n]" if default else "[y/N]"
        try:
            answer = self.options.prompt(f"    {question} {suffix}: ")
        except EOFError:
            return default
        answer = (answer or "").strip().lower()
        if default:
            return answer != "n"
        return answer == "y"

    def _report_winner(self, decision: ResolutionDecision) -> None:
        winner = decision.winner
        self._log.info("  Winner: %s", _describe(winner.detail, winner.score.total))
        for reason in winner.score.reasons:
            self._log.info("    - %s", reason)

    def _apply_name(self, decision: ResolutionDecision, summary: RunSummary) -> None:
        name = decision.name_adoption
        if not name:
            return
        winner_id = decision.winner.detail.id
        if not self._confirm(f'Adopt descriptive name "{name}" for {winner_id}?', True):
            return
        if self.options.dry_run:
            self._log.info('    [DRY RUN] Would adopt name "%s" for %s', name, winner_id)
            return
        self._log.info('    Adopting name "%s"...', name)
        try:
            self.client.update_activity(winner_id, {"name": name})
        except IntervalsAPIError as exc:
            summary.failures += 1
            self._log.error("    Error updating name for %s: %s", winner_id, exc)
            return
        summary.renamed += 1
        self._log.info("    Name updated")

    def _apply_metadata(self, decision: ResolutionDecision, summary: RunSummary) -> None:
        if not decision.metadata_updates:
            return
        winner_id = decision.winner.detail.id
        msg = ", ".join(decision.metadata_reasons)
        if not self._confirm(f"Adopt metadata ({msg}) for {winner_id}?", True):
            return
        if self.options.dry_run:
            self._log.info("    [DRY RUN] Would adopt metadata (%s) for %s", msg, winner_id)
            return
        self._log.info("    Adopting metadata (%s)...", msg)
        try:
            self.client.update_activity(winner_id, dict(decision.metadata_updates))
        except IntervalsAPIError as exc:
            summary.failures += 1
            self._log.error("    Error updating metadata for %s: %s", winner_id, exc)
            return
        summary.metadata_updated += 1
        self._log.info("    Metadata updated")

    def _apply_loser(self, loser: LoserVerdict, summary: RunSummary) -> None:
        detail = loser.detail
        if loser.size_mismatch:
            flags = []
            if loser.distance_mismatch:
                flags.append("[DIST MISMATCH]")
            if loser.duration_mismatch:
                flags.append("[TIME MISMATCH]")
            summary.mismatched += 1
            self._log.warning(
                "  Mismatch: %s %s", _describe(detail, loser.score.total), " ".join(flags)
            )
            self._log.info(
                "    Skipping deletion recommendation for %s due to size difference.",
                detail.id,
            )
            return

        self._log.info("  To Delete: %s", _describe(detail, loser.score.total))
        for reason in loser.score.reasons:
            self._log.info("    - %s", reason)
        if not self._confirm(f"Confirm deletion of {detail.id}?", False):
            summary.skipped += 1
            self._log.info("    Skipped deletion of %s", detail.id)
            return
        if self.options.dry_run:
            self._log.info("    [DRY RUN] Would delete %s", detail.id)
            return
        self._log.info("    Deleting %s...", detail.id)
        try:
            self.client.delete_activity(detail.id)
        except IntervalsAPIError as exc:
            summary.failures += 1
            self._log.error("    Error deleting %s: %s", detail.id, exc)
            return
        summary.deleted += 1
        self._log.info("    Deleted %s", detail.id)

    def apply(self, decision: ResolutionDecision, summary: RunSummary) -> None:
        """Execute ``decision``: adopt name, adopt metadata, delete safe losers."""

        self._report_winner(decision)
        self._apply_name(decision, summary)
        self._apply_metadata(decision, summary)
        for loser in decision.losers:
            self._apply_loser(loser, summary)

    def run(self, oldest: date | datetime, newest: date | datetime) -> RunSummary:
        summary = RunSummary()
        activities, clusters = self.find_clusters(oldest, newest)
        summary.scanned = len(activities)
        summary.clusters = len(clusters)
        for cluster in clusters:
            first = cluster[0]
            started = first.start_date_local.strftime(START_FORMAT) if first.start_date_local else "?"
            self._log.info(
                "Found %d suspected duplicates starting around: %s", len(cluster), started
            )
            decision = self.resolve(cluster)
            if decision is None:
                continue
            summary.resolved += 1
            summary.decisions.append(decision)
            self.apply(decision, summary)
        self._log.info(
            "Done: clusters=%d resolved=%d deleted=%d renamed=%d metadata=%d "
            "mismatched=%d skipped=%d failures=%d",
            summary.clusters,
            summary.resolved,
            summary.deleted,
            summary.renamed,
            summary.metadata_updated,
            summary.mismatched,
            summary.skipped,
            summary.failures,
        )
        return summary


__all__ = ["ActivityClient", "DedupeOptions", "DedupeService", "RunSummary"]
