# ============================================================================
# src/medibill_client/core/accumulator.py
# ============================================================================
"""
Local Outcome Accumulator

The backend has no aggregate-statistics endpoint, so the dashboard numbers
are folded together on the client after every successful analysis. They are
approximate: they reset when local storage is cleared and are not shared
across devices.

record() is deliberately not idempotent. Recording the same outcome twice
counts two analyses; callers record each successful analysis exactly once.
"""

from typing import Optional
import logging

from src.medibill_client.config import storage_settings, threshold_settings
from src.utils.exceptions import StorageError
from .models import AnalysisOutcome, DashboardSummary
from .storage import LocalStorage


logger = logging.getLogger(__name__)


class OutcomeAccumulator:
    """Owns the persisted DashboardSummary; everyone else only reads it."""

    def __init__(
        self,
        storage: LocalStorage,
        high_compliance_threshold: Optional[float] = None,
        stats_key: Optional[str] = None,
    ):
        self.storage = storage
        self.high_compliance_threshold = (
            high_compliance_threshold if high_compliance_threshold is not None
            else threshold_settings.HIGH_COMPLIANCE_THRESHOLD
        )
        self.stats_key = stats_key or storage_settings.STATS_KEY

    def summary(self) -> DashboardSummary:
        """Current summary, or all zeros if none is stored or it is unreadable."""
        stored = self.storage.get_item(self.stats_key)
        if stored is None:
            return DashboardSummary.zero()

        try:
            return DashboardSummary.from_dict(stored)
        except ValueError as e:
            logger.warning(f"Discarding invalid dashboard summary {stored!r}: {e}")
            return DashboardSummary.zero()

    def record(self, outcome: AnalysisOutcome) -> DashboardSummary:
        """
        Fold one analysis outcome into the persisted summary.

        Persistence failures are logged and swallowed: a lost statistic must
        not keep the user from their report.

        Returns:
            The updated summary (also when it could not be persisted)
        """
        updated = self.summary().fold(outcome, self.high_compliance_threshold)

        try:
            self.storage.set_item(self.stats_key, updated.to_dict())
        except StorageError:
            logger.exception("Failed to persist dashboard summary")
            return updated

        logger.info(
            f"Recorded analysis (score={outcome.compliance_score:.2f}, "
            f"flags={outcome.flag_count}): {updated.to_dict()}"
        )
        return updated
