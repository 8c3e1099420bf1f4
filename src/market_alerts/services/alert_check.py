"""One evaluation cycle: load alerts, price them, trigger, notify."""
import asyncio
import logging
from datetime import datetime

from market_alerts.db import NotificationPreferences
from market_alerts.db.store import AlertLifecycleStore, TransitionResult
from market_alerts.errors import NoPriceDataError
from market_alerts.schemas import CycleResult, SnapshotStatus
from market_alerts.services.aggregator import PriceSourceAggregator
from market_alerts.services.dispatcher import NotificationDispatcher
from market_alerts.services.evaluator import TriggeredAlert, evaluate
from market_alerts.utils import utcnow

logger = logging.getLogger(__name__)


class AlertCheckService:
    """Runs the alert cycle.

    Each triggered alert goes through its own transition then dispatch sequence;
    sequences run concurrently and a failure in one never affects the others.
    Safe to run concurrently with itself: the conditional transition in the
    store guarantees at most one notification per alert.
    """

    def __init__(
        self,
        store: AlertLifecycleStore,
        aggregator: PriceSourceAggregator,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.dispatcher = dispatcher

    async def _process(
        self,
        hit: TriggeredAlert,
        prefs: NotificationPreferences,
        recipient: str | None,
        now: datetime,
    ) -> bool:
        """Transition one alert and notify; True if this cycle triggered it."""
        alert = hit.alert
        result = await asyncio.to_thread(
            self.store.mark_triggered, alert.id, hit.observed_price, now
        )
        if result is TransitionResult.CONFLICT:
            return False
        logger.info(
            "Alert %s triggered: %s %s %s (now %s)",
            alert.id,
            alert.asset_id,
            alert.condition,
            alert.target_price,
            hit.observed_price,
        )
        try:
            await self.dispatcher.dispatch(alert, hit.observed_price, prefs, recipient, now)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Dispatch for alert %s failed", alert.id)
        return True

    async def run_cycle(self, now: datetime | None = None) -> CycleResult:
        """Evaluate every active alert once.

        Raises:
            NoPriceDataError: No provider answered and no prices were cached.
        """
        now = now or utcnow()
        alerts = await asyncio.to_thread(self.store.list_active_alerts)
        if not alerts:
            logger.info("No active alerts to check")
            return CycleResult(message="No active alerts", timestamp=now)

        asset_ids = sorted({a.asset_id for a in alerts})
        snapshot = await self.aggregator.fetch_snapshot(asset_ids)
        if snapshot.status is SnapshotStatus.UNAVAILABLE:
            raise NoPriceDataError(
                f"No prices available from any source ({', '.join(snapshot.failed_sources) or 'none'})"
            )
        if snapshot.status is SnapshotStatus.CACHED:
            logger.warning("Only cached prices available; skipping evaluation this cycle")
            return CycleResult(
                message="No live prices available",
                timestamp=now,
                snapshot_status=snapshot.status,
            )

        hits = evaluate(alerts, snapshot)
        logger.info("Checked %d alerts; %d crossed their threshold", len(alerts), len(hits))
        if not hits:
            return CycleResult(
                message=f"Checked {len(alerts)} alerts",
                timestamp=now,
                snapshot_status=snapshot.status,
            )

        user_ids = {h.alert.user_id for h in hits}
        prefs = await asyncio.to_thread(self.store.get_preferences, user_ids)
        emails = await asyncio.to_thread(self.store.get_user_emails, user_ids)

        outcomes = await asyncio.gather(
            *(
                self._process(h, prefs[h.alert.user_id], emails.get(h.alert.user_id), now)
                for h in hits
            ),
            return_exceptions=True,
        )
        triggered: list[str] = []
        for hit, outcome in zip(hits, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Processing alert %s failed: %s", hit.alert.id, outcome)
            elif outcome:
                triggered.append(hit.alert.id)

        return CycleResult(
            message=f"Checked {len(alerts)} alerts, triggered {len(triggered)}",
            triggered=len(triggered),
            triggered_alerts=triggered,
            timestamp=now,
            snapshot_status=snapshot.status,
        )
