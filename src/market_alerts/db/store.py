"""Alert lifecycle store: the system of record for alerts and preferences.

State transitions are conditional single-statement UPDATEs so concurrent cycles
(or retries) cannot trigger the same alert twice.
"""
import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from market_alerts.assets import get_asset
from market_alerts.db.models import (AlertCondition, DigestFrequency,
                                     NotificationPreferences, PriceAlert, User)
from market_alerts.db.sessions import get_session
from market_alerts.utils import parse_hhmm, utcnow

logger = logging.getLogger(__name__)

_PREFERENCE_FIELDS = frozenset(
    {
        "email_enabled",
        "push_enabled",
        "email_digest",
        "digest_frequency",
        "quiet_hours_enabled",
        "quiet_hours_start",
        "quiet_hours_end",
        "timezone",
    }
)


class TransitionResult(str, Enum):
    """Outcome of a conditional state transition."""

    SUCCESS = "success"
    CONFLICT = "conflict"


class AlertLifecycleStore:
    """SQLModel-backed store for alerts, users, and notification preferences."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ---- Users ----
    def create_user(self, email: str, user_id: str | None = None) -> User:
        user = User(email=email) if user_id is None else User(id=user_id, email=email)
        with get_session(self._engine) as session:
            session.add(user)
        return user

    def get_user_emails(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Map user id -> email for the given users; unknown users are omitted."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        with get_session(self._engine) as session:
            users = session.exec(select(User).where(col(User.id).in_(ids))).all()
            return {u.id: u.email for u in users}

    # ---- Alerts ----
    def create_alert(
        self,
        user_id: str,
        asset_id: str,
        target_price: Decimal,
        condition: AlertCondition,
    ) -> PriceAlert:
        """Create an active alert; name and symbol come from the asset registry."""
        if target_price <= 0:
            raise ValueError("target_price must be positive")
        asset = get_asset(asset_id)
        alert = PriceAlert(
            user_id=user_id,
            asset_id=asset.id,
            asset_name=asset.name,
            asset_symbol=asset.symbol,
            target_price=target_price,
            condition=AlertCondition(condition),
        )
        with get_session(self._engine) as session:
            session.add(alert)
        return alert

    def get_alert(self, alert_id: str) -> PriceAlert | None:
        with get_session(self._engine) as session:
            return session.get(PriceAlert, alert_id)

    def list_active_alerts(self) -> list[PriceAlert]:
        """All alerts that are active and not yet triggered."""
        with get_session(self._engine) as session:
            statement = select(PriceAlert).where(
                col(PriceAlert.is_active).is_(True),
                col(PriceAlert.is_triggered).is_(False),
            )
            return list(session.exec(statement).all())

    def mark_triggered(
        self, alert_id: str, price: Decimal, timestamp: datetime
    ) -> TransitionResult:
        """Atomically move an alert from active to triggered.

        Succeeds only while the alert is still active and untriggered; any later
        attempt (another cycle, a retry) gets CONFLICT and must not notify.
        """
        statement = (
            update(PriceAlert)
            .where(
                col(PriceAlert.id) == alert_id,
                col(PriceAlert.is_active).is_(True),
                col(PriceAlert.is_triggered).is_(False),
            )
            .values(
                is_active=False,
                is_triggered=True,
                triggered_at=timestamp,
                triggered_price=price,
            )
            .execution_options(synchronize_session=False)
        )
        with get_session(self._engine) as session:
            result = session.execute(statement)
            updated = result.rowcount
        if updated == 1:
            return TransitionResult.SUCCESS
        logger.info("mark_triggered conflict for alert %s (already triggered or inactive)", alert_id)
        return TransitionResult.CONFLICT

    def pause_alert(self, alert_id: str) -> TransitionResult:
        """Deactivate an alert that has not triggered."""
        return self._set_active(alert_id, active=False)

    def activate_alert(self, alert_id: str) -> TransitionResult:
        """Re-activate a paused alert. A triggered alert can never be re-activated."""
        return self._set_active(alert_id, active=True)

    def _set_active(self, alert_id: str, active: bool) -> TransitionResult:
        statement = (
            update(PriceAlert)
            .where(
                col(PriceAlert.id) == alert_id,
                col(PriceAlert.is_active).is_(not active),
                col(PriceAlert.is_triggered).is_(False),
            )
            .values(is_active=active)
            .execution_options(synchronize_session=False)
        )
        with get_session(self._engine) as session:
            updated = session.execute(statement).rowcount
        return TransitionResult.SUCCESS if updated == 1 else TransitionResult.CONFLICT

    # ---- Preferences ----
    def get_preferences(
        self, user_ids: Iterable[str]
    ) -> dict[str, NotificationPreferences]:
        """Preferences per user, creating default rows for users without one."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        try:
            return self._get_or_create_preferences(ids)
        except IntegrityError:
            # Another request created the row between our read and insert.
            logger.debug("Preferences created concurrently; re-reading")
            return self._get_or_create_preferences(ids)

    def _get_or_create_preferences(
        self, ids: list[str]
    ) -> dict[str, NotificationPreferences]:
        with get_session(self._engine) as session:
            rows = session.exec(
                select(NotificationPreferences).where(
                    col(NotificationPreferences.user_id).in_(ids)
                )
            ).all()
            prefs = {p.user_id: p for p in rows}
            for user_id in ids:
                if user_id not in prefs:
                    created = NotificationPreferences(user_id=user_id)
                    session.add(created)
                    prefs[user_id] = created
                    logger.debug("Created default notification preferences for %s", user_id)
        return prefs

    def update_preferences(self, user_id: str, **changes: object) -> NotificationPreferences:
        """Update the owner's preferences; validates field names and time formats."""
        unknown = set(changes) - _PREFERENCE_FIELDS
        if unknown:
            raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")
        for key in ("quiet_hours_start", "quiet_hours_end"):
            if changes.get(key) is not None:
                parse_hhmm(str(changes[key]))
        if "digest_frequency" in changes:
            changes["digest_frequency"] = DigestFrequency(changes["digest_frequency"])
        if "timezone" in changes:
            try:
                ZoneInfo(str(changes["timezone"]))
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone '{changes['timezone']}'") from e

        current = self.get_preferences([user_id])[user_id]
        with get_session(self._engine) as session:
            prefs = session.get(NotificationPreferences, current.id)
            for key, value in changes.items():
                setattr(prefs, key, value)
            prefs.updated_at = utcnow()
            session.add(prefs)
        return prefs
