"""Alert pipeline services: price aggregation, evaluation, notification, spreads."""
from market_alerts.services.aggregator import PriceSourceAggregator, ProviderResult
from market_alerts.services.alert_check import AlertCheckService
from market_alerts.services.dispatcher import (ChannelStatus, DispatchResult,
                                               NotificationDispatcher)
from market_alerts.services.error_mapper import ErrorMapper
from market_alerts.services.evaluator import TriggeredAlert, evaluate, should_trigger
from market_alerts.services.factory import Services, create_services
from market_alerts.services.quiet_hours import is_quiet, local_now
from market_alerts.services.spread import SpreadService

__all__ = [
    "AlertCheckService",
    "ChannelStatus",
    "DispatchResult",
    "ErrorMapper",
    "NotificationDispatcher",
    "PriceSourceAggregator",
    "ProviderResult",
    "SpreadService",
    "Services",
    "TriggeredAlert",
    "create_services",
    "evaluate",
    "is_quiet",
    "local_now",
    "should_trigger",
]
