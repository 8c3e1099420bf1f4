"""Tests for the check-alerts command-line job."""
import json

import pytest

from market_alerts.errors import NoPriceDataError
from market_alerts.jobs import check_alerts
from market_alerts.schemas import CycleResult


def test_prints_result_json(monkeypatch, capsys):
    async def fake_run_once(settings):
        return CycleResult(message="No active alerts")

    monkeypatch.setattr(check_alerts, "run_once", fake_run_once)

    check_alerts.main()

    body = json.loads(capsys.readouterr().out)
    assert body["success"] is True
    assert body["triggeredAlerts"] == []


def test_exits_nonzero_when_no_prices(monkeypatch, capsys):
    async def fake_run_once(settings):
        raise NoPriceDataError()

    monkeypatch.setattr(check_alerts, "run_once", fake_run_once)

    with pytest.raises(SystemExit) as exc_info:
        check_alerts.main()

    assert exc_info.value.code == 1
    assert json.loads(capsys.readouterr().out) == {"success": False, "error": "No prices available"}
