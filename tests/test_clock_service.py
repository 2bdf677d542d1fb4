# -*- coding: utf-8 -*-

from datetime import datetime, timedelta, timezone

import pytest

from conftest import FakeRunner, make_result

from services import clock_service


def test_parse_rfc3339():
    parsed = clock_service.parse_rfc3339("2024-03-01T10:15:42Z")
    assert parsed == datetime(2024, 3, 1, 10, 15, 42, tzinfo=timezone.utc)

    parsed = clock_service.parse_rfc3339("2024-03-01T23:15:42+13:00")
    assert parsed.utcoffset() == timedelta(hours=13)


def test_parse_rfc3339_rejects_naive_and_garbage():
    assert clock_service.parse_rfc3339("2024-03-01T10:15:42") is None
    assert clock_service.parse_rfc3339("next tuesday") is None
    assert clock_service.parse_rfc3339("") is None


def test_format_rfc3339():
    dt = datetime(2024, 3, 1, 10, 15, 42, 999, tzinfo=timezone.utc)
    assert clock_service.format_rfc3339(dt) == "2024-03-01T10:15:42Z"
    nz = timezone(timedelta(hours=13))
    assert clock_service.format_rfc3339(dt.astimezone(nz)) == "2024-03-01T23:15:42+13:00"


def test_parse_hwclock_output():
    parsed = clock_service.parse_hwclock_output("2024-03-01 10:15:42.123456+13:00\n")
    assert parsed.utcoffset() == timedelta(hours=13)
    assert parsed.second == 42
    assert clock_service.parse_hwclock_output("hwclock: Cannot access the Hardware Clock") is None


def test_set_clock_invalid_date_is_client_error(monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(clock_service, "run_command", runner)
    monkeypatch.setattr(clock_service, "is_tc2_device", lambda: False)

    result = clock_service.set_clock("not-a-date")

    assert not result["success"]
    assert result["client_error"]
    assert runner.commands == []


def test_set_clock_uses_date_and_hwclock(monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(clock_service, "run_command", runner)
    monkeypatch.setattr(clock_service, "is_tc2_device", lambda: False)

    result = clock_service.set_clock("2024-03-01T10:15:42Z", "Pacific/Auckland")

    assert result["success"]
    assert runner.commands == [
        "timedatectl set-timezone Pacific/Auckland",
        "date --utc --set=2024-03-01T10:15:42Z",
        "hwclock --systohc",
    ]


def test_set_clock_on_tc2_goes_to_rtc(monkeypatch):
    sent = []
    monkeypatch.setattr(clock_service, "run_command", FakeRunner())
    monkeypatch.setattr(clock_service, "is_tc2_device", lambda: True)
    monkeypatch.setattr(
        clock_service, "set_rtc_time",
        lambda value: sent.append(value) or {"success": True, "message": ""}
    )

    result = clock_service.set_clock("2024-03-01T23:15:42+13:00")

    assert result["success"]
    assert sent == ["2024-03-01T23:15:42+13:00"]


def test_get_clock_info_hwclock_path(monkeypatch):
    runner = FakeRunner(responses={
        "hwclock -r": make_result(stdout="2024-03-01 10:15:42.000000+00:00"),
        "date ": make_result(stdout="2024-03-01T10:15:43+00:00"),
        "timedatectl status": make_result(stdout="System clock synchronized: yes"),
        "timedatectl show": make_result(stdout="Etc/UTC"),
    })
    monkeypatch.setattr(clock_service, "run_command", runner)
    monkeypatch.setattr(clock_service, "is_tc2_device", lambda: False)

    result = clock_service.get_clock_info()

    assert result["success"]
    clock = result["clock"]
    assert clock["RTCTimeUTC"] == "2024-03-01T10:15:42Z"
    assert clock["SystemTime"] == "2024-03-01T10:15:43Z"
    assert clock["NTPSynced"] is True
    assert clock["RTCIntegrity"] is True
    assert clock["LowRTCBattery"] is False
    assert clock["Timezone"] == "Etc/UTC"


def test_get_clock_info_reports_rtc_failure(monkeypatch):
    monkeypatch.setattr(clock_service, "is_tc2_device", lambda: True)
    monkeypatch.setattr(
        clock_service, "get_rtc_time",
        lambda: {"success": False, "time": "", "integrity": False, "message": "rtc-utils not running"}
    )

    result = clock_service.get_clock_info()

    assert not result["success"]
    assert result["message"] == "rtc-utils not running"


@pytest.mark.parametrize("value, micros", [
    ("2024-03-01T10:15:42.5Z", 500000),
    ("2024-03-01T10:15:42.12Z", 120000),
    ("2024-03-01t10:15:42.123456789z", 123456),
])
def test_parse_rfc3339_fractional_seconds(value, micros):
    parsed = clock_service.parse_rfc3339(value)
    assert parsed.microsecond == micros
    assert parsed.utcoffset() == timedelta(0)


@pytest.mark.parametrize("value", [
    "2024-03-01 10:15:42Z",
    "20240301T101542+0000",
    "2024-03-01T10:15:42+1300",
    "2024-03-01T10:15Z",
    "2024-13-01T10:15:42Z",
])
def test_parse_rfc3339_rejects_non_rfc3339_forms(value):
    assert clock_service.parse_rfc3339(value) is None
