# -*- coding: utf-8 -*-

from datetime import datetime, timezone

import pytest
import yaml

from services import location_service


@pytest.fixture()
def location_file(tmp_path, monkeypatch):
    path = tmp_path / "location.yaml"
    monkeypatch.setattr(location_service, "LOCATION_FILE", str(path))
    return path


@pytest.mark.parametrize("form, error", [
    ({"latitude": "91", "longitude": "0"}, "latitude must be between -90 and 90"),
    ({"latitude": "0", "longitude": "-180.5"}, "longitude must be between -180 and 180"),
    ({"latitude": "0", "longitude": "0", "altitude": "-1"}, "altitude must be between 0 and 10000"),
    ({"latitude": "0", "longitude": "0", "accuracy": "10001"}, "accuracy must be between 0 and 10000"),
    ({"latitude": "abc", "longitude": "0"}, "invalid latitude"),
    ({"latitude": "nan", "longitude": "0"}, "latitude must be between -90 and 90"),
    ({"longitude": "0"}, "latitude is required"),
    ({"latitude": "0", "longitude": "0", "timestamp": "yesterday"}, "invalid timestamp"),
    ({"latitude": "1", "longitude": "1", "timestamp": "99999999999999999999"}, "invalid timestamp"),
    ({"latitude": "1", "longitude": "1", "timestamp": "-99999999999999999999"}, "invalid timestamp"),
])
def test_validate_location_rejects_out_of_range(form, error):
    location, message = location_service.validate_location(form)
    assert location is None
    assert message == error


def test_validate_location_accepts_bounds():
    location, error = location_service.validate_location({
        "latitude": "-90",
        "longitude": "180",
        "altitude": "10000",
        "accuracy": "0",
        "timestamp": "1709287200000",
    })
    assert error is None
    assert location["latitude"] == -90.0
    assert location["longitude"] == 180.0
    assert location["timestamp"] == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def test_get_location_missing_file(location_file):
    result = location_service.get_location()
    assert result["success"]
    assert result["location"] == {
        "latitude": 0.0,
        "longitude": 0.0,
        "altitude": 0.0,
        "accuracy": 0.0,
        "timestamp": "1970-01-01T00:00:00Z",
    }


def test_set_then_get_location(location_file):
    result = location_service.set_location({
        "latitude": "-43.5321",
        "longitude": "172.6362",
        "altitude": "20",
        "accuracy": "5",
        "timestamp": "1709287200000",
    })
    assert result["success"]

    stored = yaml.safe_load(location_file.read_text())
    assert stored["latitude"] == -43.5321

    location = location_service.get_location()["location"]
    assert location["longitude"] == 172.6362
    assert location["timestamp"] == "2024-03-01T10:00:00Z"


def test_set_location_invalid_is_client_error(location_file):
    result = location_service.set_location({"latitude": "100", "longitude": "0"})
    assert not result["success"]
    assert result["client_error"]
    assert not location_file.exists()


def test_clear_location(location_file):
    location_service.set_location({"latitude": "10", "longitude": "10"})
    assert location_service.clear_location()["success"]
    location = location_service.get_location()["location"]
    assert location["latitude"] == 0.0
    assert location["longitude"] == 0.0
