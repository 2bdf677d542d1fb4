# -*- coding: utf-8 -*-

import pytest

from conftest import FakeRunner, make_result

from services import audio_service, config_service


@pytest.fixture()
def device_config(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    monkeypatch.setattr(config_service, "DEVICE_CONFIG_FILE", str(path))
    return path


@pytest.mark.parametrize("raw, expected", [
    ("true", True), ("1", True), ("T", True),
    ("false", False), ("0", False), ("f", False),
])
def test_parse_bool(raw, expected):
    assert audio_service.parse_bool(raw) == (expected, None)


def test_parse_bool_rejects_other_values():
    value, error = audio_service.parse_bool("yes please")
    assert value is None
    assert "invalid boolean" in error


def test_play_test_sound_sets_volume_first(device_config, monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(audio_service, "run_command", runner)
    monkeypatch.setattr(audio_service, "check_command_exists", lambda name: True)

    result = audio_service.play_test_sound(volume=7)

    assert result["success"]
    assert runner.commands[0] == "amixer -c 0 sset PCM 70%"
    assert runner.commands[1].startswith("play -t wav --norm=-3 -q ")
    assert runner.commands[1].endswith("test.wav")


def test_play_test_sound_missing_file(monkeypatch, tmp_path):
    runner = FakeRunner()
    monkeypatch.setattr(audio_service, "run_command", runner)

    result = audio_service.play_test_sound(sound_file=str(tmp_path / "missing.wav"))

    assert not result["success"]
    assert result["message"] == "unable to load test audio"
    assert runner.commands == []


def test_play_test_sound_reports_player_output(monkeypatch):
    monkeypatch.setattr(audio_service, "run_command", FakeRunner(
        default=make_result(success=False, stderr="play FAIL sox: no default audio device")
    ))
    monkeypatch.setattr(audio_service, "check_command_exists", lambda name: True)

    result = audio_service.play_test_sound()

    assert not result["success"]
    assert result["message"] == "audio output failed"
    assert "no default audio device" in result["output"]


def test_audio_recording_setting_keeps_other_keys(device_config):
    device_config.write_text("audio-recording:\n  enabled: false\n  extra: kept\n")

    assert audio_service.set_audio_recording("true")["success"]

    result = audio_service.get_audio_recording()
    assert result["enabled"] is True
    assert "extra: kept" in device_config.read_text()
