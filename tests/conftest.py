# -*- coding: utf-8 -*-

import base64
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
APP_DIR = ROOT_DIR / "management-interface"

if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))


def make_result(success=True, stdout="", stderr="", returncode=None):
    """Build a run_command() style result."""
    if returncode is None:
        returncode = 0 if success else 1
    return {
        "success": success,
        "stdout": stdout,
        "stderr": stderr,
        "returncode": returncode,
    }


class FakeRunner:
    """Records commands and answers them from a prefix -> result table."""

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default or make_result()
        self.commands = []

    def __call__(self, cmd, shell=True, timeout=30, capture_output=True):
        self.commands.append(cmd)
        for prefix, result in self.responses.items():
            if cmd.startswith(prefix):
                return result(cmd) if callable(result) else result
        return self.default


@pytest.fixture()
def auth_headers():
    token = base64.b64encode(b"admin:feathers").decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture()
def app_module(monkeypatch):
    import app as app_module

    monkeypatch.setattr(app_module, "run_command_in_background", lambda cmd, name="command": None)
    return app_module


@pytest.fixture()
def client(app_module):
    flask_app = app_module.create_app()
    flask_app.config["TESTING"] = True
    return flask_app.test_client()
