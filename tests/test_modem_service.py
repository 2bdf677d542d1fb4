# -*- coding: utf-8 -*-

import pytest
import requests

from services import modem_service


STATUS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<ConnectionStatus>901</ConnectionStatus>
<SignalStrength></SignalStrength>
<SignalIcon>4</SignalIcon>
<CurrentNetworkType>19</CurrentNetworkType>
</response>"""


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.requested = []
        self.closed = False

    def get(self, url, timeout=None):
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        return self.responses.get(url, FakeResponse(""))

    def close(self):
        self.closed = True


def test_parse_signal_icon():
    assert modem_service.parse_signal_icon(STATUS_XML) == 4


@pytest.mark.parametrize("xml_text", [
    "<response></response>",
    "<response><SignalIcon>strong</SignalIcon></response>",
    "not xml",
])
def test_parse_signal_icon_invalid(xml_text):
    with pytest.raises(ValueError):
        modem_service.parse_signal_icon(xml_text)


def test_signal_strength_fetches_home_page_first():
    session = FakeSession({modem_service.MODEM_STATUS_URL: FakeResponse(STATUS_XML)})

    result = modem_service.get_signal_strength(session)

    assert result == {"success": True, "signal": 4, "message": ""}
    assert session.requested == [modem_service.MODEM_URL, modem_service.MODEM_STATUS_URL]
    assert session.closed


def test_signal_strength_modem_unreachable():
    session = FakeSession(error=requests.exceptions.ConnectionError("refused"))

    result = modem_service.get_signal_strength(session)

    assert not result["success"]
    assert result["message"] == "failed to connect to modem"
    assert session.closed


def test_signal_strength_http_error():
    session = FakeSession({modem_service.MODEM_STATUS_URL: FakeResponse("", status_code=500)})
    assert not modem_service.get_signal_strength(session)["success"]
