"""Test the best-effort network lookup."""
import json

import requests
from rollcall.services.network_service import ClientInfo, NetworkLookupService

URL = 'https://geo.example/{address}/json/'

class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload

def test_lookup_parses_response(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse({
            'ip': '203.0.113.5', 'city': 'Berlin',
            'country_name': 'Germany', 'org': 'Example ISP'
        })

    monkeypatch.setattr(requests, 'get', fake_get)
    info = NetworkLookupService(URL, timeout=2).lookup('203.0.113.5')

    assert info == ClientInfo('203.0.113.5', 'Berlin', 'Germany', 'Example ISP')
    assert calls == [('https://geo.example/203.0.113.5/json/', 2)]

def test_lookup_failure_returns_unknown(monkeypatch):
    def fake_get(url, timeout):
        raise requests.exceptions.ConnectTimeout("timed out")

    monkeypatch.setattr(requests, 'get', fake_get)
    info = NetworkLookupService(URL).lookup('203.0.113.5')

    assert info == ClientInfo(address='203.0.113.5')
    assert info.city == 'unknown'

def test_disabled_lookup_makes_no_request(monkeypatch):
    def fake_get(url, timeout):
        raise AssertionError("no request expected")

    monkeypatch.setattr(requests, 'get', fake_get)
    info = NetworkLookupService(URL, enabled=False).lookup(None)

    assert info == ClientInfo()
    assert json.loads(info.to_json()) == {
        'ip': 'unknown', 'city': 'unknown', 'country': 'unknown', 'isp': 'unknown'
    }
