import pytest
import requests

import settings
from fetch_and_cache import CACHE


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "LOG_FILE", str(tmp_path / "feed_log.txt"))
    monkeypatch.setattr(settings, "BASE_URL", "http://127.0.0.1:3000")
    monkeypatch.setattr(settings, "TOKEN", None)
    monkeypatch.setattr(settings, "FEED_NUMBER", 20)
    monkeypatch.setattr(settings, "CACHE_TTL", 300.0)
    monkeypatch.setattr(settings, "DISPLAY_IMAGE", True)
    monkeypatch.setattr(settings, "SAFETY_MODE", "SFW")
    for name in ("INCLUDE_MEDIA", "EXCLUDE_TAG", "EXCLUDE_VERSION", "INCLUDE_PLATFORM"):
        monkeypatch.setattr(settings, name, "")
    CACHE.clear()
    yield
    CACHE.clear()


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


@pytest.fixture
def releases():
    return [
        {
            "id": "r2",
            "title": "Hoshi no Uta",
            "alttitle": "星之歌",
            "released": "2024-05-17",
            "platforms": ["win", "and"],
            "extlinks": [{"url": "https://store.steampowered.com/app/1", "label": "Steam"}],
            "notes": "[b]Patch[/b] for v17",
            "languages": [{"lang": "en"}, {"lang": "zh-Hans"}],
            "images": [
                {"url": "https://t.vndb.org/sf/01/1.jpg", "sexual": 0, "violence": 0, "votecount": 4},
                {"url": "https://t.vndb.org/sf/02/2.jpg", "sexual": 2, "violence": 0, "votecount": 9},
            ],
        },
        {
            "id": "r1",
            "title": "Kaze no Machi",
            "alttitle": None,
            "released": "2024-03",
            "platforms": None,
            "extlinks": [],
            "notes": None,
            "languages": [{"lang": "en"}],
            "images": [],
        },
    ]


@pytest.fixture
def fake_post(monkeypatch):
    """Replace requests.post; returns the list of recorded calls."""
    calls = []
    responses = []

    def post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def install(*queued):
        responses.extend(queued)
        monkeypatch.setattr(requests, "post", post)
        return calls

    return install
