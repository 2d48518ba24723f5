import json
from dataclasses import replace

import pytest

from veracity_graph import config, graph


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload or {})

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests

            raise requests.HTTPError(f"{self.status_code} error")


def completion(content):
    return FakeResponse(payload={"choices": [{"message": {"role": "assistant", "content": content}}]})


def make_source(name, impact, link=None):
    return {
        "source": name,
        "link": link if link is not None else f"https://{name.lower()}.gov/report.pdf",
        "descriptor": f"{name} descriptor",
        "summary": f"{name} summary",
        "impact": impact,
    }


@pytest.fixture
def settings(monkeypatch):
    s = replace(
        config.SETTINGS,
        openai_api_key="test-key",
        openai_base_url="https://llm.test/v1",
        use_function_call=False,
        moderation_enabled=False,
        link_check_timeout=1.0,
        link_check_workers=4,
        min_verified_sources=3,
        max_sources=10,
    )
    monkeypatch.setattr(graph, "SETTINGS", s)
    return s


@pytest.fixture
def post_calls(monkeypatch):
    calls = []

    def install(handler):
        def fake_post(url, **kwargs):
            calls.append((url, kwargs))
            return handler(url, **kwargs)

        monkeypatch.setattr("requests.post", fake_post)
        return calls

    return install


@pytest.fixture
def live_links(monkeypatch):
    def install(dead=()):
        def fake_head(url, **kwargs):
            return FakeResponse(status_code=404 if url in dead else 200, payload={})

        monkeypatch.setattr("requests.head", fake_head)

    return install
