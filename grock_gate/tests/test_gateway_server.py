import json
from dataclasses import replace

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import UPSTREAM_URL, FakeWallet, completion
from gateway_server import create_app


class Upstream:
    """Scripted upstream LLM API that records what the proxy forwarded."""

    def __init__(self, content="It is a token.", status=200, fail=False):
        self.content = content
        self.status = status
        self.fail = fail
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.fail:
            raise httpx.ConnectError("connection refused", request=request)
        if self.status != 200:
            return httpx.Response(self.status, json={"error": {"message": "rate limited"}})
        return httpx.Response(200, json=completion(self.content))

    @property
    def transport(self):
        return httpx.MockTransport(self)


def make_client(settings, wallet=None, upstream=None):
    upstream = upstream or Upstream()
    app = create_app(
        settings,
        wallet=wallet or FakeWallet(),
        upstream_transport=upstream.transport,
        in_process_proxy=True,
    )
    return TestClient(app)


def test_index_starts_disconnected(settings):
    client = make_client(settings)

    resp = client.get("/")

    assert resp.status_code == 200
    assert 'data-mode="disconnected"' in resp.text
    assert "Connect MetaMask (BSC Required)" in resp.text


def test_full_flow_connect_then_chat(settings):
    upstream = Upstream("It is a token.")
    client = make_client(settings, FakeWallet(balance=1000000000000000000), upstream)

    page = client.post("/connect")
    assert 'data-mode="chat"' in page.text

    page = client.post("/send", data={"message": "What is GROCK1?"})

    assert "<strong>You:</strong> What is GROCK1?" in page.text
    assert "<strong>AI:</strong> It is a token." in page.text
    assert len(upstream.requests) == 1


def test_zero_balance_renders_buy_prompt_and_blocks_send(settings):
    upstream = Upstream()
    client = make_client(settings, FakeWallet(balance=0), upstream)

    page = client.post("/connect")
    assert 'data-mode="no_access"' in page.text
    assert "pancakeswap.finance" in page.text
    assert 'action="/send"' not in page.text

    page = client.post("/send", data={"message": "sneaky"})

    assert "You need at least 1 GROCK1 token to use the AI!" in page.text
    assert upstream.requests == []


def test_wrong_network_shows_warning_once(settings):
    wallet = FakeWallet(chain_id="0x1", reject_switch=True)
    client = make_client(settings, wallet)

    page = client.post("/connect")

    assert "Please switch to Binance Smart Chain (BSC) in your wallet." in page.text
    assert 'data-mode="disconnected"' in page.text
    assert wallet.called("call") == []
    # Alerts are shown once, then cleared
    assert "Please switch" not in client.get("/").text


def test_unreadable_chain_id_shows_alert_instead_of_error(settings):
    wallet = FakeWallet(chain_id=None)
    client = make_client(settings, wallet)

    page = client.post("/connect")

    assert page.status_code == 200
    assert "Could not read the active network from your wallet." in page.text
    assert 'data-mode="disconnected"' in page.text
    assert wallet.called("call") == []


def test_failed_completion_shows_fallback_bubble(settings):
    client = make_client(settings, upstream=Upstream(status=429))
    client.post("/connect")

    page = client.post("/send", data={"message": "hello"})

    assert "<strong>AI:</strong> AI is unavailable right now." in page.text


def test_disconnect_resets_page(settings):
    client = make_client(settings)
    client.post("/connect")
    client.post("/send", data={"message": "hello"})

    page = client.post("/disconnect")

    assert 'data-mode="disconnected"' in page.text
    assert "hello" not in page.text


def test_health_reports_session_flags(settings):
    client = make_client(settings)
    client.post("/connect")

    data = client.get("/health").json()

    assert data == {
        "status": "operational",
        "connected": True,
        "has_access": True,
        "pending": False,
        "upstream_key": True,
    }


def test_proxy_forwards_prompt_upstream(settings):
    upstream = Upstream("pong")
    client = make_client(settings, upstream=upstream)

    resp = client.post("/api/chat", json={"prompt": "ping"})

    assert resp.status_code == 200
    assert resp.json() == completion("pong")
    forwarded = upstream.requests[0]
    assert str(forwarded.url) == UPSTREAM_URL
    assert forwarded.headers["Authorization"] == "Bearer gsk-test-key"
    assert json.loads(forwarded.content) == {
        "model": "llama-3.1-8b-instant",
        "messages": [{"role": "user", "content": "ping"}],
        "max_tokens": 256,
    }


@pytest.mark.parametrize("body", [{}, {"prompt": ""}, {"prompt": "   "}, {"prompt": 42}, ["x"]])
def test_proxy_rejects_missing_prompt(settings, body):
    upstream = Upstream()
    client = make_client(settings, upstream=upstream)

    resp = client.post("/api/chat", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"error": "prompt required"}
    assert upstream.requests == []


def test_proxy_rejects_invalid_json(settings):
    client = make_client(settings)

    resp = client.post("/api/chat", content="not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid JSON"}


def test_proxy_without_api_key_returns_500(settings):
    client = make_client(replace(settings, upstream_api_key=None))

    resp = client.post("/api/chat", json={"prompt": "ping"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "No API Key"}


def test_proxy_relays_upstream_error_status(settings):
    client = make_client(settings, upstream=Upstream(status=429))

    resp = client.post("/api/chat", json={"prompt": "ping"})

    assert resp.status_code == 429
    assert resp.json() == {"error": {"message": "rate limited"}}


def test_proxy_returns_502_when_upstream_unreachable(settings):
    client = make_client(settings, upstream=Upstream(fail=True))

    resp = client.post("/api/chat", json={"prompt": "ping"})

    assert resp.status_code == 502
    assert resp.json()["error"].startswith("Upstream Error:")
