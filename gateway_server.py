"""
GROCK1 AI Chat Gateway
======================
Serves the token-gated chat page and the completion proxy it talks to.

Routes:
    GET  /             the chat page (connect / chat / buy-token)
    POST /connect      connect wallet + check GROCK1 balance
    POST /send         send the composer text to the AI
    POST /disconnect   reset the session
    POST /api/chat     completion proxy: {"prompt": ...} -> upstream LLM
    GET  /health       status

Usage:
    python gateway_server.py
"""

import logging
import socket
import sys

import httpx
import requests
import uvicorn
from fastapi import FastAPI, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from grock_gate.config import configure_logging, load_settings
from grock_gate.gated_chat import GatedChat
from grock_gate.view import render_page
from grock_gate.wallet_connector import RpcWallet

logger = logging.getLogger("Gateway")


def create_app(settings=None, wallet=None, chat_transport=None, upstream_transport=None,
               in_process_proxy=False):
    """
    Build the gateway.

    ``wallet`` defaults to an RpcWallet on ``settings.wallet_rpc_url`` (no
    wallet at all when that is unset). ``in_process_proxy`` routes the chat
    session's proxy calls straight into this app instead of over the network.
    """
    settings = settings or load_settings()
    if wallet is None and settings.wallet_rpc_url:
        wallet = RpcWallet(settings.wallet_rpc_url, timeout=settings.request_timeout)

    app = FastAPI(title="GROCK1 AI Chat Gateway")

    # --- CORS CONFIGURATION ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if in_process_proxy:
        chat_transport = httpx.ASGITransport(app=app)
    gate = GatedChat(settings, wallet=wallet, chat_transport=chat_transport)
    app.state.gate = gate
    app.state.settings = settings

    # --- PAGE + FORM ACTIONS ---
    @app.get("/", response_class=HTMLResponse)
    async def index():
        snapshot = gate.snapshot()
        gate.take_alerts()
        return HTMLResponse(render_page(snapshot, gate.transcript, gate.policy))

    @app.post("/connect")
    async def connect():
        await gate.connect()
        return RedirectResponse("/", status_code=303)

    @app.post("/send")
    async def send(message: str = Form("")):
        await gate.send(message)
        return RedirectResponse("/", status_code=303)

    @app.post("/disconnect")
    async def disconnect():
        gate.disconnect()
        return RedirectResponse("/", status_code=303)

    @app.get("/health")
    async def health():
        state = gate.snapshot()
        return {
            "status": "operational",
            "connected": state.connected,
            "has_access": state.has_access,
            "pending": state.pending,
            "upstream_key": bool(settings.upstream_api_key),
        }

    # --- COMPLETION PROXY ---
    async def forward_to_upstream(prompt):
        if not settings.upstream_api_key:
            return JSONResponse(status_code=500, content={"error": "No API Key"})

        payload = {
            "model": settings.upstream_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": settings.max_tokens_cap,
        }
        headers = {
            "Authorization": f"Bearer {settings.upstream_api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=settings.request_timeout,
                                     transport=upstream_transport) as client:
            try:
                res = await client.post(settings.upstream_chat_url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"🔥 Upstream unreachable: {e}")
                return JSONResponse(status_code=502, content={"error": f"Upstream Error: {e}"})

        if res.status_code != 200:
            logger.warning(f"⚠️  Upstream returned {res.status_code}")
        return Response(
            content=res.content,
            status_code=res.status_code,
            media_type=res.headers.get("content-type"),
        )

    @app.post("/api/chat")
    async def chat_proxy(request: Request):
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"error": "Invalid JSON"})

        prompt = body.get("prompt") if isinstance(body, dict) else None
        if not isinstance(prompt, str) or not prompt.strip():
            return JSONResponse(status_code=400, content={"error": "prompt required"})

        logger.info(f"📤 Forwarding prompt ({len(prompt)} chars) to {settings.upstream_model}")
        return await forward_to_upstream(prompt)

    return app


def gateway_running(port) -> bool:
    """True if a gateway already answers /health on this port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    result = sock.connect_ex(("127.0.0.1", port))
    sock.close()
    if result != 0:
        return False
    try:
        resp = requests.get(f"http://127.0.0.1:{port}/health", timeout=2.0)
    except requests.exceptions.RequestException:
        return False
    return resp.status_code == 200


if __name__ == "__main__":
    SETTINGS = load_settings()
    configure_logging(SETTINGS.log_level)

    if gateway_running(SETTINGS.port):
        logger.info(f"Gateway already running on {SETTINGS.port}. Stop it before restarting.")
        sys.exit(0)

    logger.info(f"🚀 GROCK1 gateway starting on {SETTINGS.port}...")
    logger.info(f"   Token:   {SETTINGS.policy.token_address}")
    logger.info(f"   Chain:   {SETTINGS.policy.chain_id_hex}")
    logger.info(f"   Wallet:  {SETTINGS.wallet_rpc_url or '(none)'}")
    logger.info(f"   LLM key: {'present' if SETTINGS.upstream_api_key else 'NOT SET'}")
    uvicorn.run(create_app(SETTINGS), host="0.0.0.0", port=SETTINGS.port)
