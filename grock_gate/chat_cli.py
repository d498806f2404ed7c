"""
Terminal front end for the gated chat.

Connects the wallet, checks GROCK1, then chats through the gateway's
/api/chat proxy (the gateway must be running).

Usage:
    grock-chat                         # interactive
    grock-chat "What is GROCK1?"       # single prompt
    grock-chat --wallet http://127.0.0.1:1248
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

from .config import configure_logging, load_settings
from .gated_chat import GatedChat
from .wallet_connector import RpcWallet

logger = logging.getLogger("ChatCLI")

EXIT_WORDS = ("exit", "quit", "q")


def _flush_alerts(gate, write):
    for alert in gate.take_alerts():
        write(f"⚠️  {alert}")


async def run_chat(gate, prompt=None, read_line=input, write=print):
    """Returns a process exit code: 0 ok, 1 not connected, 2 no token."""
    state = await gate.connect()
    _flush_alerts(gate, write)
    if not state.connected:
        return 1
    if not state.has_access:
        write("❌ No GROCK1 Found! You need at least 1 GROCK1 to use this AI.")
        write(f"   Buy on PancakeSwap: {gate.policy.marketplace_url}")
        return 2

    write(f"✅ Connected as {state.address}")

    if prompt:
        reply = await gate.send(prompt)
        _flush_alerts(gate, write)
        if reply:
            write(f"\n🤖 {reply.content}\n")
        return 0

    write("\nType 'exit' to quit.\n")
    while True:
        try:
            line = await asyncio.to_thread(read_line, "🗣️ You: ")
        except (KeyboardInterrupt, EOFError):
            write("\n👋 Goodbye!")
            break
        if line.strip().lower() in EXIT_WORDS:
            break
        if not line.strip():
            continue
        reply = await gate.send(line)
        _flush_alerts(gate, write)
        if reply:
            write(f"\n🤖 AI: {reply.content}\n")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="GROCK1 token-gated AI chat")
    parser.add_argument("prompt", nargs="*", help="Send a single prompt and exit")
    parser.add_argument("--env", "-e", default=None, help="Path to .env file")
    parser.add_argument("--wallet", default=None, help="Wallet JSON-RPC URL")
    args = parser.parse_args(argv)

    settings = load_settings(args.env)
    if args.wallet:
        settings = replace(settings, wallet_rpc_url=args.wallet)
    configure_logging(settings.log_level)

    wallet = RpcWallet(settings.wallet_rpc_url) if settings.wallet_rpc_url else None
    gate = GatedChat(settings, wallet=wallet)
    prompt = " ".join(args.prompt) if args.prompt else None
    return asyncio.run(run_chat(gate, prompt=prompt))


if __name__ == "__main__":
    sys.exit(main())
