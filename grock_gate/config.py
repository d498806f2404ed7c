"""
Gateway configuration.

Everything comes from environment variables (optionally loaded from a .env
file). Settings are built once at process start and never mutated.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger("Config")

GROCK1_ADDRESS = "0x3d89b72adf26472a442a066fd0b75f18780179a3"
BSC_CHAIN_ID = "0x38"  # Binance Smart Chain Mainnet
PANCAKESWAP_URL = "https://pancakeswap.finance/swap?outputCurrency={token}"

# Minimal ERC20 ABI (balanceOf only)
BALANCE_OF_ABI = {
    "constant": True,
    "inputs": [{"name": "_owner", "type": "address"}],
    "name": "balanceOf",
    "outputs": [{"name": "balance", "type": "uint256"}],
    "type": "function",
}


def parse_chain_id(value) -> int:
    """Chain ids arrive as hex strings from wallets and as ints from config."""
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    if text.startswith("0x"):
        return int(text, 16)
    return int(text)


@dataclass(frozen=True)
class AccessPolicy:
    token_address: str = GROCK1_ADDRESS
    chain_id: int = 0x38
    min_balance: int = 0
    marketplace_url: str = PANCAKESWAP_URL.format(token=GROCK1_ADDRESS)

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    @classmethod
    def from_env(cls) -> "AccessPolicy":
        token = os.getenv("GROCK1_TOKEN_ADDRESS", GROCK1_ADDRESS)
        return cls(
            token_address=token,
            chain_id=parse_chain_id(os.getenv("REQUIRED_CHAIN_ID", BSC_CHAIN_ID)),
            min_balance=int(os.getenv("MIN_TOKEN_BALANCE", "0")),
            marketplace_url=os.getenv("MARKETPLACE_URL", PANCAKESWAP_URL.format(token=token)),
        )


@dataclass(frozen=True)
class GatewaySettings:
    policy: AccessPolicy = AccessPolicy()
    wallet_rpc_url: Optional[str] = "http://127.0.0.1:1248"
    bsc_rpc_url: str = "https://bsc-dataseed.binance.org/"
    chat_proxy_url: str = "http://127.0.0.1:8000/api/chat"
    upstream_chat_url: str = "https://api.groq.com/openai/v1/chat/completions"
    upstream_api_key: Optional[str] = None
    upstream_model: str = "llama-3.1-8b-instant"
    max_tokens_cap: int = 1024
    request_timeout: float = 60.0
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        port = int(os.getenv("PORT", "8000"))
        return cls(
            policy=AccessPolicy.from_env(),
            # An empty WALLET_RPC_URL means "no wallet installed"
            wallet_rpc_url=os.getenv("WALLET_RPC_URL", "http://127.0.0.1:1248") or None,
            bsc_rpc_url=os.getenv("BSC_RPC_URL", "https://bsc-dataseed.binance.org/"),
            # The page's own proxy, on whatever port this gateway listens on
            chat_proxy_url=os.getenv("CHAT_PROXY_URL", f"http://127.0.0.1:{port}/api/chat"),
            upstream_chat_url=os.getenv(
                "UPSTREAM_CHAT_URL", "https://api.groq.com/openai/v1/chat/completions"
            ),
            upstream_api_key=os.getenv("GROQ_API_KEY") or None,
            upstream_model=os.getenv("UPSTREAM_MODEL", "llama-3.1-8b-instant"),
            max_tokens_cap=int(os.getenv("MAX_TOKENS_CAP", "1024")),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "60")),
            port=port,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def load_settings(env_file=None) -> GatewaySettings:
    """Load .env (if present) and build the settings once."""
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
        logger.info(f"✅ .env loaded from {env_path}")
    else:
        logger.info("⚠️  No .env found — using environment defaults only")
    return GatewaySettings.from_env()


def configure_logging(level="INFO"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(name)-12s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
