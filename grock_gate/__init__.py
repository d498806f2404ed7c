"""
GROCK1 Gate
===========
Token-gated AI chat: connect a wallet, prove a GROCK1 balance on BSC, chat.

Usage:
    from grock_gate import GatedChat, load_settings
"""

from .config import AccessPolicy, GatewaySettings, load_settings
from .gated_chat import GatedChat, SessionState

__version__ = "0.1.0"
__all__ = ["AccessPolicy", "GatewaySettings", "GatedChat", "SessionState", "load_settings"]
