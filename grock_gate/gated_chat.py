"""
Gated Chat — ties the wallet, the balance check and the chat session together
and keeps the state the page is rendered from.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .balance_oracle import BalanceOracle
from .chat_session import ChatSession
from .config import GatewaySettings
from .errors import AccessDenied, GateError, SendInProgress, WrongNetwork
from .wallet_connector import WalletCapability, WalletConnector

logger = logging.getLogger("GatedChat")


@dataclass
class SessionState:
    connected: bool = False
    has_access: bool = False
    address: str = ""
    pending: bool = False
    network_ok: bool = True
    alerts: List[str] = field(default_factory=list)
    draft: str = ""


class GatedChat:
    def __init__(self, settings: GatewaySettings, wallet: Optional[WalletCapability] = None,
                 chat_transport=None):
        self.settings = settings
        self.policy = settings.policy
        self.wallet = wallet
        self.chat_transport = chat_transport
        self.connector = WalletConnector(wallet, self.policy)
        self.oracle = BalanceOracle(wallet, self.policy)
        self.state = SessionState()
        self.session = self._new_session()

    def _new_session(self):
        return ChatSession(
            self.settings.chat_proxy_url,
            timeout=self.settings.request_timeout,
            transport=self.chat_transport,
        )

    @property
    def transcript(self):
        return self.session.transcript

    def alert(self, message):
        logger.info(f"🔔 {message}")
        self.state.alerts.append(str(message))

    def take_alerts(self) -> List[str]:
        alerts, self.state.alerts = self.state.alerts, []
        return alerts

    def snapshot(self) -> SessionState:
        return replace(self.state, pending=self.session.pending, alerts=list(self.state.alerts))

    async def connect(self) -> SessionState:
        """Connect, check the network, then check the balance exactly once."""
        self.state.connected = False
        self.state.has_access = False
        self.session.has_access = False

        try:
            result = await self.connector.connect()
            self.state.address = result.address
            self.state.network_ok = result.network_ok
            if not result.network_ok:
                # Wrong chain: warn and never ask the oracle
                self.alert(WrongNetwork())
                return self.state
            has_access = await self.oracle.check_access(result.address)
        except GateError as e:
            self.alert(e)
            return self.state

        self.state.connected = True
        self.state.has_access = has_access
        self.session.has_access = has_access
        return self.state

    async def send(self, text):
        self.state.draft = ""
        try:
            return await self.session.send(text)
        except (AccessDenied, SendInProgress) as e:
            # Rejected sends keep what the user typed
            self.state.draft = text or ""
            self.alert(e)
            return None

    def disconnect(self):
        """Drop the session; an answer still in flight is discarded."""
        self.session.close()
        self.session = self._new_session()
        self.state = SessionState()
        logger.info("👋 Session reset")
