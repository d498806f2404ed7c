"""
Wallet Connector
================
Talks to an EIP-1193 style wallet over JSON-RPC.

The connector only needs four wallet operations (see ``WalletCapability``).
``RpcWallet`` implements them on top of web3's async HTTP provider, so the
same class works against a desktop wallet that exposes accounts (Frame,
http://127.0.0.1:1248) or a plain read-only BSC node for balance lookups.

Usage:
    wallet = RpcWallet("http://127.0.0.1:1248")
    result = await WalletConnector(wallet, policy).connect()
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

from aiohttp import ClientError, ClientTimeout
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception

from .config import AccessPolicy, parse_chain_id
from .errors import NoWalletCapability, UserRejected, WalletRpcError

logger = logging.getLogger("WalletConnector")

USER_REJECTED_CODE = 4001  # EIP-1193: user rejected the request


class WalletCapability(ABC):
    """The four operations the gate consumes from a wallet."""

    @abstractmethod
    async def request_accounts(self) -> List[str]:
        ...

    @abstractmethod
    async def get_chain_id(self):
        ...

    @abstractmethod
    async def switch_chain(self, chain_id: int) -> None:
        ...

    @abstractmethod
    async def call(self, contract_address: str, abi_method: dict, args: list) -> Any:
        ...


class RpcWallet(WalletCapability):
    def __init__(self, rpc_url, timeout=30.0):
        self.rpc_url = rpc_url
        self.w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": ClientTimeout(total=timeout)},
                # one request per read: a failed balance check is reported, never retried
                exception_retry_configuration=None,
            )
        )

    async def _rpc(self, method, params=None):
        try:
            response = await self.w3.provider.make_request(method, params or [])
        except (ClientError, OSError, asyncio.TimeoutError) as e:
            raise WalletRpcError(f"{method} failed: {e}") from e

        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise WalletRpcError(error.get("message"), code=error.get("code"))
            raise WalletRpcError(str(error))
        return response.get("result")

    async def request_accounts(self):
        return await self._rpc("eth_requestAccounts")

    async def get_chain_id(self):
        return await self._rpc("eth_chainId")

    async def switch_chain(self, chain_id):
        await self._rpc("wallet_switchEthereumChain", [{"chainId": hex(chain_id)}])

    async def call(self, contract_address, abi_method, args):
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=[abi_method]
        )
        # web3 only accepts checksummed addresses as arguments
        call_args = [
            Web3.to_checksum_address(value) if param["type"] == "address" else value
            for param, value in zip(abi_method["inputs"], args)
        ]
        function = getattr(contract.functions, abi_method["name"])
        try:
            return await function(*call_args).call()
        # ValueError: RPC error objects on older web3, undecodable return data
        except (Web3Exception, ValueError, ClientError, OSError, asyncio.TimeoutError) as e:
            raise WalletRpcError(f"{abi_method['name']} call failed: {e}") from e


@dataclass(frozen=True)
class ConnectionResult:
    address: str
    network_ok: bool


class WalletConnector:
    def __init__(self, wallet: Optional[WalletCapability], policy: AccessPolicy):
        self.wallet = wallet
        self.policy = policy

    async def connect(self) -> ConnectionResult:
        """
        Ask the wallet for accounts, then make sure it is on the required chain.

        Raises NoWalletCapability / UserRejected. A refused network switch is
        not an exception: the result comes back with ``network_ok=False``.
        """
        if self.wallet is None:
            raise NoWalletCapability()

        try:
            accounts = await self.wallet.request_accounts()
        except WalletRpcError as e:
            if e.code == USER_REJECTED_CODE:
                logger.info("🙅 User rejected the account request")
                raise UserRejected() from e
            logger.warning(f"🔌 Wallet not reachable: {e}")
            raise NoWalletCapability() from e

        if not accounts:
            raise UserRejected()

        address = accounts[0]
        logger.info(f"🔑 Connected account {address[:10]}...")
        return ConnectionResult(address=address, network_ok=await self._ensure_network())

    async def _ensure_network(self) -> bool:
        try:
            current = parse_chain_id(await self.wallet.get_chain_id())
        except (WalletRpcError, TypeError, ValueError) as e:
            raise NoWalletCapability("Could not read the active network from your wallet.") from e

        if current == self.policy.chain_id:
            return True

        logger.info(f"🔀 Wallet on chain {hex(current)}, requesting {self.policy.chain_id_hex}")
        try:
            await self.wallet.switch_chain(self.policy.chain_id)
        except WalletRpcError as e:
            logger.warning(f"⚠️  Network switch refused: {e}")
            return False
        return True
