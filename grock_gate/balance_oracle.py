"""
Balance Oracle — one read-only balanceOf call, reduced to "has access".
"""

import logging

from .config import BALANCE_OF_ABI, AccessPolicy
from .errors import OracleUnavailable, WalletRpcError
from .wallet_connector import WalletCapability

logger = logging.getLogger("BalanceOracle")


class BalanceOracle:
    def __init__(self, wallet: WalletCapability, policy: AccessPolicy):
        self.wallet = wallet
        self.policy = policy

    async def balance_of(self, address: str) -> int:
        try:
            raw = await self.wallet.call(self.policy.token_address, BALANCE_OF_ABI, [address])
        except WalletRpcError as e:
            logger.error(f"❌ balanceOf failed: {e}")
            raise OracleUnavailable() from e

        # bool is an int subclass; a node answering True/False is not a balance
        if not isinstance(raw, int) or isinstance(raw, bool):
            logger.error(f"❌ balanceOf returned a non-integer: {raw!r}")
            raise OracleUnavailable()
        return raw

    async def check_access(self, address: str) -> bool:
        """True only for a confirmed balance above the policy threshold."""
        balance = await self.balance_of(address)
        has_access = balance > self.policy.min_balance
        logger.info(f"💰 {address[:10]}... holds {balance} (access={'YES' if has_access else 'NO'})")
        return has_access
