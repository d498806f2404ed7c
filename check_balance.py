import sys
import asyncio

from web3 import Web3

from grock_gate.balance_oracle import BalanceOracle
from grock_gate.config import configure_logging, load_settings
from grock_gate.errors import OracleUnavailable
from grock_gate.wallet_connector import RpcWallet

# Usage: python check_balance.py 0xYourWallet


async def check_balance(address, settings):
    if not Web3.is_address(address):
        print(f"❌ Not a valid wallet address: {address}")
        return 2

    print(f"🔌 Connecting to {settings.bsc_rpc_url}...")
    oracle = BalanceOracle(RpcWallet(settings.bsc_rpc_url), settings.policy)

    print(f"🔍 Checking GROCK1 balance for {address}...")
    try:
        balance = await oracle.balance_of(address)
    except OracleUnavailable as e:
        print(f"❌ {e}")
        return 1

    print(f"💰 Balance: {balance} (raw units)")
    if balance > settings.policy.min_balance:
        print("✅ Holds GROCK1 — chat access granted.")
    else:
        print("❌ No GROCK1 found — chat access denied.")
        print(f"   Buy on PancakeSwap: {settings.policy.marketplace_url}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python check_balance.py 0xYourWallet")
        sys.exit(2)
    SETTINGS = load_settings()
    configure_logging(SETTINGS.log_level)
    sys.exit(asyncio.run(check_balance(sys.argv[1], SETTINGS)))
