import httpx
import pytest

from grock_gate.config import AccessPolicy, GatewaySettings
from grock_gate.errors import WalletRpcError
from grock_gate.wallet_connector import WalletCapability

ALICE = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
PROXY_URL = "http://gateway.test/api/chat"
UPSTREAM_URL = "https://llm.test/openai/v1/chat/completions"


class FakeWallet(WalletCapability):
    def __init__(self, accounts=(ALICE,), chain_id="0x38", balance=10**18,
                 reject_accounts=False, unreachable=False, reject_switch=False,
                 balance_error=False):
        self.accounts = list(accounts)
        self.chain_id = chain_id
        self.balance = balance
        self.reject_accounts = reject_accounts
        self.unreachable = unreachable
        self.reject_switch = reject_switch
        self.balance_error = balance_error
        self.calls = []

    async def request_accounts(self):
        self.calls.append(("request_accounts",))
        if self.unreachable:
            raise WalletRpcError("eth_requestAccounts failed: connection refused")
        if self.reject_accounts:
            raise WalletRpcError("User rejected the request.", code=4001)
        return list(self.accounts)

    async def get_chain_id(self):
        self.calls.append(("get_chain_id",))
        return self.chain_id

    async def switch_chain(self, chain_id):
        self.calls.append(("switch_chain", chain_id))
        if self.reject_switch:
            raise WalletRpcError("User rejected the request.", code=4001)
        self.chain_id = hex(chain_id)

    async def call(self, contract_address, abi_method, args):
        self.calls.append(("call", contract_address, abi_method["name"], list(args)))
        if self.balance_error:
            raise WalletRpcError("balanceOf call failed: read timeout")
        return self.balance

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def proxy_transport(content="It is a token.", status=200, seen=None):
    """MockTransport answering every proxy POST with a fixed completion."""

    def handler(request):
        if seen is not None:
            seen.append(request)
        if status != 200:
            return httpx.Response(status, json={"error": "AI service error"})
        return httpx.Response(200, json=completion(content))

    return httpx.MockTransport(handler)


@pytest.fixture
def policy():
    return AccessPolicy()


@pytest.fixture
def settings(policy):
    return GatewaySettings(
        policy=policy,
        wallet_rpc_url=None,
        chat_proxy_url=PROXY_URL,
        upstream_chat_url=UPSTREAM_URL,
        upstream_api_key="gsk-test-key",
        upstream_model="llama-3.1-8b-instant",
        max_tokens_cap=256,
        request_timeout=5.0,
    )


@pytest.fixture
def wallet():
    return FakeWallet()
