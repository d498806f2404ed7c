"""
Error taxonomy for the gated chat.

Wallet and oracle errors block the connection and are shown as alerts.
Completion failures never escape the chat session: they become a fallback
assistant message instead.
"""


class GateError(Exception):
    """Base class. ``str(err)`` is the message shown to the user."""

    default_message = "Something went wrong."

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class NoWalletCapability(GateError):
    default_message = "Please install MetaMask!"


class UserRejected(GateError):
    default_message = "Wallet connection was rejected."


class WrongNetwork(GateError):
    default_message = "Please switch to Binance Smart Chain (BSC) in your wallet."


class WalletRpcError(GateError):
    """A wallet/node JSON-RPC call failed (transport or RPC error object)."""

    default_message = "Wallet RPC call failed."

    def __init__(self, message=None, code=None):
        super().__init__(message)
        self.code = code


class OracleUnavailable(GateError):
    default_message = "Could not read your GROCK1 balance. Please try connecting again."


class AccessDenied(GateError):
    default_message = "You need at least 1 GROCK1 token to use the AI!"


class SendInProgress(GateError):
    default_message = "Please wait for the AI to answer before sending again."


class CompletionFailure(GateError):
    default_message = "AI is unavailable right now."
