"""
Chat Session
============
Ordered transcript of user/assistant messages plus the single in-flight
request to the completion proxy.

A send is two appends: the user's message immediately, then the assistant's
message once the proxy answers. Only one request may be in flight; a second
send while Sending is rejected with SendInProgress so the transcript order
always matches submission order.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import httpx

from .errors import AccessDenied, CompletionFailure, SendInProgress

logger = logging.getLogger("ChatSession")

UNAVAILABLE_TEXT = "AI is unavailable right now."
NO_RESPONSE_TEXT = "No response."


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str


class SendState(Enum):
    IDLE = "idle"
    SENDING = "sending"


def extract_completion(payload) -> Optional[str]:
    """Return ``choices[0].message.content``, or None if any link is missing."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str):
        return None
    return content


class ChatSession:
    def __init__(self, proxy_url, timeout=60.0, transport=None):
        self.proxy_url = proxy_url
        self.timeout = timeout
        self.transport = transport  # injectable for tests / in-process ASGI
        self.has_access = False
        self.state = SendState.IDLE
        self.closed = False
        self._messages: List[Message] = []
        self._inflight: Optional[asyncio.Future] = None

    @property
    def transcript(self):
        return tuple(self._messages)

    @property
    def pending(self) -> bool:
        return self.state is SendState.SENDING

    async def send(self, text) -> Optional[Message]:
        """
        Send one prompt and append the reply.

        Returns the assistant message, or None when nothing was sent (blank
        input) or the session was closed before the reply arrived.
        """
        if not self.has_access:
            raise AccessDenied()

        prompt = (text or "").strip()
        if not prompt:
            return None

        if self.state is not SendState.IDLE:
            raise SendInProgress()

        self.state = SendState.SENDING
        self._messages.append(Message(Role.USER, prompt))
        try:
            self._inflight = asyncio.ensure_future(self._complete(prompt))
            content = await self._inflight
        finally:
            self._inflight = None
            self.state = SendState.IDLE

        if self.closed:
            logger.info("🗑️  Session closed mid-request, dropping reply")
            return None

        reply = Message(Role.ASSISTANT, content)
        self._messages.append(reply)
        return reply

    async def _complete(self, prompt) -> str:
        try:
            content = await self._request(prompt)
        except CompletionFailure as e:
            logger.error(f"❌ Completion failed: {e}")
            return UNAVAILABLE_TEXT
        return content or NO_RESPONSE_TEXT

    async def _request(self, prompt) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.proxy_url, json={"prompt": prompt})
        except httpx.HTTPError as e:
            raise CompletionFailure(f"proxy unreachable: {e}") from e

        if not resp.is_success:
            raise CompletionFailure(f"proxy returned {resp.status_code}: {resp.text[:100]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise CompletionFailure("proxy returned a non-JSON body") from e

        content = extract_completion(data)
        if content is None:
            raise CompletionFailure("no choices[0].message.content in proxy response")
        return content

    def close(self):
        """Tear down: any reply still in flight will be discarded."""
        self.closed = True
        self.has_access = False
