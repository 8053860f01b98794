"""
llm_client.py – Async client for the remote boss-decision service.

Talks to an OpenAI-compatible chat-completions endpoint (Groq by
default) with ``httpx.AsyncClient``.

State machine:

    UNINITIALIZED ──init()──▶ PROBING ──ok──▶ AVAILABLE
                                   └──fail──▶ UNAVAILABLE

``init()`` never raises: a missing credential, a network error or a
malformed probe reply all just leave the client UNAVAILABLE.  After
that, ``request_decision()`` raises ``NotAvailable`` immediately, and
callers are expected to fall back to the rule engine.

Requests are spaced at least ``min_request_interval`` seconds apart.
A caller that arrives too early is *delayed* (``await sleep``), never
dropped.  The lock guarantees the spacing also holds when several
coroutines call in at once.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable

import httpx

from boss_ai.context import DecisionContext
from boss_ai.decision import Decision, parse_decision
from boss_ai.prompts import PROBE_PROMPT, SYSTEM_INSTRUCTION, build_situation_prompt
from settings import (
    AI_API_URL, AI_MODEL, AI_MAX_TOKENS, AI_TEMPERATURE,
    AI_REQUEST_TIMEOUT, AI_MIN_REQUEST_INTERVAL,
    AI_MAX_HISTORY_LENGTH, AI_HISTORY_IN_PROMPT,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Errors
# ══════════════════════════════════════════════════════════

class DecisionClientError(Exception):
    """Base class for every failure raised by ``DecisionClient``."""


class NotAvailable(DecisionClientError):
    """A decision was requested while the client is not AVAILABLE."""


class ConnectivityFailure(DecisionClientError):
    """The service could not be reached or answered unusably."""


class BadResponseShape(ConnectivityFailure):
    """The reply was missing ``choices[0].message.content``."""


class RequestFailed(ConnectivityFailure):
    """The service answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(f"API request failed: {status} - {message}")
        self.status = status
        self.message = message


# ══════════════════════════════════════════════════════════
#  Configuration / state
# ══════════════════════════════════════════════════════════

class ClientState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PROBING = "probing"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass
class LLMConfig:
    """Everything the client needs; the credential is injected here only."""
    api_key: str | None = None
    api_url: str = AI_API_URL
    model: str = AI_MODEL
    max_tokens: int = AI_MAX_TOKENS
    temperature: float = AI_TEMPERATURE
    timeout: float = AI_REQUEST_TIMEOUT                 # seconds
    min_request_interval: float = AI_MIN_REQUEST_INTERVAL  # seconds
    max_history_length: int = AI_MAX_HISTORY_LENGTH      # exchanges
    history_in_prompt: int = AI_HISTORY_IN_PROMPT        # messages


@dataclass
class ServiceReply:
    content: str
    usage: dict = field(default_factory=dict)


# ══════════════════════════════════════════════════════════
#  Conversation window
# ══════════════════════════════════════════════════════════

class ConversationWindow:
    """Bounded role-tagged message history (in memory only).

    Holds at most ``2 × max_history_length`` messages.  Messages are
    always appended as user/assistant pairs, so overflow evicts the
    oldest pair.
    """

    def __init__(self, max_history_length: int = AI_MAX_HISTORY_LENGTH):
        self.capacity = max(2, 2 * max_history_length)
        self._messages: deque[dict] = deque(maxlen=self.capacity)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> list[dict]:
        return list(self._messages)

    def append_exchange(self, prompt: str, reply: str):
        self._messages.append({"role": "user", "content": prompt})
        self._messages.append({"role": "assistant", "content": reply})

    def recent(self, count: int) -> list[dict]:
        """Last *count* messages, trimmed so the slice opens on a user turn."""
        if count <= 0:
            return []
        window = list(self._messages)[-count:]
        while window and window[0]["role"] != "user":
            window.pop(0)
        return window

    def clear(self):
        self._messages.clear()


# ══════════════════════════════════════════════════════════
#  Client
# ══════════════════════════════════════════════════════════

class DecisionClient:
    """Rate-limited, validating client for boss decisions.

    Usage:
        client = DecisionClient(LLMConfig(api_key=key))
        await client.init()
        if client.available:
            decision = await client.request_decision(ctx)
        ...
        await client.close()
    """

    def __init__(self, config: LLMConfig | None = None,
                 transport: httpx.AsyncBaseTransport | None = None,
                 clock: Callable[[], float] | None = None,
                 sleep: Callable[[float], Awaitable[None]] | None = None):
        self.cfg = config or LLMConfig()
        self.state = ClientState.UNINITIALIZED
        self.window = ConversationWindow(self.cfg.max_history_length)

        self.last_request_time: float | None = None
        self.request_count = 0
        self.token_usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._lock: asyncio.Lock | None = None

    @property
    def available(self) -> bool:
        return self.state is ClientState.AVAILABLE

    # ── Lifecycle ─────────────────────────────────────────

    async def init(self) -> bool:
        """Probe the service once.  Returns True when AVAILABLE."""
        if not self.cfg.api_key:
            logger.warning("No API key configured – boss AI will use fallback rules")
            self.state = ClientState.UNAVAILABLE
            return False

        self.state = ClientState.PROBING
        try:
            reply = await self._send([{"role": "user", "content": PROBE_PROMPT}])
        except DecisionClientError as exc:
            logger.warning("Decision service probe failed: %s", exc)
            self.state = ClientState.UNAVAILABLE
            return False

        if not reply.content.strip():
            logger.warning("Decision service probe returned an empty reply")
            self.state = ClientState.UNAVAILABLE
            return False

        self.state = ClientState.AVAILABLE
        logger.info("Decision service available (model=%s)", self.cfg.model)
        return True

    async def set_api_key(self, api_key: str | None) -> bool:
        """Replace the credential and re-probe."""
        self.cfg.api_key = api_key
        self.state = ClientState.UNINITIALIZED
        return await self.init()

    def clear_history(self):
        self.window.clear()

    async def close(self):
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        self.window.clear()
        self.state = ClientState.UNAVAILABLE

    # ── Decisions ─────────────────────────────────────────

    async def request_decision(self, ctx: DecisionContext) -> Decision:
        """Ask the service for a decision; always returns a sanitised one.

        Raises ``NotAvailable`` when the client is not AVAILABLE and
        ``ConnectivityFailure`` (or a subclass) when the exchange fails.
        """
        if not self.available:
            raise NotAvailable(f"decision client is {self.state.value}")

        prompt = build_situation_prompt(ctx)
        messages = self.build_messages(prompt)
        try:
            reply = await self._send(messages)
        except RequestFailed:
            raise
        except ConnectivityFailure:
            self.state = ClientState.UNAVAILABLE
            logger.warning("Decision service unreachable – client now unavailable")
            raise

        decision = parse_decision(reply.content, ctx.available_patterns)
        self.window.append_exchange(prompt, reply.content)
        self.request_count += 1
        return decision

    def build_messages(self, prompt: str) -> list[dict]:
        """System instruction + recent history + the fresh prompt."""
        return [
            {"role": "system", "content": SYSTEM_INSTRUCTION},
            *self.window.recent(self.cfg.history_in_prompt),
            {"role": "user", "content": prompt},
        ]

    # ── Transport ─────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(transport=self._transport,
                                           timeout=self.cfg.timeout)
        return self._http

    async def _send(self, messages: list[dict]) -> ServiceReply:
        """Spaced POST: waits out the minimum interval, then sends."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self.last_request_time is not None:
                wait = self.cfg.min_request_interval - (self._clock() - self.last_request_time)
                if wait > 0:
                    await self._sleep(wait)
            self.last_request_time = self._clock()
            return await self._post(messages)

    async def _post(self, messages: list[dict]) -> ServiceReply:
        body = {
            "model": self.cfg.model,
            "messages": messages,
            "max_tokens": self.cfg.max_tokens,
            "temperature": self.cfg.temperature,
            "stream": False,
        }
        headers = {
            "Authorization": f"Bearer {self.cfg.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = await self._client().post(self.cfg.api_url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise ConnectivityFailure(str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise RequestFailed(response.status_code, _error_message(response))

        try:
            data = response.json()
        except ValueError as exc:
            raise BadResponseShape("response body is not JSON") from exc
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise BadResponseShape("Invalid API response format") from exc
        if not isinstance(content, str):
            raise BadResponseShape("message content is not text")

        usage = data.get("usage") or {}
        self._record_usage(usage)
        return ServiceReply(content=content, usage=usage)

    def _record_usage(self, usage: dict):
        for key in self.token_usage:
            value = usage.get(key)
            if isinstance(value, int):
                self.token_usage[key] += value

    # ── Diagnostics ───────────────────────────────────────

    def usage_stats(self) -> dict:
        return {
            "request_count": self.request_count,
            "available": self.available,
            "last_request_time": self.last_request_time,
            **self.token_usage,
        }

    def configuration(self) -> dict:
        return {
            "has_api_key": bool(self.cfg.api_key),
            "available": self.available,
            "state": self.state.value,
            "model": self.cfg.model,
            "min_request_interval": self.cfg.min_request_interval,
        }


def _error_message(response: httpx.Response) -> str:
    try:
        return str(response.json()["error"]["message"])
    except (ValueError, KeyError, TypeError):
        return "Unknown error"
