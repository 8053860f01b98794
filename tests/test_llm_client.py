"""Tests for boss_ai.llm_client using httpx.MockTransport (no network)."""

import asyncio
import json

import httpx
import pytest

from boss_ai.llm_client import (
    BadResponseShape, ClientState, ConnectivityFailure, ConversationWindow,
    DecisionClient, LLMConfig, NotAvailable, RequestFailed,
)
from tests.conftest import FakeClock, make_context


def _reply(content: str, usage=None) -> httpx.Response:
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    if usage is not None:
        body["usage"] = usage
    return httpx.Response(200, json=body)


def _decision_json(pattern="spread") -> str:
    return json.dumps({"attackPattern": pattern, "movement": {"target": "right", "speed": 1.5},
                       "reasoning": "test"})


class ScriptedService:
    """Handler returning queued responses; the last one repeats."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _client(service, api_key="test-key", clock=None, sleeps=None, **cfg):
    clock = clock or FakeClock()
    sleeps = sleeps if sleeps is not None else []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        clock.advance(seconds)

    config = LLMConfig(api_key=api_key, **cfg)
    return DecisionClient(config, transport=httpx.MockTransport(service),
                          clock=clock, sleep=fake_sleep)


class TestInit:
    """Probe and availability state machine."""

    def test_no_key_is_unavailable_without_network(self):
        service = ScriptedService(_reply("OK"))
        client = _client(service, api_key=None)
        assert asyncio.run(client.init()) is False
        assert client.state is ClientState.UNAVAILABLE
        assert service.requests == []

    def test_probe_success(self):
        service = ScriptedService(_reply("OK"))
        client = _client(service)
        assert asyncio.run(client.init()) is True
        assert client.available
        body = service.bodies()[0]
        assert body["messages"] == [{"role": "user", "content": "Respond with 'OK' if you can hear me."}]
        assert body["stream"] is False
        assert service.requests[0].headers["Authorization"] == "Bearer test-key"

    @pytest.mark.parametrize("response", [
        httpx.Response(401, json={"error": {"message": "bad key"}}),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, text="not json"),
        _reply("   "),
    ])
    def test_probe_failure_never_raises(self, response):
        client = _client(ScriptedService(response))
        assert asyncio.run(client.init()) is False
        assert client.state is ClientState.UNAVAILABLE

    def test_probe_transport_error(self):
        service = ScriptedService(httpx.ConnectError("refused"))
        client = _client(service)
        assert asyncio.run(client.init()) is False

    def test_set_api_key_reprobes(self):
        service = ScriptedService(_reply("OK"))
        client = _client(service, api_key=None)

        async def scenario():
            await client.init()
            assert not client.available
            return await client.set_api_key("new-key")

        assert asyncio.run(scenario()) is True
        assert service.requests[0].headers["Authorization"] == "Bearer new-key"
        assert client.configuration()["has_api_key"] is True


class TestRequestDecision:
    """Decision requests, errors and diagnostics."""

    def test_not_available(self):
        client = _client(ScriptedService(_reply("OK")))
        with pytest.raises(NotAvailable):
            asyncio.run(client.request_decision(make_context()))

    def test_fenced_reply_is_parsed_and_recorded(self):
        fenced = f"```json\n{_decision_json('spiral')}\n```"
        service = ScriptedService(_reply("OK"), _reply(fenced))
        client = _client(service)

        async def scenario():
            await client.init()
            return await client.request_decision(make_context())

        decision = asyncio.run(scenario())
        assert decision.attack_pattern == "spiral"
        assert decision.movement.target == "right"
        assert decision.movement.speed == 1.5
        assert client.request_count == 1
        assert len(client.window) == 2
        assert client.window.messages[1]["content"] == fenced

    def test_illegal_pattern_is_corrected(self):
        service = ScriptedService(_reply("OK"), _reply(_decision_json("ultimate")))
        client = _client(service)

        async def scenario():
            await client.init()
            return await client.request_decision(make_context(patterns=("homing", "laser")))

        assert asyncio.run(scenario()).attack_pattern == "homing"

    def test_request_failed_keeps_client_available(self):
        service = ScriptedService(
            _reply("OK"),
            httpx.Response(429, json={"error": {"message": "rate limited"}}),
        )
        client = _client(service)

        async def scenario():
            await client.init()
            with pytest.raises(RequestFailed) as info:
                await client.request_decision(make_context())
            return info.value

        error = asyncio.run(scenario())
        assert error.status == 429
        assert error.message == "rate limited"
        assert client.available

    def test_error_without_body_message(self):
        service = ScriptedService(_reply("OK"), httpx.Response(500, text="oops"))
        client = _client(service)

        async def scenario():
            await client.init()
            with pytest.raises(RequestFailed) as info:
                await client.request_decision(make_context())
            return info.value

        assert asyncio.run(scenario()).message == "Unknown error"

    @pytest.mark.parametrize("failure, error_type", [
        (httpx.ReadTimeout("slow"), ConnectivityFailure),
        (httpx.Response(200, json={"choices": []}), BadResponseShape),
    ])
    def test_connectivity_failure_makes_client_unavailable(self, failure, error_type):
        client = _client(ScriptedService(_reply("OK"), failure))

        async def scenario():
            await client.init()
            with pytest.raises(error_type):
                await client.request_decision(make_context())

        asyncio.run(scenario())
        assert client.state is ClientState.UNAVAILABLE

    def test_history_replayed_in_prompt(self):
        service = ScriptedService(_reply("OK"), _reply(_decision_json()))
        client = _client(service, history_in_prompt=4)

        async def scenario():
            await client.init()
            for _ in range(3):
                await client.request_decision(make_context())

        asyncio.run(scenario())
        last = service.bodies()[-1]["messages"]
        roles = [m["role"] for m in last]
        assert roles == ["system", "user", "assistant", "user", "assistant", "user"]

    def test_usage_stats(self):
        usage = {"prompt_tokens": 10, "completion_tokens": 4, "total_tokens": 14}
        service = ScriptedService(_reply("OK", usage), _reply(_decision_json(), usage))
        client = _client(service)

        async def scenario():
            await client.init()
            await client.request_decision(make_context())

        asyncio.run(scenario())
        stats = client.usage_stats()
        assert stats["request_count"] == 1
        assert stats["total_tokens"] == 28
        assert stats["available"] is True


class TestSpacing:
    """Minimum interval between consecutive requests."""

    def test_requests_are_delayed_not_dropped(self):
        clock = FakeClock(0.0)
        sleeps = []
        service = ScriptedService(_reply("OK"), _reply(_decision_json()))
        client = _client(service, clock=clock, sleeps=sleeps, min_request_interval=1.0)

        async def scenario():
            await client.init()
            await client.request_decision(make_context())
            clock.advance(0.25)
            await client.request_decision(make_context())

        asyncio.run(scenario())
        assert len(service.requests) == 3
        assert sleeps == [pytest.approx(1.0), pytest.approx(0.75)]

    def test_no_wait_after_interval(self):
        clock = FakeClock(0.0)
        sleeps = []
        service = ScriptedService(_reply("OK"), _reply(_decision_json()))
        client = _client(service, clock=clock, sleeps=sleeps)

        async def scenario():
            await client.init()
            clock.advance(5.0)
            await client.request_decision(make_context())

        asyncio.run(scenario())
        assert sleeps == []

    def test_burst_of_requests_stays_spaced(self):
        clock = FakeClock(0.0)
        sent_at = []
        service = ScriptedService(_reply("OK"), _reply(_decision_json()))

        def handler(request):
            sent_at.append(clock())
            return service(request)

        client = _client(handler, clock=clock, min_request_interval=1.0)

        async def scenario():
            await client.init()
            for _ in range(10):
                await client.request_decision(make_context())
                clock.advance(0.1)

        asyncio.run(scenario())
        assert len(sent_at) == 11
        gaps = [later - earlier for earlier, later in zip(sent_at, sent_at[1:])]
        assert all(gap >= 1.0 - 1e-9 for gap in gaps)

    def test_concurrent_callers_are_serialised(self):
        clock = FakeClock(0.0)
        sleeps = []
        service = ScriptedService(_reply("OK"), _reply(_decision_json()))
        client = _client(service, clock=clock, sleeps=sleeps)

        async def scenario():
            await client.init()
            clock.advance(10.0)
            await asyncio.gather(client.request_decision(make_context()),
                                 client.request_decision(make_context()))

        asyncio.run(scenario())
        assert sleeps == [pytest.approx(1.0)]


class TestConversationWindow:
    """Bounded history."""

    def test_capacity_is_twice_exchanges(self):
        window = ConversationWindow(max_history_length=2)
        for i in range(5):
            window.append_exchange(f"p{i}", f"r{i}")
        assert len(window) == 4
        assert window.messages[0]["content"] == "p3"

    def test_recent_starts_on_user_turn(self):
        window = ConversationWindow(max_history_length=5)
        window.append_exchange("p0", "r0")
        window.append_exchange("p1", "r1")
        recent = window.recent(3)
        assert [m["content"] for m in recent] == ["p1", "r1"]
        assert window.recent(0) == []

    def test_close_clears_history(self):
        service = ScriptedService(_reply("OK"), _reply(_decision_json()))
        client = _client(service)

        async def scenario():
            await client.init()
            await client.request_decision(make_context())
            await client.close()

        asyncio.run(scenario())
        assert len(client.window) == 0
        assert not client.available
