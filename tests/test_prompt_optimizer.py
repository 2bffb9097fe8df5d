"""Tests for the prompt optimizer client."""

import httpx
import pytest

from comfyrun.services.prompt_optimizer import PromptOptimizer

URL = "https://hook.example/optimize"


def make_optimizer(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PromptOptimizer(url=URL, client=client, timeout_seconds=1.0)


@pytest.mark.asyncio
async def test_returns_optimized_content():
    """Test that the optimized content replaces the prompt."""
    seen = {}

    def handler(request):
        seen["body"] = request.read()
        return httpx.Response(200, json={"choices": [{"content": "a glass bottle, galaxy inside"}]})

    optimizer = make_optimizer(handler)

    assert await optimizer.optimize("bottle") == "a glass bottle, galaxy inside"
    assert b'"prompt":' in seen["body"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={}),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"content": ""}]}),
        httpx.Response(200, json={"choices": [{"content": 42}]}),
        httpx.Response(200, json=["unexpected"]),
    ],
)
async def test_falls_back_to_original_prompt(response):
    """Test fallback to the original prompt on unusable responses."""
    optimizer = make_optimizer(lambda request: response)

    assert await optimizer.optimize("bottle") == "bottle"


@pytest.mark.asyncio
async def test_network_error_is_absorbed():
    """Test that a transport error falls back to the original prompt."""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    optimizer = make_optimizer(handler)

    assert await optimizer.optimize("bottle") == "bottle"


@pytest.mark.asyncio
async def test_single_attempt_only():
    """Test that the optimizer never retries."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    optimizer = make_optimizer(handler)
    await optimizer.optimize("bottle")

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_unconfigured_url_is_identity():
    """Test that no URL means the prompt passes through unchanged."""
    optimizer = PromptOptimizer(url="")

    assert await optimizer.optimize("bottle") == "bottle"
