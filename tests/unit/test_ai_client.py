"""Unit tests for the analysis service client wrapper."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.ai_client import AnalysisClient
from src.core.exceptions import AnalysisServiceError


def completion(content, total_tokens=None):
    usage = SimpleNamespace(total_tokens=total_tokens) if total_tokens is not None else None
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))], usage=usage)


def client_returning(*responses):
    client = AnalysisClient(api_key="test-key", model="test-model", timeout=5)
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(side_effect=list(responses))
    client._client = sdk
    return client, sdk


@pytest.mark.asyncio
async def test_generate_returns_text_and_counts_tokens():
    client, sdk = client_returning(completion("hello", total_tokens=12), completion("again", total_tokens=8))

    assert await client.generate("hi", system_prompt="sys", temperature=0.2, max_tokens=50) == "hello"
    await client.generate("hi again")

    assert client.total_tokens == 20
    kwargs = sdk.chat.completions.create.await_args_list[0].kwargs
    assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
    assert kwargs["max_tokens"] == 50


@pytest.mark.asyncio
async def test_missing_usage_leaves_token_count_unchanged():
    client, _ = client_returning(completion(None))
    assert await client.generate("hi") == ""
    assert client.total_tokens == 0


@pytest.mark.asyncio
async def test_missing_key_raises_before_calling():
    client = AnalysisClient(api_key="", model="test-model")
    client.api_key = ""
    with pytest.raises(AnalysisServiceError):
        await client.generate("hi")
