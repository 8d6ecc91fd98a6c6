from __future__ import annotations

import httpx
import orjson
import pytest
import respx

from clanhub.discord import Webhook

WEBHOOK_URL = "https://discord.com/api/webhooks/1/token"


def test_webhook_json() -> None:
    webhook = Webhook(WEBHOOK_URL, content="hello", username="clanhub")
    assert orjson.loads(webhook.json) == {"content": "hello", "username": "clanhub"}


@pytest.mark.parametrize("content", [None, "", "a" * 2001])
def test_webhook_json_rejects_bad_content(content: str | None) -> None:
    with pytest.raises(ValueError):
        Webhook(WEBHOOK_URL, content=content).json


async def test_webhook_post(respx_mock: respx.MockRouter) -> None:
    route = respx_mock.post(WEBHOOK_URL).mock(return_value=httpx.Response(204))

    async with httpx.AsyncClient() as http_client:
        await Webhook(WEBHOOK_URL, content="hello").post(http_client)

    assert route.call_count == 1
    assert orjson.loads(route.calls.last.request.content) == {"content": "hello"}
