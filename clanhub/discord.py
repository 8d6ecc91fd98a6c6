"""Functionality related to Discord interactivity."""

from __future__ import annotations

from typing import Any

import httpx
import orjson
from tenacity import retry
from tenacity import stop_after_attempt
from tenacity import wait_exponential

# NOTE: this module currently only implements discord webhooks

__all__ = ("Webhook",)

MAX_CONTENT_LENGTH = 2000


class Webhook:
    """A class to represent a single-use Discord webhook."""

    def __init__(self, url: str, **kwargs: Any) -> None:
        self.url = url
        self.content = kwargs.get("content")
        self.username = kwargs.get("username")
        self.avatar_url = kwargs.get("avatar_url")

    @property
    def json(self) -> str:
        if not self.content:
            raise ValueError("Webhook must contain content.")

        if len(self.content) > MAX_CONTENT_LENGTH:
            raise ValueError(
                f"Webhook content must be under {MAX_CONTENT_LENGTH} characters.",
            )

        payload: dict[str, Any] = {}

        for key in ("content", "username", "avatar_url"):
            val = getattr(self, key)
            if val is not None:
                payload[key] = val

        return orjson.dumps(payload).decode()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def post(self, http_client: httpx.AsyncClient) -> None:
        """Post the webhook in JSON format."""
        headers = {"Content-Type": "application/json"}
        response = await http_client.post(
            self.url,
            content=self.json,
            headers=headers,
        )
        response.raise_for_status()
