"""
Chat model client

Talks to an OpenAI-compatible chat completions endpoint with tool calling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from tavola_shared.config import AppConfig
from tavola_shared.error_catalog import ServiceError
from tavola_shared.logging_config import get_logger

from .config import TEMPERATURE

logger = get_logger(__name__)

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


class ChatServiceError(ServiceError):
    """Raised for rejected chat input and chat model failures."""


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: str


@dataclass
class ModelReply:
    """Assistant turn returned by the model."""

    content: str | None
    tool_calls: list[ToolCall] = field(default_factory=list)

    def as_message(self) -> dict[str, Any]:
        """Assistant message in the wire format, keeping tool-call ids for linkage."""
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


class ChatModelClient:
    """Synchronous client for OpenAI-compatible chat completions."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str = "gpt-4o",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._api_key = api_key
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> ChatModelClient:
        return cls(
            base_url=config.llm_base_url,
            api_key=config.llm_api_key,
            model=config.llm_model,
            timeout=config.llm_timeout_seconds,
        )

    def complete(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> ModelReply:
        """
        Request the next assistant turn.

        Args:
            messages: Conversation in the wire format, system prompt first
            tools: Function declarations offered to the model

        Returns:
            ModelReply with text content and/or tool calls

        Raises:
            ChatServiceError: CHAT_MISCONFIGURED, CHAT_UPSTREAM_TIMEOUT or CHAT_FAILED
        """
        if not self._api_key:
            raise ChatServiceError("CHAT_MISCONFIGURED", "Chat service configuration error")

        payload = {
            "model": self.model,
            "messages": messages,
            "tools": tools,
            "temperature": TEMPERATURE,
        }

        try:
            response = self._http.post(CHAT_COMPLETIONS_PATH, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error("Chat model timed out: %s", e)
            raise ChatServiceError("CHAT_UPSTREAM_TIMEOUT", "Chat service timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "Chat model returned %s: %s", e.response.status_code, e.response.text
            )
            if e.response.status_code in (401, 403):
                raise ChatServiceError(
                    "CHAT_MISCONFIGURED", "Chat service configuration error"
                ) from e
            raise ChatServiceError("CHAT_FAILED", "Failed to process chat message") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Chat model request failed: %s", e)
            raise ChatServiceError("CHAT_FAILED", "Failed to process chat message") from e

        return self._parse_reply(data)

    def _parse_reply(self, data: dict[str, Any]) -> ModelReply:
        try:
            message = data["choices"][0]["message"]
            tool_calls = [
                ToolCall(
                    id=call["id"],
                    name=call["function"]["name"],
                    arguments=call["function"].get("arguments") or "{}",
                )
                for call in message.get("tool_calls") or []
            ]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected chat completion shape: %s", data)
            raise ChatServiceError("CHAT_FAILED", "Failed to process chat message") from e

        return ModelReply(content=message.get("content"), tool_calls=tool_calls)

    def close(self) -> None:
        self._http.close()


# Global client instance
_chat_model_client: ChatModelClient | None = None


def get_chat_model_client(config: AppConfig) -> ChatModelClient:
    """Get the process-wide chat model client."""
    global _chat_model_client
    if _chat_model_client is None:
        _chat_model_client = ChatModelClient.from_config(config)
    return _chat_model_client
