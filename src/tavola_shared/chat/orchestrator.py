"""
Chat Orchestrator

Runs one chat turn: restores history, lets the model call tools up to a fixed
bound and persists the conversation when the client supplied a session token.
"""

from __future__ import annotations

import json
from typing import Any

from tavola_shared.config import get_setting
from tavola_shared.logging_config import LoggerAdapter, get_logger
from tavola_shared.store import StoreHandle

from .config import FALLBACK_REPLY, MAX_TOOL_CALLS, SYSTEM_PROMPT, TOOL_DEFINITIONS
from .llm_client import ChatModelClient, ChatServiceError
from .memory import ChatMemory
from .tools import execute_tool_call

logger = get_logger(__name__)

TOOL_LIMIT_RESULT = {"error": "Tool call limit reached for this message"}


class ChatOrchestrator:
    """
    Tool-calling chat loop.

    Flow:
    1. Validate the message and load history for the token
    2. Call the model with the system prompt, history and tool declarations
    3. Execute requested tools in order, feeding results back
    4. Stop on a plain reply or after MAX_TOOL_CALLS tool invocations
    5. Persist the conversation under the token
    """

    def __init__(
        self,
        model_client: ChatModelClient,
        store: StoreHandle,
        memory: ChatMemory | None = None,
    ):
        self.model_client = model_client
        self.store = store
        self.memory = memory or ChatMemory(store)

    def turn(self, message: Any, session_token: str | None = None) -> dict[str, Any]:
        """
        Answer one user message.

        Args:
            message: User text
            session_token: Optional client correlation key; without it nothing
                is read from or written to the session store

        Returns:
            Dict with ``reply`` and ``session_id`` (None without a token)

        Raises:
            ChatServiceError: INVALID_MESSAGE, or a model failure
        """
        if not isinstance(message, str) or not message.strip():
            raise ChatServiceError("INVALID_MESSAGE", "Message is required")

        existing = None
        messages: list[dict[str, Any]] = []
        if session_token:
            existing = self.memory.load(session_token)
            if existing is not None:
                messages = list(existing.messages or [])

        messages.append({"role": "user", "content": message.strip()})

        tool_calls_made = 0
        while tool_calls_made < MAX_TOOL_CALLS:
            reply = self.model_client.complete(
                [self._system_message(), *messages], TOOL_DEFINITIONS
            )
            messages.append(reply.as_message())

            if not reply.tool_calls:
                break

            for call in reply.tool_calls:
                # Every call id still gets a tool message so the history stays well formed.
                if tool_calls_made >= MAX_TOOL_CALLS:
                    result = TOOL_LIMIT_RESULT
                else:
                    tool_calls_made += 1
                    result = execute_tool_call(self.store, call.name, call.arguments)
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": json.dumps(result, default=str),
                    }
                )

        last = messages[-1]
        if last.get("role") == "assistant" and isinstance(last.get("content"), str):
            reply_text = last["content"]
        else:
            reply_text = FALLBACK_REPLY

        session_id = None
        if session_token:
            session_id = self.memory.save(session_token, messages, existing)

        turn_logger = LoggerAdapter(logger, {"chat_session_id": session_id})
        turn_logger.info(
            "Chat turn finished: %s tool call(s), %s",
            tool_calls_made,
            "fallback reply" if reply_text == FALLBACK_REPLY else "model reply",
        )
        return {"reply": reply_text, "session_id": session_id}

    def _system_message(self) -> dict[str, str]:
        restaurant_name = get_setting("RESTAURANT_NAME", "Eataliano")
        return {"role": "system", "content": SYSTEM_PROMPT.format(restaurant_name=restaurant_name)}
