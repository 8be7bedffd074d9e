"""
Chat session memory

Stores each conversation under its client-supplied session token.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from tavola_shared.models import ChatSession, utcnow
from tavola_shared.store import StoreHandle


class ChatMemory:
    """Conversation history persisted in the chat_sessions table."""

    def __init__(self, store: StoreHandle):
        self.store = store

    def load(self, session_token: str) -> ChatSession | None:
        """Fetch the session stored under a token, if any."""
        session = self.store.require_privileged("load chat session")
        return session.execute(
            select(ChatSession).where(ChatSession.session_token == session_token)
        ).scalar_one_or_none()

    def save(
        self,
        session_token: str,
        messages: list[dict[str, Any]],
        existing: ChatSession | None = None,
    ) -> str:
        """
        Insert or replace the message list for a token.

        Returns:
            ID of the chat session
        """
        session = self.store.require_privileged("save chat session")
        if existing is None:
            existing = ChatSession(session_token=session_token, messages=list(messages))
            session.add(existing)
        else:
            existing.messages = list(messages)
            existing.updated_at = utcnow()
        session.commit()
        return existing.id
