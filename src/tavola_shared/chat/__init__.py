"""
Chat assistant package

Tool-calling chat loop over an OpenAI-compatible model.
"""

from tavola_shared.chat.config import FALLBACK_REPLY, MAX_TOOL_CALLS, TOOL_DEFINITIONS
from tavola_shared.chat.llm_client import (
    ChatModelClient,
    ChatServiceError,
    ModelReply,
    ToolCall,
    get_chat_model_client,
)
from tavola_shared.chat.memory import ChatMemory
from tavola_shared.chat.orchestrator import ChatOrchestrator
from tavola_shared.chat.tools import TOOL_REGISTRY, execute_tool_call

__all__ = [
    "FALLBACK_REPLY",
    "MAX_TOOL_CALLS",
    "TOOL_DEFINITIONS",
    "TOOL_REGISTRY",
    "ChatMemory",
    "ChatModelClient",
    "ChatOrchestrator",
    "ChatServiceError",
    "ModelReply",
    "ToolCall",
    "execute_tool_call",
    "get_chat_model_client",
]
