"""
Chat assistant endpoint.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify

from tavola_api.request_utils import extension, json_object
from tavola_shared.chat import ChatOrchestrator
from tavola_shared.schemas import ChatRequest
from tavola_shared.store import privileged_store

chat_bp = Blueprint("chat", __name__)


@chat_bp.post("/chat")
def chat_turn():
    """Answer one guest message, resuming the conversation for session_token."""
    data = ChatRequest.model_validate(json_object())
    with privileged_store() as store:
        orchestrator = ChatOrchestrator(extension("chat_model_client"), store)
        result = orchestrator.turn(data.message, data.session_token)
    return jsonify(result), HTTPStatus.OK
