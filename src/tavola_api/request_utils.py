"""
Request helpers shared by the API blueprints.
"""

from __future__ import annotations

from typing import Any

from flask import current_app, request


def json_object() -> dict[str, Any]:
    """Request body as a dict; anything that is not a JSON object reads as empty."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def extension(name: str) -> Any:
    """Collaborator registered on the app by ``create_app``."""
    return current_app.extensions[name]
