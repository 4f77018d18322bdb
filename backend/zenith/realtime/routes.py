from __future__ import annotations

from flask import Blueprint, current_app

from ..extensions import sock


realtime_bp = Blueprint("realtime", __name__)


@sock.route("/ws", bp=realtime_bp)
def events(ws):  # type: ignore[no-untyped-def]
    registry = current_app.extensions["connection_registry"]
    registry.register(ws)
    try:
        # Server push only; anything the client sends is read and dropped.
        while ws.connected:
            ws.receive(timeout=30)
    finally:
        registry.unregister(ws)
