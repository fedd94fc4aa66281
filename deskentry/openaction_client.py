"""
OpenAction Client: WebSocket connection to the OpenAction host.

The host starts the plugin with -port/-pluginUUID/-registerEvent/-info,
the plugin connects to ws://localhost:<port>, registers itself, then
receives JSON events (willAppear, keyUp, ...) and sends commands back
(setImage, sendToPropertyInspector, ...).

Each incoming event is handled on its own worker thread so a slow app
scan for one key never holds up another key's events.
"""

import json
import logging
import threading
from typing import Any, Callable, Dict, Optional

import websocket

logger = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], None]


class OpenActionClientError(Exception):
    """Raised when the host connection is unusable."""
    pass


class OpenActionClient:
    """WebSocket client for the OpenAction plugin protocol"""

    def __init__(
        self,
        port: int,
        plugin_uuid: str,
        register_event: str,
        info: Optional[Dict[str, Any]] = None,
        app_factory=websocket.WebSocketApp,
    ):
        self.url = f"ws://localhost:{port}"
        self.plugin_uuid = plugin_uuid
        self.register_event = register_event
        self.info = info or {}
        self._app_factory = app_factory
        self._ws = None
        self._handlers: Dict[str, EventHandler] = {}
        self._send_lock = threading.Lock()

    def on(self, event: str, handler: EventHandler) -> None:
        """Register the handler for an incoming event name."""
        self._handlers[event] = handler

    def run(self) -> None:
        """Connect and process events until the host closes the socket."""
        self._ws = self._app_factory(
            self.url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        logger.info("Connecting to %s", self.url)
        self._ws.run_forever()

    def close(self) -> None:
        if self._ws is not None:
            self._ws.close()

    # ------------------------------------------------------------------
    # Outgoing
    # ------------------------------------------------------------------

    def send_json(self, message: Dict[str, Any]) -> None:
        """Send one JSON message to the host.

        Raises OpenActionClientError if not connected or the socket is closed.
        """
        if self._ws is None:
            raise OpenActionClientError("Not connected to OpenAction host")
        data = json.dumps(message)
        try:
            with self._send_lock:
                self._ws.send(data)
        except (websocket.WebSocketException, OSError) as e:
            raise OpenActionClientError(f"Send failed: {e}")

    def send_to_property_inspector(self, context: str, payload: Dict[str, Any]) -> None:
        self.send_json({
            "event": "sendToPropertyInspector",
            "context": context,
            "payload": payload,
        })

    def set_image(self, context: str, image: Optional[str], state: Optional[int] = None) -> None:
        """Set a key's image. image is a data URI, or "icon" for the default."""
        payload: Dict[str, Any] = {"image": image, "target": 0}
        if state is not None:
            payload["state"] = state
        self.send_json({"event": "setImage", "context": context, "payload": payload})

    # ------------------------------------------------------------------
    # WebSocketApp callbacks
    # ------------------------------------------------------------------

    def _on_open(self, ws) -> None:
        ws.send(json.dumps({"event": self.register_event, "uuid": self.plugin_uuid}))
        host = self.info.get("application", {})
        logger.info("Registered plugin %s with %s %s", self.plugin_uuid,
                    host.get("platform", "host"), host.get("version", ""))

    def _on_message(self, ws, message) -> None:
        try:
            event = json.loads(message)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.error("Invalid message from host: %s", exc)
            return
        if not isinstance(event, dict):
            logger.error("Unexpected message from host: %r", event)
            return

        name = event.get("event", "")
        handler = self._handlers.get(name)
        if handler is None:
            logger.debug("Ignoring event %s", name)
            return

        threading.Thread(
            target=self._dispatch, args=(handler, event), name=f"event-{name}", daemon=True
        ).start()

    def _dispatch(self, handler: EventHandler, event: Dict[str, Any]) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception("Handler for %s failed", event.get("event"))

    def _on_error(self, ws, error) -> None:
        logger.error("WebSocket error: %s", error)

    def _on_close(self, ws, close_status_code, close_msg) -> None:
        logger.info("Connection closed (%s %s)", close_status_code, close_msg or "")
