"""
Base WebSocket client utilities for threaded connections.

Uses websocket-client WebSocketApp for proper event-driven WebSocket handling.
The whole session lifecycle (connect, run, reconnect wait) happens on one
background thread, so there is never more than one live transport or more
than one pending reconnect.
"""

import logging
import random
import threading
from typing import Callable, Optional
from abc import ABC, abstractmethod

import websocket

from ..types import ConnectorState

logger = logging.getLogger(__name__)

StateListener = Callable[[ConnectorState, ConnectorState], None]


class ExponentialBackoff:
    """
    Exponential backoff for reconnection.

    With min_seconds == max_seconds this is a constant delay.
    """

    def __init__(
        self,
        min_seconds: float = 1.0,
        max_seconds: float = 60.0,
        jitter: bool = True,
    ):
        self.min_seconds = min_seconds
        self.max_seconds = max(min_seconds, max_seconds)
        self.jitter = jitter
        self._attempts = 0
        self._lock = threading.Lock()

    def next_delay(self) -> float:
        """Get next delay with exponential backoff and optional jitter."""
        with self._lock:
            delay = min(self.min_seconds * (2 ** self._attempts), self.max_seconds)
            self._attempts += 1
            if not self.jitter:
                return delay
            # Add jitter (50-100% of delay)
            return delay * (0.5 + random.random() * 0.5)

    def reset(self) -> None:
        """Reset attempt counter."""
        with self._lock:
            self._attempts = 0


class ThreadedWsClient(ABC):
    """
    Base class for threaded WebSocket clients.

    Owns the ConnectorState machine:

        DISCONNECTED -> CONNECTING -> HANDSHAKE_PROBE -> ACTIVE
        any live state -> DISCONNECTED on close/error, then reconnect
        stop() -> CLOSING -> DISCONNECTED

    Subclasses implement the protocol: what to send on open, how to handle
    a message, and when the handshake is complete (_activate()).
    """

    def __init__(
        self,
        ws_url: str,
        name: str = "WS",
        ping_interval: int = 20,
        ping_timeout: int = 10,
        backoff: Optional[ExponentialBackoff] = None,
        state_listener: Optional[StateListener] = None,
    ):
        self._ws_url = ws_url
        self._name = name
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout

        # Connection state
        self._ws: Optional[websocket.WebSocketApp] = None
        self._state = ConnectorState.DISCONNECTED
        self._state_lock = threading.Lock()
        self._state_listener = state_listener
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._backoff = backoff or ExponentialBackoff()
        self._reconnect_count = 0
        self._session_count = 0

    @property
    def state(self) -> ConnectorState:
        """Current connector state."""
        return self._state

    @property
    def connected(self) -> bool:
        """Check if the session is fully established."""
        return self._state == ConnectorState.ACTIVE

    @property
    def reconnect_count(self) -> int:
        """Number of reconnections."""
        return self._reconnect_count

    @property
    def session_count(self) -> int:
        """Number of transport sessions opened."""
        return self._session_count

    @property
    def is_running(self) -> bool:
        """Check if the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def _set_state(self, new_state: ConnectorState) -> None:
        """Update state and notify listener."""
        with self._state_lock:
            old_state = self._state
            self._state = new_state
        self._notify(old_state, new_state)

    def _transition(self, expected: ConnectorState, new_state: ConnectorState) -> bool:
        """Move to new_state only if currently in expected. Returns True if moved."""
        with self._state_lock:
            if self._state != expected:
                return False
            self._state = new_state
        self._notify(expected, new_state)
        return True

    def _notify(self, old_state: ConnectorState, new_state: ConnectorState) -> None:
        if old_state == new_state:
            return
        logger.debug(f"{self._name}: State: {old_state.name} -> {new_state.name}")
        if self._state_listener:
            try:
                self._state_listener(old_state, new_state)
            except Exception as e:
                logger.warning(f"{self._name}: State listener error: {e}")

    def start(self) -> None:
        """Start the WebSocket client in a background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning(f"{self._name}: Already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name=f"{self._name}-thread",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"{self._name}: Started background thread")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the WebSocket client. No reconnect is attempted afterwards."""
        logger.info(f"{self._name}: Stopping...")
        self._stop_event.set()
        self._set_state(ConnectorState.CLOSING)

        if self._ws:
            try:
                self._ws.close()
            except Exception as e:
                logger.debug(f"{self._name}: Close error: {e}")

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"{self._name}: Thread did not stop in time")

        self._end_session()
        self._set_state(ConnectorState.DISCONNECTED)
        logger.info(f"{self._name}: Stopped")

    def _run_loop(self) -> None:
        """Main run loop with reconnection. Attempts are unbounded."""
        while not self._stop_event.is_set():
            self._set_state(ConnectorState.CONNECTING)
            try:
                self._connect_and_run()
            except Exception as e:
                if not self._stop_event.is_set():
                    logger.error(f"{self._name}: Error: {e}")

            self._end_session()
            if self._stop_event.is_set():
                break

            self._set_state(ConnectorState.DISCONNECTED)
            self._reconnect_count += 1
            delay = self._backoff.next_delay()
            logger.warning(f"{self._name}: Connection closed. Reconnecting in {delay:.1f}s")
            self._on_disconnect()
            self._stop_event.wait(timeout=delay)

        logger.info(f"{self._name}: Run loop exited")

    def _connect_and_run(self) -> None:
        """Create WebSocketApp and run it."""
        logger.info(f"{self._name}: Connecting to {self._ws_url[:80]}...")

        self._ws = websocket.WebSocketApp(
            self._ws_url,
            on_open=self._ws_on_open,
            on_message=self._ws_on_message,
            on_error=self._ws_on_error,
            on_close=self._ws_on_close,
        )

        # run_forever blocks until connection closes
        # Note: websocket-client requires ping_interval > ping_timeout
        self._ws.run_forever(
            ping_interval=self._ping_interval,
            ping_timeout=self._ping_timeout,
            skip_utf8_validation=True,
        )

    def _ws_on_open(self, ws) -> None:
        """WebSocketApp open callback."""
        logger.info(f"{self._name}: Connection open")
        self._session_count += 1
        self._backoff.reset()
        self._set_state(ConnectorState.HANDSHAKE_PROBE)
        self._on_connect()

    def _ws_on_message(self, ws, message) -> None:
        """WebSocketApp message callback."""
        if not self._state.accepts_frames:
            return
        self._handle_message(message)

    def _ws_on_error(self, ws, error) -> None:
        """WebSocketApp error callback."""
        if not self._stop_event.is_set():
            logger.warning(f"{self._name}: WebSocket error: {error}")

    def _ws_on_close(self, ws, close_status_code, close_msg) -> None:
        """WebSocketApp close callback."""
        self._end_session()
        if not self._stop_event.is_set():
            self._set_state(ConnectorState.DISCONNECTED)
            logger.info(f"{self._name}: Connection closed (code={close_status_code})")

    def _activate(self) -> bool:
        """Complete the handshake. Returns False if not in HANDSHAKE_PROBE."""
        if self._transition(ConnectorState.HANDSHAKE_PROBE, ConnectorState.ACTIVE):
            logger.info(f"{self._name}: Session active")
            return True
        return False

    @abstractmethod
    def _on_connect(self) -> None:
        """Called when the transport opens. Starts the handshake."""
        pass

    @abstractmethod
    def _handle_message(self, data) -> None:
        """Handle incoming message. Override in subclass."""
        pass

    def _on_disconnect(self) -> None:
        """Called after disconnection, before the reconnect wait. Override if needed."""
        pass

    def _end_session(self) -> None:
        """Release per-session resources. Must be idempotent. Override if needed."""
        pass

    def _send(self, data: str) -> bool:
        """Send a text frame. Returns False if nothing was sent."""
        ws = self._ws
        if ws is None or not self._state.accepts_frames:
            return False
        try:
            ws.send(data)
            return True
        except Exception as e:
            logger.warning(f"{self._name}: Send error: {e}")
            return False
