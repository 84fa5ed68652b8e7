"""
Predictor data feed (threaded).

PredictorFeed: WebSocket feed for the predictor service. Drives the
probe/upgrade handshake, answers keep-alives, and pushes decoded data
frames into the HistoryStore.
"""

import logging
import threading
from typing import Optional

from .websocket_base import ExponentialBackoff, StateListener, ThreadedWsClient
from .frame_codec import (
    parse_frame,
    encode_probe,
    encode_upgrade,
    encode_ping,
    encode_pong,
)
from ..caches import HistoryStore
from ..types import (
    ConnectorState,
    OpenFrame,
    NamespaceOpenFrame,
    NamespaceCloseFrame,
    ProbeFrame,
    PingFrame,
    PongFrame,
    UpgradeFrame,
    DataFrame,
    UnknownFrame,
    now_ms,
)

logger = logging.getLogger(__name__)

PREDICTOR_WS_URL = "wss://predictor-uqfp.onrender.com/socket.io/?EIO=3&transport=websocket"


class PredictorFeed(ThreadedWsClient):
    """
    Predictor WebSocket feed.

    Handshake: on open send "2probe"; on "3probe" send "5" and go ACTIVE.
    If the probe is never acknowledged the upgrade is sent anyway after
    handshake_timeout_s, so a server that skips the probe still works.

    While ACTIVE, and if the open frame advertised a ping interval, a
    heartbeat thread sends "2" at that interval.
    """

    def __init__(
        self,
        store: HistoryStore,
        ws_url: str = PREDICTOR_WS_URL,
        reconnect_delay_s: float = 3.0,
        reconnect_max_delay_s: float = 3.0,
        handshake_timeout_s: float = 1.0,
        state_listener: Optional[StateListener] = None,
    ):
        super().__init__(
            ws_url=ws_url,
            name="PredictorFeed",
            ping_interval=20,
            ping_timeout=10,
            backoff=ExponentialBackoff(
                min_seconds=reconnect_delay_s,
                max_seconds=reconnect_max_delay_s,
                jitter=False,
            ),
            state_listener=state_listener,
        )

        self._store = store
        self._handshake_timeout_s = handshake_timeout_s

        # Per-session timers; guarded by _session_lock
        self._session_lock = threading.Lock()
        self._session_done: Optional[threading.Event] = None
        self._handshake_timer: Optional[threading.Timer] = None
        self._heartbeat_thread: Optional[threading.Thread] = None
        self._ping_interval_ms: Optional[int] = None

        # Stats
        self._frame_count = 0
        self._data_count = 0
        self._accepted_count = 0
        self._ignored_count = 0
        self._last_frame_ms: Optional[int] = None
        self._last_pong_ms: Optional[int] = None

    def _on_connect(self) -> None:
        """Start the handshake and arm the upgrade fallback."""
        with self._session_lock:
            self._session_done = threading.Event()
            self._ping_interval_ms = None
            if self._handshake_timeout_s > 0:
                self._handshake_timer = threading.Timer(
                    self._handshake_timeout_s,
                    self._on_handshake_timeout,
                    args=(self._session_done,),
                )
                self._handshake_timer.daemon = True
                self._handshake_timer.start()

        self._send(encode_probe())

    def _on_handshake_timeout(self, session_done: threading.Event) -> None:
        if session_done.is_set() or self._state != ConnectorState.HANDSHAKE_PROBE:
            return
        logger.info(f"{self._name}: No probe ack, sending upgrade")
        self._upgrade()

    def _upgrade(self) -> None:
        """Confirm the upgrade and go ACTIVE."""
        if self._send(encode_upgrade()) and self._activate():
            self._cancel_handshake_timer()
            self._maybe_start_heartbeat()

    def _handle_message(self, data) -> None:
        """Decode one frame and react to it."""
        self._frame_count += 1
        self._last_frame_ms = now_ms()

        frame = parse_frame(data)

        if isinstance(frame, DataFrame):
            self._on_data(frame)
        elif isinstance(frame, ProbeFrame):
            self._upgrade()
        elif isinstance(frame, PingFrame):
            self._send(encode_pong(frame.payload))
        elif isinstance(frame, PongFrame):
            self._last_pong_ms = now_ms()
        elif isinstance(frame, OpenFrame):
            logger.info(f"{self._name}: Handshake received (sid={frame.sid})")
            with self._session_lock:
                self._ping_interval_ms = frame.ping_interval_ms
            if self.connected:
                self._maybe_start_heartbeat()
        elif isinstance(frame, NamespaceOpenFrame):
            logger.info(f"{self._name}: Namespace open ({frame.namespace})")
        elif isinstance(frame, NamespaceCloseFrame):
            logger.warning(f"{self._name}: Namespace closed by server, dropping session")
            self._close_transport()
        elif isinstance(frame, UpgradeFrame):
            pass
        elif isinstance(frame, UnknownFrame):
            self._ignored_count += 1

    def _on_data(self, frame: DataFrame) -> None:
        self._data_count += 1
        if frame.source not in self._store.houses:
            self._ignored_count += 1
            return
        if self._store.update(frame.source, frame.values):
            self._accepted_count += 1

    def _maybe_start_heartbeat(self) -> None:
        with self._session_lock:
            if (
                self._ping_interval_ms is None
                or self._ping_interval_ms <= 0
                or self._session_done is None
                or self._heartbeat_thread is not None
            ):
                return
            self._heartbeat_thread = threading.Thread(
                target=self._heartbeat_loop,
                args=(self._session_done, self._ping_interval_ms / 1000.0),
                name=f"{self._name}-heartbeat",
                daemon=True,
            )
            self._heartbeat_thread.start()

    def _heartbeat_loop(self, session_done: threading.Event, interval_s: float) -> None:
        while not session_done.wait(timeout=interval_s):
            if self.connected:
                self._send(encode_ping())

    def _cancel_handshake_timer(self) -> None:
        with self._session_lock:
            if self._handshake_timer is not None:
                self._handshake_timer.cancel()
                self._handshake_timer = None

    def _end_session(self) -> None:
        """Stop the session's timers. Safe to call more than once."""
        with self._session_lock:
            if self._session_done is not None:
                self._session_done.set()
            self._session_done = None
            if self._handshake_timer is not None:
                self._handshake_timer.cancel()
                self._handshake_timer = None
            self._heartbeat_thread = None

    def _close_transport(self) -> None:
        ws = self._ws
        if ws is None:
            return
        try:
            ws.close()
        except Exception as e:
            logger.debug(f"{self._name}: Close error: {e}")

    @property
    def stats(self) -> dict:
        """Get feed statistics."""
        return {
            "state": self._state.name,
            "connected": self.connected,
            "frame_count": self._frame_count,
            "data_count": self._data_count,
            "accepted_count": self._accepted_count,
            "ignored_count": self._ignored_count,
            "session_count": self._session_count,
            "reconnect_count": self._reconnect_count,
            "last_frame_ms": self._last_frame_ms,
            "last_pong_ms": self._last_pong_ms,
        }
