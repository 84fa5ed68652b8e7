"""Tests for the threaded WebSocket base and the predictor feed."""

import threading
import time

import pytest

from housefeed.caches import HistoryStore
from housefeed.feeds import ExponentialBackoff, PredictorFeed
from housefeed.types import ConnectorState


class FakeWs:
    """Stands in for websocket.WebSocketApp; records outbound frames."""

    def __init__(self):
        self.sent: list[str] = []
        self.closed = False

    def send(self, data):
        if self.closed:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    def close(self):
        self.closed = True


def wait_for(predicate, timeout: float = 2.0) -> bool:
    """Poll until predicate() is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def open_session(feed: PredictorFeed) -> FakeWs:
    """Simulate the transport opening."""
    ws = FakeWs()
    feed._ws = ws
    feed._ws_on_open(ws)
    return ws


class TestExponentialBackoff:
    """Tests for ExponentialBackoff."""

    def test_initial_delay(self):
        """Test initial delay is min_seconds."""
        backoff = ExponentialBackoff(min_seconds=1.0, max_seconds=60.0)
        delay = backoff.next_delay()
        # With jitter, should be between 0.5 and 1.0
        assert 0.5 <= delay <= 1.0

    def test_exponential_growth(self):
        """Test delays grow exponentially without jitter."""
        backoff = ExponentialBackoff(min_seconds=1.0, max_seconds=60.0, jitter=False)
        delays = [backoff.next_delay() for _ in range(5)]
        assert delays == [1.0, 2.0, 4.0, 8.0, 16.0]

    def test_max_cap(self):
        """Test delays are capped at max_seconds."""
        backoff = ExponentialBackoff(min_seconds=1.0, max_seconds=5.0)
        for _ in range(10):
            assert backoff.next_delay() <= 5.0

    def test_constant_delay(self):
        """Test min == max gives a fixed delay."""
        backoff = ExponentialBackoff(min_seconds=3.0, max_seconds=3.0, jitter=False)
        assert [backoff.next_delay() for _ in range(4)] == [3.0, 3.0, 3.0, 3.0]

    def test_reset(self):
        """Test reset brings delay back to minimum."""
        backoff = ExponentialBackoff(min_seconds=1.0, max_seconds=60.0, jitter=False)
        for _ in range(5):
            backoff.next_delay()
        backoff.reset()
        assert backoff.next_delay() == 1.0


class TestPredictorFeedHandshake:
    """Tests for the handshake state machine, driven by hand."""

    @pytest.fixture
    def store(self):
        """Create fresh HistoryStore."""
        return HistoryStore()

    @pytest.fixture
    def transitions(self):
        """Collected (old, new) state transitions."""
        return []

    @pytest.fixture
    def feed(self, store, transitions):
        """Create feed with the upgrade fallback disabled."""
        feed = PredictorFeed(
            store=store,
            ws_url="ws://localhost:1/socket.io/?EIO=3&transport=websocket",
            handshake_timeout_s=0,
            state_listener=lambda old, new: transitions.append((old, new)),
        )
        yield feed
        feed._end_session()

    def test_initial_state(self, feed):
        """Test feed starts disconnected and not running."""
        assert feed.state == ConnectorState.DISCONNECTED
        assert not feed.connected
        assert not feed.is_running

    def test_open_sends_probe(self, feed):
        """Test transport open sends the probe and waits for the ack."""
        ws = open_session(feed)
        assert ws.sent == ["2probe"]
        assert feed.state == ConnectorState.HANDSHAKE_PROBE
        assert not feed.connected

    def test_probe_ack_upgrades(self, feed, transitions):
        """Test the probe ack is answered with an upgrade and activates the session."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        assert ws.sent == ["2probe", "5"]
        assert feed.state == ConnectorState.ACTIVE
        assert feed.connected
        assert transitions == [
            (ConnectorState.DISCONNECTED, ConnectorState.HANDSHAKE_PROBE),
            (ConnectorState.HANDSHAKE_PROBE, ConnectorState.ACTIVE),
        ]

    def test_control_frames_do_not_change_store(self, feed, store):
        """Test open and namespace frames are informational."""
        ws = open_session(feed)
        feed._ws_on_message(ws, '0{"sid":"s1","pingInterval":25000,"pingTimeout":60000}')
        feed._ws_on_message(ws, "40")
        feed._ws_on_message(ws, "3probe")
        assert feed.connected
        assert store.last_markers() == {"placard": None, "bet888": None, "betway": None}

    def test_data_frame_updates_store(self, feed, store):
        """Test data frames reach the store once active."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        feed._ws_on_message(ws, '42["bet888",[1.1,1.2,1.3]]')
        assert store.entry("bet888").buffer == (1.1, 1.2, 1.3)
        assert feed.stats["accepted_count"] == 1

    def test_data_during_probe_is_accepted(self, feed, store):
        """Test frames are decoded while the probe is outstanding."""
        ws = open_session(feed)
        feed._ws_on_message(ws, '42["placard",[2.0]]')
        assert store.entry("placard").last_marker == 2.0

    def test_frames_ignored_while_disconnected(self, feed, store):
        """Test nothing is decoded before the transport opens."""
        feed._ws_on_message(FakeWs(), '42["placard",[2.0]]')
        assert store.entry("placard").last_marker is None
        assert feed.stats["frame_count"] == 0

    def test_duplicate_data_counts_once(self, feed, store):
        """Test a resent window is not re-applied."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        feed._ws_on_message(ws, '42["bet888",[1.1,1.2]]')
        feed._ws_on_message(ws, '42["bet888",[1.1,1.2]]')
        assert feed.stats["data_count"] == 2
        assert feed.stats["accepted_count"] == 1
        assert store.seq("bet888") == 1

    def test_unknown_house_and_garbage_ignored(self, feed, store):
        """Test foreign frames are dropped without closing the session."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        feed._ws_on_message(ws, '42["otherhouse",[9.9]]')
        feed._ws_on_message(ws, "42not json")
        feed._ws_on_message(ws, '42["bet888"]')
        assert feed.connected
        assert not ws.closed
        assert feed.stats["ignored_count"] == 3
        assert store.stats["accepted"] == 0

    def test_server_ping_is_answered(self, feed):
        """Test server pings get a pong with the same payload."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        feed._ws_on_message(ws, "2")
        feed._ws_on_message(ws, "2hello")
        assert ws.sent[-2:] == ["3", "3hello"]

    def test_pong_recorded(self, feed):
        """Test pongs update the heartbeat timestamp."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        assert feed.stats["last_pong_ms"] is None
        feed._ws_on_message(ws, "3")
        assert feed.stats["last_pong_ms"] is not None

    def test_namespace_close_drops_transport(self, feed):
        """Test a server-side namespace close ends the session."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        feed._ws_on_message(ws, "41")
        assert ws.closed

    def test_close_disconnects(self, feed):
        """Test transport close moves back to DISCONNECTED."""
        ws = open_session(feed)
        feed._ws_on_message(ws, "3probe")
        feed._ws_on_close(ws, 1006, "abnormal")
        assert feed.state == ConnectorState.DISCONNECTED
        assert not feed.connected

    def test_no_send_when_disconnected(self, feed):
        """Test outbound frames are dropped without a live session."""
        feed._ws = FakeWs()
        assert feed._send("2") is False
        assert feed._ws.sent == []


class TestPredictorFeedTimers:
    """Tests for the upgrade fallback and heartbeat."""

    def test_upgrade_fallback(self):
        """Test the upgrade is sent when the probe is never acknowledged."""
        feed = PredictorFeed(store=HistoryStore(), handshake_timeout_s=0.05)
        try:
            ws = open_session(feed)
            assert wait_for(lambda: feed.connected)
            assert ws.sent == ["2probe", "5"]
        finally:
            feed._end_session()

    def test_fallback_skipped_after_ack(self):
        """Test a timely ack cancels the fallback."""
        feed = PredictorFeed(store=HistoryStore(), handshake_timeout_s=0.05)
        try:
            ws = open_session(feed)
            feed._ws_on_message(ws, "3probe")
            time.sleep(0.15)
            assert ws.sent == ["2probe", "5"]
        finally:
            feed._end_session()

    def test_heartbeat_pings(self):
        """Test the advertised ping interval drives client pings."""
        feed = PredictorFeed(store=HistoryStore(), handshake_timeout_s=0)
        ws = open_session(feed)
        try:
            feed._ws_on_message(ws, '0{"sid":"s1","pingInterval":20,"pingTimeout":1000}')
            feed._ws_on_message(ws, "3probe")
            assert wait_for(lambda: ws.sent.count("2") >= 2)
        finally:
            feed._ws_on_close(ws, 1000, "")

        sent = len(ws.sent)
        time.sleep(0.1)
        assert len(ws.sent) == sent


class TestPredictorFeedReconnect:
    """Tests for the run loop with a simulated transport."""

    def test_reconnects_after_close(self, monkeypatch):
        """Test sessions are re-established after each close, one at a time."""
        store = HistoryStore()
        transitions = []
        feed = PredictorFeed(
            store=store,
            reconnect_delay_s=0.05,
            reconnect_max_delay_s=0.05,
            handshake_timeout_s=0,
            state_listener=lambda old, new: transitions.append((time.monotonic(), old, new)),
        )

        lock = threading.Lock()
        live = 0
        max_live = 0

        def fake_connect_and_run():
            nonlocal live, max_live
            with lock:
                live += 1
                max_live = max(max_live, live)
            ws = FakeWs()
            feed._ws = ws
            feed._ws_on_open(ws)
            feed._ws_on_message(ws, "3probe")
            n = feed.session_count
            feed._ws_on_message(ws, f'42["bet888",[1.0,{n}.5]]')
            with lock:
                live -= 1
            feed._ws_on_close(ws, 1006, "gone")

        monkeypatch.setattr(feed, "_connect_and_run", fake_connect_and_run)

        feed.start()
        try:
            assert wait_for(lambda: feed.session_count >= 3, timeout=5.0)
        finally:
            feed.stop()

        assert max_live == 1
        assert store.entry("bet888").update_count >= 3
        assert feed.reconnect_count >= 2
        assert feed.state == ConnectorState.DISCONNECTED
        assert not feed.is_running

        # Every drop is followed by a new attempt within the delay window
        for i, (ts, old, new) in enumerate(transitions):
            if new != ConnectorState.DISCONNECTED or old == ConnectorState.CLOSING:
                continue
            following = transitions[i + 1:]
            if not following or following[0][2] == ConnectorState.CLOSING:
                continue
            next_ts, _, next_state = following[0]
            assert next_state == ConnectorState.CONNECTING
            assert next_ts - ts < 0.05 + 1.0

    def test_connect_errors_are_retried(self, monkeypatch):
        """Test a failing connect never kills the loop."""
        feed = PredictorFeed(
            store=HistoryStore(),
            reconnect_delay_s=0.01,
            reconnect_max_delay_s=0.01,
            handshake_timeout_s=0,
        )
        attempts = []

        def failing_connect():
            attempts.append(time.monotonic())
            raise OSError("connection refused")

        monkeypatch.setattr(feed, "_connect_and_run", failing_connect)

        feed.start()
        try:
            assert wait_for(lambda: len(attempts) >= 3)
            assert feed.is_running
        finally:
            feed.stop()

        assert not feed.connected

    def test_stop_prevents_reconnect(self, monkeypatch):
        """Test no new session is attempted after stop()."""
        feed = PredictorFeed(
            store=HistoryStore(),
            reconnect_delay_s=0.05,
            reconnect_max_delay_s=0.05,
            handshake_timeout_s=0,
        )
        attempts = []
        monkeypatch.setattr(feed, "_connect_and_run", lambda: attempts.append(1))

        feed.start()
        assert wait_for(lambda: len(attempts) >= 1)
        feed.stop()
        count = len(attempts)
        time.sleep(0.15)
        assert len(attempts) == count
