"""
Data feeds for the house feed service.

Contains the WebSocket feed for the predictor service:
- ThreadedWsClient: threaded WebSocket base with ConnectorState and reconnect
- PredictorFeed: predictor handshake + data frames into HistoryStore
- frame_codec: parse/encode of protocol frames
"""

from .websocket_base import ExponentialBackoff, ThreadedWsClient
from .frame_codec import parse_frame, encode_probe, encode_upgrade, encode_ping, encode_pong
from .predictor_feed import PredictorFeed, PREDICTOR_WS_URL

__all__ = [
    "ExponentialBackoff",
    "ThreadedWsClient",
    "parse_frame",
    "encode_probe",
    "encode_upgrade",
    "encode_ping",
    "encode_pong",
    "PredictorFeed",
    "PREDICTOR_WS_URL",
]
