"""Python SDK for the Qdrant vector search service over gRPC."""

import logging

from .client import QdrantLiteClient
from .config import ClientConfig
from .errors import ChannelError, QdrantLiteError, TransportError
from .models import (
    Distance,
    HealthInfo,
    Point,
    ScoredPoint,
    SnapshotInfo,
    unzip_scored_points,
)
from .values import ValueKind, decode_payload, decode_value, encode_payload, encode_value, kind_of

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "QdrantLiteClient",
    "ClientConfig",
    "QdrantLiteError",
    "ChannelError",
    "TransportError",
    "Distance",
    "Point",
    "ScoredPoint",
    "HealthInfo",
    "SnapshotInfo",
    "unzip_scored_points",
    "ValueKind",
    "kind_of",
    "encode_value",
    "decode_value",
    "encode_payload",
    "decode_payload",
]
