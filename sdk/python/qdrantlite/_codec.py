"""Point codec and response parsers for the qdrantlite client."""

from __future__ import annotations

import uuid
from typing import Any, Mapping, Sequence

from qdrant_client import grpc as pb

from .errors import QdrantLiteError
from .models import HealthInfo, ScoredPoint, SnapshotInfo
from .values import decode_payload, encode_payload


def point_id(value: str | uuid.UUID) -> pb.PointId:
    return pb.PointId(uuid=str(value))


def read_point_id(value: pb.PointId) -> str:
    which = value.WhichOneof("point_id_options")
    if which == "uuid":
        return value.uuid
    if which == "num":
        return str(value.num)
    return ""


def build_vectors(vector: Sequence[float]) -> pb.Vectors:
    return pb.Vectors(vector=pb.Vector(data=[float(item) for item in vector]))


def read_vector(vectors: Any) -> list[float]:
    """Reads the single dense vector out of a point's vectors field."""
    if not vectors.HasField("vector"):
        return []
    vector = vectors.vector
    if vector.data:
        return list(vector.data)
    # newer services fill the dense oneof instead of the deprecated data field
    if "dense" in vector.DESCRIPTOR.fields_by_name and vector.HasField("dense"):
        return list(vector.dense.data)
    return []


def build_point(
    id: str | uuid.UUID,
    vector: Sequence[float],
    payload: Mapping[str, Any] | None = None,
) -> pb.PointStruct:
    point = pb.PointStruct(id=point_id(id), vectors=build_vectors(vector))
    for key, value in encode_payload(payload).items():
        point.payload[key].CopyFrom(value)
    return point


def read_point(record: Any) -> tuple[str, list[float], dict[str, Any]]:
    vector = read_vector(record.vectors) if record.HasField("vectors") else []
    return read_point_id(record.id), vector, decode_payload(record.payload)


def parse_scored_points(response: pb.SearchResponse) -> list[ScoredPoint]:
    hits = []
    for record in response.result:
        id, vector, payload = read_point(record)
        hits.append(
            ScoredPoint(id=id, vector=vector, payload=payload, score=float(record.score))
        )
    return hits


def parse_health(reply: pb.HealthCheckReply) -> HealthInfo:
    return HealthInfo(title=reply.title, version=reply.version)


def parse_snapshot(response: pb.CreateSnapshotResponse) -> SnapshotInfo:
    if not response.HasField("snapshot_description"):
        raise QdrantLiteError(f"invalid create snapshot response: {response}")
    description = response.snapshot_description
    return SnapshotInfo(name=description.name, size=int(description.size))
