"""gRPC client for the Qdrant vector search service.

One :class:`QdrantLiteClient` owns a single insecure channel and exposes four
stateless sub-clients bound to it::

    with QdrantLiteClient("127.0.0.1:6334") as client:
        client.collections.create("docs", 4, "COSINE")
        client.points.upsert("docs", [[1, 0, 0, 0]], [doc_id], [{"tag": "a"}])
        hits = client.points.search("docs", [1, 0, 0, 0], limit=1)

Every call takes an optional `timeout` in seconds; left out it uses the
client-wide deadline, and an explicit `timeout=None` waits without one.

The channel multiplexes concurrent calls, so a client may be shared between
threads. Every call is a single request/response; failures raise
:class:`TransportError` immediately and are never retried.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Sequence

import grpc
from qdrant_client import grpc as pb

from ._codec import (
    build_point,
    parse_health,
    parse_scored_points,
    parse_snapshot,
    point_id,
)
from .config import DEFAULT_ADDRESS, DEFAULT_MAX_MESSAGE_SIZE, DEFAULT_TIMEOUT, ClientConfig
from .errors import ChannelError, TransportError
from .models import Distance, HealthInfo, Point, ScoredPoint, SnapshotInfo

logger = logging.getLogger(__name__)

# default for per-call `timeout`: use the client-wide deadline
CLIENT_TIMEOUT: Any = object()

_DISTANCES = {
    Distance.EUCLID: pb.Distance.Euclid,
    Distance.DOT: pb.Distance.Dot,
    Distance.COSINE: pb.Distance.Cosine,
}


class QdrantLiteClient:
    """Connection to one Qdrant service."""

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        timeout: float | None = DEFAULT_TIMEOUT,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self._address = address
        self._timeout = timeout
        options = [
            ("grpc.max_send_message_length", max_message_size),
            ("grpc.max_receive_message_length", max_message_size),
        ]
        try:
            self._channel = grpc.insecure_channel(address, options=options)
        except (TypeError, ValueError, RuntimeError) as exc:
            raise ChannelError(f"failed to open channel to {address}: {exc}") from exc
        self._stubs: dict[str, Any] = {
            "collections": pb.CollectionsStub(self._channel),
            "points": pb.PointsStub(self._channel),
            "qdrant": pb.QdrantStub(self._channel),
            "snapshots": pb.SnapshotsStub(self._channel),
        }
        logger.info("opened channel to %s", address)

        self.collections = Collections(self)
        self.points = Points(self)
        self.service = Service(self)
        self.snapshots = Snapshots(self)

    @classmethod
    def from_config(cls, config: ClientConfig) -> QdrantLiteClient:
        return cls(
            address=config.address,
            timeout=config.timeout,
            max_message_size=config.max_message_size,
        )

    @classmethod
    def from_env(cls) -> QdrantLiteClient:
        """Builds a client from QDRANTLITE_* environment variables."""
        return cls.from_config(ClientConfig.from_env())

    @property
    def address(self) -> str:
        return self._address

    def close(self) -> None:
        self._channel.close()
        logger.info("closed channel to %s", self._address)

    def __enter__(self) -> QdrantLiteClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _call(
        self,
        operation: str,
        service: str,
        method: str,
        request: Any,
        timeout: Any = CLIENT_TIMEOUT,
    ) -> Any:
        deadline = self._timeout if timeout is CLIENT_TIMEOUT else timeout
        logger.debug("%s: %s.%s timeout=%s", operation, service, method, deadline)
        try:
            return self._invoke(service, method, request, deadline)
        except grpc.RpcError as exc:
            code = exc.code() if callable(getattr(exc, "code", None)) else None
            details = exc.details() if callable(getattr(exc, "details", None)) else str(exc)
            logger.warning("%s failed: %s: %s", operation, code, details)
            raise TransportError(operation, code, details) from exc

    def _invoke(
        self, service: str, method: str, request: Any, timeout: float | None
    ) -> Any:
        return getattr(self._stubs[service], method)(request, timeout=timeout)


class Collections:
    """Collection create/delete calls."""

    def __init__(self, client: QdrantLiteClient) -> None:
        self._client = client

    def create(
        self,
        name: str,
        vector_size: int,
        distance: str | Distance | None = None,
        timeout: Any = CLIENT_TIMEOUT,
    ) -> bool:
        """Creates a collection of `vector_size`-dimensional dense vectors.

        `distance` accepts "DOT" or "COSINE" in any case; anything else
        selects the Euclidean metric. Duplicate names are rejected by the
        service and surface as TransportError.
        """
        vector_size = int(vector_size)
        if vector_size <= 0:
            raise ValueError("vector_size must be > 0")
        request = pb.CreateCollection(
            collection_name=name,
            vectors_config=pb.VectorsConfig(
                params=pb.VectorParams(
                    size=vector_size, distance=_DISTANCES[Distance.parse(distance)]
                )
            ),
        )
        response = self._client._call(
            "create collection", "collections", "Create", request, timeout
        )
        return bool(response.result)

    def delete(self, name: str, timeout: Any = CLIENT_TIMEOUT) -> bool:
        """Deletes a collection."""
        response = self._client._call(
            "delete collection",
            "collections",
            "Delete",
            pb.DeleteCollection(collection_name=name),
            timeout,
        )
        return bool(response.result)


class Points:
    """Point upsert, delete and search calls."""

    def __init__(self, client: QdrantLiteClient) -> None:
        self._client = client

    def upsert(
        self,
        collection: str,
        vectors: Sequence[Sequence[float]],
        ids: Sequence[str | uuid.UUID],
        payloads: Sequence[Mapping[str, Any] | None] | None = None,
        wait: bool = True,
        timeout: Any = CLIENT_TIMEOUT,
    ) -> None:
        """Upserts points given as index-aligned vectors, ids and payloads.

        Raises ValueError before any request is sent when the lengths differ.
        """
        if len(vectors) != len(ids) or (
            payloads is not None and len(payloads) != len(ids)
        ):
            raise ValueError(
                "vectors, ids and payloads must have equal lengths: "
                f"vectors={len(vectors)} ids={len(ids)} "
                f"payloads={'-' if payloads is None else len(payloads)}"
            )
        points = [
            Point(
                id=str(ids[index]),
                vector=list(vector),
                payload=None if payloads is None else payloads[index],
            )
            for index, vector in enumerate(vectors)
        ]
        self.upsert_points(collection, points, wait=wait, timeout=timeout)

    def upsert_points(
        self,
        collection: str,
        points: Sequence[Point],
        wait: bool = True,
        timeout: Any = CLIENT_TIMEOUT,
    ) -> None:
        """Upserts points in one batch.

        With `wait` the call returns once the service has applied the write;
        otherwise as soon as the write is accepted. A waited write of a large
        batch can outlast the client-wide deadline; pass `timeout=None` to
        wait without a deadline.
        """
        request = pb.UpsertPoints(
            collection_name=collection,
            wait=wait,
            points=[build_point(point.id, point.vector, point.payload) for point in points],
        )
        self._client._call("upsert points", "points", "Upsert", request, timeout)

    def delete(
        self,
        collection: str,
        ids: Sequence[str | uuid.UUID],
        wait: bool = True,
        timeout: Any = CLIENT_TIMEOUT,
    ) -> None:
        """Deletes the points with the given ids."""
        request = pb.DeletePoints(
            collection_name=collection,
            wait=wait,
            points=pb.PointsSelector(
                points=pb.PointsIdsList(ids=[point_id(value) for value in ids])
            ),
        )
        self._client._call("delete points", "points", "Delete", request, timeout)

    def search(
        self,
        collection: str,
        vector: Sequence[float],
        limit: int = 10,
        timeout: Any = CLIENT_TIMEOUT,
    ) -> list[ScoredPoint]:
        """Returns at most `limit` nearest points, in the service's ranking order."""
        limit = int(limit)
        if limit <= 0:
            raise ValueError("limit must be > 0")
        request = pb.SearchPoints(
            collection_name=collection,
            vector=[float(item) for item in vector],
            limit=limit,
            with_payload=pb.WithPayloadSelector(enable=True),
            with_vectors=pb.WithVectorsSelector(enable=True),
        )
        return parse_scored_points(
            self._client._call("search points", "points", "Search", request, timeout)
        )


class Service:
    """Service-level calls."""

    def __init__(self, client: QdrantLiteClient) -> None:
        self._client = client

    def health(self, timeout: Any = CLIENT_TIMEOUT) -> HealthInfo:
        """Returns the service title and version."""
        return parse_health(
            self._client._call(
                "health check", "qdrant", "HealthCheck", pb.HealthCheckRequest(), timeout
            )
        )


class Snapshots:
    """Collection snapshot calls."""

    def __init__(self, client: QdrantLiteClient) -> None:
        self._client = client

    def create(self, collection: str, timeout: Any = CLIENT_TIMEOUT) -> SnapshotInfo:
        """Takes a snapshot of a collection."""
        return parse_snapshot(
            self._client._call(
                "create snapshot",
                "snapshots",
                "Create",
                pb.CreateSnapshotRequest(collection_name=collection),
                timeout,
            )
        )

    def delete(
        self, collection: str, snapshot_name: str, timeout: Any = CLIENT_TIMEOUT
    ) -> None:
        self._client._call(
            "delete snapshot",
            "snapshots",
            "Delete",
            pb.DeleteSnapshotRequest(
                collection_name=collection, snapshot_name=snapshot_name
            ),
            timeout,
        )
