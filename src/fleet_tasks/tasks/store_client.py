# src/fleet_tasks/tasks/store_client.py

from __future__ import annotations

import contextlib
import json
import logging
import socket
from collections.abc import Iterator
from pathlib import Path
from typing import Callable, TypeVar

from ..core.framing import recv_frame, send_frame
from ..core.ports import ConnectionFactory, StorePayload
from .task_models import ErrorCode, ReplyFormatError

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUERY_PREFIX = "task"
REPLY_OK = "ok"


def build_query(command: str, params: StorePayload) -> str:
    """`task <command> <compact json>`"""
    body = json.dumps(params, ensure_ascii=False, separators=(",", ":"))
    return f"{QUERY_PREFIX} {command} {body}"


class UnixSocketConnection:
    """Framed request/response channel over a Unix stream socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def query(self, text: str) -> str:
        send_frame(self._sock, text)
        return recv_frame(self._sock)


def unix_socket_factory(path: str | Path, *, timeout: float = 10.0) -> ConnectionFactory:
    """
    Build a ConnectionFactory that opens one Unix socket per call.

    The socket is closed when the `with` block exits, success or failure.
    """
    sock_path = str(path)

    @contextlib.contextmanager
    def connect() -> Iterator[UnixSocketConnection]:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(timeout)
            sock.connect(sock_path)
            yield UnixSocketConnection(sock)
        finally:
            sock.close()

    return connect


class TaskStoreClient:
    """
    RPC client for the backing task store.

    Each call:
    - serializes params and builds the query line,
    - opens its own connection (never shared, never kept between calls),
    - classifies the outcome:
        * transport / framing failure      -> DATABASE_ERROR
        * reply status is not "ok"          -> DATABASE_REQUEST_ERROR
        * "ok" but payload is not an object -> DATABASE_PARSE_ERROR

    Thread-safety:
    - no shared mutable state; safe to call from several threads
    """

    def __init__(self, connect: ConnectionFactory) -> None:
        self._connect = connect

    def send(self, command: str, params: StorePayload) -> tuple[StorePayload | None, ErrorCode]:
        query = build_query(command, params)

        try:
            with self._connect() as conn:
                raw = conn.query(query)
        except OSError as e:
            logger.error("Tasks DB query failed command=%s: %s", command, e)
            return None, ErrorCode.DATABASE_ERROR

        status, _, body = raw.partition(" ")
        if status != REPLY_OK:
            logger.error("Tasks DB rejected command=%s reply=%r", command, raw)
            return None, ErrorCode.DATABASE_REQUEST_ERROR

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            logger.error("Tasks DB reply is not JSON command=%s payload=%r", command, body)
            return None, ErrorCode.DATABASE_PARSE_ERROR

        if not isinstance(payload, dict):
            logger.error("Tasks DB reply is not an object command=%s payload=%r", command, body)
            return None, ErrorCode.DATABASE_PARSE_ERROR

        logger.debug("Tasks DB command=%s reply=%s", command, payload)
        return payload, ErrorCode.SUCCESS

    def call(
        self,
        command: str,
        params: StorePayload,
        decode: Callable[[StorePayload], T],
    ) -> tuple[T | None, ErrorCode]:
        """send() + typed decode. A malformed payload is a parse error, never skipped."""
        payload, code = self.send(command, params)
        if payload is None:
            return None, code

        try:
            return decode(payload), ErrorCode.SUCCESS
        except ReplyFormatError as e:
            logger.error("Tasks DB reply has bad shape command=%s: %s", command, e)
            return None, ErrorCode.DATABASE_PARSE_ERROR
