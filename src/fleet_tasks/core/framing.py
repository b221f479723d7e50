# src/fleet_tasks/core/framing.py

"""
Length-prefixed frames used on both sockets (backing store and request listener).

A frame is a 4-byte little-endian unsigned length followed by that many bytes
of UTF-8 text.
"""

from __future__ import annotations

import asyncio
import socket
import struct

HEADER = struct.Struct("<I")
MAX_FRAME_SIZE = 6 * 1024 * 1024


class FramingError(OSError):
    """The peer sent something that is not a valid frame (or hung up mid-frame)."""


def encode_frame(text: str) -> bytes:
    data = text.encode("utf-8")
    if len(data) > MAX_FRAME_SIZE:
        raise FramingError(f"frame too large: {len(data)} bytes")
    return HEADER.pack(len(data)) + data


def _decode_body(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FramingError("frame is not valid UTF-8") from e


def _check_size(size: int) -> int:
    if size > MAX_FRAME_SIZE:
        raise FramingError(f"frame too large: {size} bytes")
    return size


def _recv_exact(sock: socket.socket, n: int) -> bytes:
    chunks: list[bytes] = []
    remaining = n
    while remaining > 0:
        chunk = sock.recv(min(remaining, 65536))
        if not chunk:
            raise FramingError(f"connection closed with {remaining} bytes pending")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def send_frame(sock: socket.socket, text: str) -> None:
    sock.sendall(encode_frame(text))


def recv_frame(sock: socket.socket) -> str:
    (size,) = HEADER.unpack(_recv_exact(sock, HEADER.size))
    return _decode_body(_recv_exact(sock, _check_size(size)))


async def read_frame(reader: asyncio.StreamReader) -> str | None:
    """Read one frame; None on a clean EOF before the header."""
    try:
        header = await reader.readexactly(HEADER.size)
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            return None
        raise FramingError("connection closed inside frame header") from e

    (size,) = HEADER.unpack(header)
    try:
        body = await reader.readexactly(_check_size(size))
    except asyncio.IncompleteReadError as e:
        raise FramingError("connection closed inside frame body") from e
    return _decode_body(body)


async def write_frame(writer: asyncio.StreamWriter, text: str) -> None:
    writer.write(encode_frame(text))
    await writer.drain()
