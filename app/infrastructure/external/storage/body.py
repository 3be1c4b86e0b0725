"""Convert S3 GetObject response bodies to bytes.

One converter per body shape, selected by type through singledispatch.
Blocking: StreamingBody reads hit the network, so call via asyncio.to_thread.
"""

import io
from collections.abc import Iterable
from functools import singledispatch

from botocore.response import StreamingBody

CHUNK_SIZE = 64 * 1024  # 64KB


@singledispatch
def read_body(body: object) -> bytes:
    """Fallback for shapes without a registered converter: iterables of chunks."""
    if isinstance(body, Iterable):
        return b"".join(bytes(chunk) for chunk in body)
    raise TypeError(f"Unsupported S3 response body type: {type(body).__name__}")


@read_body.register(type(None))
def _read_missing(body: None) -> bytes:
    raise ValueError("S3 response missing body")


@read_body.register(bytes)
@read_body.register(bytearray)
@read_body.register(memoryview)
def _read_buffer(body: bytes | bytearray | memoryview) -> bytes:
    return bytes(body)


@read_body.register(str)
def _read_text(body: str) -> bytes:
    return body.encode("utf-8")


@read_body.register(io.IOBase)
def _read_file_like(body: io.IOBase) -> bytes:
    chunks: list[bytes] = []
    while chunk := body.read(CHUNK_SIZE):
        chunks.append(bytes(chunk))
    return b"".join(chunks)


@read_body.register(StreamingBody)
def _read_streaming_body(body: StreamingBody) -> bytes:
    try:
        return b"".join(body.iter_chunks(chunk_size=CHUNK_SIZE))
    finally:
        body.close()
