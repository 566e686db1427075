"""
Binary messages exchanged between the socket coordinator and its workers.

All integers are little-endian and unsigned.

  work   (coordinator -> worker):  u32 length | u64 low | u64 high | u64 n | u64[n] base primes
  result (worker -> coordinator):  u32 count

'length' counts every byte after itself, i.e. 24 + 8 * n.
"""

import logging
import socket
import struct

import numpy as np

from distprimes.errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)

LENGTH = struct.Struct("<I")
WORK_HEADER = struct.Struct("<QQQ")
RESULT = struct.Struct("<I")
PRIME_DTYPE = np.dtype("<u8")

# a work message can not claim more base primes than this (sqrt of 2**64)
MAX_BASE_PRIMES = 2**32


def encode_work(low: int, high: int, base_primes) -> bytes:
    """Return the complete length-prefixed work message."""
    primes = np.asarray(base_primes, dtype=PRIME_DTYPE)
    body = WORK_HEADER.pack(low, high, primes.size) + primes.tobytes()
    if len(body) > 0xFFFFFFFF:
        raise ProtocolError(f"work message of {len(body)} bytes does not fit a u32 length")
    return LENGTH.pack(len(body)) + body


def decode_work(body: bytes) -> tuple[int, int, np.ndarray]:
    """Decode a work message body (without its length prefix)."""
    if len(body) < WORK_HEADER.size:
        raise ProtocolError(f"work message too short: {len(body)} bytes")
    low, high, count = WORK_HEADER.unpack_from(body)
    if count > MAX_BASE_PRIMES or len(body) != WORK_HEADER.size + 8 * count:
        raise ProtocolError(
            f"work message announces {count} base primes but carries {len(body) - WORK_HEADER.size} bytes"
        )
    if count == 0:
        return low, high, np.array([], dtype=np.int64)
    primes = np.frombuffer(body, dtype=PRIME_DTYPE, count=count, offset=WORK_HEADER.size)
    return low, high, primes.astype(np.int64)


def encode_result(count: int) -> bytes:
    if not 0 <= count <= 0xFFFFFFFF:
        raise ProtocolError(f"prime count {count} does not fit a u32")
    return RESULT.pack(count)


def decode_result(data: bytes) -> int:
    if len(data) != RESULT.size:
        raise ProtocolError(f"result message must be {RESULT.size} bytes, got {len(data)}")
    return RESULT.unpack(data)[0]


def recv_exact(sock: socket.socket, size: int) -> bytes:
    """Read exactly 'size' bytes; EOF before that is a protocol error."""
    buf = bytearray(size)
    view = memoryview(buf)
    got = 0
    while got < size:
        try:
            n = sock.recv_into(view[got:], size - got)
        except socket.timeout as exc:
            raise TransportError(f"timed out after {got} of {size} bytes") from exc
        except OSError as exc:
            raise TransportError(f"read failed: {exc}") from exc
        if n == 0:
            raise ProtocolError(f"connection closed after {got} of {size} bytes")
        got += n
    return bytes(buf)


def send_all(sock: socket.socket, data: bytes) -> None:
    try:
        sock.sendall(data)
    except OSError as exc:
        raise TransportError(f"send failed: {exc}") from exc


def send_work(sock: socket.socket, low: int, high: int, base_primes) -> None:
    message = encode_work(low, high, base_primes)
    logger.debug("sending work [%d, %d] (%d bytes)", low, high, len(message))
    send_all(sock, message)


def recv_work(sock: socket.socket) -> tuple[int, int, np.ndarray]:
    (length,) = LENGTH.unpack(recv_exact(sock, LENGTH.size))
    return decode_work(recv_exact(sock, length))


def send_result(sock: socket.socket, count: int) -> None:
    send_all(sock, encode_result(count))


def recv_result(sock: socket.socket) -> int:
    return decode_result(recv_exact(sock, RESULT.size))
