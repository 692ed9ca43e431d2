"""Script primitives: data pushes and script numbers.

Encoders always pick the shortest form, and decoders reject anything
longer, so every value has exactly one byte representation.
"""

from __future__ import annotations

import struct

from openadr_overlay.core.errors import DecodeError

OP_0 = 0x00
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E

_MAX_DIRECT_PUSH = 0x4B


def encode_push(data: bytes) -> bytes:
    """Encode a data push using the minimal opcode for its length."""
    size = len(data)
    if size == 0:
        return bytes([OP_0])
    if size <= _MAX_DIRECT_PUSH:
        return bytes([size]) + data
    if size <= 0xFF:
        return bytes([OP_PUSHDATA1, size]) + data
    if size <= 0xFFFF:
        return bytes([OP_PUSHDATA2]) + struct.pack("<H", size) + data
    return bytes([OP_PUSHDATA4]) + struct.pack("<I", size) + data


def decode_push(script: bytes, offset: int) -> tuple[bytes, int]:
    """Read one data push starting at offset.

    Returns:
        Tuple of (pushed bytes, offset just past the push).

    Raises:
        DecodeError: If the opcode is not a push, the push is truncated,
            or a longer form was used than necessary.
    """
    if offset >= len(script):
        raise DecodeError("Expected a data push, reached end of script", offset=offset)

    opcode = script[offset]
    cursor = offset + 1
    if opcode == OP_0:
        return b"", cursor
    if opcode <= _MAX_DIRECT_PUSH:
        size = opcode
    elif opcode == OP_PUSHDATA1:
        size, cursor = _read_length(script, cursor, "<B", 1)
    elif opcode == OP_PUSHDATA2:
        size, cursor = _read_length(script, cursor, "<H", 2)
    elif opcode == OP_PUSHDATA4:
        size, cursor = _read_length(script, cursor, "<I", 4)
    else:
        raise DecodeError(f"Opcode 0x{opcode:02x} is not a data push", offset=offset)

    end = cursor + size
    if end > len(script):
        raise DecodeError(
            f"Push of {size} bytes runs past end of script", offset=offset
        )
    data = script[cursor:end]
    if encode_push(data)[0] != opcode:
        raise DecodeError("Non-minimal data push", offset=offset)
    return data, end


def _read_length(script: bytes, cursor: int, fmt: str, width: int) -> tuple[int, int]:
    if cursor + width > len(script):
        raise DecodeError("Truncated push length", offset=cursor)
    (size,) = struct.unpack_from(fmt, script, cursor)
    return size, cursor + width


def encode_num(value: int) -> bytes:
    """Encode an integer as a minimal little-endian sign-magnitude script number."""
    if value == 0:
        return b""
    magnitude = abs(value)
    out = bytearray()
    while magnitude:
        out.append(magnitude & 0xFF)
        magnitude >>= 8
    if out[-1] & 0x80:
        out.append(0x80 if value < 0 else 0x00)
    elif value < 0:
        out[-1] |= 0x80
    return bytes(out)


def decode_num(data: bytes) -> int:
    """Decode a minimally encoded script number.

    Raises:
        DecodeError: If the encoding carries redundant padding bytes.
    """
    if not data:
        return 0
    if (data[-1] & 0x7F) == 0 and (len(data) == 1 or not data[-2] & 0x80):
        raise DecodeError("Non-minimal script number")
    magnitude = int.from_bytes(data[:-1] + bytes([data[-1] & 0x7F]), "little")
    return -magnitude if data[-1] & 0x80 else magnitude
