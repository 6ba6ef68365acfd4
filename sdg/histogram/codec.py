"""Memcomparable integer codec used for index histogram bounds."""

from __future__ import annotations

import struct

from sdg.errors import MalformedStatisticsError

INT_FLAG = 0x03
_SIGN_MASK = 0x8000000000000000
_INT_SIZE = 8


def encode_int(value: int, flag: bool = False) -> bytes:
    """Encode a signed 64-bit integer so that byte order matches numeric order."""

    if not -(1 << 63) <= value < (1 << 63):
        raise ValueError(f"{value} does not fit in a signed 64-bit integer")
    payload = struct.pack(">Q", (value & 0xFFFFFFFFFFFFFFFF) ^ _SIGN_MASK)
    if flag:
        return bytes([INT_FLAG]) + payload
    return payload


def decode_int(data: bytes) -> int:
    """
    Decode an integer written by :func:`encode_int`.

    Index bounds may carry the one-byte datum flag in front of the payload;
    it is skipped when present. Keys of multi-column indexes hold several
    flagged datums back to back; only the leading one is decoded.
    """

    raw = bytes(data)
    if len(raw) > _INT_SIZE and raw[0] == INT_FLAG:
        raw = raw[1:]
    if len(raw) < _INT_SIZE:
        raise MalformedStatisticsError(
            f"insufficient bytes to decode integer: got {len(raw)}, need {_INT_SIZE}"
        )
    (unsigned,) = struct.unpack(">Q", raw[:_INT_SIZE])
    unsigned ^= _SIGN_MASK
    if unsigned & _SIGN_MASK:
        return unsigned - (1 << 64)
    return unsigned
