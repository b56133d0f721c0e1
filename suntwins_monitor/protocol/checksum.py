# suntwins_monitor/protocol/checksum.py
"""16-bit frame trailer: two's-complement of the byte sum."""

from __future__ import annotations


def checksum_word(data: bytes) -> int:
    total = sum(data) & 0xFFFF
    return ((total ^ 0xFFFF) + 1) & 0xFFFF


def checksum(data: bytes) -> tuple[int, int]:
    """Return the (high, low) checksum bytes for ``data``.

    The sum of every byte is kept in a 16-bit accumulator, inverted and
    incremented, so that adding the trailer word to the byte sum of the
    frame yields zero modulo 2**16.
    """
    word = checksum_word(data)
    return (word >> 8) & 0xFF, word & 0xFF
