# tests/test_checksum.py

import pytest

from suntwins_monitor.protocol.checksum import checksum, checksum_word
from fake_transport import DYNAMIC_RESPONSE, IDENTIFY_RESPONSE, REGISTER_RESPONSE


def test_initialize_command_checksum():
    # A5 A5 01 00 30 44 00 sums to 0x01BF
    assert checksum(bytes.fromhex("A5A50100304400")) == (0xFE, 0x41)


def test_empty_input():
    assert checksum_word(b"") == 0
    assert checksum(b"") == (0x00, 0x00)


def test_accumulator_wraps_at_16_bits():
    data = b"\xFF" * 300  # 76500 overflows a 16-bit sum
    assert checksum_word(data) == (-(76500 % 0x10000)) % 0x10000


@pytest.mark.parametrize(
    "data",
    [b"\x01", b"\xA5\xA5\x01\x01\x31\x42\x00", bytes(range(256)), b"\x80" * 241],
)
def test_trailer_cancels_byte_sum(data):
    hi, lo = checksum(data)
    assert (sum(data) + ((hi << 8) | lo)) % 0x10000 == 0


@pytest.mark.parametrize("frame", [IDENTIFY_RESPONSE, REGISTER_RESPONSE, DYNAMIC_RESPONSE])
def test_captured_inverter_frames_carry_valid_trailers(frame):
    body, trailer = frame[:-4], frame[-4:-2]
    assert bytes(checksum(body)) == trailer
