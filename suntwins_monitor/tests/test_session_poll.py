# tests/test_session_poll.py

import logging
import threading
import time

import pytest

from suntwins_monitor.errors import ChecksumMismatch, NotRegistered, Timeout, TooFewBytes
from suntwins_monitor.logging import ConsoleLog, get_logger
from suntwins_monitor.services.inverter_session import InverterSession
from fake_transport import DYNAMIC_RESPONSE, scripted_transport


ConsoleLog(level="INFO", quiet=True).setup()
LOG = get_logger("session-test")


def _registered(transport, **kwargs):
    session = InverterSession(transport, settle_delay=0, log=LOG, sleep=lambda _s: None, **kwargs)
    session.handshake()
    return session


def test_poll_requires_handshake():
    session = InverterSession(scripted_transport(), log=LOG)
    with pytest.raises(NotRegistered):
        session.poll()


def test_poll_returns_reading():
    transport = scripted_transport()
    session = _registered(transport)

    reading = session.poll()

    assert transport.written[-1] == bytes.fromhex("A5A50101314200FE410A0D")
    assert reading.temperature_c == pytest.approx(47.7)
    assert reading.ac_power_w == pytest.approx(1022.8)


def test_poll_reassembles_multiple_reads():
    transport = scripted_transport()
    transport.responses[0x42] = [DYNAMIC_RESPONSE[i : i + 8] for i in range(0, len(DYNAMIC_RESPONSE), 8)]
    session = _registered(transport)

    assert session.poll().today_energy_kwh == pytest.approx(13.02)


def test_poll_short_response():
    transport = scripted_transport({0x42: DYNAMIC_RESPONSE[:26]})
    session = _registered(transport)

    with pytest.raises(TooFewBytes) as excinfo:
        session.poll()
    assert excinfo.value.expected == 27
    assert session.ready


def test_poll_checksum_mismatch_strict():
    corrupted = bytearray(DYNAMIC_RESPONSE)
    corrupted[-5] ^= 0xFF
    session = _registered(scripted_transport({0x42: bytes(corrupted)}))

    with pytest.raises(ChecksumMismatch):
        session.poll()


def test_poll_checksum_mismatch_lenient_logs_warning(caplog):
    corrupted = bytearray(DYNAMIC_RESPONSE)
    corrupted[7] = 0x02  # temperature high byte
    session = _registered(scripted_transport({0x42: bytes(corrupted)}), verify_checksum=False)

    with caplog.at_level(logging.WARNING):
        reading = session.poll()

    assert reading.temperature_c == pytest.approx(73.3)
    assert "Checksum mismatch" in caplog.text


class StreamingTransport:
    """Never goes quiet."""

    def write(self, data):
        return len(data)

    def read(self, size=256):
        return b"\x00", False

    def close(self):
        pass


def test_receive_enforces_deadline():
    ticks = iter(range(100))
    session = InverterSession(
        StreamingTransport(),
        read_deadline=3.0,
        log=LOG,
        clock=lambda: float(next(ticks)),
    )

    with pytest.raises(Timeout) as excinfo:
        session.receive()
    assert excinfo.value.received == 3


def test_invalidate_drops_registration():
    session = _registered(scripted_transport())
    session.invalidate()
    assert not session.ready
    assert session.dest_addr == 0


def test_close_closes_transport():
    transport = scripted_transport()
    InverterSession(transport, log=LOG).close()
    assert transport.closed


class ExclusiveLineTransport:
    """Scripted line that records a collision if a write lands mid-response."""

    def __init__(self):
        self.inner = scripted_transport()
        self._reading = False
        self.collisions = 0
        self.polls = 0

    def write(self, data):
        if self._reading:
            self.collisions += 1
        if data[5] == 0x42:
            self.polls += 1
        self._reading = True
        return self.inner.write(data)

    def read(self, size=256):
        # Give other threads a chance to jump in while the response is in flight.
        time.sleep(0.0005)
        chunk, end_of_stream = self.inner.read(size)
        if end_of_stream:
            self._reading = False
        return chunk, end_of_stream

    def close(self):
        self.inner.close()


def test_concurrent_polls_never_share_the_line():
    transport = ExclusiveLineTransport()
    session = _registered(transport)
    errors = []

    def worker():
        try:
            for _ in range(25):
                assert session.poll().ac_power_w == pytest.approx(1022.8)
        except Exception as exc:  # surfaced to the main thread below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert transport.collisions == 0
    assert transport.polls == 100


def test_handshake_waits_for_poll_in_flight():
    transport = ExclusiveLineTransport()
    session = _registered(transport)

    threads = [threading.Thread(target=session.poll) for _ in range(3)]
    threads.append(threading.Thread(target=session.handshake))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert transport.collisions == 0
    assert session.ready
