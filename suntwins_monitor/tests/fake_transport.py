# tests/fake_transport.py

from __future__ import annotations

# Exchange captured from a Suntwins 5000TL.
IDENTIFY_RESPONSE = bytes.fromhex("A5A5000030BF1031353232313334343130323038202020FAC60A0D")
REGISTER_RESPONSE = bytes.fromhex("A5A5010130BE0106FDBF0A0D")
DYNAMIC_RESPONSE = bytes.fromhex(
    "A5A5010131BD3001DD09C9095E001600160516002C096B138E27F4FFFF0000120C"
    "00000000000100000000000000000000000000000000F6BF0A0D"
)
SERIAL = b"1522134410208   "


class FakeTransport:
    """Scripted serial line.

    ``responses`` maps a function code to the bytes the inverter answers
    with; a list of byte strings is delivered as separate reads. Every
    answer ends with an empty end-of-stream read, like the real port.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.written: list[bytes] = []
        self._pending: list[bytes] = []
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True

    def write(self, data: bytes) -> int:
        self.written.append(bytes(data))
        answer = self.responses.get(data[5], b"")
        chunks = answer if isinstance(answer, list) else [answer]
        self._pending = [c for c in chunks if c]
        return len(data)

    def read(self, size: int = 256) -> tuple[bytes, bool]:
        if not self._pending:
            return b"", True
        return self._pending.pop(0), False

    def close(self) -> None:
        self.closed = True

    def functions(self) -> list[int]:
        return [frame[5] for frame in self.written]


def scripted_transport(overrides: dict | None = None) -> FakeTransport:
    responses = {
        0x40: IDENTIFY_RESPONSE,
        0x41: REGISTER_RESPONSE,
        0x42: DYNAMIC_RESPONSE,
    }
    responses.update(overrides or {})
    return FakeTransport(responses)
