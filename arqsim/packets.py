"""Data units exchanged between the application, transport and network layers."""

from __future__ import annotations

from dataclasses import dataclass

PAYLOAD_SIZE = 20
NOT_IN_USE = -1


def _as_payload(data: bytes | bytearray, what: str) -> bytes:
    payload = bytes(data)
    if len(payload) != PAYLOAD_SIZE:
        raise ValueError(f"{what} must be exactly {PAYLOAD_SIZE} bytes, got {len(payload)}")
    return payload


@dataclass(frozen=True)
class Message:
    """Data handed from the application layer to the transport layer."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _as_payload(self.data, "message data"))


@dataclass(frozen=True)
class Packet:
    """Data unit handed from the transport layer to the network layer."""

    seqnum: int
    acknum: int
    checksum: int
    payload: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _as_payload(self.payload, "packet payload"))


def _signed(byte: int) -> int:
    return byte - 256 if byte >= 128 else byte


def _checksum(seqnum: int, acknum: int, payload: bytes) -> int:
    return seqnum + acknum + sum(_signed(b) for b in payload)


def compute_checksum(packet: Packet) -> int:
    """Sum of the sequence number, acknowledgement number and payload bytes."""
    return _checksum(packet.seqnum, packet.acknum, packet.payload)


def is_corrupted(packet: Packet) -> bool:
    """True when the stored checksum does not match the packet contents."""
    return packet.checksum != compute_checksum(packet)


def make_packet(seqnum: int, acknum: int, payload: bytes) -> Packet:
    """Build a packet with a correct checksum."""
    data = _as_payload(payload, "packet payload")
    return Packet(seqnum, acknum, _checksum(seqnum, acknum, data), data)