"""Go-Back-N transport protocol with cumulative acknowledgements."""

from __future__ import annotations

from collections import deque

from arqsim.emulator import Emulator, Entity, Protocol
from arqsim.packets import (
    NOT_IN_USE,
    PAYLOAD_SIZE,
    Message,
    Packet,
    is_corrupted,
    make_packet,
)

RTT = 16.0
WINDOW_SIZE = 6
SEQ_SPACE = 7
ACK_PAYLOAD = b"0" * PAYLOAD_SIZE


def _in_window(acknum: int, first: int, last: int) -> bool:
    if first <= last:
        return first <= acknum <= last
    return acknum >= first or acknum <= last


class GoBackN(Protocol):
    """Sender A keeps a window of unacknowledged packets; receiver B accepts in order."""

    def __init__(self) -> None:
        self._window: deque[Packet] = deque()
        self._next_seqnum = 0
        self._expected_seqnum = 0
        self._b_next_seqnum = 1

    def _log(self, level: int, text: str) -> None:
        if self.network.trace > level:
            self.network._say(text)

    def attach(self, network: Emulator) -> None:
        """Bind the protocol to the network that carries its packets."""
        super().attach(network)

    # Sender (A)

    def a_init(self) -> None:
        """Empty the send window and start sequence numbers at 0."""
        self._window.clear()
        self._next_seqnum = 0

    def a_output(self, message: Message) -> None:
        """Send ``message`` if the window has room, otherwise drop it."""
        net = self.network
        if len(self._window) >= WINDOW_SIZE:
            self._log(0, "----A: New message arrives, send window is full")
            net.stats.window_full += 1
            return

        self._log(
            1,
            "----A: New message arrives, send window is not full, "
            "send new messge to layer3!",
        )
        packet = make_packet(self._next_seqnum, NOT_IN_USE, message.data)
        self._window.append(packet)
        self._log(0, f"Sending packet {packet.seqnum} to layer 3")
        net.to_layer3(Entity.A, packet)
        if len(self._window) == 1:
            net.start_timer(Entity.A, RTT)
        self._next_seqnum = (self._next_seqnum + 1) % SEQ_SPACE

    def a_input(self, packet: Packet) -> None:
        """Process an acknowledgement arriving at A."""
        net = self.network
        if is_corrupted(packet):
            self._log(0, "----A: corrupted ACK is received, do nothing!")
            return

        self._log(0, f"----A: uncorrupted ACK {packet.acknum} is received")
        net.stats.total_acks_received += 1

        if not self._window:
            self._log(0, "----A: duplicate ACK received, do nothing!")
            return

        first = self._window[0].seqnum
        last = self._window[-1].seqnum
        if not _in_window(packet.acknum, first, last):
            return

        self._log(0, f"----A: ACK {packet.acknum} is not a duplicate")
        net.stats.new_acks += 1

        if packet.acknum >= first:
            ack_count = packet.acknum + 1 - first
        else:
            ack_count = SEQ_SPACE - first + packet.acknum
        for _ in range(ack_count):
            self._window.popleft()

        net.stop_timer(Entity.A)
        if self._window:
            net.start_timer(Entity.A, RTT)

    def a_timer_interrupt(self) -> None:
        """Resend every packet still waiting in the window."""
        net = self.network
        self._log(0, "----A: time out,resend packets!")
        for index, packet in enumerate(list(self._window)):
            self._log(0, f"---A: resending packet {packet.seqnum}")
            net.to_layer3(Entity.A, packet)
            net.stats.packets_resent += 1
            if index == 0:
                net.start_timer(Entity.A, RTT)

    # Receiver (B)

    def b_init(self) -> None:
        """Expect sequence number 0 first."""
        self._expected_seqnum = 0
        self._b_next_seqnum = 1

    def b_input(self, packet: Packet) -> None:
        """Deliver an in-order packet and acknowledge the last one accepted."""
        net = self.network
        if not is_corrupted(packet) and packet.seqnum == self._expected_seqnum:
            self._log(
                0, f"----B: packet {packet.seqnum} is correctly received, send ACK!"
            )
            net.stats.packets_received += 1
            net.to_layer5(Entity.B, packet.payload)
            acknum = self._expected_seqnum
            self._expected_seqnum = (self._expected_seqnum + 1) % SEQ_SPACE
        else:
            self._log(
                0,
                "----B: packet corrupted or not expected sequence number, resend ACK!",
            )
            acknum = (self._expected_seqnum - 1) % SEQ_SPACE

        ack = make_packet(self._b_next_seqnum, acknum, ACK_PAYLOAD)
        self._b_next_seqnum = (self._b_next_seqnum + 1) % 2
        net.to_layer3(Entity.B, ack)

    def b_output(self, message: Message) -> None:
        """Simplex transfer: B never sends data, so the message is dropped."""
        self._log(0, "----B: simplex transfer, message from layer5 at B ignored")

    def b_timer_interrupt(self) -> None:
        """Simplex transfer: B runs no timer, so an interrupt is ignored."""
        self._log(0, "----B: simplex transfer, timer interrupt at B ignored")