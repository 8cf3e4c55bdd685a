"""Selective Repeat transport protocol with individual acknowledgements."""

from __future__ import annotations

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
SEQ_SPACE = WINDOW_SIZE * 2
ACK_PAYLOAD = b"0" * PAYLOAD_SIZE


class SelectiveRepeat(Protocol):
    """Sender A acknowledges packets one by one; receiver B buffers out-of-order packets."""

    def __init__(self) -> None:
        self._send_buffer: list[Packet | None] = [None] * SEQ_SPACE
        self._acked = [True] * SEQ_SPACE
        self._a_window_first = 0
        self._a_window_count = 0
        self._a_next_seqnum = 0
        self._received: dict[int, Packet] = {}
        self._b_window_first = 0
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
        self._send_buffer = [None] * SEQ_SPACE
        self._acked = [True] * SEQ_SPACE
        self._a_window_first = 0
        self._a_window_count = 0
        self._a_next_seqnum = 0

    def a_output(self, message: Message) -> None:
        """Send ``message`` if the window has room, otherwise drop it."""
        net = self.network
        if self._a_window_count >= WINDOW_SIZE:
            self._log(0, "----A: New message arrives, send window is full")
            net.stats.window_full += 1
            return

        self._log(
            1,
            "----A: New message arrives, send window is not full, "
            "send new messge to layer3!",
        )
        seqnum = self._a_next_seqnum
        packet = make_packet(seqnum, NOT_IN_USE, message.data)
        self._send_buffer[seqnum] = packet
        self._acked[seqnum] = False
        self._a_window_count += 1

        self._log(0, f"Sending packet {seqnum} to layer 3")
        net.to_layer3(Entity.A, packet)
        if self._a_window_count == 1:
            net.start_timer(Entity.A, RTT)
        self._a_next_seqnum = (seqnum + 1) % SEQ_SPACE

    def a_input(self, packet: Packet) -> None:
        """Mark the acknowledged packet and slide past every acknowledged one."""
        net = self.network
        if is_corrupted(packet):
            self._log(0, "----A: corrupted ACK is received, do nothing!")
            return

        self._log(0, f"----A: uncorrupted ACK {packet.acknum} is received")
        net.stats.total_acks_received += 1

        ack = packet.acknum
        position = (ack + 1 - self._a_window_first) % SEQ_SPACE
        if not (
            self._a_window_count != 0
            and 0 <= ack < SEQ_SPACE
            and not self._acked[ack]
            and position <= WINDOW_SIZE
        ):
            self._log(0, "----A: duplicate ACK received, do nothing!")
            return

        self._acked[ack] = True
        self._log(0, f"----A: ACK {ack} is not a duplicate")
        net.stats.new_acks += 1

        oldest = self._a_window_first
        while self._acked[self._a_window_first] and self._a_window_count > 0:
            self._a_window_first = (self._a_window_first + 1) % SEQ_SPACE
            self._a_window_count -= 1
        if oldest != self._a_window_first:
            net.stop_timer(Entity.A)
            if self._a_window_count > 0:
                net.start_timer(Entity.A, RTT)

    def a_timer_interrupt(self) -> None:
        """Resend the oldest unacknowledged packet and restart the timer."""
        net = self.network
        self._log(0, "----A: time out,resend packets!")
        packet = self._send_buffer[self._a_window_first]
        if packet is not None:
            self._log(0, f"---A: resending packet {packet.seqnum}")
            net.to_layer3(Entity.A, packet)
            net.stats.packets_resent += 1
        net.start_timer(Entity.A, RTT)

    # Receiver (B)

    def b_init(self) -> None:
        """Empty the receive buffer and expect sequence number 0 first."""
        self._received.clear()
        self._b_window_first = 0
        self._b_next_seqnum = 1

    def _in_receive_window(self, seqnum: int) -> bool:
        low = self._b_window_first
        high = (self._b_window_first + WINDOW_SIZE - 1) % SEQ_SPACE
        if low <= high:
            return low <= seqnum <= high
        return seqnum >= low or seqnum <= high

    def b_input(self, packet: Packet) -> None:
        """Buffer the packet, deliver what is now in order, and acknowledge it."""
        net = self.network
        if is_corrupted(packet):
            return

        seqnum = packet.seqnum
        self._log(0, f"----B: packet {seqnum} is correctly received, send ACK!")
        net.stats.packets_received += 1

        if (
            0 <= seqnum < SEQ_SPACE
            and seqnum not in self._received
            and self._in_receive_window(seqnum)
        ):
            self._received[seqnum] = packet
        while self._b_window_first in self._received:
            ready = self._received.pop(self._b_window_first)
            net.to_layer5(Entity.B, ready.payload)
            self._b_window_first = (self._b_window_first + 1) % SEQ_SPACE

        ack = make_packet(self._b_next_seqnum, seqnum, ACK_PAYLOAD)
        self._b_next_seqnum = (self._b_next_seqnum + 1) % 2
        net.to_layer3(Entity.B, ack)

    def b_output(self, message: Message) -> None:
        """Simplex transfer: B never sends data, so the message is dropped."""
        self._log(0, "----B: simplex transfer, message from layer5 at B ignored")

    def b_timer_interrupt(self) -> None:
        """Simplex transfer: B runs no timer, so an interrupt is ignored."""
        self._log(0, "----B: simplex transfer, timer interrupt at B ignored")