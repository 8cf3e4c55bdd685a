"""Discrete-event emulation of an unreliable network between two entities."""

from __future__ import annotations

import abc
import bisect
import dataclasses
import random
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import TextIO

from arqsim.packets import PAYLOAD_SIZE, Message, Packet

BOTH_DIRECTIONS = 2


class Entity(IntEnum):
    A = 0
    B = 1

    @property
    def peer(self) -> "Entity":
        return Entity.B if self is Entity.A else Entity.A


class EventType(IntEnum):
    TIMER_INTERRUPT = 0
    FROM_LAYER5 = 1
    FROM_LAYER3 = 2


@dataclass
class Event:
    time: float
    kind: EventType
    entity: Entity
    packet: Packet | None = None


@dataclass
class Statistics:
    """Counters updated by the emulator and by the protocol under test."""

    window_full: int = 0
    total_acks_received: int = 0
    packets_resent: int = 0
    new_acks: int = 0
    packets_received: int = 0
    packets_sent: int = 0
    packets_lost: int = 0
    packets_corrupted: int = 0
    messages_delivered: int = 0


class RandomnessError(RuntimeError):
    """The random number generator does not look uniform on [0, 1]."""


class Protocol(abc.ABC):
    """Transport protocol run by entities A (sender) and B (receiver)."""

    network: "Emulator"

    def attach(self, network: "Emulator") -> None:
        self.network = network

    def a_init(self) -> None:
        """Prepare sender state; called once before anything else at A."""

    def b_init(self) -> None:
        """Prepare receiver state; called once before anything else at B."""

    @abc.abstractmethod
    def a_output(self, message: Message) -> None:
        """Accept a message from the application at A."""

    @abc.abstractmethod
    def a_input(self, packet: Packet) -> None:
        """Handle a packet arriving at A."""

    @abc.abstractmethod
    def a_timer_interrupt(self) -> None:
        """Handle expiry of A's timer."""

    def b_output(self, message: Message) -> None:
        """Accept a message from the application at B; simplex transfer ignores it."""
        if self.network.trace > 0:
            self.network._say(
                "----B: simplex transfer, message from layer5 at B ignored"
            )

    @abc.abstractmethod
    def b_input(self, packet: Packet) -> None:
        """Handle a packet arriving at B."""

    def b_timer_interrupt(self) -> None:
        """Handle expiry of B's timer; simplex transfer ignores it."""
        if self.network.trace > 0:
            self.network._say("----B: simplex transfer, timer interrupt at B ignored")


class Emulator:
    """Delivers, loses and corrupts packets and drives the protocol's events."""

    def __init__(
        self,
        protocol: Protocol,
        messages: int,
        loss_prob: float = 0.0,
        corrupt_prob: float = 0.0,
        mean_interarrival: float = 10.0,
        corrupt_direction: int = BOTH_DIRECTIONS,
        trace: int = 0,
        seed: int = 9999,
        output: TextIO | None = None,
    ) -> None:
        if messages < 0:
            raise ValueError("number of messages must not be negative")
        for name, value in (("loss_prob", loss_prob), ("corrupt_prob", corrupt_prob)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1")
        if mean_interarrival <= 0.0:
            raise ValueError("mean_interarrival must be greater than 0")
        if corrupt_direction not in (Entity.A, Entity.B, BOTH_DIRECTIONS):
            raise ValueError("corrupt_direction must be 0 (A->B), 1 (A<-B) or 2 (both)")

        self.protocol = protocol
        self.max_messages = messages
        self.loss_prob = loss_prob
        self.corrupt_prob = corrupt_prob
        self.mean_interarrival = mean_interarrival
        self.corrupt_direction = int(corrupt_direction)
        self.trace = trace
        self._output = output if output is not None else sys.stdout

        self._rng = random.Random(seed)
        average = sum(self.random() for _ in range(1000)) / 1000.0
        if not 0.25 <= average <= 0.75:
            raise RandomnessError(
                "random number generation does not look uniform on [0, 1]"
            )

        self.stats = Statistics()
        self.time = 0.0
        self.messages_generated = 0
        self.delivered: list[tuple[Entity, bytes]] = []
        self._events: list[Event] = []

        self._generate_next_arrival()
        protocol.attach(self)
        protocol.a_init()
        protocol.b_init()

    def _say(self, text: str) -> None:
        print(text, file=self._output)

    def random(self) -> float:
        """A uniform random number in [0, 1]."""
        value = self._rng.random()
        if self.trace > 3:
            self._say(f"RANDOM NUMBER GENERAION CALLED: {value:f}")
        return value

    def _insert(self, event: Event) -> None:
        if self.trace > 2:
            self._say(f"            INSERTEVENT: time is {self.time:f}")
            self._say(f"            INSERTEVENT: future time will be {event.time:f}")
        times = [e.time for e in self._events]
        index = bisect.bisect_left(times, event.time)
        self._events.insert(index, event)

    def _generate_next_arrival(self) -> None:
        if self.trace > 2:
            self._say("          GENERATE NEXT ARRIVAL: creating new arrival")
        delay = self.mean_interarrival * self.random() * 2
        self._insert(Event(self.time + delay, EventType.FROM_LAYER5, Entity.A))

    def _find_timer(self, entity: Entity) -> Event | None:
        return next(
            (
                e
                for e in self._events
                if e.kind is EventType.TIMER_INTERRUPT and e.entity is entity
            ),
            None,
        )

    def start_timer(self, entity: int, increment: float) -> None:
        """Schedule a timer interrupt for ``entity`` after ``increment`` time units."""
        entity = Entity(entity)
        if self.trace > 1:
            self._say(f"          START TIMER: starting timer at {self.time:f}")
        if self._find_timer(entity) is not None:
            self._say("Warning: attempt to start a timer that is already started")
            return
        self._insert(Event(self.time + increment, EventType.TIMER_INTERRUPT, entity))

    def stop_timer(self, entity: int) -> None:
        """Cancel the running timer of ``entity``."""
        entity = Entity(entity)
        if self.trace > 1:
            self._say(f"          STOP TIMER: stopping timer at {self.time:f}")
        timer = self._find_timer(entity)
        if timer is None:
            self._say("Warning: unable to cancel your timer. It wasn't running.")
            return
        self._events.remove(timer)

    def _affects(self, sender: Entity) -> bool:
        return not (
            (sender is Entity.B and self.corrupt_direction == Entity.A)
            or (sender is Entity.A and self.corrupt_direction == Entity.B)
        )

    def to_layer3(self, entity: int, packet: Packet) -> None:
        """Send ``packet`` from ``entity`` into the network towards its peer."""
        sender = Entity(entity)
        self.stats.packets_sent += 1

        if self.random() < self.loss_prob and self._affects(sender):
            self.stats.packets_lost += 1
            if self.trace > 0:
                self._say("          TOLAYER3: packet being lost")
            return

        if self.trace > 2:
            self._say(
                f"          TOLAYER3: seq: {packet.seqnum}, ack {packet.acknum}, "
                f"check: {packet.checksum} {packet.payload.decode('latin-1')}"
            )

        destination = sender.peer
        last_time = self.time
        for event in self._events:
            if event.kind is EventType.FROM_LAYER3 and event.entity is destination:
                last_time = event.time
        arrival = last_time + 1 + 9 * self.random()

        if self.random() < self.corrupt_prob and self._affects(sender):
            self.stats.packets_corrupted += 1
            choice = self.random()
            if choice < 0.75:
                packet = dataclasses.replace(packet, payload=b"Z" + packet.payload[1:])
            elif choice < 0.875:
                packet = dataclasses.replace(packet, seqnum=999999)
            else:
                packet = dataclasses.replace(packet, acknum=999999)
            if self.trace > 0:
                self._say("          TOLAYER3: packet being corrupted")

        if self.trace > 2:
            self._say("          TOLAYER3: scheduling arrival on other side")
        self._insert(Event(arrival, EventType.FROM_LAYER3, destination, packet))

    def to_layer5(self, entity: int, data: bytes) -> None:
        """Deliver ``data`` to the application at ``entity``."""
        entity = Entity(entity)
        data = bytes(data)
        if self.trace > 2:
            self._say(
                "          TOLAYER5: data received by application at "
                f"{entity.name}: {data.decode('latin-1')}"
            )
        self.delivered.append((entity, data))
        self.stats.messages_delivered += 1

    def pending_events(self) -> tuple[Event, ...]:
        """Scheduled events, earliest first."""
        return tuple(self._events)

    def _handle_arrival(self, event: Event) -> None:
        if self.messages_generated >= self.max_messages:
            if self.trace > 2:
                self._say("          FROM_LAYER5: no more messages to send: ")
            return
        self._generate_next_arrival()
        letter = ord("a") + self.messages_generated % 26
        message = Message(bytes([letter]) * PAYLOAD_SIZE)
        if self.trace > 2:
            self._say(
                "          MAINLOOP: data given to student: "
                f"{message.data.decode('latin-1')}"
            )
        self.messages_generated += 1
        if event.entity is Entity.A:
            self.protocol.a_output(message)
        else:
            self.protocol.b_output(message)

    def run(self) -> Statistics:
        """Process events until none remain and return the statistics."""
        labels = {
            EventType.TIMER_INTERRUPT: "timerinterrupt  ",
            EventType.FROM_LAYER5: "fromlayer5 ",
            EventType.FROM_LAYER3: "fromlayer3 ",
        }
        while self._events:
            event = self._events.pop(0)
            if self.trace >= 2:
                self._say(
                    f"\nEVENT time: {event.time:f},  type: {int(event.kind)}, "
                    f"{labels[event.kind]} entity: {int(event.entity)}"
                )
            self.time = event.time
            if event.kind is EventType.FROM_LAYER5:
                self._handle_arrival(event)
            elif event.kind is EventType.FROM_LAYER3:
                if event.entity is Entity.A:
                    self.protocol.a_input(event.packet)
                else:
                    self.protocol.b_input(event.packet)
            elif event.entity is Entity.A:
                self.protocol.a_timer_interrupt()
            else:
                self.protocol.b_timer_interrupt()
        return self.stats

    def report(self) -> str:
        """Summary of the run in human-readable form."""
        s = self.stats
        return "\n".join(
            [
                f" Simulator terminated at time {self.time:f}",
                f" after attempting to send {self.messages_generated} msgs from layer5",
                f"number of messages dropped due to full window:  {s.window_full} ",
                "number of valid (not corrupt or duplicate) acknowledgements "
                f"received at A:  {s.new_acks} ",
                "(note: a single acknowledgement may have acknowledged more than one "
                "packet - if cumulative acknowledgements are used)",
                f"number of packet resends by A:  {s.packets_resent} ",
                f"number of correct packets received at B:  {s.packets_received} ",
                f"number of messages delivered to application:  {s.messages_delivered} ",
            ]
        )