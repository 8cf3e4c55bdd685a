import io

import pytest

from arqsim.emulator import Emulator, Entity, Statistics
from arqsim.gbn import RTT, SEQ_SPACE, WINDOW_SIZE, GoBackN
from arqsim.packets import PAYLOAD_SIZE, Message, Packet, is_corrupted, make_packet


class FakeNetwork:
    def __init__(self):
        self.trace = 0
        self.stats = Statistics()
        self.sent = []
        self.delivered = []
        self.timer_log = []

    def to_layer3(self, entity, packet):
        self.sent.append((Entity(entity), packet))

    def to_layer5(self, entity, data):
        self.delivered.append((Entity(entity), bytes(data)))

    def start_timer(self, entity, increment):
        self.timer_log.append(("start", Entity(entity), increment))

    def stop_timer(self, entity):
        self.timer_log.append(("stop", Entity(entity)))

    def _say(self, text):
        pass


def msg(i):
    return Message(bytes([ord("a") + i]) * PAYLOAD_SIZE)


def ack(n):
    return make_packet(0, n, b"0" * PAYLOAD_SIZE)


@pytest.fixture
def setup():
    net = FakeNetwork()
    proto = GoBackN()
    proto.attach(net)
    proto.a_init()
    proto.b_init()
    return proto, net


def test_first_output_sends_packet_and_starts_timer(setup):
    proto, net = setup
    proto.a_output(msg(0))
    assert net.sent == [(Entity.A, make_packet(0, -1, msg(0).data))]
    assert net.timer_log == [("start", Entity.A, RTT)]


def test_window_full_drops_message(setup):
    proto, net = setup
    for i in range(WINDOW_SIZE + 1):
        proto.a_output(msg(i))
    assert len(net.sent) == WINDOW_SIZE
    assert net.stats.window_full == 1


def test_sequence_numbers_wrap(setup):
    proto, net = setup
    for i in range(WINDOW_SIZE):
        proto.a_output(msg(i))
    proto.a_input(ack(WINDOW_SIZE - 1))
    for i in range(WINDOW_SIZE):
        proto.a_output(msg(i))
    seqs = [p.seqnum for _, p in net.sent]
    assert seqs[WINDOW_SIZE:WINDOW_SIZE + 2] == [SEQ_SPACE - 1, 0]
    assert all(0 <= s < SEQ_SPACE for s in seqs)


def test_cumulative_ack_slides_window_and_restarts_timer(setup):
    proto, net = setup
    for i in range(4):
        proto.a_output(msg(i))
    proto.a_input(ack(1))
    assert net.stats.new_acks == 1
    assert net.timer_log[-2:] == [("stop", Entity.A), ("start", Entity.A, RTT)]
    net.sent.clear()
    proto.a_timer_interrupt()
    assert [p.seqnum for _, p in net.sent] == [2, 3]
    assert net.stats.packets_resent == 2


def test_full_ack_stops_timer_without_restart(setup):
    proto, net = setup
    for i in range(3):
        proto.a_output(msg(i))
    proto.a_input(ack(2))
    assert net.timer_log[-1] == ("stop", Entity.A)
    net.sent.clear()
    proto.a_timer_interrupt()
    assert net.sent == []


def test_ack_outside_window_ignored(setup):
    proto, net = setup
    proto.a_output(msg(0))
    proto.a_output(msg(1))
    proto.a_input(ack(5))
    assert net.stats.total_acks_received == 1
    assert net.stats.new_acks == 0
    assert ("stop", Entity.A) not in net.timer_log


def test_ack_with_empty_window_counted_but_not_new(setup):
    proto, net = setup
    proto.a_input(ack(0))
    assert net.stats.total_acks_received == 1
    assert net.stats.new_acks == 0


def test_corrupted_ack_ignored(setup):
    proto, net = setup
    proto.a_output(msg(0))
    bad = Packet(0, 0, 12345, b"0" * PAYLOAD_SIZE)
    proto.a_input(bad)
    assert net.stats.total_acks_received == 0
    assert net.stats.new_acks == 0


def test_b_delivers_in_order_packet_and_acks(setup):
    proto, net = setup
    proto.b_input(make_packet(0, -1, msg(0).data))
    assert net.delivered == [(Entity.B, msg(0).data)]
    assert net.stats.packets_received == 1
    entity, reply = net.sent[0]
    assert entity is Entity.B
    assert reply.acknum == 0
    assert reply.seqnum == 1
    assert reply.payload == b"0" * PAYLOAD_SIZE
    assert not is_corrupted(reply)


def test_b_out_of_order_reacks_previous(setup):
    proto, net = setup
    proto.b_input(make_packet(3, -1, msg(3).data))
    assert net.delivered == []
    assert net.sent[0][1].acknum == SEQ_SPACE - 1


def test_b_ack_seqnums_alternate(setup):
    proto, net = setup
    proto.b_input(make_packet(0, -1, msg(0).data))
    proto.b_input(make_packet(1, -1, msg(1).data))
    proto.b_input(make_packet(2, -1, msg(2).data))
    assert [p.seqnum for _, p in net.sent] == [1, 0, 1]
    assert [p.acknum for _, p in net.sent] == [0, 1, 2]


def test_b_corrupted_packet_not_delivered(setup):
    proto, net = setup
    proto.b_input(Packet(0, -1, 0, msg(0).data))
    assert net.delivered == []
    assert net.stats.packets_received == 0
    assert net.sent[0][1].acknum == SEQ_SPACE - 1


def test_lossless_run_delivers_everything_in_order():
    emulator = Emulator(GoBackN(), 10, mean_interarrival=1000.0, output=io.StringIO())
    stats = emulator.run()
    assert [data for _, data in emulator.delivered] == [msg(i).data for i in range(10)]
    assert stats.window_full == 0
    assert stats.messages_delivered == 10


def test_lossy_run_delivers_accepted_messages_in_order():
    emulator = Emulator(
        GoBackN(),
        20,
        loss_prob=0.2,
        corrupt_prob=0.2,
        mean_interarrival=10.0,
        output=io.StringIO(),
    )
    stats = emulator.run()
    letters = [data[0] for _, data in emulator.delivered]
    assert letters == sorted(set(letters))
    assert all(data == bytes([data[0]]) * PAYLOAD_SIZE for _, data in emulator.delivered)
    assert stats.messages_delivered + stats.window_full == emulator.messages_generated
    assert stats.messages_delivered == stats.packets_received


def _seeded_run():
    emulator = Emulator(
        GoBackN(), 15, loss_prob=0.1, corrupt_prob=0.1, output=io.StringIO()
    )
    stats = emulator.run()
    return stats, emulator.time


def test_runs_with_same_seed_are_identical():
    first_stats, first_time = _seeded_run()
    second_stats, second_time = _seeded_run()
    assert first_stats == second_stats
    assert first_time == second_time
    assert first_time > 0
    assert first_stats.messages_delivered > 0


def test_trace_output_reaches_emulator_stream():
    out = io.StringIO()
    Emulator(GoBackN(), 1, mean_interarrival=1000.0, trace=1, output=out).run()
    assert "Sending packet 0 to layer 3" in out.getvalue()
    assert "----B: packet 0 is correctly received, send ACK!" in out.getvalue()