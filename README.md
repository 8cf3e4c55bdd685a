# arqsim

`arqsim` is a small discrete-event network emulator for experimenting with
reliable transport protocols. A sender (entity A) receives messages from its
application layer and must deliver them to a receiver (entity B) across a
simulated channel that can lose and corrupt packets. Two protocols are
included:

- **Go-Back-N** (`arqsim.gbn.GoBackN`): a sliding window of 6 packets over a
  sequence space of 7, cumulative acknowledgements, and retransmission of the
  whole outstanding window on timeout. B accepts only the packet it expects
  next and otherwise re-acknowledges the last packet it accepted.
- **Selective Repeat** (`arqsim.sr.SelectiveRepeat`): a window of 6 packets over
  a sequence space of 12, individual acknowledgements, receiver-side buffering
  of out-of-order packets, and retransmission of only the oldest unacknowledged
  packet on timeout. B silently drops corrupted packets without acknowledging
  them.

Both protocols use a timeout of 16 time units.

## The channel

- One-way delay is between 1 and 10 time units after the latest packet already
  in flight towards the same side, so packets are never reordered.
- Packets may be lost or corrupted with configurable probabilities, either in
  one direction only (0: A->B, 1: A<-B) or in both (2).
- A corrupted packet has either its first payload byte replaced by `Z`, its
  sequence number or its acknowledgement number set to 999999; the checksum is
  left alone so the protocol can detect the damage.
- Messages from the application arrive at A with a gap drawn uniformly from
  0 to twice the mean you choose; each message is twenty copies of one letter,
  cycling `a` to `z`.

The simulation stops when no events remain. `Emulator.run()` returns a
`Statistics` record (messages dropped because the window was full, ACKs
received at A, valid ACKs, packets resent by A, correct packets received at B,
packets sent, lost and corrupted, messages delivered), and
`Emulator.report()` gives a printable summary of the main counters. Delivered
messages are also kept, in order, in `Emulator.delivered`.

Before running, the emulator draws 1000 random numbers and raises
`RandomnessError` if their average is outside 0.25 to 0.75. Invalid settings
(negative message count, probabilities outside 0 to 1, a non-positive mean
interval, an unknown direction) raise `ValueError`.

## Installation

```
pip install .
```

No third-party libraries are required.

## Command line

```
arqsim --help
```

lists the options: `--protocol` (`gbn` or `sr`, default `sr`), `-n/--messages`,
`--loss`, `--corrupt`, `--direction`, `--interval`, `--trace` and `--seed`
(default 9999). Any of the message count, probabilities, interval and trace
level left off the command line is asked for on standard input; the direction
is only asked for when loss or corruption is non-zero. The summary is printed
when the run ends.

```
arqsim --protocol gbn -n 50 --loss 0.1 --corrupt 0.1 --direction 2 --interval 20 --trace 0
```

## Library use

```python
from arqsim.emulator import Emulator
from arqsim.gbn import GoBackN

emulator = Emulator(
    GoBackN(),
    messages=100,
    loss_prob=0.1,
    corrupt_prob=0.1,
    mean_interarrival=20.0,
    corrupt_direction=2,
    trace=0,
    seed=9999,
)
emulator.run()
print(emulator.report())
```

Swap `GoBackN()` for `arqsim.sr.SelectiveRepeat()` to run the Selective Repeat
protocol under the same conditions. Trace output goes to standard output unless
a text stream is passed as `output`.

Packets and checksums live in `arqsim.packets`: `Message` and `Packet` carry
exactly 20 payload bytes, `make_packet` builds a `Packet` with its checksum
filled in, `compute_checksum` adds the sequence number, acknowledgement number
and payload bytes, and `is_corrupted` reports whether a packet's stored
checksum no longer matches.

To write a protocol of your own, subclass `arqsim.emulator.Protocol` and
implement `a_output`, `a_input`, `a_timer_interrupt` and `b_input` (and
optionally `a_init`, `b_init`, `b_output`, `b_timer_interrupt`); inside them,
use `self.network` to call the emulator's `to_layer3`, `to_layer5`,
`start_timer` and `stop_timer`, and update `self.network.stats`.

## What it does not do

Transfer is one way only: all application messages are generated at A, and
both included protocols ignore messages and timer interrupts at B. There is no
bidirectional data transfer.

## Tests

```
pip install ".[test]"
pytest
```