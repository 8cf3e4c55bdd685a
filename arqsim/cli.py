"""Command line front end for running a protocol over the emulated network."""

from __future__ import annotations

import argparse
import sys
from typing import Callable, TypeVar

from arqsim.emulator import BOTH_DIRECTIONS, Emulator, Protocol, RandomnessError
from arqsim.gbn import GoBackN
from arqsim.sr import SelectiveRepeat

T = TypeVar("T")

PROTOCOLS: dict[str, type[Protocol]] = {
    "gbn": GoBackN,
    "sr": SelectiveRepeat,
}


def build_parser() -> argparse.ArgumentParser:
    """Options for the simulator; any value left out is asked for interactively."""
    parser = argparse.ArgumentParser(
        prog="arqsim",
        description="Simulate a reliable transport protocol over a lossy network.",
    )
    parser.add_argument("--protocol", choices=sorted(PROTOCOLS), default="sr")
    parser.add_argument("-n", "--messages", type=int, help="number of messages to simulate")
    parser.add_argument("--loss", type=float, help="packet loss probability")
    parser.add_argument("--corrupt", type=float, help="packet corruption probability")
    parser.add_argument(
        "--direction",
        type=int,
        choices=(0, 1, 2),
        help="where loss and corruption apply: 0 A->B, 1 A<-B, 2 both",
    )
    parser.add_argument(
        "--interval", type=float, help="average time between messages from layer 5"
    )
    parser.add_argument("--trace", type=int, help="trace level")
    parser.add_argument("--seed", type=int, default=9999, help="random seed")
    return parser


def _ask(
    parser: argparse.ArgumentParser, prompt: str, convert: Callable[[str], T]
) -> T:
    try:
        answer = input(prompt)
    except EOFError:
        parser.error("no answer given to: " + prompt.strip())
    try:
        return convert(answer.strip())
    except ValueError:
        parser.error(f"invalid answer {answer.strip()!r} to: {prompt.strip()}")


def main(argv: list[str] | None = None) -> int:
    """Run the simulator and print its summary."""
    parser = build_parser()
    args = parser.parse_args(argv)

    print("-----  Stop and Wait Network Simulator Version 1.1 -------- \n")
    messages = args.messages
    if messages is None:
        messages = _ask(parser, "Enter the number of messages to simulate: ", int)
    loss = args.loss
    if loss is None:
        loss = _ask(parser, "Enter  packet loss probability [enter 0.0 for no loss]:", float)
    corrupt = args.corrupt
    if corrupt is None:
        corrupt = _ask(
            parser, "Enter packet corruption probability [0.0 for no corruption]:", float
        )
    direction = args.direction
    if direction is None:
        direction = BOTH_DIRECTIONS
        if loss != 0.0 or corrupt != 0.0:
            direction = _ask(
                parser,
                "If you want loss or corruption to only occur in one direction, "
                "choose the direction: 0 A->B, 1 A<-B, 2 A<->B (both directions) :",
                int,
            )
    interval = args.interval
    if interval is None:
        interval = _ask(
            parser, "Enter average time between messages from sender's layer5 [ > 0.0]:", float
        )
    trace = args.trace
    if trace is None:
        trace = _ask(parser, "Enter TRACE:", int)

    try:
        emulator = Emulator(
            PROTOCOLS[args.protocol](),
            messages,
            loss_prob=loss,
            corrupt_prob=corrupt,
            mean_interarrival=interval,
            corrupt_direction=direction,
            trace=trace,
            seed=args.seed,
        )
    except RandomnessError as exc:
        print(exc, file=sys.stderr)
        return 1
    except ValueError as exc:
        parser.error(str(exc))

    emulator.run()
    print(emulator.report())
    return 0


if __name__ == "__main__":
    sys.exit(main())