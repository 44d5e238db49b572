"""Terminal tuner: print the detected note and deviation as you play."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence, Union

from .audio_source import ArraySource, AudioSource, SoundDeviceSource, sine_block
from .constants import BUFFER_SIZE, CYCLE_INTERVAL, IN_TUNE_THRESHOLD_CENTS, SAMPLE_RATE
from .errors import InvalidConfigurationError
from .tuning import STANDARD_TUNING
from .tuning_loop import TuningLoop


def _device(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stringtuner",
        description="Live guitar tuner using autocorrelation pitch detection.",
    )
    parser.add_argument(
        "--device",
        type=_device,
        default=None,
        help="Input device index or name (default: system default input)",
    )
    parser.add_argument("--sample-rate", type=int, default=SAMPLE_RATE)
    parser.add_argument(
        "--buffer-size",
        type=int,
        default=BUFFER_SIZE,
        help="Samples per analysis window; cost grows with its square",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=CYCLE_INTERVAL,
        help="Seconds between analysis cycles",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=IN_TUNE_THRESHOLD_CENTS,
        help="Deviation in cents below which a string counts as in tune",
    )
    parser.add_argument(
        "--demo",
        type=float,
        metavar="FREQ",
        default=None,
        help="Analyse a synthetic tone at FREQ Hz instead of the microphone",
    )
    parser.add_argument(
        "--cycles",
        type=int,
        default=None,
        help="Exit after printing this many results",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _make_source(args: argparse.Namespace) -> AudioSource:
    if args.demo is not None:
        block = sine_block(args.demo, args.sample_rate, args.buffer_size)
        return ArraySource([block], sample_rate=args.sample_rate)
    return SoundDeviceSource(
        args.device, sample_rate=args.sample_rate, buffer_size=args.buffer_size
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        source = _make_source(args)
        loop = TuningLoop(
            source,
            STANDARD_TUNING,
            interval=args.interval,
            threshold=args.threshold,
        )
    except InvalidConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    notes = ", ".join(f"{n.name} {n.frequency:.2f}" for n in STANDARD_TUNING)
    print(f"Tuning against: {notes}", flush=True)
    print("Play a string... (Ctrl+C to quit)", flush=True)

    printed = 0
    with loop:
        loop.start()
        seen = 0
        try:
            while args.cycles is None or printed < args.cycles:
                sequence, result = loop.channel.wait_for(seen, timeout=1.0)
                if sequence == seen or result is None:
                    continue
                seen = sequence
                print(result.describe(), flush=True)
                printed += 1
        except KeyboardInterrupt:
            print("\nExiting.", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
