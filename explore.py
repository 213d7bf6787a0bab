#!/usr/bin/env python
"""Command-line entry point for the keygenetics layout search."""

from __future__ import annotations

import argparse
import dataclasses
import json
import signal
import sys
import threading
from pathlib import Path

from hardware import ConfigurationError
from optim import Optimizer
from settings import DEFAULT_CONFIG_PATH, load_settings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Search for a keyboard layout that fits your typing. Runs until interrupted, saving the best layout found after every generation.",
        epilog="Settings are read from a TOML config file, created with defaults if missing. Command line options override the config file.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the TOML config file (default: {DEFAULT_CONFIG_PATH.name}).",
    )
    parser.add_argument(
        "-g",
        "--generations",
        type=int,
        default=None,
        help="Stop after this many generations. Runs until interrupted if omitted.",
    )
    parser.add_argument("--keyboard", help="Keyboard module under keebs/ to optimize for.")
    parser.add_argument("--corpus", help="Frequency corpus under corpus/ to optimize for.")
    parser.add_argument("-o", "--output", help="File where the best layout is saved.")
    parser.add_argument("--population-size", type=int, help="Number of layouts in the population.")
    parser.add_argument("-w", "--workers", type=int, help="Number of worker processes.")
    parser.add_argument("--seed", type=int, help="Seed for reproducible runs.")
    args = parser.parse_args(argv)

    if args.generations is not None and args.generations < 0:
        print("Error: --generations must not be negative.", file=sys.stderr)
        return 1

    overrides = {
        name: value
        for name, value in (
            ("keyboard", args.keyboard),
            ("corpus", args.corpus),
            ("output", args.output),
            ("population_size", args.population_size),
            ("workers", args.workers),
            ("seed", args.seed),
        )
        if value is not None
    }

    try:
        settings = load_settings(args.config)
        if overrides:
            settings = dataclasses.replace(settings, **overrides)
            settings.validate()
        optimizer = Optimizer.from_settings(settings)
    except (ConfigurationError, OSError, json.JSONDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    stop_event = threading.Event()

    def _request_stop(signum, frame):
        if not stop_event.is_set():
            print("\nStopping after the current generation...", file=sys.stderr)
        stop_event.set()

    previous_handlers = {
        signum: signal.signal(signum, _request_stop)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        best = optimizer.run(generations=args.generations, stop_event=stop_event)
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    if best is not None:
        print(best)
        print(f"Score: {optimizer.best_score:.2f}, saved to {settings.output}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
