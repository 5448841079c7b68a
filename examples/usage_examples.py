#!/usr/bin/env python3
"""
Usage examples for the drone detection mock.

This script shows the stream being driven programmatically and through
the command-line entry point. Every example runs offline, so no broker
is needed.
"""

import io
import json
from contextlib import redirect_stdout
from pathlib import Path

from drone_detection_mock import (
    MockConfig, DetectionStreamer, NoiseModel, SimulationState,
    DetectionRecordBuilder, to_wire, from_wire, cli_main
)


def example_1_bounded_offline_run():
    """Example 1: Short offline run with a fixed seed."""
    print("=" * 60)
    print("Example 1: Bounded Offline Run")
    print("=" * 60)

    config = MockConfig(
        interval_ms=100,
        max_messages=5,
        offline_mode=True,
        deterministic_seed=42
    )

    results = DetectionStreamer(config).run()

    print("Run completed:")
    print(f"  Ticks: {results['stream']['ticks']}")
    print(f"  Messages: {results['publishing']['messages_published']}")
    print(f"  Actual rate: {results['timing']['actual_rate_hz']:.2f} Hz")
    print()


def example_2_manual_ticks():
    """Example 2: Drive the state and builder without a transport."""
    print("=" * 60)
    print("Example 2: Manual Ticks")
    print("=" * 60)

    noise = NoiseModel.from_seed(7)
    state = SimulationState.initialize(2, noise)
    builder = DetectionRecordBuilder(noise)

    for _ in range(3):
        state.advance()
        record = builder.sample(state)
        payload = to_wire(record)
        decoded = from_wire(payload)

        print(f"frame {state.frame_count}: {payload.decode()}")
        print(f"  decoded {decoded.count} objects, "
              f"first center {decoded.objects[0].center}")
    print()


def example_3_single_drone_with_secondaries():
    """Example 3: One drone, where a random extra detection sometimes appears."""
    print("=" * 60)
    print("Example 3: Single Drone")
    print("=" * 60)

    noise = NoiseModel.from_seed(3)
    state = SimulationState.initialize(1, noise)
    builder = DetectionRecordBuilder(noise)

    counts = []
    for _ in range(100):
        state.advance()
        counts.append(builder.sample(state).count)

    print(f"Records with a secondary object: {counts.count(2)} of {len(counts)}")
    print()


def example_4_cli():
    """Example 4: Run the CLI entry point and capture its JSON output."""
    print("=" * 60)
    print("Example 4: Command Line")
    print("=" * 60)

    config_path = Path(__file__).parent / "offline_replay.json"
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        exit_code = cli_main(["--config", str(config_path), "--count", "3", "-q"])

    messages = [json.loads(line) for line in buffer.getvalue().splitlines() if line.startswith("{")]
    print(f"Exit code: {exit_code}")
    print(f"Captured {len(messages)} messages, counts: {[m['count'] for m in messages]}")
    print()


if __name__ == "__main__":
    example_1_bounded_offline_run()
    example_2_manual_ticks()
    example_3_single_drone_with_secondaries()
    example_4_cli()
