"""
Inspect and flip circuit breakers from the command line.

Usage:
    python -m scripts.circuit status
    python -m scripts.circuit on MASTER
    python -m scripts.circuit off SLEEP_MODE
    python -m scripts.circuit reset PROVIDER_OPENAI
    python -m scripts.circuit watch --interval 5 --json
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from flapframes.core.circuit_breaker import CircuitBreakerService, build_circuit_breaker
from flapframes.core.circuit_registry import CircuitState, CircuitType
from flapframes.models.circuit_breaker_state import CircuitBreakerState

STATE_LABELS = {
    CircuitState.ON.value: "ON (enabled)",
    CircuitState.OFF.value: "OFF (disabled)",
    CircuitState.HALF_OPEN.value: "HALF_OPEN (testing)",
}


def format_state(state: str) -> str:
    return STATE_LABELS.get(state, state.upper())


def format_circuit(circuit: CircuitBreakerState) -> List[str]:
    lines = [
        f"  {circuit.circuit_id:<20} {circuit.circuit_type.capitalize():<10} "
        f"{format_state(circuit.state):<20} {circuit.default_state.upper()}"
    ]
    if circuit.circuit_type == CircuitType.PROVIDER.value:
        last_failure = (
            f"Last failure: {circuit.last_failure_at:%Y-%m-%d %H:%M:%S}"
            if circuit.last_failure_at
            else "No failures recorded"
        )
        lines.append(
            f"      Failures: {circuit.failure_count}/{circuit.failure_threshold}"
            f"  Successes: {circuit.success_count}  {last_failure}"
        )
    return lines


def render_status(circuits: List[CircuitBreakerState]) -> str:
    lines = ["", "=" * 70, "Circuit Breaker Status".center(70), "=" * 70, ""]
    if not circuits:
        lines.append("  No circuits found.")
        return "\n".join(lines)

    lines.append(f"  {'ID':<20} {'Type':<10} {'State':<20} Default")
    lines.append("  " + "-" * 66)
    for circuit_type, title in ((CircuitType.MANUAL, "Manual"), (CircuitType.PROVIDER, "Provider")):
        group = [c for c in circuits if c.circuit_type == circuit_type.value]
        if group:
            lines.append("")
            lines.append(f"  -- {title} Circuits --")
            for circuit in group:
                lines.extend(format_circuit(circuit))

    plural = "" if len(circuits) == 1 else "s"
    lines.extend(["", "=" * 70, f"  Total: {len(circuits)} circuit{plural}", "=" * 70])
    return "\n".join(lines)


def render_json(circuits: List[CircuitBreakerState]) -> str:
    return json.dumps([c.model_dump(mode="json", exclude={"id"}) for c in circuits], indent=2)


async def cmd_status(service: CircuitBreakerService, args) -> int:
    circuits = await service.get_all_circuits()
    print(render_json(circuits) if args.json else render_status(circuits))
    return 0


async def cmd_set(service: CircuitBreakerService, args, state: CircuitState) -> int:
    if await service.get_circuit_status(args.circuit_id) is None:
        print(f"Error: circuit '{args.circuit_id}' not found", file=sys.stderr)
        return 1
    await service.set_circuit_state(args.circuit_id, state)

    circuit = await service.get_circuit_status(args.circuit_id)
    if circuit is None or circuit.state != state.value:
        actual = format_state(circuit.state) if circuit else "UNKNOWN"
        print(f"Error: circuit '{args.circuit_id}' is still {actual}", file=sys.stderr)
        return 1
    print(f"Circuit '{args.circuit_id}' is now {format_state(circuit.state)}")
    return 0


async def cmd_reset(service: CircuitBreakerService, args) -> int:
    circuit = await service.get_circuit_status(args.circuit_id)
    if circuit is None:
        print(f"Error: circuit '{args.circuit_id}' not found", file=sys.stderr)
        return 1
    if circuit.circuit_type != CircuitType.PROVIDER.value:
        print(f"Error: only provider circuits can be reset, '{args.circuit_id}' is manual", file=sys.stderr)
        return 1
    await service.reset_provider_circuit(args.circuit_id)
    print(f"Provider circuit '{args.circuit_id}' reset to ON with counters cleared")
    return 0


async def cmd_watch(service: CircuitBreakerService, args) -> int:
    iteration = 0
    while args.iterations is None or iteration < args.iterations:
        if iteration:
            await asyncio.sleep(args.interval)
        circuits = await service.get_all_circuits()
        if args.json:
            print(render_json(circuits), flush=True)
        else:
            # ANSI clear screen + cursor home
            print("\033[2J\033[H" + render_status(circuits), flush=True)
        iteration += 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and control circuit breakers")
    subparsers = parser.add_subparsers(dest="command", required=True)

    status = subparsers.add_parser("status", help="Show every circuit")
    status.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    for name, help_text in (("on", "Turn a circuit on"), ("off", "Turn a circuit off")):
        toggle = subparsers.add_parser(name, help=help_text)
        toggle.add_argument("circuit_id", help="Circuit id, e.g. MASTER or PROVIDER_OPENAI")

    reset = subparsers.add_parser("reset", help="Force a provider circuit back on and clear its counters")
    reset.add_argument("circuit_id", help="Provider circuit id, e.g. PROVIDER_ANTHROPIC")

    watch = subparsers.add_parser("watch", help="Refresh circuit status periodically")
    watch.add_argument("--interval", type=float, default=5.0, help="Seconds between refreshes (default: 5)")
    watch.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    watch.add_argument("--iterations", type=int, default=None, help="Stop after this many refreshes")

    return parser


async def run(args, service: Optional[CircuitBreakerService] = None) -> int:
    if service is None:
        from flapframes.db import create_db_and_tables

        create_db_and_tables()
        service = build_circuit_breaker()
    await service.initialize()

    if args.command == "status":
        return await cmd_status(service, args)
    if args.command == "on":
        return await cmd_set(service, args, CircuitState.ON)
    if args.command == "off":
        return await cmd_set(service, args, CircuitState.OFF)
    if args.command == "reset":
        return await cmd_reset(service, args)
    return await cmd_watch(service, args)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
