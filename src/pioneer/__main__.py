"""
CLI entry point for Pioneer.

This module provides the command-line interface for the Pioneer package.
It serves as the entry point when the package is invoked via:
- `pioneer <command>` (installed script)
- `python -m pioneer <command>` (module execution)

Architecture Role:
    The CLI is a thin harness: it builds a SandboxWorld and a PioneerBot,
    owns the tick loop and paces it, exactly as any embedding host would.

    User Input → __main__.py → SandboxWorld + PioneerBot → tick loop

Available Commands:
    run: Run the agent in a generated sandbox world
    info: Display version, configuration defaults and gym spaces
    probe: Raw serial-port read/write test for the remote pilot device

Examples:
    pioneer run --seed 7 --steps 240 --interval 0
    pioneer run --config pioneer.yaml --pilot
    pioneer info
    pioneer probe read --count 10
    pioneer probe write --count 5

Dependencies:
    - argparse: Command-line argument parsing
    - pioneer.sandbox / pioneer.agent: World and bot (lazy import)
    - pyserial (optional): Required by --pilot and probe
"""

import argparse
import sys
import time

# =============================================================================
# COMMAND HANDLERS
# =============================================================================


def _load_config(args: argparse.Namespace):
    from pioneer.config import PioneerConfig

    config = PioneerConfig.from_file(args.config) if args.config else PioneerConfig()
    overrides = {}
    if args.size is not None:
        overrides["world_size"] = args.size
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.interval is not None:
        overrides["tick_interval"] = args.interval
    if args.coverage is not None:
        overrides["termination_coverage"] = args.coverage
    if args.pilot:
        overrides["pilot_enabled"] = True
    if args.port:
        overrides["pilot_port"] = args.port
    if args.quiet:
        overrides["verbose"] = False

    if overrides:
        from dataclasses import asdict

        merged = asdict(config)
        merged.update(overrides)
        config = PioneerConfig.from_dict(merged)
    return config


def run(args: argparse.Namespace) -> int:
    """Run the agent until the world terminates or the step limit is hit."""
    from pioneer.agent.bot import PioneerBot
    from pioneer.sandbox import SandboxWorld

    config = _load_config(args)
    steps = args.steps if args.steps is not None else config.max_steps

    world = SandboxWorld.generate(config, config.seed)
    bot = PioneerBot(config)
    world.subscribe(bot.on_event)
    world.ready()

    print(f"Pioneer: {world.size}x{world.size} world, seed={config.seed}, {steps} ticks")
    tick = 0
    try:
        while bot.is_running() and tick < steps:
            world.advance()
            bot.on_tick(world)
            tick += 1
            if config.tick_interval > 0:
                time.sleep(config.tick_interval)
    except KeyboardInterrupt:
        print("\nInterrupted")
        world.terminate()
    finally:
        if bot.pilot is not None:
            bot.pilot.close()

    print(f"Finished after {tick} ticks (day {world.day}, hour {world.hour})")
    print(f"Score: {world.score()}")
    print(f"Pins: {len(bot.pins)}, depleted: {len(bot.depleted)}")
    return 0


def info(args: argparse.Namespace) -> int:
    """Print version, default configuration and gym spaces."""
    from pioneer import __version__
    from pioneer.config import PioneerConfig

    print(f"Pioneer v{__version__}")
    print()

    print("Default Configuration:")
    config = PioneerConfig()
    for field_name in [
        "low_energy_threshold",
        "charge_level",
        "full_backpack_fraction",
        "low_backpack_fraction",
        "gather_policy",
        "recent_positions",
        "world_size",
        "backpack_size",
        "max_steps",
    ]:
        print(f"  {field_name}: {getattr(config, field_name)}")
    print()

    if args.spaces:
        from pioneer.env import PioneerEnv

        env = PioneerEnv(PioneerConfig(verbose=False, seed=0))
        print("Observation Space:")
        for key, space in env.observation_space.spaces.items():
            print(f"  {key}: {space}")
        print()
        print(f"Action Space: {env.action_space}")
        env.close()

    return 0


def probe(args: argparse.Namespace) -> int:
    """Open the pilot's serial port and read or write raw values."""
    try:
        import serial
    except ImportError:
        print("pyserial is required for probe. Install with: pip install pioneer[serial]")
        return 1

    import numpy as np

    from pioneer.agent.pilot import find_usb_port, probe_read, probe_write

    port = args.port or find_usb_port()
    if port is None:
        print("No USB serial port found")
        return 1

    print(f"Connecting to port {port}")
    try:
        transport = serial.Serial(port, args.baudrate, timeout=args.timeout)
    except OSError as e:
        print(f"Cannot open {port}: {e}")
        return 1
    print("Connected!")

    try:
        if args.direction == "read":
            probe_read(transport, args.count)
        else:
            rng = np.random.default_rng()
            probe_write(transport, [float(v) for v in rng.random(args.count or 10)])
    finally:
        transport.close()
    return 0


# =============================================================================
# MAIN CLI FUNCTION
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point for Pioneer.

    Returns:
        Exit code: 0 for success, 1 for errors or unknown commands.
    """
    parser = argparse.ArgumentParser(
        prog="pioneer",
        description="Pioneer - an autonomous explorer, gatherer and trader for tile worlds",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -------------------------------------------------------------------------
    # Run Command
    # -------------------------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Run the agent in a sandbox world")
    run_parser.add_argument("--config", help="JSON or YAML configuration file")
    run_parser.add_argument("--size", type=int, help="World side length")
    run_parser.add_argument("--seed", type=int, help="World and agent seed")
    run_parser.add_argument("--steps", type=int, help="Ticks to run (default: config.max_steps)")
    run_parser.add_argument(
        "--interval", type=float, help="Seconds between ticks (default: config.tick_interval)"
    )
    run_parser.add_argument(
        "--coverage", type=float, help="Stop once this fraction of the map is explored"
    )
    run_parser.add_argument("--pilot", action="store_true", help="Look for a remote pilot")
    run_parser.add_argument("--port", help="Serial port of the remote pilot")
    run_parser.add_argument("--quiet", action="store_true", help="Only print the summary")

    # -------------------------------------------------------------------------
    # Info Command
    # -------------------------------------------------------------------------
    info_parser = subparsers.add_parser("info", help="Show version and configuration")
    info_parser.add_argument(
        "--spaces", action="store_true", help="Also show the gym observation/action spaces"
    )

    # -------------------------------------------------------------------------
    # Probe Command
    # -------------------------------------------------------------------------
    probe_parser = subparsers.add_parser("probe", help="Raw serial test for the pilot device")
    probe_parser.add_argument("direction", choices=["read", "write"])
    probe_parser.add_argument("--port", help="Serial port (default: first USB port)")
    probe_parser.add_argument("--baudrate", type=int, default=115_200)
    probe_parser.add_argument("--timeout", type=float, default=5.0)
    probe_parser.add_argument("--count", type=int, help="Values to read or write")

    args = parser.parse_args(argv)

    if args.command == "run":
        return run(args)
    elif args.command == "info":
        return info(args)
    elif args.command == "probe":
        return probe(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
