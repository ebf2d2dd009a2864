"""
Main Simulation Orchestrator
============================

Headless entry point: loads a scenario, steps it and logs the network
state periodically.

    python -m flow_simulator --scenario demo --ticks 3600
    python -m flow_simulator --realtime --interval-ms 16
    python -m flow_simulator --validate

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import argparse
import logging
import signal
import sys

from .config import DisplaySettings, SimulationConfig
from .core import demo_topology, pair_topology, run_all_validations
from .display import format_state_table
from .runner import END_OF_SIMULATION, RunLoop
from .session import SimulationSession

logger = logging.getLogger(__name__)

SCENARIOS = {
    "demo": demo_topology,
    "pair": pair_topology,
}

# Global running flag for graceful shutdown
running = True


def signal_handler(sig, frame):
    """Handle Ctrl+C for clean shutdown."""
    global running
    logger.info("Shutdown signal received. Stopping simulation...")
    running = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mixing Network Flow Simulation")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default="demo",
        help="Topology to load",
    )
    parser.add_argument(
        "--ticks", type=int, default=3600, help="Maximum number of ticks to run"
    )
    parser.add_argument(
        "--interval-ms",
        type=float,
        default=SimulationConfig.interval_ms,
        help="Run-loop cadence with --realtime [ms]",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace ticks with the run loop instead of stepping as fast as possible",
    )
    parser.add_argument(
        "--log-interval", type=int, default=600, help="Ticks between state logs"
    )
    parser.add_argument(
        "--accuracy", type=int, default=2, help="Decimal places in state logs"
    )
    parser.add_argument("--fluid-units", default="L", help="Volume unit label")
    parser.add_argument("--time-units", default="s", help="Time unit label")
    parser.add_argument(
        "--validate", action="store_true", help="Run validation checks and exit"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def log_state(session: SimulationSession, settings: DisplaySettings, tick: int):
    views = session.container_views().values()
    logger.info(f"t={tick} ticks\n{format_state_table(views, settings)}")


def run_stepped(session, args, settings) -> int:
    """Step as fast as possible. Returns the number of ticks run."""
    ticks = 0
    while running and ticks < args.ticks:
        result = session.step_once()
        ticks = result.tick

        if args.log_interval > 0 and ticks % args.log_interval == 0:
            log_state(session, settings, ticks)

        if result.terminal:
            logger.info(f"{END_OF_SIMULATION} (over limit: {', '.join(result.over_limit)})")
            break
    return ticks


def run_realtime(session, args, settings) -> int:
    """Step on the run loop until it ends, the tick limit or Ctrl+C."""

    def periodic_log(result):
        if args.log_interval > 0 and result.tick % args.log_interval == 0:
            log_state(session, settings, result.tick)

    session.on_tick_completed(periodic_log)
    loop = RunLoop(session, interval_ms=args.interval_ms, max_ticks=args.ticks)
    loop.start()
    try:
        while running and not loop.wait(timeout=0.2):
            pass
    finally:
        loop.stop()
    return loop.ticks_run


def main():
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if args.validate:
        run_all_validations()
        return

    logger.info("=" * 70)
    logger.info("MIXING NETWORK FLOW SIMULATION")
    logger.info("=" * 70)

    # ========================================================================
    # PHASE 1: Configuration
    # ========================================================================
    try:
        config = SimulationConfig(interval_ms=args.interval_ms)
        settings = DisplaySettings(
            accuracy=args.accuracy,
            fluid_units=args.fluid_units,
            time_units=args.time_units,
        )
        config.validate()
        settings.validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    # ========================================================================
    # PHASE 2: Load scenario
    # ========================================================================
    session = SimulationSession(config)
    result = session.load_scenario(SCENARIOS[args.scenario]())
    if not result.ok:
        logger.error(f"Scenario '{args.scenario}' failed to load: {result.message}")
        sys.exit(1)

    log_state(session, settings, 0)

    # ========================================================================
    # PHASE 3: Main simulation loop
    # ========================================================================
    logger.info("Press Ctrl+C to stop")
    try:
        if args.realtime:
            ticks = run_realtime(session, args, settings)
        else:
            ticks = run_stepped(session, args, settings)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        ticks = session.engine.tick_count

    log_state(session, settings, ticks)
    logger.info("Simulation stopped cleanly")


if __name__ == "__main__":
    main()
