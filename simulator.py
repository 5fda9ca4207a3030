#!/usr/bin/env python3
"""
Banker's Arbiter
Main entry point: loads the initial state, checks that it is safe, then
arbitrates resource requests typed at the prompt or scripted in a JSON
scenario.
"""

import argparse
import sys
from typing import List, Optional, TextIO

from algorithms.avoidance import ResourceArbiter
from analysis.events import DecisionLog
from analysis.metrics import SessionMetrics
from models.errors import DimensionMismatch, IndexOutOfRange, InvalidRequest
from utils.logger import SimulatorLogger
from utils.reporter import format_state, format_trace
from utils.state_loader import (
    ScenarioStep,
    StateLoadError,
    get_scenario_description,
    load_scenario,
    load_state,
    write_state,
)


EXIT_OK = 0
EXIT_UNSAFE = 1
EXIT_LOAD_ERROR = 2

SENTINEL = -1

# Textbook five-process, three-resource state written by --write-example
EXAMPLE_AVAILABLE = [3, 3, 2]
EXAMPLE_MAX = [[7, 5, 3], [3, 2, 2], [9, 0, 2], [2, 2, 2], [4, 3, 3]]
EXAMPLE_ALLOCATION = [[0, 1, 0], [2, 0, 0], [3, 0, 2], [2, 1, 1], [0, 0, 2]]


def _handle_request(
    arbiter: ResourceArbiter,
    process: int,
    request: List[int],
    logger: SimulatorLogger,
    decision_log: DecisionLog,
    metrics: SessionMetrics,
    show_trace: bool
) -> None:
    """Submit one request and report the decision and resulting state."""
    logger.log(f"\nProcess {process} requests resources: {request}")
    try:
        decision = arbiter.try_request(process, request)
    except (IndexOutOfRange, DimensionMismatch, InvalidRequest) as e:
        logger.log(f"Request rejected: {e}", "error")
        return

    decision_log.add(decision)
    metrics.record_decision(decision)
    logger.log_request(decision.process, decision.request, decision.granted, decision.reason)

    if show_trace and decision.safety is not None:
        logger.log("Safety check on tentative state:")
        logger.log(format_trace(decision.safety))

    snapshot = arbiter.snapshot()
    metrics.record_state(snapshot)
    logger.log(format_state(snapshot))


def _handle_release(
    arbiter: ResourceArbiter,
    process: int,
    release: List[int],
    logger: SimulatorLogger
) -> None:
    logger.log(f"\nProcess {process} releases resources: {release}")
    try:
        arbiter.release_resources(process, release)
    except (IndexOutOfRange, DimensionMismatch, InvalidRequest) as e:
        logger.log(f"Release rejected: {e}", "error")
        return
    logger.log(format_state(arbiter.snapshot()))


def run_session(
    arbiter: ResourceArbiter,
    steps: List[ScenarioStep],
    logger: SimulatorLogger,
    metrics: Optional[SessionMetrics] = None,
    show_trace: bool = False
) -> DecisionLog:
    """
    Replay scripted requests and releases in file order.

    Args:
        arbiter: Arbiter holding the loaded state
        steps: Steps from load_scenario()
        logger: Output logger
        metrics: Optional metrics accumulator
        show_trace: Print the safety-check trace for each request

    Returns:
        DecisionLog with one decision per request step
    """
    decision_log = DecisionLog()
    if metrics is None:
        metrics = SessionMetrics()

    for step in steps:
        if step.kind == 'release':
            _handle_release(arbiter, step.process, step.amounts, logger)
        else:
            _handle_request(arbiter, step.process, step.amounts, logger,
                            decision_log, metrics, show_trace)

    return decision_log


def _prompt(message: str, input_stream: TextIO, output: TextIO) -> Optional[str]:
    """Print a prompt and read one line; None at end of input."""
    output.write(message)
    output.flush()
    line = input_stream.readline()
    if not line:
        return None
    return line.strip()


def interactive_loop(
    arbiter: ResourceArbiter,
    logger: SimulatorLogger,
    input_stream: TextIO = None,
    metrics: Optional[SessionMetrics] = None,
    show_trace: bool = False
) -> DecisionLog:
    """
    Read (process, request vector) entries until the sentinel or end of input.

    Args:
        arbiter: Arbiter holding the loaded state
        logger: Output logger (its stream also receives the prompts)
        input_stream: Where entries are read from (defaults to sys.stdin)
        metrics: Optional metrics accumulator
        show_trace: Print the safety-check trace for each request

    Returns:
        DecisionLog with one decision per submitted request
    """
    input_stream = input_stream or sys.stdin
    output = logger.stream or sys.stdout
    decision_log = DecisionLog()
    if metrics is None:
        metrics = SessionMetrics()

    while True:
        line = _prompt(f"\nEnter process ID requesting resources ({SENTINEL} to exit): ",
                       input_stream, output)
        if line is None:
            break
        try:
            process = int(line)
        except ValueError:
            logger.log("Please enter a valid number")
            continue

        if process == SENTINEL:
            break

        request = []
        for j in range(arbiter.num_resources):
            line = _prompt(f"Amount of resource {j + 1} requested: ", input_stream, output)
            if line is None:
                return decision_log
            try:
                request.append(int(line))
            except ValueError:
                logger.log("Please enter a valid number")
                request = None
                break

        if request is None:
            continue

        _handle_request(arbiter, process, request, logger, decision_log, metrics, show_trace)

    return decision_log


def _display_statistics(metrics: SessionMetrics, logger: SimulatorLogger) -> None:
    """Display final session statistics."""
    logger.log("\nSession Statistics:")
    for line in metrics.summary_lines():
        logger.log(line)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm resource arbiter"
    )
    parser.add_argument(
        '--available',
        type=str,
        default='available.txt',
        help='Available vector file (default: available.txt)'
    )
    parser.add_argument(
        '--max',
        type=str,
        default='max.txt',
        help='Max claim matrix file (default: max.txt)'
    )
    parser.add_argument(
        '--allocation',
        type=str,
        default='allocation.txt',
        help='Allocation matrix file (default: allocation.txt)'
    )
    parser.add_argument(
        '--scenario',
        type=str,
        help='JSON scenario file (replaces the three text files)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--trace',
        action='store_true',
        help='Show every step of each safety check'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        help='Mirror all output to this file'
    )
    parser.add_argument(
        '--write-example',
        type=str,
        metavar='DIR',
        help='Write example available/max/allocation files into DIR and exit'
    )
    return parser


def main(argv: Optional[List[str]] = None, input_stream: TextIO = None) -> int:
    """Main entry point for the arbiter."""
    args = build_parser().parse_args(argv)

    if args.write_example:
        for path in write_state(args.write_example, EXAMPLE_AVAILABLE,
                                EXAMPLE_MAX, EXAMPLE_ALLOCATION):
            print(f"Wrote {path}")
        return EXIT_OK

    logger = SimulatorLogger(verbose=args.verbose, log_file=args.log_file)
    try:
        return _run(args, logger, input_stream)
    finally:
        logger.close()


def _run(args: argparse.Namespace, logger: SimulatorLogger, input_stream: TextIO) -> int:
    steps: List[ScenarioStep] = []
    try:
        if args.scenario:
            arbiter, steps = load_scenario(args.scenario)
            description = get_scenario_description(args.scenario)
            if description:
                logger.log(f"Scenario: {description}")
        else:
            arbiter = load_state(args.available, args.max, args.allocation)
    except StateLoadError as e:
        logger.log(f"Failed to load state: {e}", "error")
        return EXIT_LOAD_ERROR

    logger.log(f"Loaded {arbiter.num_processes} processes, {arbiter.num_resources} resource types", "debug")
    logger.log("Initial state:")
    logger.log(format_state(arbiter.snapshot()))

    logger.log("Running initial safety check...")
    report = arbiter.check_safety()
    if args.trace:
        logger.log(format_trace(report))
    logger.log_safety(report.safe, report.sequence)
    if not report.safe:
        logger.log(
            "Cannot continue from an unsafe initial state. "
            "Adjust the max, allocation and available inputs so the initial state is safe.",
            "error"
        )
        return EXIT_UNSAFE

    metrics = SessionMetrics()
    if steps:
        run_session(arbiter, steps, logger, metrics, args.trace)
    else:
        interactive_loop(arbiter, logger, input_stream, metrics, args.trace)

    _display_statistics(metrics, logger)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
