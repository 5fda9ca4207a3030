"""
Driver and Reporting Tests

Runs the command-line driver in batch and interactive mode and checks the
text rendering of tables, safety results and decisions.
"""

import io
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from algorithms.avoidance import ResourceArbiter
from analysis.events import RequestOutcome
from analysis.metrics import SessionMetrics
from models.resource_table import ResourceTable
from simulator import (
    EXIT_LOAD_ERROR,
    EXIT_OK,
    EXIT_UNSAFE,
    interactive_loop,
    main,
    run_session,
)
from utils.logger import SimulatorLogger
from utils.reporter import format_safety, format_state, format_table, format_trace
from utils.state_loader import load_scenario


# Test scenarios directory
SCENARIOS_DIR = project_root / "tests" / "scenarios"

TEXT_FILES = [
    "--available", str(SCENARIOS_DIR / "available.txt"),
    "--max", str(SCENARIOS_DIR / "max.txt"),
    "--allocation", str(SCENARIOS_DIR / "allocation.txt"),
]


def _textbook_arbiter():
    arbiter, _ = load_scenario(str(SCENARIOS_DIR / "textbook.json"))
    return arbiter


# -- Reporter --------------------------------------------------------------


def test_format_table():
    """Right-aligned width-4 columns separated by tabs."""
    table = ResourceTable.from_rows([[7, 5, 3], [10, 0, 2]])
    assert format_table(table) == "   7\t   5\t   3\n  10\t   0\t   2\n"


def test_format_state():
    output = format_state(_textbook_arbiter().snapshot())
    assert "Available: [3, 3, 2]" in output
    assert "Maximum:" in output
    assert "Need:" in output
    assert "   7\t   4\t   3" in output


def test_format_safety_and_trace():
    report = _textbook_arbiter().check_safety()
    assert format_safety(report) == "SAFE (sequence: P1 -> P3 -> P4 -> P0 -> P2)"
    assert "Pass 1: P0 blocked - work [3, 3, 2]" in format_trace(report)
    assert "Pass 1: P1 can finish - work [5, 3, 2]" in format_trace(report)

    unsafe = ResourceArbiter([0, 1, 1], [[7, 5, 3]], [[6, 4, 2]]).check_safety()
    assert format_safety(unsafe) == "UNSAFE (processes able to finish: none)"


def test_logger_levels_and_file(tmp_path):
    stream = io.StringIO()
    log_path = tmp_path / "arbiter.log"
    logger = SimulatorLogger(verbose=False, log_file=str(log_path), stream=stream)

    logger.log("hidden", "debug")
    logger.log("careful", "warning")
    logger.log_request(1, [1, 0, 2], True, "Safe state maintained")
    logger.close()

    console = stream.getvalue()
    assert "hidden" not in console
    assert "[WARNING] careful" in console
    assert "P1 requests [1, 0, 2] - GRANTED (Safe state maintained)" in console
    logged = log_path.read_text(encoding="utf-8")
    assert logged.startswith("Banker's Arbiter session started")
    assert "[WARNING] careful" in logged
    assert "P1 requests [1, 0, 2] - GRANTED" in logged
    assert "hidden" not in logged

    # Closing twice is harmless and console output keeps working
    logger.close()
    logger.log("after close")
    assert "after close" in stream.getvalue()
    assert "after close" not in log_path.read_text(encoding="utf-8")


# -- Batch session ---------------------------------------------------------


def test_run_session_replays_scenario():
    """Grant, insufficient, unsafe, claim exceeded, then a release."""
    print("\n" + "="*60)
    print("TEST: Batch scenario replay")
    print("="*60)

    arbiter, steps = load_scenario(str(SCENARIOS_DIR / "textbook.json"))
    stream = io.StringIO()
    metrics = SessionMetrics()

    decision_log = run_session(arbiter, steps, SimulatorLogger(stream=stream), metrics)
    print(decision_log.display())

    assert [d.outcome for d in decision_log.decisions] == [
        RequestOutcome.GRANTED,
        RequestOutcome.INSUFFICIENT_RESOURCES,
        RequestOutcome.UNSAFE_ALLOCATION,
        RequestOutcome.CLAIM_EXCEEDED,
    ]
    assert len(decision_log.get_by_process(0)) == 2
    assert len(decision_log.get_by_outcome(RequestOutcome.GRANTED)) == 1
    assert metrics.total_requests == 4
    assert metrics.granted == 1
    assert metrics.get_denials(RequestOutcome.UNSAFE_ALLOCATION) == 1
    assert len(metrics.utilization_samples) == 4

    # The final release hands P1's grant back
    assert arbiter.available() == [3, 3, 2]


def test_main_batch_mode(capsys):
    code = main(["--scenario", str(SCENARIOS_DIR / "textbook.json")])
    out = capsys.readouterr().out

    assert code == EXIT_OK
    assert "SAFE state" in out
    assert "P1 requests [1, 0, 2] - GRANTED" in out
    assert "[WARNING] P0 requests [0, 2, 0] - DENIED" in out
    assert "Session Statistics:" in out
    assert "Granted: 1" in out
    assert "Grant Rate: 25.0%" in out


def test_main_unsafe_initial_state(capsys):
    code = main(["--scenario", str(SCENARIOS_DIR / "unsafe_initial.json")])
    out = capsys.readouterr().out

    assert code == EXIT_UNSAFE
    assert "[ERROR] System is in an UNSAFE state" in out
    assert "Session Statistics:" not in out


def test_main_load_error(tmp_path, capsys):
    code = main(["--available", str(tmp_path / "missing.txt")])
    out = capsys.readouterr().out

    assert code == EXIT_LOAD_ERROR
    assert "[ERROR] Failed to load state" in out


def test_main_invalid_scenario_values(tmp_path, capsys):
    """Non-integer values in a scenario exit with the load-error code."""
    bad_state = tmp_path / "bad_state.json"
    bad_state.write_text(json.dumps({
        "available": [3, "x", 2],
        "max": [[7, 5, 3]],
        "allocation": [[0, 1, 0]],
    }), encoding="utf-8")
    bad_step = tmp_path / "bad_step.json"
    bad_step.write_text(json.dumps({
        "available": [3, 3, 2],
        "max": [[7, 5, 3]],
        "allocation": [[0, 1, 0]],
        "requests": [{"process": 0, "request": [1.9, 0, 0]}],
    }), encoding="utf-8")

    for path in (bad_state, bad_step):
        code = main(["--scenario", str(path)])
        out = capsys.readouterr().out
        assert code == EXIT_LOAD_ERROR
        assert "[ERROR] Failed to load state" in out
        assert path.name in out
        assert "Session Statistics:" not in out


def test_main_write_example(tmp_path, capsys):
    assert main(["--write-example", str(tmp_path)]) == EXIT_OK
    assert (tmp_path / "available.txt").read_text(encoding="utf-8") == "3 3 2\n"

    code = main([
        "--available", str(tmp_path / "available.txt"),
        "--max", str(tmp_path / "max.txt"),
        "--allocation", str(tmp_path / "allocation.txt"),
    ], input_stream=io.StringIO("-1\n"))
    assert code == EXIT_OK


# -- Interactive loop ------------------------------------------------------


def test_interactive_loop():
    """Bad input is reported and skipped; the sentinel ends the loop."""
    stream = io.StringIO()
    entries = io.StringIO(
        "abc\n"          # not a number
        "1\n1\n0\n2\n"   # P1 requests [1, 0, 2] -> granted
        "0\n8\nx\n"      # bad amount, entry dropped
        "9\n0\n0\n0\n"   # unknown process
        "0\n8\n0\n0\n"   # claim exceeded
        "-1\n"
        "2\n1\n1\n1\n"   # after the sentinel, never read
    )
    arbiter = _textbook_arbiter()

    decision_log = interactive_loop(arbiter, SimulatorLogger(stream=stream), entries)
    out = stream.getvalue()

    assert [d.outcome for d in decision_log.decisions] == [
        RequestOutcome.GRANTED,
        RequestOutcome.CLAIM_EXCEEDED,
    ]
    assert out.count("Please enter a valid number") == 2
    assert "[ERROR] Request rejected: Process 9 out of range" in out
    assert "Enter process ID requesting resources (-1 to exit)" in out
    assert arbiter.available() == [2, 3, 0]


def test_interactive_loop_end_of_input():
    arbiter = _textbook_arbiter()
    decision_log = interactive_loop(
        arbiter, SimulatorLogger(stream=io.StringIO()), io.StringIO("1\n1\n")
    )
    assert decision_log.decisions == []
    assert arbiter.available() == [3, 3, 2]


def test_main_interactive_with_trace(capsys):
    code = main(TEXT_FILES + ["--trace"], input_stream=io.StringIO("1\n1\n0\n2\n-1\n"))
    out = capsys.readouterr().out

    assert code == EXIT_OK
    assert "Safety check on tentative state:" in out
    assert "Pass 1: P1 can finish" in out
    assert "Current System State:" in out
