"""
Text reporting for the Banker's Arbiter.

Renders snapshots, safety reports and request decisions. Nothing here
touches arbiter state; every function takes plain values.
"""

from typing import List

from analysis.events import SafetyReport
from models.resource_table import ResourceTable
from models.system_state import StateSnapshot


def format_table(table: ResourceTable) -> str:
    """
    Render a table: values right-aligned to width 4, tab-separated.

    Example:
           7\t   5\t   3
           3\t   2\t   2
    """
    return "".join(
        "\t".join(f"{value:>4}" for value in row) + "\n"
        for row in table.rows()
    )


def format_state(snapshot: StateSnapshot) -> str:
    """
    Generate readable string representation of the arbiter state.

    Returns:
        Block showing Available, Maximum, Allocation and Need
    """
    output = []
    output.append("\nCurrent System State:")
    output.append(f"Available: {snapshot.available_list()}")
    output.append("\nMaximum:")
    output.append(format_table(snapshot.max).rstrip("\n"))
    output.append("\nAllocation:")
    output.append(format_table(snapshot.allocation).rstrip("\n"))
    output.append("\nNeed:")
    output.append(format_table(snapshot.need).rstrip("\n"))
    return "\n".join(output) + "\n"


def format_sequence(sequence: List[int]) -> str:
    return " -> ".join(f"P{i}" for i in sequence)


def format_safety(report: SafetyReport) -> str:
    if report.safe:
        return f"SAFE (sequence: {format_sequence(report.sequence)})"
    found = format_sequence(report.sequence) or "none"
    return f"UNSAFE (processes able to finish: {found})"


def format_trace(report: SafetyReport) -> str:
    """One line per process examination, in the order they happened."""
    return "\n".join(f"  {step}" for step in report.trace)
