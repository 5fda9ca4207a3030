"""
State Loader for the Banker's Arbiter.

Reads the initial Available vector and Max/Allocation matrices either from
whitespace-separated text files (one matrix row per line) or from a JSON
scenario that may also list requests to replay.
"""

import json
from dataclasses import dataclass
from typing import Dict, List, Any, Optional, Tuple
from pathlib import Path

from algorithms.avoidance import ResourceArbiter
from models.errors import ArbiterError


class StateLoadError(Exception):
    """Exception raised when state input cannot be loaded or is invalid."""
    pass


@dataclass
class ScenarioStep:
    """
    One scripted action from a JSON scenario.

    Attributes:
        process: Process index
        amounts: Request or release vector [R]
        kind: 'request' or 'release'
    """
    process: int
    amounts: List[int]
    kind: str = "request"


def _parse_ints(line: str, file_path: str, line_number: int) -> List[int]:
    try:
        return [int(token) for token in line.split()]
    except ValueError:
        raise StateLoadError(
            f"{file_path}:{line_number}: expected whitespace-separated integers, got {line.strip()!r}"
        )


def _read_lines(file_path: str) -> List[str]:
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except FileNotFoundError:
        raise StateLoadError(f"State file not found: {file_path}")
    except OSError as e:
        raise StateLoadError(f"Cannot read state file {file_path}: {e}")


def read_vector(file_path: str) -> List[int]:
    """
    Read a vector from the first line of a text file.

    Args:
        file_path: Path to the file, e.g. "available.txt" containing "3 3 2"

    Returns:
        List of integers

    Raises:
        StateLoadError: If the file is missing, empty or not integers
    """
    lines = _read_lines(file_path)
    if not lines:
        raise StateLoadError(f"{file_path}: file is empty")
    return _parse_ints(lines[0], file_path, 1)


def read_matrix(file_path: str) -> List[List[int]]:
    """
    Read a matrix from a text file, one row per non-blank line.

    Args:
        file_path: Path to the file

    Returns:
        List of rows

    Raises:
        StateLoadError: If the file is missing, has no rows or holds non-integers
    """
    rows = []
    for line_number, line in enumerate(_read_lines(file_path), start=1):
        if not line.strip():
            continue
        rows.append(_parse_ints(line, file_path, line_number))

    if not rows:
        raise StateLoadError(f"{file_path}: no matrix rows found")
    return rows


def _build_arbiter(available, max_claim, allocation, source: str) -> ResourceArbiter:
    try:
        return ResourceArbiter(available, max_claim, allocation)
    except (ArbiterError, ValueError, TypeError) as e:
        # Covers non-integer and non-list JSON values as well as bad state
        raise StateLoadError(f"Invalid state in {source}: {e}")


def load_state(
    available_path: str,
    max_path: str,
    allocation_path: str
) -> ResourceArbiter:
    """
    Load an arbiter from three text files.

    Args:
        available_path: Vector file
        max_path: Max claim matrix file
        allocation_path: Allocation matrix file

    Returns:
        Initialized ResourceArbiter (safety not checked)

    Raises:
        StateLoadError: If any file cannot be loaded or the state is invalid
    """
    available = read_vector(available_path)
    max_claim = read_matrix(max_path)
    allocation = read_matrix(allocation_path)
    return _build_arbiter(
        available, max_claim, allocation,
        f"{available_path}, {max_path}, {allocation_path}"
    )


def load_scenario(file_path: str) -> Tuple[ResourceArbiter, List[ScenarioStep]]:
    """
    Load a scenario from a JSON file.

    Expected format:
        {
          "description": "...",
          "available": [3, 3, 2],
          "max": [[7, 5, 3], ...],
          "allocation": [[0, 1, 0], ...],
          "requests": [{"process": 1, "request": [1, 0, 2]},
                       {"process": 1, "release": [1, 0, 2]}]
        }

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Tuple of (ResourceArbiter, scripted steps in file order)

    Raises:
        StateLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise StateLoadError(f"Scenario file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise StateLoadError(f"Invalid JSON in scenario file: {e}")
    except OSError as e:
        raise StateLoadError(f"Cannot read scenario file {file_path}: {e}")

    if not isinstance(data, dict):
        raise StateLoadError(f"{file_path}: scenario must be a JSON object")

    # Validate required fields
    for required in ('available', 'max', 'allocation'):
        if required not in data:
            raise StateLoadError(f"Scenario missing '{required}' field")

    arbiter = _build_arbiter(data['available'], data['max'], data['allocation'], file_path)

    entries = data.get('requests', [])
    if not isinstance(entries, list):
        raise StateLoadError(f"{file_path}: 'requests' must be a list")

    steps = [
        _load_step(entry, index, arbiter.num_resources, file_path)
        for index, entry in enumerate(entries)
    ]
    return arbiter, steps


def _is_int(value: Any) -> bool:
    # JSON true/false decode to bool, which is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


def _load_step(entry: Dict[str, Any], index: int, num_resources: int, file_path: str) -> ScenarioStep:
    """
    Validate one entry of the 'requests' list.

    Args:
        entry: Entry dictionary
        index: Position in the list (for messages)
        num_resources: Number of resource types
        file_path: Scenario file (for messages)

    Raises:
        StateLoadError: If the entry is malformed
    """
    if not isinstance(entry, dict):
        raise StateLoadError(f"{file_path}: request #{index}: expected an object, got {entry!r}")
    if 'process' not in entry:
        raise StateLoadError(f"{file_path}: request #{index}: missing 'process' field")

    kind: Optional[str] = None
    if 'request' in entry:
        kind = 'request'
    elif 'release' in entry:
        kind = 'release'
    else:
        raise StateLoadError(f"{file_path}: request #{index}: needs a 'request' or 'release' vector")

    amounts = entry[kind]
    if not isinstance(amounts, list) or len(amounts) != num_resources:
        raise StateLoadError(
            f"{file_path}: request #{index}: {kind} vector must list {num_resources} amounts"
        )

    if not _is_int(entry['process']):
        raise StateLoadError(
            f"{file_path}: request #{index}: 'process' must be an integer, got {entry['process']!r}"
        )
    if not all(_is_int(a) for a in amounts):
        raise StateLoadError(
            f"{file_path}: request #{index}: {kind} amounts must be integers, got {amounts!r}"
        )

    return ScenarioStep(process=entry['process'], amounts=list(amounts), kind=kind)


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present or unreadable
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return data.get('description', '')
    except (OSError, json.JSONDecodeError, AttributeError):
        return ''


def write_state(directory: str, available: List[int], max_claim, allocation) -> Tuple[str, str, str]:
    """
    Write the three state files in the text format read_vector/read_matrix read.

    Returns:
        Paths of (available.txt, max.txt, allocation.txt)
    """
    base = Path(directory)
    paths = (base / "available.txt", base / "max.txt", base / "allocation.txt")

    paths[0].write_text(" ".join(str(v) for v in available) + "\n", encoding='utf-8')
    for path, rows in zip(paths[1:], (max_claim, allocation)):
        path.write_text(
            "".join(" ".join(str(v) for v in row) + "\n" for row in rows),
            encoding='utf-8'
        )
    return tuple(str(p) for p in paths)
