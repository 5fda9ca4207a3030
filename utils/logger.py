"""
Logger utility for the Banker's Arbiter.

Prints decisions and state reports to the console, mirroring every line to
an optional log file. Debug lines only appear with verbose on.
"""

from typing import List, Optional, TextIO
from datetime import datetime
import sys


LEVEL_PREFIXES = {
    "error": "[ERROR] ",
    "warning": "[WARNING] ",
    "debug": "[DEBUG] ",
}


class SimulatorLogger:
    """
    Logger for arbiter decisions and state reports.

    Format: "P1 requests [1, 0, 2] - GRANTED/DENIED (reason)"
    """

    def __init__(
        self,
        verbose: bool = False,
        log_file: Optional[str] = None,
        stream: Optional[TextIO] = None
    ):
        """
        Args:
            verbose: Show debug-level lines
            log_file: Mirror output to this path (truncated on open)
            stream: Console stream (defaults to sys.stdout)
        """
        self.verbose = verbose
        self.stream = stream
        self.file_handle = None

        if log_file:
            self.file_handle = open(log_file, 'w', encoding='utf-8')
            started = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Banker's Arbiter session started {started}\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """Print one message at the given level (info, debug, warning, error)."""
        if level == "debug" and not self.verbose:
            return

        line = LEVEL_PREFIXES.get(level, "") + message
        print(line, file=self.stream or sys.stdout)
        if self.file_handle:
            self.file_handle.write(line + "\n")
            self.file_handle.flush()

    def log_request(
        self,
        process: int,
        request: List[int],
        granted: bool,
        reason: str
    ) -> None:
        """
        Log a resource request decision. Denials go out at warning level.

        Args:
            process: Process index
            request: Requested amounts
            granted: Whether request was granted
            reason: Reason for decision
        """
        status = "GRANTED" if granted else "DENIED"
        level = "info" if granted else "warning"
        self.log(f"P{process} requests {request} - {status} ({reason})", level)

    def log_safety(self, safe: bool, sequence: List[int]) -> None:
        seq_str = " -> ".join(f"P{i}" for i in sequence) or "(none)"
        if safe:
            self.log(f"System is in a SAFE state. Safe sequence: {seq_str}")
        else:
            self.log(f"System is in an UNSAFE state. Processes able to finish: {seq_str}", "error")

    def close(self) -> None:
        """Close the log file; console logging keeps working."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None
