"""
Trace and decision records for the Banker's Arbiter.

The safety check and the request protocol return these values instead of
printing; the reporter and the driver render them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from models.errors import (
    ArbiterError,
    ClaimExceeded,
    InsufficientResources,
    UnsafeAllocation,
)


class StepOutcome(Enum):
    """Result of examining one process during a safety-check pass."""
    FINISHED = "finished"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class SafetyStep:
    """
    One process examination inside the safety check.

    Attributes:
        pass_number: 1-based pass in which the process was examined
        process: Process index
        work_before: Work vector when the process was examined
        work_after: Work vector after the examination (unchanged if blocked)
        outcome: FINISHED if Need[i] <= Work, otherwise BLOCKED
    """
    pass_number: int
    process: int
    work_before: Tuple[int, ...]
    work_after: Tuple[int, ...]
    outcome: StepOutcome

    def __str__(self) -> str:
        if self.outcome == StepOutcome.FINISHED:
            return f"Pass {self.pass_number}: P{self.process} can finish - work {list(self.work_after)}"
        return f"Pass {self.pass_number}: P{self.process} blocked - work {list(self.work_before)}"


@dataclass
class SafetyReport:
    """
    Result of a safety check.

    Attributes:
        safe: True if every process could finish
        sequence: Completion order found (partial when unsafe)
        trace: Ordered SafetyStep records
        passes: Number of passes run
    """
    safe: bool
    sequence: List[int] = field(default_factory=list)
    trace: List[SafetyStep] = field(default_factory=list)
    passes: int = 0

    def as_tuple(self) -> Tuple[bool, List[int]]:
        return self.safe, list(self.sequence)

    def finished_steps(self) -> List[SafetyStep]:
        return [s for s in self.trace if s.outcome == StepOutcome.FINISHED]


class RequestOutcome(Enum):
    """Resolution of a resource request."""
    GRANTED = "granted"
    CLAIM_EXCEEDED = "claim_exceeded"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    UNSAFE_ALLOCATION = "unsafe_allocation"


_OUTCOME_ERRORS = {
    RequestOutcome.CLAIM_EXCEEDED: ClaimExceeded,
    RequestOutcome.INSUFFICIENT_RESOURCES: InsufficientResources,
    RequestOutcome.UNSAFE_ALLOCATION: UnsafeAllocation,
}


@dataclass
class RequestDecision:
    """
    Resolution of a single request_resources() call.

    Attributes:
        process: Requesting process index
        request: Requested amounts [R]
        outcome: How the request was resolved
        reason: Human-readable explanation
        safety: Safety report of the tentative state (None if never checked)
    """
    process: int
    request: List[int]
    outcome: RequestOutcome
    reason: str = ""
    safety: Optional[SafetyReport] = None

    @property
    def granted(self) -> bool:
        return self.outcome == RequestOutcome.GRANTED

    @property
    def error(self) -> Optional[ArbiterError]:
        """The error signalled by a denial, None when granted."""
        error_cls = _OUTCOME_ERRORS.get(self.outcome)
        if error_cls is None:
            return None
        return error_cls(f"P{self.process} request {self.request}: {self.reason}")

    def raise_for_outcome(self) -> None:
        """Raise the signalled error if the request was denied."""
        error = self.error
        if error is not None:
            raise error

    def __str__(self) -> str:
        status = "GRANTED" if self.granted else "DENIED"
        return f"P{self.process} requests {self.request} - {status} ({self.reason})"


@dataclass
class DecisionLog:
    """Collection of request decisions from one driver session."""
    decisions: list = None

    def __post_init__(self):
        if self.decisions is None:
            self.decisions = []

    def add(self, decision: RequestDecision) -> None:
        """Add a decision to the log."""
        self.decisions.append(decision)

    def get_by_outcome(self, outcome: RequestOutcome) -> list:
        """Get all decisions with a specific outcome."""
        return [d for d in self.decisions if d.outcome == outcome]

    def get_by_process(self, process: int) -> list:
        """Get all decisions for one process."""
        return [d for d in self.decisions if d.process == process]

    def display(self) -> str:
        """Format all decisions for display."""
        return "\n".join(str(d) for d in self.decisions)
