"""
Session Metrics for the Banker's Arbiter.

Tracks request outcomes and resource utilization across a driver session.
"""

from dataclasses import dataclass, field
from typing import List, Dict
import statistics

from analysis.events import RequestDecision, RequestOutcome
from models.system_state import StateSnapshot


@dataclass
class SessionMetrics:
    """
    Accumulated metrics for one driver session.

    Tracks:
    1. Requests granted / denied, by denial reason
    2. Resource Utilization %: allocated/total × 100, sampled after each request
    3. Per-process granted and denied counts
    """
    total_requests: int = 0
    granted: int = 0
    denials_by_outcome: Dict[RequestOutcome, int] = field(default_factory=dict)

    # Per-request samples
    utilization_samples: List[float] = field(default_factory=list)

    # Per-process tracking
    process_granted_counts: Dict[int, int] = field(default_factory=dict)
    process_denied_counts: Dict[int, int] = field(default_factory=dict)

    def record_decision(self, decision: RequestDecision) -> None:
        """
        Record the outcome of one request.

        Args:
            decision: Decision returned by the arbiter
        """
        self.total_requests += 1
        pid = decision.process

        if decision.granted:
            self.granted += 1
            self.process_granted_counts[pid] = self.process_granted_counts.get(pid, 0) + 1
        else:
            self.denials_by_outcome[decision.outcome] = (
                self.denials_by_outcome.get(decision.outcome, 0) + 1
            )
            self.process_denied_counts[pid] = self.process_denied_counts.get(pid, 0) + 1

    def record_state(self, snapshot: StateSnapshot) -> None:
        """Sample overall utilization from a state snapshot."""
        totals = sum(snapshot.totals())
        if totals > 0:
            allocated = int(snapshot.allocation.data.sum())
            self.utilization_samples.append((allocated / totals) * 100)

    @property
    def denied(self) -> int:
        return self.total_requests - self.granted

    def get_denials(self, outcome: RequestOutcome) -> int:
        return self.denials_by_outcome.get(outcome, 0)

    def get_avg_utilization(self) -> float:
        """Calculate average resource utilization over the session."""
        if not self.utilization_samples:
            return 0.0
        return statistics.mean(self.utilization_samples)

    def get_grant_rate(self) -> float:
        """Granted requests / total requests."""
        if self.total_requests == 0:
            return 0.0
        return self.granted / self.total_requests

    def summary_lines(self) -> List[str]:
        """Format the session statistics, one line per figure."""
        lines = [
            f"  Total Requests: {self.total_requests}",
            f"  Granted: {self.granted}",
            f"  Denied: {self.denied}",
            f"  Grant Rate: {self.get_grant_rate() * 100:.1f}%",
        ]
        for outcome in (
            RequestOutcome.CLAIM_EXCEEDED,
            RequestOutcome.INSUFFICIENT_RESOURCES,
            RequestOutcome.UNSAFE_ALLOCATION,
        ):
            lines.append(f"    {outcome.value}: {self.get_denials(outcome)}")
        lines.append(f"  Average Utilization: {self.get_avg_utilization():.1f}%")
        return lines
