"""
Deadlock Avoidance Algorithm (Banker's Algorithm) for the Arbiter.

Implements the safety check and the request protocol that keeps the
system from ever entering an unsafe state.
"""

import threading
import numpy as np
from typing import List, Sequence, Tuple, Union

from analysis.events import (
    RequestDecision,
    RequestOutcome,
    SafetyReport,
    SafetyStep,
    StepOutcome,
)
from models.errors import (
    DimensionMismatch,
    IndexOutOfRange,
    InvalidRequest,
    InvalidState,
)
from models.resource_table import ResourceTable, as_int_array
from models.system_state import StateSnapshot


def is_safe_state(
    available: np.ndarray,
    allocation: np.ndarray,
    need: np.ndarray
) -> SafetyReport:
    """
    Check if a state is safe using Banker's Algorithm.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_processes
    2. Scan processes in index order; for each i with Finish[i] == False
       and Need[i] <= Work: Finish[i] = True, Work += Allocation[i],
       append i to the sequence, then keep scanning with the new Work
    3. Repeat for at most P passes; stop early after a pass that
       finishes nothing
    4. SAFE iff every Finish[i] is True

    Time Complexity: O(P²×R)

    Args:
        available: [R] Available vector
        allocation: [P][R] Allocation matrix
        need: [P][R] Need matrix

    Returns:
        SafetyReport with the (possibly partial) sequence and step trace

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """
    num_processes = need.shape[0]

    # Work is a copy so the caller's Available is never touched
    work = available.copy()
    finish = np.zeros(num_processes, dtype=bool)
    report = SafetyReport(safe=False)

    for pass_number in range(1, num_processes + 1):
        report.passes = pass_number
        made_progress = False

        for i in range(num_processes):
            if finish[i]:
                continue

            work_before = tuple(work.tolist())

            if np.all(need[i] <= work):
                # Later processes in this same pass see the released resources
                work += allocation[i]
                finish[i] = True
                report.sequence.append(i)
                made_progress = True
                outcome = StepOutcome.FINISHED
            else:
                outcome = StepOutcome.BLOCKED

            report.trace.append(SafetyStep(
                pass_number=pass_number,
                process=i,
                work_before=work_before,
                work_after=tuple(work.tolist()),
                outcome=outcome
            ))

        if not made_progress or finish.all():
            break

    report.safe = bool(finish.all())
    return report


def _as_vector(values: Union[Sequence[int], np.ndarray], length: int, what: str,
               error_cls=InvalidRequest) -> np.ndarray:
    try:
        items = list(values)
    except TypeError:
        raise DimensionMismatch(f"{what} must be a vector of {length} integers, got {values!r}")
    if len(items) != length:
        raise DimensionMismatch(
            f"{what} vector has length {len(items)}, expected {length}"
        )
    vector = as_int_array(items, error_cls, what)
    if vector.ndim != 1:
        raise DimensionMismatch(f"{what} must be a flat vector, got shape {vector.shape}")
    return vector


class ResourceArbiter:
    """
    Owns the full Banker's state and arbitrates resource requests.

    State:
        available: [R] Free resource instances by type
        max: [P][R] Declared maximum claim (immutable)
        allocation: [P][R] Resources held by each process
        need: [P][R] Max - Allocation, kept in step with Allocation

    Every public operation runs under one per-instance lock, so the whole
    validate -> apply -> check -> commit/rollback sequence is atomic.
    """

    def __init__(
        self,
        available: Sequence[int],
        max_claim: Union[Sequence[Sequence[int]], ResourceTable],
        allocation: Union[Sequence[Sequence[int]], ResourceTable]
    ):
        """
        Initialize the arbiter from caller-supplied snapshots.

        The inputs are copied. Safety is NOT checked here; call is_safe().

        Args:
            available: Available vector [R]
            max_claim: Maximum claim matrix [P][R]
            allocation: Allocation matrix [P][R]

        Raises:
            DimensionMismatch: If the shapes are inconsistent
            InvalidState: If a value is negative, not an integer, or allocation exceeds max
        """
        max_table = ResourceTable.from_rows(max_claim)
        allocation_table = ResourceTable.from_rows(allocation)

        if max_table.shape != allocation_table.shape:
            raise DimensionMismatch(
                f"Max matrix shape {max_table.shape} differs from "
                f"allocation matrix shape {allocation_table.shape}"
            )

        self._available = _as_vector(available, max_table.num_cols, "Available", InvalidState)
        self._max = max_table
        self._allocation = allocation_table
        self._validate_initial_state()

        # Need is derived once; afterwards it only moves with Allocation
        self._need = ResourceTable(self._max.data - self._allocation.data)

        self._total = self._available + self._allocation.data.sum(axis=0)
        self._lock = threading.RLock()

    def _validate_initial_state(self) -> None:
        """Reject states that break the value invariants from the start."""
        for j, amount in enumerate(self._available.tolist()):
            if amount < 0:
                raise InvalidState(f"Available R{j} is negative ({amount})")

        alloc = self._allocation.data
        max_claim = self._max.data
        for i in range(alloc.shape[0]):
            for j in range(alloc.shape[1]):
                if alloc[i, j] < 0:
                    raise InvalidState(f"P{i}: allocation of R{j} is negative ({alloc[i, j]})")
                if alloc[i, j] > max_claim[i, j]:
                    raise InvalidState(
                        f"P{i}: allocation of R{j} ({alloc[i, j]}) "
                        f"exceeds max claim ({max_claim[i, j]})"
                    )

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self._max.num_rows

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self._max.num_cols

    # -- Safety check ---------------------------------------------------------

    def check_safety(self) -> SafetyReport:
        """Run the safety check on the current state, with trace."""
        with self._lock:
            return is_safe_state(self._available, self._allocation.data, self._need.data)

    def is_safe(self) -> Tuple[bool, List[int]]:
        """
        Check if the current state is safe.

        Returns:
            Tuple of (is_safe, completion sequence)
        """
        return self.check_safety().as_tuple()

    # -- Request protocol -----------------------------------------------------

    def _check_process(self, process: int) -> None:
        if not 0 <= process < self.num_processes:
            raise IndexOutOfRange(
                f"Process {process} out of range [0, {self.num_processes})"
            )

    def _apply(self, process: int, delta: np.ndarray) -> None:
        """Move delta from Available to Allocation[process] (negative delta moves back)."""
        self._available -= delta
        self._allocation.data[process] += delta
        self._need.data[process] -= delta

    def try_request(self, process: int, request: Sequence[int]) -> RequestDecision:
        """
        Handle a resource request using Banker's Algorithm.

        Steps:
        1. Validate: request <= need (otherwise CLAIM_EXCEEDED)
        2. Check: request <= available (otherwise INSUFFICIENT_RESOURCES)
        3. Tentatively allocate resources
        4. Run safety algorithm on new state
        5. If safe: commit. If unsafe: roll back exactly (UNSAFE_ALLOCATION)

        Args:
            process: Requesting process index
            request: Requested amounts [R]

        Returns:
            RequestDecision describing the outcome

        Raises:
            IndexOutOfRange: If process is not a valid index
            DimensionMismatch: If the request length is not R
            InvalidRequest: If any requested amount is negative or not an integer
        """
        self._check_process(process)
        delta = _as_vector(request, self.num_resources, "Request")
        request_list = delta.tolist()

        if np.any(delta < 0):
            raise InvalidRequest(f"P{process}: request {request_list} has negative amounts")

        with self._lock:
            # Step 1: Validate request doesn't exceed need
            need = self._need.data[process]
            if np.any(delta > need):
                return RequestDecision(
                    process=process,
                    request=request_list,
                    outcome=RequestOutcome.CLAIM_EXCEEDED,
                    reason=f"Request exceeds need (requested: {request_list}, need: {need.tolist()})"
                )

            # Step 2: Check if resources are available
            if np.any(delta > self._available):
                return RequestDecision(
                    process=process,
                    request=request_list,
                    outcome=RequestOutcome.INSUFFICIENT_RESOURCES,
                    reason=(
                        f"Insufficient resources (requested: {request_list}, "
                        f"available: {self._available.tolist()})"
                    )
                )

            # Step 3: Tentatively allocate resources
            self._apply(process, delta)

            # Step 4: Run safety algorithm
            report = is_safe_state(self._available, self._allocation.data, self._need.data)

            # Step 5: Decide whether to commit or rollback
            if report.safe:
                self.assert_resource_conservation(f"after granting {request_list} to P{process}")
                seq_str = " -> ".join(f"P{i}" for i in report.sequence)
                return RequestDecision(
                    process=process,
                    request=request_list,
                    outcome=RequestOutcome.GRANTED,
                    reason=f"Safe state maintained, sequence: {seq_str}",
                    safety=report
                )

            self._apply(process, -delta)
            return RequestDecision(
                process=process,
                request=request_list,
                outcome=RequestOutcome.UNSAFE_ALLOCATION,
                reason="Unsafe state detected - allocation rolled back",
                safety=report
            )

    def request_resources(self, process: int, request: Sequence[int]) -> bool:
        """
        Request resources for a process.

        Returns:
            True if granted, False if denied (state unchanged)
        """
        return self.try_request(process, request).granted

    def acquire(self, process: int, request: Sequence[int]) -> RequestDecision:
        """
        Like try_request(), but raise the signalled error on denial.

        Raises:
            ClaimExceeded, InsufficientResources, UnsafeAllocation
        """
        decision = self.try_request(process, request)
        decision.raise_for_outcome()
        return decision

    def release_resources(self, process: int, release: Sequence[int]) -> None:
        """
        Return resources held by a process to the Available pool.

        Args:
            process: Releasing process index
            release: Amounts to release [R]

        Raises:
            IndexOutOfRange: If process is not a valid index
            DimensionMismatch: If the release length is not R
            InvalidRequest: If an amount is negative, not an integer or exceeds what is held
        """
        self._check_process(process)
        delta = _as_vector(release, self.num_resources, "Release")

        if np.any(delta < 0):
            raise InvalidRequest(f"P{process}: release {delta.tolist()} has negative amounts")

        with self._lock:
            held = self._allocation.data[process]
            if np.any(delta > held):
                raise InvalidRequest(
                    f"P{process}: cannot release {delta.tolist()} - only holding {held.tolist()}"
                )

            self._apply(process, -delta)
            self.assert_resource_conservation(f"after P{process} released {delta.tolist()}")

    # -- State accessors ------------------------------------------------------

    def snapshot(self) -> StateSnapshot:
        """Get a detached copy of the whole state."""
        with self._lock:
            return StateSnapshot(
                available=self._available.copy(),
                max=self._max.copy(),
                allocation=self._allocation.copy(),
                need=self._need.copy()
            )

    def available(self) -> List[int]:
        with self._lock:
            return self._available.tolist()

    def need_of(self, process: int) -> List[int]:
        self._check_process(process)
        with self._lock:
            return self._need.row(process)

    def allocation_of(self, process: int) -> List[int]:
        self._check_process(process)
        with self._lock:
            return self._allocation.row(process)

    def assert_resource_conservation(self, context: str = "") -> None:
        """
        Verify resource conservation: allocated + available = total.

        Args:
            context: Description of when this check is being run

        Raises:
            AssertionError: If conservation or a value invariant is violated
        """
        allocated = self._allocation.data.sum(axis=0)

        for j in range(self.num_resources):
            assert allocated[j] + self._available[j] == self._total[j], (
                f"Resource conservation violated for R{j} {context}\n"
                f"  Allocated: {allocated[j]}, Available: {self._available[j]}, "
                f"Total: {self._total[j]}"
            )
            assert self._available[j] >= 0, (
                f"Negative available resources for R{j} {context}\n"
                f"  Available: {self._available[j]}"
            )

        assert np.array_equal(self._need.data, self._max.data - self._allocation.data), (
            f"Need matrix out of step with Max - Allocation {context}"
        )

    def __repr__(self) -> str:
        return (
            f"ResourceArbiter(processes={self.num_processes}, "
            f"resources={self.num_resources}, available={self._available.tolist()})"
        )
