"""
System State snapshot for the Banker's Arbiter.

Read-only copy of everything the arbiter owns: the Available vector and
the Max, Allocation and Need matrices. Snapshots are detached from the
arbiter, so reporting code can hold on to them freely.
"""

import numpy as np
from dataclasses import dataclass
from typing import List

from models.resource_table import ResourceTable


@dataclass(frozen=True, eq=False)
class StateSnapshot:
    """
    Detached copy of the arbiter state.

    Attributes:
        available: [R] Free resource instances by type
        max: [P][R] Maximum claim declared by each process
        allocation: [P][R] Resources currently held by each process
        need: [P][R] Max - Allocation
    """
    available: np.ndarray
    max: ResourceTable
    allocation: ResourceTable
    need: ResourceTable

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self.max.num_rows

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self.max.num_cols

    def available_list(self) -> List[int]:
        return self.available.tolist()

    def totals(self) -> List[int]:
        """
        Total instances per resource type (available + allocated).

        Returns:
            List of length R
        """
        return (self.available + self.allocation.data.sum(axis=0)).tolist()

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateSnapshot):
            return NotImplemented
        return (
            np.array_equal(self.available, other.available)
            and self.max == other.max
            and self.allocation == other.allocation
            and self.need == other.need
        )
