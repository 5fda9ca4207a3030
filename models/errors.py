"""
Error taxonomy for the Banker's Arbiter.

Shape and index errors are raised at the failing call. The three denial
kinds (ClaimExceeded, InsufficientResources, UnsafeAllocation) are normally
carried on a RequestDecision and only raised by ResourceArbiter.acquire().
"""


class ArbiterError(Exception):
    """Base class for all resource arbiter errors."""
    pass


class DimensionMismatch(ArbiterError, ValueError):
    """Vector/matrix shapes are inconsistent."""
    pass


class IndexOutOfRange(ArbiterError, IndexError):
    """Process or resource index outside the declared bounds."""
    pass


class InvalidState(ArbiterError, ValueError):
    """Initial state has negative values or allocation above the claim."""
    pass


class InvalidRequest(ArbiterError, ValueError):
    """Request or release vector holds values that can never be applied."""
    pass


class ClaimExceeded(ArbiterError):
    """Request exceeds the remaining need of the process."""
    pass


class InsufficientResources(ArbiterError):
    """Request exceeds the currently available units."""
    pass


class UnsafeAllocation(ArbiterError):
    """Granting the request would leave the system in an unsafe state."""
    pass
