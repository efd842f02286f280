"""
GovDAO Exceptions

Shared failure taxonomy for the ledger, the governor and the timelock.
Every rejected transition raises a subclass of one of the categories below,
so callers can tell "not ready yet" from "role missing" from "already done"
by type alone.
"""


class GovDAOException(Exception):
    """Base exception for GovDAO."""
    pass


class UnauthorizedError(GovDAOException):
    """Caller lacks the role or voting power the operation requires."""
    pass


class DuplicateError(GovDAOException):
    """A proposal or operation with the same fingerprint already exists."""
    pass


class InvalidStateError(GovDAOException):
    """Operation attempted outside its required lifecycle stage."""
    pass


class InvalidQueryError(GovDAOException):
    """Historical lookup at a non-past marker, or lookup of an unknown id."""
    pass


class InvalidParameterError(GovDAOException):
    """Malformed arguments (length mismatch, bad vote type, short delay...)."""
    pass


class CallError(GovDAOException):
    """Raw call could not be dispatched by the host chain."""
    pass


class TargetCallRevertedError(GovDAOException):
    """
    A call forwarded by the timelock failed.

    The underlying exception is chained as ``__cause__`` and kept on
    ``reason`` so the target's own failure stays diagnosable.
    """

    def __init__(self, target: str, index: int, reason: BaseException):
        self.target = target
        self.index = index
        self.reason = reason
        super().__init__(
            f"Call #{index} to {target} reverted: "
            f"{type(reason).__name__}: {reason}"
        )


class ConfigurationError(GovDAOException):
    """Configuration error."""
    pass
