"""Exception types raised by dimscope.

each one also subclasses the builtin a caller would naturally catch, so
`except ValueError` around a granularity parse keeps working.
"""


class DimscopeError(Exception):
    """Base class for dimscope errors."""


class InvalidGranularityError(DimscopeError, ValueError):
    """A time granularity token couldn't be parsed."""

    def __init__(self, token: str, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid time granularity '{token}': {reason}")


class DiscoveryTimeoutError(DimscopeError, TimeoutError):
    """Dimension value discovery didn't finish in time.

    `pending` lists the dimensions whose sub-queries were still outstanding
    (and have been cancelled).
    """

    def __init__(self, timeout: float, pending: list[str]) -> None:
        self.timeout = timeout
        self.pending = pending
        super().__init__(
            f"Dimension value discovery timed out after {timeout}s; "
            f"pending dimensions: {', '.join(pending)}"
        )


class UnknownCollectionError(DimscopeError, KeyError):
    """No collection with the given name is registered."""

    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"Unknown collection: {collection}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]
