"""Exceptions raised by the strike probability engine."""


class InvalidParameterError(ValueError):
    """A simulation input violates a structural precondition.

    Raised for non-positive spot or strike, zero path or step counts and
    negative volatility. Treat it as a bad request, not a transient failure.
    """
