"""Exception types for the comparison chart engine."""


class ChartError(Exception):
    """Base class for comparison chart errors."""


class InvalidInputError(ChartError, ValueError):
    """User input rejected at the input boundary (non-numeric, non-finite)."""


class SeriesFetchError(ChartError):
    """A per-ticker series could not be fetched."""

    def __init__(self, symbol: str, message: str):
        super().__init__(f"{symbol}: {message}")
        self.symbol = symbol
        self.message = message


class InvalidTransitionError(ChartError):
    """Event not accepted by the interaction state machine in its current state."""
