"""Error types raised by the projection engine."""


class ConfigurationError(ValueError):
    """A caller supplied inputs the engine cannot project (precondition violation)."""


class ConvergenceError(RuntimeError):
    """The XIRR root-finder failed to reach tolerance within its iteration budget."""

    def __init__(self, message: str, iterations: int = 0, last_rate: float = float("nan")):
        super().__init__(message)
        self.iterations = iterations
        self.last_rate = last_rate
