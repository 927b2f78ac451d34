"""Error types raised by the signal engine and its collaborators."""


class MonitorError(Exception):
    """Base class for signal engine errors."""


class TransientFetchError(MonitorError):
    """Price data could not be fetched or parsed.

    Recovered locally: the instrument is skipped for the current tick.
    """

    def __init__(self, instrument_id: str, message: str):
        self.instrument_id = instrument_id
        super().__init__(f"{instrument_id}: {message}")


class InsufficientDataError(MonitorError):
    """Fewer price bars than the indicator window requires."""

    def __init__(self, received: int, required: int):
        self.received = received
        self.required = required
        super().__init__(f"need {required} bars, got {received}")


class ConfigurationError(MonitorError, ValueError):
    """Indicator configuration is malformed. Only raised at construction."""
