"""
Scheduling error types
"""


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(SchedulingError, ValueError):
    """Malformed date/time strings, out-of-range durations, bad recurrence bounds"""


class InvalidTimezone(InvalidInput):
    """Timezone name is not a recognised IANA identifier"""

    def __init__(self, timezone_name: str):
        super().__init__(f"Unknown timezone: '{timezone_name}'")
        self.timezone_name = timezone_name


class ProviderNotFound(SchedulingError):
    def __init__(self, provider_id: str):
        super().__init__(f"Provider not found: {provider_id}")
        self.provider_id = provider_id


class ProviderUnavailable(SchedulingError):
    def __init__(self, provider_id: str):
        super().__init__(f"Provider {provider_id} is not available for appointments")
        self.provider_id = provider_id


class SlotConflict(SchedulingError):
    """The slot was taken by another booking between the check and the write"""


class TransactionFailure(SchedulingError):
    """The batched appointment write failed and was rolled back"""
