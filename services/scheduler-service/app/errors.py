class SchedulerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProviderUnavailable(SchedulerError):
    status_code = 503


class NoHostsConnected(SchedulerError):
    status_code = 503


class SlotUnavailable(SchedulerError):
    status_code = 409


class EventCreationFailed(SchedulerError):
    status_code = 502


class CalendarProviderError(Exception):
    """
    Raised by calendar providers. `transient` separates retryable upstream
    trouble (timeouts, 429, 5xx) from fatal rejections (revoked credential,
    unknown calendar).
    """

    def __init__(self, message: str, transient: bool = True):
        super().__init__(message)
        self.transient = transient


class BookingRecordFailed(SchedulerError):
    """The calendar event exists but the booking could not be stored."""

    status_code = 500

    def __init__(self, message: str, event_id: str):
        super().__init__(message)
        self.event_id = event_id
