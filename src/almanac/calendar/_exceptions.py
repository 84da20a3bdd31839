class AlmanacError(Exception):
    """Base exception for every error raised by almanac."""


class CalendarError(AlmanacError):
    """Raised when calendar helpers are called with arguments they cannot serve."""
