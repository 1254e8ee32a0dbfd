"""
Exception types shared by services and routes.
"""


class ValidationError(ValueError):
    """
    Rejected user input. The message is shown to the user as-is.
    """

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(LookupError):
    """A referenced booking, station or satellite does not exist."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class PropagationError(RuntimeError):
    """
    SGP4 could not produce a physical state for an element set at an instant
    (decayed orbit, invalid eccentricity, unparsable lines, ...).
    """

    def __init__(self, message, norad_id=None, code=None):
        super().__init__(message)
        self.norad_id = norad_id
        self.code = code
