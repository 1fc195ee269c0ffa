class DataSourceError(Exception):
    """The project store could not be read (network, auth or query failure)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidSearchError(ValueError):
    """A proximity search was requested with an unusable radius or position."""
