class ProcessingError(Exception):
    """Base error for the option data processing job."""


class InvalidArgumentError(ProcessingError, ValueError):
    """Raised when the job is constructed with arguments it cannot process."""

    def __init__(self, message: str, value=None):
        super().__init__(message)
        self.value = value


class InvalidSymbolKind(InvalidArgumentError):
    pass


class SymbolNotWhitelisted(InvalidArgumentError):
    pass


class UnsupportedResolution(InvalidArgumentError):
    pass


class VendorError(ProcessingError):
    """The vendor API answered with an error payload."""
