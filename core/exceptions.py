"""Custom exception classes for the barcode lookup service."""

EMPTY_BARCODE_MESSAGE = "Please enter a barcode number"


class BarcodeLookupError(Exception):
    """Base exception for all barcode lookup errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BarcodeLookupError):
    """Raised when user input is rejected before any lookup starts."""

    pass


class EmptyBarcodeError(ValidationError):
    """Raised when a manually entered barcode is empty or whitespace."""

    def __init__(self, message: str = EMPTY_BARCODE_MESSAGE, details: dict | None = None):
        super().__init__(message, details)


class CameraUnavailable(BarcodeLookupError):
    """Raised when no usable camera stream can be opened."""

    pass


class ProductFetchError(BarcodeLookupError):
    """Raised inside the product client when a response cannot be used."""

    pass


class ConfigurationError(BarcodeLookupError):
    """Raised when settings hold a value the service cannot use."""

    pass
