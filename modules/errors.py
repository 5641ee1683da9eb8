"""Exception hierarchy shared by the QR Studio services."""


class QRStudioError(Exception):
    """Base exception for all QR Studio errors."""


class ValidationError(QRStudioError):
    """Input text rejected before rendering (empty or too long)."""


class RenderError(QRStudioError):
    """The QR library could not produce an image for the request."""


class StorageError(QRStudioError):
    """A persistence write failed, e.g. the storage quota was exceeded."""


class CorruptDataError(QRStudioError):
    """Persisted history could not be decoded."""


class ClipboardUnavailable(QRStudioError):
    """No usable system clipboard helper was found."""
