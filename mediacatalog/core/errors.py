"""
Error taxonomy for the media catalog.

Store and preview failures are recoverable: the catalog and the upload
session catch them and report an OperationResult instead of letting them
reach the view layer.
"""


class MediaCatalogError(Exception):
    """Base class for catalog failures that can be reported to the user."""

    user_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)

    def describe(self) -> str:
        """Text to show the user; technical detail stays in the logs."""
        return self.user_message


class StoreUnavailable(MediaCatalogError):
    """Backing medium is full, disabled, read-only or unreachable."""

    user_message = "Media storage is unavailable. Please try again."


class UploadRejected(MediaCatalogError):
    """A file was refused for one slot; the rest of the session is unaffected."""

    user_message = "This file cannot be uploaded."

    def describe(self) -> str:
        return str(self)


class UnsupportedMediaKind(UploadRejected):
    user_message = "Only image and video files can be uploaded."


class FileTooLarge(UploadRejected):
    user_message = "File is too large."


class UploadLimitReached(MediaCatalogError):
    user_message = "Upload limit reached for your plan."

    def describe(self) -> str:
        return str(self)


class PreviewDerivationFailed(MediaCatalogError):
    """File content could not be read to build a preview."""

    user_message = "Preview unavailable."


class SessionClosed(RuntimeError):
    """An upload session was used after commit or cancel."""
