"""Exceptions raised along the upload pipeline."""


class UploadError(Exception):
    """Base class for failures that end a request with an error outcome."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PickerCancelled(UploadError):
    def __init__(self, message: str = "Photo picker cancelled"):
        super().__init__(message)


class PickerError(UploadError):
    """The picker could not be launched."""


class ReadError(UploadError):
    """The selected file could not be read."""


class TicketError(UploadError):
    """Issuing the upload ticket failed, or the ticket is unusable."""


class TransferError(UploadError):
    """The byte transfer to the storage endpoint failed."""


class VerificationFailed(UploadError):
    """The uploaded object is not visible in the storage listing."""


class FinalizeError(UploadError):
    """Finalizing the upload failed."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class UploadInProgress(UploadError):
    def __init__(self, message: str = "An upload is already in progress"):
        super().__init__(message)
