"""
Error taxonomy for the verification flow.

ValidationError is raised locally before anything is uploaded (or mapped from
a 413 response). SubmissionError covers everything that goes wrong talking to
the verification backend. FlowError is raised when the session is driven out
of order. Mismatches and failed face checks are not errors; see
``kyc_flow.decision``.
"""

from typing import Optional


class KycError(Exception):
    """Base class for every error raised by the verification flow"""

    #: Short text that can be shown to the end user as-is
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


# ------------------------
# Local validation
# ------------------------
class ValidationError(KycError):
    """The captured image cannot be submitted; the user has to capture again"""

    def __init__(self, message: Optional[str] = None, size: Optional[int] = None,
                 limit: Optional[int] = None):
        super().__init__(message)
        self.size = size
        self.limit = limit


class ImageTooSmall(ValidationError):
    user_message = "Image too small or low quality. Please retake the photo a little closer."


class ImageTooLarge(ValidationError):
    user_message = "Image too large. Please retake the photo a little farther away."

    def __init__(self, message: Optional[str] = None, size: Optional[int] = None,
                 limit: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message, size=size, limit=limit)
        # Set to 413 when the backend rejected the payload
        self.status_code = status_code


class UnsupportedImageType(ValidationError):
    user_message = "Unsupported image format. Please capture a JPEG or PNG photo."

    def __init__(self, mime: str, message: Optional[str] = None):
        super().__init__(message or f"Unsupported image type: {mime}")
        self.mime = mime


# ------------------------
# Remote submission
# ------------------------
class SubmissionError(KycError):
    """The request to the verification backend did not produce a usable answer"""

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(SubmissionError):
    user_message = "Could not reach the verification service. Check your connection and try again."


class ServerError(SubmissionError):
    user_message = "The verification service could not process the request."

    def __init__(self, status_code: int, server_message: Optional[str] = None):
        super().__init__(
            f"HTTP {status_code}: {server_message or 'Request failed'}",
            status_code=status_code,
        )
        self.server_message = server_message


class UnexpectedResponseShape(SubmissionError):
    user_message = "The verification service returned an unexpected response."


# ------------------------
# Orchestration misuse
# ------------------------
class FlowError(KycError):
    """The session was asked to do something its current state does not allow"""


class SubmissionInProgress(FlowError):
    user_message = "A submission is already in progress."


class InvalidTransition(FlowError):
    pass


class SessionClosed(FlowError):
    user_message = "This verification session has finished. Start a new one."
