from typing import Optional


class SpeakerRecognitionError(Exception):
    """Base class for failures reported by the Speaker Recognition client."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


class CreateProfileError(SpeakerRecognitionError):
    """Raised when a profile cannot be created."""


class GetProfileError(SpeakerRecognitionError):
    """Raised when one or all profiles cannot be fetched."""


class DeleteProfileError(SpeakerRecognitionError):
    """Raised when a profile cannot be deleted."""


class EnrollmentError(SpeakerRecognitionError):
    """Raised when an enrollment is rejected or its status cannot be fetched."""


class IdentificationError(SpeakerRecognitionError):
    """Raised when an identification is rejected or its status cannot be fetched."""


class VerificationError(SpeakerRecognitionError):
    """Raised when a verification request is rejected."""


class PhrasesError(SpeakerRecognitionError):
    """Raised when the verification phrases cannot be fetched."""


class ResetEnrollmentsError(SpeakerRecognitionError):
    """Raised when the enrollments of a profile cannot be reset."""


class SpeakerRecognitionIOError(SpeakerRecognitionError, OSError):
    """Raised on transport failures, unreadable audio and malformed response bodies."""


class InvalidLocaleError(SpeakerRecognitionError, ValueError):
    """Raised when a locale cannot be embedded in a request URL."""
