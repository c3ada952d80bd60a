"""
Lightweight Speaker Recognition REST client.

Two clients cover the service: SpeakerIdentificationClient matches audio
against a set of enrolled profiles, SpeakerVerificationClient confirms audio
belongs to one claimed profile. Profile and result types live in the
``identification`` and ``verification`` modules respectively.
"""
from .config import SpeakerRecognitionConfig
from .enums import Confidence, EnrollmentStatus, OperationStatus, VerificationResult
from .errors import (
    CreateProfileError,
    DeleteProfileError,
    EnrollmentError,
    GetProfileError,
    IdentificationError,
    InvalidLocaleError,
    PhrasesError,
    ResetEnrollmentsError,
    SpeakerRecognitionError,
    SpeakerRecognitionIOError,
    VerificationError,
)
from .helper import build_profile_ids_string
from .identification import OperationKind, OperationLocation, SpeakerIdentificationClient
from .verification import SpeakerVerificationClient

__all__ = [
    "Confidence",
    "CreateProfileError",
    "DeleteProfileError",
    "EnrollmentError",
    "EnrollmentStatus",
    "GetProfileError",
    "IdentificationError",
    "InvalidLocaleError",
    "OperationKind",
    "OperationLocation",
    "OperationStatus",
    "PhrasesError",
    "ResetEnrollmentsError",
    "SpeakerIdentificationClient",
    "SpeakerRecognitionConfig",
    "SpeakerRecognitionError",
    "SpeakerRecognitionIOError",
    "SpeakerVerificationClient",
    "VerificationError",
    "VerificationResult",
    "build_profile_ids_string",
]
