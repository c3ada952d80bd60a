from enum import Enum


class _WireEnum(Enum):
    """Enum whose members match their wire value regardless of case."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


class EnrollmentStatus(_WireEnum):
    Enrolling = "Enrolling"
    Training = "Training"
    Enrolled = "Enrolled"


class OperationStatus(_WireEnum):
    """Status of an asynchronous operation behind an Operation-Location URL."""
    NotStarted = "notstarted"
    Running = "running"
    Failed = "failed"
    Succeeded = "succeeded"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationStatus.Failed, OperationStatus.Succeeded)


class Confidence(_WireEnum):
    Low = "Low"
    Normal = "Normal"
    High = "High"


class VerificationResult(_WireEnum):
    Accept = "Accept"
    Reject = "Reject"
