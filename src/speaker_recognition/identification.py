from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, Union
from uuid import UUID

import httpx

from . import helper
from .config import SpeakerRecognitionConfig
from .enums import Confidence, EnrollmentStatus, OperationStatus
from .errors import (
    CreateProfileError,
    DeleteProfileError,
    EnrollmentError,
    GetProfileError,
    IdentificationError,
    ResetEnrollmentsError,
    SpeakerRecognitionError,
)
from .helper import AudioInput, ProfileId, SpeakerRestClientHelper

SHORT_AUDIO_PARAM = "shortAudio"


class OperationKind(Enum):
    """Operation that produced an Operation-Location handle."""
    Enrollment = "enrollment"
    Identification = "identification"


@dataclass(frozen=True)
class Profile:
    identification_profile_id: UUID
    locale: Optional[str] = None
    enrollment_speech_time: float = 0.0
    remaining_enrollment_speech_time: float = 0.0
    created_date_time: Optional[datetime] = None
    last_action_date_time: Optional[datetime] = None
    enrollment_status: Optional[EnrollmentStatus] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        status = data.get("enrollmentStatus")
        return cls(
            identification_profile_id=UUID(data["identificationProfileId"]),
            locale=data.get("locale"),
            enrollment_speech_time=float(data.get("enrollmentSpeechTime") or 0.0),
            remaining_enrollment_speech_time=float(data.get("remainingEnrollmentSpeechTime") or 0.0),
            created_date_time=helper.parse_datetime(data.get("createdDateTime")),
            last_action_date_time=helper.parse_datetime(data.get("lastActionDateTime")),
            enrollment_status=EnrollmentStatus(status) if status else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identificationProfileId": str(self.identification_profile_id),
            "locale": self.locale,
            "enrollmentSpeechTime": self.enrollment_speech_time,
            "remainingEnrollmentSpeechTime": self.remaining_enrollment_speech_time,
            "createdDateTime": helper.format_datetime(self.created_date_time),
            "lastActionDateTime": helper.format_datetime(self.last_action_date_time),
            "enrollmentStatus": self.enrollment_status.value if self.enrollment_status else None,
        }


@dataclass(frozen=True)
class OperationLocation:
    """Handle to an asynchronous enrollment or identification.

    ``kind`` is stamped by the client that received the handle; a handle built
    by hand from a stored URL leaves it as ``None`` and can be polled by either
    status check.
    """
    url: str
    kind: Optional[OperationKind] = None


@dataclass(frozen=True)
class EnrollmentResult:
    enrollment_status: Optional[EnrollmentStatus]
    remaining_enrollment_speech_time: float
    speech_time: float
    enrollment_speech_time: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnrollmentResult":
        status = data.get("enrollmentStatus")
        return cls(
            enrollment_status=EnrollmentStatus(status) if status else None,
            remaining_enrollment_speech_time=float(data.get("remainingEnrollmentSpeechTime") or 0.0),
            speech_time=float(data.get("speechTime") or 0.0),
            enrollment_speech_time=float(data.get("enrollmentSpeechTime") or 0.0),
        )


@dataclass(frozen=True)
class Identification:
    identified_profile_id: UUID
    confidence: Optional[Confidence]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identification":
        confidence = data.get("confidence")
        return cls(
            identified_profile_id=UUID(data["identifiedProfileId"]),
            confidence=Confidence(confidence) if confidence else None,
        )


@dataclass(frozen=True)
class EnrollmentOperation:
    status: OperationStatus
    created_date_time: Optional[datetime] = None
    last_action_date_time: Optional[datetime] = None
    message: Optional[str] = None
    processing_result: Optional[EnrollmentResult] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnrollmentOperation":
        result = data.get("processingResult")
        return cls(
            status=OperationStatus(data["status"]),
            created_date_time=helper.parse_datetime(data.get("createdDateTime")),
            last_action_date_time=helper.parse_datetime(data.get("lastActionDateTime")),
            message=data.get("message"),
            processing_result=EnrollmentResult.from_dict(result) if result else None,
        )


@dataclass(frozen=True)
class IdentificationOperation:
    status: OperationStatus
    created_date_time: Optional[datetime] = None
    last_action_date_time: Optional[datetime] = None
    message: Optional[str] = None
    processing_result: Optional[Identification] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IdentificationOperation":
        result = data.get("processingResult")
        return cls(
            status=OperationStatus(data["status"]),
            created_date_time=helper.parse_datetime(data.get("createdDateTime")),
            last_action_date_time=helper.parse_datetime(data.get("lastActionDateTime")),
            message=data.get("message"),
            processing_result=Identification.from_dict(result) if result else None,
        )


class SpeakerIdentificationClient:
    """Client for the speaker identification REST API.

    Enrollment and identification are asynchronous on the service side: both
    return an ``OperationLocation`` that the caller polls with
    ``check_enrollment_status`` / ``check_identification_status`` until the
    operation reaches a terminal status. Every call performs exactly one request.
    """

    def __init__(
        self,
        config: SpeakerRecognitionConfig,
        *,
        timeout: Optional[Union[float, httpx.Timeout]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._helper = SpeakerRestClientHelper(
            config, timeout=timeout, transport=transport, async_transport=async_transport
        )

    def close(self) -> None:
        self._helper.close()

    async def aclose(self) -> None:
        await self._helper.aclose()

    def __enter__(self) -> "SpeakerIdentificationClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def __aenter__(self) -> "SpeakerIdentificationClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # Profiles

    def create_profile(self, locale: str) -> Profile:
        """Create an identification profile for ``locale``."""
        response = self._helper.send(self._create_profile_request(locale))
        return self._created_profile(response, locale)

    async def create_profile_async(self, locale: str) -> Profile:
        response = await self._helper.send_async(self._create_profile_request(locale))
        return self._created_profile(response, locale)

    def get_profile(self, profile_id: ProfileId) -> Profile:
        response = self._helper.send(self._profile_request("GET", profile_id))
        helper.raise_for_status(response, GetProfileError)
        return helper.decode(response, Profile.from_dict)

    async def get_profile_async(self, profile_id: ProfileId) -> Profile:
        response = await self._helper.send_async(self._profile_request("GET", profile_id))
        helper.raise_for_status(response, GetProfileError)
        return helper.decode(response, Profile.from_dict)

    def get_profiles(self) -> List[Profile]:
        request = self._helper.create_request("GET", self.config.identification_profiles_url)
        response = self._helper.send(request)
        helper.raise_for_status(response, GetProfileError)
        return helper.decode_list(response, Profile.from_dict)

    async def get_profiles_async(self) -> List[Profile]:
        request = self._helper.create_request("GET", self.config.identification_profiles_url)
        response = await self._helper.send_async(request)
        helper.raise_for_status(response, GetProfileError)
        return helper.decode_list(response, Profile.from_dict)

    def delete_profile(self, profile_id: ProfileId) -> None:
        response = self._helper.send(self._profile_request("DELETE", profile_id))
        helper.raise_for_status(response, DeleteProfileError)

    async def delete_profile_async(self, profile_id: ProfileId) -> None:
        response = await self._helper.send_async(self._profile_request("DELETE", profile_id))
        helper.raise_for_status(response, DeleteProfileError)

    # Enrollment

    def enroll(self, audio: AudioInput, profile_id: ProfileId, force_short_audio: bool = False) -> OperationLocation:
        """Submit enrollment audio for a profile.

        Args:
            audio: Audio bytes or a binary stream; streams are read to the end
            profile_id: Identification profile id
            force_short_audio: Skip the service's minimum audio length check

        Returns:
            OperationLocation to poll with ``check_enrollment_status``
        """
        response = self._helper.send(self._enroll_request(audio, profile_id, force_short_audio))
        return OperationLocation(helper.operation_location(response, EnrollmentError), OperationKind.Enrollment)

    async def enroll_async(
        self, audio: AudioInput, profile_id: ProfileId, force_short_audio: bool = False
    ) -> OperationLocation:
        audio = await helper.read_audio_async(audio)
        response = await self._helper.send_async(self._enroll_request(audio, profile_id, force_short_audio))
        return OperationLocation(helper.operation_location(response, EnrollmentError), OperationKind.Enrollment)

    def check_enrollment_status(self, location: OperationLocation) -> EnrollmentOperation:
        response = self._helper.send(self._status_request(location, OperationKind.Enrollment, EnrollmentError))
        helper.raise_for_status(response, EnrollmentError)
        return helper.decode(response, EnrollmentOperation.from_dict)

    async def check_enrollment_status_async(self, location: OperationLocation) -> EnrollmentOperation:
        request = self._status_request(location, OperationKind.Enrollment, EnrollmentError)
        response = await self._helper.send_async(request)
        helper.raise_for_status(response, EnrollmentError)
        return helper.decode(response, EnrollmentOperation.from_dict)

    def reset_enrollments(self, profile_id: ProfileId) -> None:
        response = self._helper.send(self._reset_request(profile_id))
        helper.raise_for_status(response, ResetEnrollmentsError)

    async def reset_enrollments_async(self, profile_id: ProfileId) -> None:
        response = await self._helper.send_async(self._reset_request(profile_id))
        helper.raise_for_status(response, ResetEnrollmentsError)

    # Identification

    def identify(
        self, audio: AudioInput, profile_ids: Iterable[ProfileId], force_short_audio: bool = False
    ) -> OperationLocation:
        """Identify which of ``profile_ids`` is speaking in ``audio``.

        Returns:
            OperationLocation to poll with ``check_identification_status``
        """
        response = self._helper.send(self._identify_request(audio, profile_ids, force_short_audio))
        return OperationLocation(
            helper.operation_location(response, IdentificationError), OperationKind.Identification
        )

    async def identify_async(
        self, audio: AudioInput, profile_ids: Iterable[ProfileId], force_short_audio: bool = False
    ) -> OperationLocation:
        audio = await helper.read_audio_async(audio)
        response = await self._helper.send_async(self._identify_request(audio, profile_ids, force_short_audio))
        return OperationLocation(
            helper.operation_location(response, IdentificationError), OperationKind.Identification
        )

    def check_identification_status(self, location: OperationLocation) -> IdentificationOperation:
        request = self._status_request(location, OperationKind.Identification, IdentificationError)
        response = self._helper.send(request)
        helper.raise_for_status(response, IdentificationError)
        return helper.decode(response, IdentificationOperation.from_dict)

    async def check_identification_status_async(self, location: OperationLocation) -> IdentificationOperation:
        request = self._status_request(location, OperationKind.Identification, IdentificationError)
        response = await self._helper.send_async(request)
        helper.raise_for_status(response, IdentificationError)
        return helper.decode(response, IdentificationOperation.from_dict)

    def _create_profile_request(self, locale: str) -> httpx.Request:
        return self._helper.create_request(
            "POST", self.config.identification_profiles_url, data={"locale": locale}
        )

    def _created_profile(self, response: httpx.Response, locale: str) -> Profile:
        helper.raise_for_status(response, CreateProfileError)
        profile = helper.decode(response, Profile.from_dict)
        if profile.locale is None:
            profile = Profile(identification_profile_id=profile.identification_profile_id, locale=locale)
        return profile

    def _profile_url(self, profile_id: ProfileId) -> str:
        return f"{self.config.identification_profiles_url}/{helper.format_profile_id(profile_id)}"

    def _profile_request(self, method: str, profile_id: ProfileId) -> httpx.Request:
        return self._helper.create_request(method, self._profile_url(profile_id))

    def _reset_request(self, profile_id: ProfileId) -> httpx.Request:
        return self._helper.create_request("POST", f"{self._profile_url(profile_id)}/reset")

    def _enroll_request(self, audio: AudioInput, profile_id: ProfileId, force_short_audio: bool) -> httpx.Request:
        url = f"{self._profile_url(profile_id)}/enroll"
        file_name = helper.audio_file_name(helper.format_profile_id(profile_id))
        return self._helper.create_request(
            "POST",
            url,
            params={SHORT_AUDIO_PARAM: _flag(force_short_audio)},
            files=helper.audio_part("enrollmentData", audio, file_name),
        )

    def _identify_request(
        self, audio: AudioInput, profile_ids: Iterable[ProfileId], force_short_audio: bool
    ) -> httpx.Request:
        ids = helper.build_profile_ids_string(profile_ids)
        if not ids:
            raise IdentificationError("At least one identification profile id must be provided.")
        return self._helper.create_request(
            "POST",
            self.config.identify_url,
            params={"identificationProfileIds": ids, SHORT_AUDIO_PARAM: _flag(force_short_audio)},
            files=helper.audio_part("identificationData", audio, helper.audio_file_name("identificationsIds")),
        )

    def _status_request(
        self,
        location: OperationLocation,
        kind: OperationKind,
        failure: Type[SpeakerRecognitionError],
    ) -> httpx.Request:
        if location.kind is not None and location.kind is not kind:
            raise failure(f"Operation location belongs to an {location.kind.value} operation")
        return self._helper.create_request("GET", location.url)


def _flag(value: bool) -> str:
    return "true" if value else "false"
