import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import httpx

from . import helper
from .config import SpeakerRecognitionConfig
from .enums import Confidence, EnrollmentStatus, VerificationResult
from .errors import (
    CreateProfileError,
    DeleteProfileError,
    EnrollmentError,
    GetProfileError,
    InvalidLocaleError,
    PhrasesError,
    ResetEnrollmentsError,
    VerificationError,
)
from .helper import AudioInput, ProfileId, SpeakerRestClientHelper

# Language tags such as "en-US" or "zh-Hans-CN"
LOCALE_PATTERN = re.compile(r"[A-Za-z0-9]+(?:[-_][A-Za-z0-9]+)*")


@dataclass(frozen=True)
class Profile:
    verification_profile_id: UUID
    locale: Optional[str] = None
    enrollments_count: int = 0
    remaining_enrollments_count: int = 0
    created_date_time: Optional[datetime] = None
    last_action_date_time: Optional[datetime] = None
    enrollment_status: Optional[EnrollmentStatus] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        status = data.get("enrollmentStatus")
        return cls(
            verification_profile_id=UUID(data["verificationProfileId"]),
            locale=data.get("locale"),
            enrollments_count=int(data.get("enrollmentsCount") or 0),
            remaining_enrollments_count=int(data.get("remainingEnrollmentsCount") or 0),
            created_date_time=helper.parse_datetime(data.get("createdDateTime")),
            last_action_date_time=helper.parse_datetime(data.get("lastActionDateTime")),
            enrollment_status=EnrollmentStatus(status) if status else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verificationProfileId": str(self.verification_profile_id),
            "locale": self.locale,
            "enrollmentsCount": self.enrollments_count,
            "remainingEnrollmentsCount": self.remaining_enrollments_count,
            "createdDateTime": helper.format_datetime(self.created_date_time),
            "lastActionDateTime": helper.format_datetime(self.last_action_date_time),
            "enrollmentStatus": self.enrollment_status.value if self.enrollment_status else None,
        }


@dataclass(frozen=True)
class Enrollment:
    enrollment_status: Optional[EnrollmentStatus]
    enrollments_count: int
    remaining_enrollments: int
    phrase: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Enrollment":
        status = data.get("enrollmentStatus")
        return cls(
            enrollment_status=EnrollmentStatus(status) if status else None,
            enrollments_count=int(data.get("enrollmentsCount") or 0),
            remaining_enrollments=int(data.get("remainingEnrollments") or 0),
            phrase=data.get("phrase"),
        )


@dataclass(frozen=True)
class Verification:
    result: VerificationResult
    confidence: Optional[Confidence]
    phrase: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Verification":
        confidence = data.get("confidence")
        return cls(
            result=VerificationResult(data["result"]),
            confidence=Confidence(confidence) if confidence else None,
            phrase=data.get("phrase"),
        )


@dataclass(frozen=True)
class VerificationPhrase:
    phrase: str
    locale: Optional[str] = None


class SpeakerVerificationClient:
    """Client for the speaker verification REST API.

    Unlike identification, every verification call completes synchronously:
    enrollment returns the updated enrollment state and verification returns
    the accept/reject decision directly.
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

    def __enter__(self) -> "SpeakerVerificationClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def __aenter__(self) -> "SpeakerVerificationClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def create_profile(self, locale: str) -> Profile:
        """Create a verification profile for ``locale``."""
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
        request = self._helper.create_request("GET", self.config.verification_profiles_url)
        response = self._helper.send(request)
        helper.raise_for_status(response, GetProfileError)
        return helper.decode_list(response, Profile.from_dict)

    async def get_profiles_async(self) -> List[Profile]:
        request = self._helper.create_request("GET", self.config.verification_profiles_url)
        response = await self._helper.send_async(request)
        helper.raise_for_status(response, GetProfileError)
        return helper.decode_list(response, Profile.from_dict)

    def delete_profile(self, profile_id: ProfileId) -> None:
        response = self._helper.send(self._profile_request("DELETE", profile_id))
        helper.raise_for_status(response, DeleteProfileError)

    async def delete_profile_async(self, profile_id: ProfileId) -> None:
        response = await self._helper.send_async(self._profile_request("DELETE", profile_id))
        helper.raise_for_status(response, DeleteProfileError)

    def get_phrases(self, locale: str) -> List[VerificationPhrase]:
        """Fetch the phrases accepted for enrollment and verification in ``locale``.

        Raises:
            InvalidLocaleError: If ``locale`` is not a language tag; no request is sent
            PhrasesError: If the service rejects the request
        """
        response = self._helper.send(self._phrases_request(locale))
        return self._phrases(response, locale)

    async def get_phrases_async(self, locale: str) -> List[VerificationPhrase]:
        response = await self._helper.send_async(self._phrases_request(locale))
        return self._phrases(response, locale)

    def enroll(self, audio: AudioInput, profile_id: ProfileId) -> Enrollment:
        """Enroll one utterance of a verification phrase for a profile."""
        response = self._helper.send(self._enroll_request(audio, profile_id))
        helper.raise_for_status(response, EnrollmentError)
        return helper.decode(response, Enrollment.from_dict)

    async def enroll_async(self, audio: AudioInput, profile_id: ProfileId) -> Enrollment:
        audio = await helper.read_audio_async(audio)
        response = await self._helper.send_async(self._enroll_request(audio, profile_id))
        helper.raise_for_status(response, EnrollmentError)
        return helper.decode(response, Enrollment.from_dict)

    def verify(self, audio: AudioInput, profile_id: ProfileId) -> Verification:
        """Check whether ``audio`` was spoken by the owner of ``profile_id``."""
        response = self._helper.send(self._verify_request(audio, profile_id))
        helper.raise_for_status(response, VerificationError)
        return helper.decode(response, Verification.from_dict)

    async def verify_async(self, audio: AudioInput, profile_id: ProfileId) -> Verification:
        audio = await helper.read_audio_async(audio)
        response = await self._helper.send_async(self._verify_request(audio, profile_id))
        helper.raise_for_status(response, VerificationError)
        return helper.decode(response, Verification.from_dict)

    def reset_enrollments(self, profile_id: ProfileId) -> None:
        response = self._helper.send(self._reset_request(profile_id))
        helper.raise_for_status(response, ResetEnrollmentsError)

    async def reset_enrollments_async(self, profile_id: ProfileId) -> None:
        response = await self._helper.send_async(self._reset_request(profile_id))
        helper.raise_for_status(response, ResetEnrollmentsError)

    def _create_profile_request(self, locale: str) -> httpx.Request:
        return self._helper.create_request(
            "POST", self.config.verification_profiles_url, data={"locale": locale}
        )

    def _created_profile(self, response: httpx.Response, locale: str) -> Profile:
        helper.raise_for_status(response, CreateProfileError)
        profile = helper.decode(response, Profile.from_dict)
        if profile.locale is None:
            profile = Profile(verification_profile_id=profile.verification_profile_id, locale=locale)
        return profile

    def _profile_url(self, profile_id: ProfileId) -> str:
        return f"{self.config.verification_profiles_url}/{helper.format_profile_id(profile_id)}"

    def _profile_request(self, method: str, profile_id: ProfileId) -> httpx.Request:
        return self._helper.create_request(method, self._profile_url(profile_id))

    def _reset_request(self, profile_id: ProfileId) -> httpx.Request:
        return self._helper.create_request("POST", f"{self._profile_url(profile_id)}/reset")

    def _phrases_request(self, locale: str) -> httpx.Request:
        if not isinstance(locale, str) or not LOCALE_PATTERN.fullmatch(locale):
            raise InvalidLocaleError(f"Invalid locale: {locale!r}")
        return self._helper.create_request(
            "GET", self.config.verification_phrases_url, params={"locale": locale}
        )

    def _phrases(self, response: httpx.Response, locale: str) -> List[VerificationPhrase]:
        helper.raise_for_status(response, PhrasesError)
        return helper.decode_list(response, lambda item: VerificationPhrase(phrase=item["phrase"], locale=locale))

    def _enroll_request(self, audio: AudioInput, profile_id: ProfileId) -> httpx.Request:
        profile = helper.format_profile_id(profile_id)
        return self._helper.create_request(
            "POST",
            f"{self._profile_url(profile)}/enroll",
            files=helper.audio_part("enrollmentData", audio, helper.audio_file_name(profile)),
        )

    def _verify_request(self, audio: AudioInput, profile_id: ProfileId) -> httpx.Request:
        profile = helper.format_profile_id(profile_id)
        return self._helper.create_request(
            "POST",
            self.config.verify_url,
            params={"verificationProfileId": profile},
            files=helper.audio_part("verificationData", audio, helper.audio_file_name(profile)),
        )
