import asyncio
import threading
import io
import uuid

import httpx
import pytest

from speaker_recognition import (
    Confidence,
    CreateProfileError,
    DeleteProfileError,
    EnrollmentError,
    EnrollmentStatus,
    GetProfileError,
    IdentificationError,
    OperationKind,
    OperationLocation,
    OperationStatus,
    ResetEnrollmentsError,
    SpeakerIdentificationClient,
    SpeakerRecognitionConfig,
    SpeakerRecognitionIOError,
)
from speaker_recognition.identification import Profile

from samples import (
    BASE,
    OTHER_PROFILE_ID,
    PROFILE_ID,
    THIRD_PROFILE_ID,
    undecodable,
    undecodable_async,
    unreachable,
)

PROFILE_BODY = {
    "identificationProfileId": PROFILE_ID,
    "locale": "en-us",
    "enrollmentSpeechTime": 12.5,
    "remainingEnrollmentSpeechTime": 17.5,
    "createdDateTime": "2015-04-23T18:25:43.511Z",
    "lastActionDateTime": "2015-04-23T18:25:43.511Z",
    "enrollmentStatus": "Enrolling",
}


def make_client(handler) -> SpeakerIdentificationClient:
    config = SpeakerRecognitionConfig.from_subscription("test-key", region="westus")
    return SpeakerIdentificationClient(config, transport=httpx.MockTransport(handler))


def test_create_profile_posts_form_encoded_locale():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url == httpx.URL(f"{BASE}/identificationProfiles")
        assert request.headers["Ocp-Apim-Subscription-Key"] == "test-key"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.content == b"locale=en-us"
        return httpx.Response(200, json={"identificationProfileId": PROFILE_ID})

    profile = make_client(handler).create_profile("en-us")

    assert isinstance(profile.identification_profile_id, uuid.UUID)
    assert str(profile.identification_profile_id) == PROFILE_ID
    assert profile.locale == "en-us"


def test_create_profile_failure_uses_service_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"code": "BadRequest", "message": "Invalid locale."}})

    with pytest.raises(CreateProfileError) as exc:
        make_client(handler).create_profile("xx-xx")

    assert str(exc.value) == "Invalid locale."
    assert exc.value.status_code == 400


def test_get_profile_decodes_all_fields():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == f"/spid/v1.0/identificationProfiles/{PROFILE_ID}"
        return httpx.Response(200, json=PROFILE_BODY)

    profile = make_client(handler).get_profile(uuid.UUID(PROFILE_ID))

    assert profile.identification_profile_id == uuid.UUID(PROFILE_ID)
    assert profile.enrollment_speech_time == 12.5
    assert profile.remaining_enrollment_speech_time == 17.5
    assert profile.enrollment_status is EnrollmentStatus.Enrolling
    assert profile.created_date_time.year == 2015


def test_get_unknown_profile_raises_service_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"message": "Profile not found"}})

    with pytest.raises(GetProfileError) as exc:
        make_client(handler).get_profile(PROFILE_ID)

    assert str(exc.value) == "Profile not found"


def test_get_profile_with_unparseable_error_body_uses_status_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=b"Service Unavailable")

    with pytest.raises(GetProfileError) as exc:
        make_client(handler).get_profile(PROFILE_ID)

    assert str(exc.value) == "503"


def test_get_profile_with_invalid_id_sends_nothing():
    with pytest.raises(ValueError):
        make_client(unreachable).get_profile("../verificationProfiles")


def test_get_profiles_decodes_list():
    second = dict(PROFILE_BODY, identificationProfileId=OTHER_PROFILE_ID, enrollmentStatus="Enrolled")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url == httpx.URL(f"{BASE}/identificationProfiles")
        return httpx.Response(200, json=[PROFILE_BODY, second])

    profiles = make_client(handler).get_profiles()

    assert [str(p.identification_profile_id) for p in profiles] == [PROFILE_ID, OTHER_PROFILE_ID]
    assert profiles[1].enrollment_status is EnrollmentStatus.Enrolled


def test_get_profiles_with_malformed_body_raises_io_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"locale": "en-us"}])

    with pytest.raises(SpeakerRecognitionIOError):
        make_client(handler).get_profiles()


def test_delete_profile():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(200)

    make_client(handler).delete_profile(PROFILE_ID)

    assert seen == [("DELETE", f"/spid/v1.0/identificationProfiles/{PROFILE_ID}")]


def test_delete_profile_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(DeleteProfileError) as exc:
        make_client(handler).delete_profile(PROFILE_ID)

    assert str(exc.value) == "500"


def test_enroll_uploads_multipart_and_returns_operation_location():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == f"/spid/v1.0/identificationProfiles/{PROFILE_ID}/enroll"
        assert request.url.params["shortAudio"] == "true"
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="enrollmentData"' in request.content
        assert b"audio-bytes" in request.content
        return httpx.Response(202, headers={"Operation-Location": "https://x/y"})

    location = make_client(handler).enroll(io.BytesIO(b"audio-bytes"), PROFILE_ID, force_short_audio=True)

    assert location.url == "https://x/y"
    assert location.kind is OperationKind.Enrollment


def test_enroll_defaults_to_full_length_audio():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["shortAudio"] == "false"
        return httpx.Response(202, headers={"Operation-Location": "https://x/y"})

    make_client(handler).enroll(b"audio-bytes", PROFILE_ID)


@pytest.mark.parametrize("headers", [{}, {"Operation-Location": ""}])
def test_enroll_accepted_without_operation_location_is_rejected(headers):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202, headers=headers)

    with pytest.raises(EnrollmentError) as exc:
        make_client(handler).enroll(b"audio", PROFILE_ID)

    assert str(exc.value) == "Incorrect server response"


def test_enroll_rejected_audio():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"code": "BadRequest", "message": "Audio too short"}})

    with pytest.raises(EnrollmentError) as exc:
        make_client(handler).enroll(b"audio", PROFILE_ID)

    assert str(exc.value) == "Audio too short"


def test_check_enrollment_status_polls_handle_url_once():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(
            200,
            json={
                "status": "succeeded",
                "createdDateTime": "2015-09-23T18:25:43.511Z",
                "lastActionDateTime": "2015-09-23T18:26:43.511Z",
                "processingResult": {
                    "enrollmentStatus": "Enrolled",
                    "remainingEnrollmentSpeechTime": 0.0,
                    "speechTime": 30.0,
                    "enrollmentSpeechTime": 30.0,
                },
            },
        )

    location = OperationLocation("https://westus.api.cognitive.microsoft.com/spid/v1.0/operations/abc")
    operation = make_client(handler).check_enrollment_status(location)

    assert calls == [location.url]
    assert operation.status is OperationStatus.Succeeded
    assert operation.status.is_terminal
    assert operation.processing_result.enrollment_status is EnrollmentStatus.Enrolled
    assert operation.processing_result.speech_time == 30.0


def test_check_enrollment_status_running_has_no_result():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "running"})

    operation = make_client(handler).check_enrollment_status(OperationLocation("https://x/y"))

    assert operation.status is OperationStatus.Running
    assert not operation.status.is_terminal
    assert operation.processing_result is None


def test_check_enrollment_status_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"message": "Operation not found"}})

    with pytest.raises(EnrollmentError) as exc:
        make_client(handler).check_enrollment_status(OperationLocation("https://x/y"))

    assert str(exc.value) == "Operation not found"


def test_handles_are_not_polled_by_the_other_status_check():
    client = make_client(unreachable)

    with pytest.raises(EnrollmentError):
        client.check_enrollment_status(OperationLocation("https://x/y", OperationKind.Identification))
    with pytest.raises(IdentificationError):
        client.check_identification_status(OperationLocation("https://x/y", OperationKind.Enrollment))


def test_reset_enrollments():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == f"/spid/v1.0/identificationProfiles/{PROFILE_ID}/reset"
        return httpx.Response(200)

    make_client(handler).reset_enrollments(PROFILE_ID)


def test_reset_enrollments_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "Reset failed"}})

    with pytest.raises(ResetEnrollmentsError) as exc:
        make_client(handler).reset_enrollments(PROFILE_ID)

    assert str(exc.value) == "Reset failed"


def test_identify_sends_comma_joined_ids():
    ids = [PROFILE_ID, OTHER_PROFILE_ID, THIRD_PROFILE_ID]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/spid/v1.0/identify"
        assert request.url.params["identificationProfileIds"] == ",".join(ids)
        assert request.url.params["shortAudio"] == "false"
        assert b'name="identificationData"' in request.content
        return httpx.Response(202, headers={"Operation-Location": "https://x/op/1"})

    location = make_client(handler).identify(b"audio", ids)

    assert location.url == "https://x/op/1"
    assert location.kind is OperationKind.Identification


def test_identify_accepted_without_operation_location_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202)

    with pytest.raises(IdentificationError) as exc:
        make_client(handler).identify(b"audio", [PROFILE_ID])

    assert str(exc.value) == "Incorrect server response"


def test_identify_without_profiles_sends_nothing():
    with pytest.raises(IdentificationError):
        make_client(unreachable).identify(b"audio", [])


def test_check_identification_status_decodes_result():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "status": "Succeeded",
                "processingResult": {"identifiedProfileId": PROFILE_ID, "confidence": "Normal"},
            },
        )

    location = OperationLocation("https://x/op/1", OperationKind.Identification)
    operation = make_client(handler).check_identification_status(location)

    assert operation.status is OperationStatus.Succeeded
    assert operation.processing_result.identified_profile_id == uuid.UUID(PROFILE_ID)
    assert operation.processing_result.confidence is Confidence.Normal


def test_check_identification_status_failed_operation_carries_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "failed", "message": "SpeechNotRecognized"})

    operation = make_client(handler).check_identification_status(OperationLocation("https://x/op/1"))

    assert operation.status is OperationStatus.Failed
    assert operation.message == "SpeechNotRecognized"


def test_profile_round_trip_preserves_wire_fields():
    profile = Profile.from_dict(PROFILE_BODY)
    encoded = profile.to_dict()

    assert encoded["identificationProfileId"] == PROFILE_ID
    assert encoded["locale"] == "en-us"
    assert encoded["enrollmentSpeechTime"] == 12.5
    assert encoded["remainingEnrollmentSpeechTime"] == 17.5
    assert Profile.from_dict(encoded) == profile


def test_async_enroll_and_poll():
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Ocp-Apim-Subscription-Key"] == "test-key"
        if request.method == "POST":
            assert b"async-audio" in request.content
            return httpx.Response(202, headers={"Operation-Location": "https://x/op/2"})
        assert str(request.url) == "https://x/op/2"
        return httpx.Response(200, json={"status": "notstarted"})

    async def scenario():
        config = SpeakerRecognitionConfig.from_subscription("test-key", region="westus")
        async with SpeakerIdentificationClient(config, async_transport=httpx.MockTransport(handler)) as client:
            location = await client.enroll_async(b"async-audio", PROFILE_ID)
            return await client.check_enrollment_status_async(location)

    operation = asyncio.run(scenario())

    assert operation.status is OperationStatus.NotStarted


def test_async_get_profile_failure():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"message": "Profile not found"}})

    config = SpeakerRecognitionConfig.from_subscription("test-key", region="westus")
    client = SpeakerIdentificationClient(config, async_transport=httpx.MockTransport(handler))

    with pytest.raises(GetProfileError) as exc:
        asyncio.run(client.get_profile_async(PROFILE_ID))

    assert str(exc.value) == "Profile not found"


@pytest.mark.parametrize("body", [[], "profile", 3, None])
def test_get_profile_with_non_object_body_raises_io_error(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(SpeakerRecognitionIOError):
        make_client(handler).get_profile(PROFILE_ID)


def test_get_profiles_with_non_object_item_raises_io_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[PROFILE_BODY, 1])

    with pytest.raises(SpeakerRecognitionIOError):
        make_client(handler).get_profiles()


def test_status_checks_with_non_object_processing_result_raise_io_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "succeeded", "processingResult": "x"})

    client = make_client(handler)

    with pytest.raises(SpeakerRecognitionIOError):
        client.check_enrollment_status(OperationLocation("https://x/y"))
    with pytest.raises(SpeakerRecognitionIOError):
        client.check_identification_status(OperationLocation("https://x/y"))


def test_undecodable_content_encoding_raises_io_error():
    with pytest.raises(SpeakerRecognitionIOError) as exc:
        make_client(undecodable).get_profile(PROFILE_ID)

    assert isinstance(exc.value.__cause__, httpx.DecodingError)


def test_async_malformed_bodies_raise_io_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith(PROFILE_ID):
            return httpx.Response(200, json=[])
        return httpx.Response(200, json={"status": "succeeded", "processingResult": ["x"]})

    async def scenario(client):
        with pytest.raises(SpeakerRecognitionIOError):
            await client.get_profile_async(PROFILE_ID)
        with pytest.raises(SpeakerRecognitionIOError):
            await client.check_identification_status_async(OperationLocation("https://x/y"))

    config = SpeakerRecognitionConfig.from_subscription("test-key", region="westus")
    asyncio.run(scenario(SpeakerIdentificationClient(config, async_transport=httpx.MockTransport(handler))))


def test_async_undecodable_content_encoding_raises_io_error():
    config = SpeakerRecognitionConfig.from_subscription("test-key", region="westus")
    client = SpeakerIdentificationClient(config, async_transport=httpx.MockTransport(undecodable_async))

    with pytest.raises(SpeakerRecognitionIOError):
        asyncio.run(client.get_profile_async(PROFILE_ID))


def test_async_enroll_reads_stream_off_the_event_loop():
    loop_thread = threading.get_ident()
    readers = []

    class RecordingStream(io.BytesIO):
        def read(self, *args):
            readers.append(threading.get_ident())
            return super().read(*args)

    async def handler(request: httpx.Request) -> httpx.Response:
        assert b"streamed-audio" in request.content
        return httpx.Response(202, headers={"Operation-Location": "https://x/op/3"})

    config = SpeakerRecognitionConfig.from_subscription("test-key", region="westus")
    client = SpeakerIdentificationClient(config, async_transport=httpx.MockTransport(handler))

    location = asyncio.run(client.enroll_async(RecordingStream(b"streamed-audio"), PROFILE_ID))

    assert location.url == "https://x/op/3"
    assert readers and loop_thread not in readers
