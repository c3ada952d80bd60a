"""Request building, transport and response decoding shared by both clients."""
import asyncio
import logging
import re
from datetime import datetime
from typing import Any, BinaryIO, Callable, Dict, Iterable, List, Optional, Type, TypeVar, Union
from uuid import UUID

import httpx

from .config import SpeakerRecognitionConfig
from .errors import SpeakerRecognitionError, SpeakerRecognitionIOError

logger = logging.getLogger(__name__)

OCP_SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"
OPERATION_LOCATION_HEADER = "Operation-Location"
JSON_CONTENT_TYPE = "application/json"
INCORRECT_SERVER_RESPONSE = "Incorrect server response"

ProfileId = Union[UUID, str]
AudioInput = Union[bytes, bytearray, memoryview, BinaryIO]

T = TypeVar("T")

_FRACTION = re.compile(r"\.\d+")


class SpeakerRestClientHelper:
    """Builds authenticated requests and sends them over shared httpx clients."""

    def __init__(
        self,
        config: SpeakerRecognitionConfig,
        *,
        timeout: Optional[Union[float, httpx.Timeout]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        config.validate()
        self.config = config
        client_options: Dict[str, Any] = {}
        if timeout is not None:
            client_options["timeout"] = timeout
        self._client = httpx.Client(transport=transport, **client_options)
        self._async_client = httpx.AsyncClient(transport=async_transport, **client_options)

    def close(self) -> None:
        self._client.close()
        if self._async_client.is_closed:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._async_client.aclose())
        # Inside a running loop the caller is expected to await aclose().

    async def aclose(self) -> None:
        self._client.close()
        if not self._async_client.is_closed:
            await self._async_client.aclose()

    def create_request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> httpx.Request:
        return self._client.build_request(
            method,
            url,
            headers=self._auth_headers(),
            params=params,
            data=data,
            files=files,
        )

    def send(self, request: httpx.Request) -> httpx.Response:
        logger.debug(f"Sending {request.method} {request.url}")
        try:
            response = self._client.send(request)
        except httpx.RequestError as exc:
            logger.warning(f"Request error on {request.method} {request.url}: {exc}")
            raise SpeakerRecognitionIOError(f"Request to {request.url} failed: {exc}") from exc
        logger.debug(f"Received {response.status_code} for {request.method} {request.url}")
        return response

    async def send_async(self, request: httpx.Request) -> httpx.Response:
        logger.debug(f"Sending {request.method} {request.url}")
        try:
            response = await self._async_client.send(request)
        except httpx.RequestError as exc:
            logger.warning(f"Request error on {request.method} {request.url}: {exc}")
            raise SpeakerRecognitionIOError(f"Request to {request.url} failed: {exc}") from exc
        logger.debug(f"Received {response.status_code} for {request.method} {request.url}")
        return response

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Accept": JSON_CONTENT_TYPE,
            OCP_SUBSCRIPTION_KEY_HEADER: self.config.subscription_key,
        }


def format_profile_id(profile_id: ProfileId) -> str:
    """Return the canonical string form of a profile id, rejecting non-UUIDs."""
    if isinstance(profile_id, UUID):
        return str(profile_id)
    return str(UUID(str(profile_id)))


def build_profile_ids_string(ids: Iterable[ProfileId]) -> str:
    return ",".join(format_profile_id(profile_id) for profile_id in ids)


def read_audio(audio: AudioInput) -> bytes:
    """Buffer an audio payload given as bytes or a binary stream."""
    if hasattr(audio, "read"):
        try:
            data = audio.read()
        except OSError as exc:
            raise SpeakerRecognitionIOError(f"Could not read audio stream: {exc}") from exc
    else:
        data = audio
    if isinstance(data, str):
        raise TypeError("audio must be bytes or a binary stream")
    return bytes(data)


async def read_audio_async(audio: AudioInput) -> bytes:
    """Buffer an audio payload, reading streams on the default executor."""
    if hasattr(audio, "read"):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, read_audio, audio)
    return read_audio(audio)


def audio_part(field_name: str, audio: AudioInput, file_name: str) -> Dict[str, Any]:
    """Build the ``files`` mapping for a single multipart audio upload."""
    return {field_name: (file_name, read_audio(audio), "application/octet-stream")}


def audio_file_name(prefix: str) -> str:
    return f"{prefix}_{datetime.now():%Y%m%d%H%M%S}"


def error_payload(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def error_message(response: httpx.Response) -> str:
    """Service supplied error message, or the status code when there is none."""
    error = error_payload(response).get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str):
            return message
    return str(response.status_code)


def raise_for_status(
    response: httpx.Response,
    failure: Type[SpeakerRecognitionError],
    expected: int = httpx.codes.OK,
) -> None:
    if response.status_code == expected:
        return
    message = error_message(response)
    logger.warning(f"{failure.__name__} ({response.status_code}): {message}")
    raise failure(message, status_code=response.status_code, details=error_payload(response))


def operation_location(response: httpx.Response, failure: Type[SpeakerRecognitionError]) -> str:
    """Return the Operation-Location of a 202 response or raise ``failure``."""
    raise_for_status(response, failure, expected=httpx.codes.ACCEPTED)
    header = response.headers.get(OPERATION_LOCATION_HEADER, "")
    if not header.strip():
        logger.warning(f"{failure.__name__}: 202 without {OPERATION_LOCATION_HEADER} header")
        raise failure(INCORRECT_SERVER_RESPONSE, status_code=response.status_code)
    return header


def decode(response: httpx.Response, factory: Callable[[Any], T]) -> T:
    try:
        return factory(response.json())
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise SpeakerRecognitionIOError(
            f"Malformed response body: {exc}", status_code=response.status_code
        ) from exc


def decode_list(response: httpx.Response, factory: Callable[[Any], T]) -> List[T]:
    def _items(payload: Any) -> List[T]:
        if not isinstance(payload, list):
            raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
        return [factory(item) for item in payload]

    return decode(response, _items)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    # fromisoformat wants exactly three or six fractional digits before 3.11
    value = _FRACTION.sub(lambda match: match.group(0)[:7].ljust(7, "0"), value)
    return datetime.fromisoformat(value)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
