"""Profile ids and transport handlers shared by the client tests."""
import httpx
import pytest

PROFILE_ID = "111f427c-3791-468f-b709-fcef7660fff9"
OTHER_PROFILE_ID = "dfb1c2a6-4b4e-4d4b-9e55-4e6f3e2d2a10"
THIRD_PROFILE_ID = "5a7cc2f4-8c3e-4d52-86a6-5b9c1f0d3e7b"

BASE = "https://westus.api.cognitive.microsoft.com/spid/v1.0"


def unreachable(request: httpx.Request) -> httpx.Response:
    pytest.fail(f"no request expected, got {request.method} {request.url}")


def undecodable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip"))


async def undecodable_async(request: httpx.Request) -> httpx.Response:
    return undecodable(request)
