import pytest

from speaker_recognition import SpeakerRecognitionConfig


@pytest.fixture
def config() -> SpeakerRecognitionConfig:
    return SpeakerRecognitionConfig.from_subscription("test-key", region="westus")
