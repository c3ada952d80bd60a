import os
from typing import Optional

DEFAULT_ENDPOINT = "https://api.projectoxford.ai/spid/v1.0"


class SpeakerRecognitionConfig:
    """Configuration for the Speaker Recognition REST endpoints.

    The base address resolves in this order: an explicit ``endpoint``, the
    regional Cognitive Services host for ``region``, then the global default.
    """

    def __init__(
        self,
        *,
        subscription: Optional[str] = None,
        region: Optional[str] = None,
        endpoint: Optional[str] = None,
        # Support both parameter names, like SpeechConfig in the speech SDK
        subscription_key: Optional[str] = None,
    ) -> None:
        """Initialize SpeakerRecognitionConfig.

        Args:
            subscription: Cognitive Services subscription key
            region: Azure region (e.g., 'westus') used to build the endpoint
            endpoint: Custom base URL, e.g. 'https://host/spid/v1.0' (optional)
            subscription_key: Alias for 'subscription'
        """
        self.subscription_key = subscription or subscription_key
        self.region = region
        self.endpoint = endpoint

    @classmethod
    def from_subscription(
        cls, subscription_key: str, region: Optional[str] = None, **kwargs
    ) -> "SpeakerRecognitionConfig":
        return cls(subscription_key=subscription_key, region=region, **kwargs)

    @classmethod
    def from_environment(cls) -> "SpeakerRecognitionConfig":
        """Create a config from SPEAKER_RECOGNITION_KEY, _REGION and _ENDPOINT."""
        return cls(
            subscription_key=os.environ.get("SPEAKER_RECOGNITION_KEY"),
            region=os.environ.get("SPEAKER_RECOGNITION_REGION") or None,
            endpoint=os.environ.get("SPEAKER_RECOGNITION_ENDPOINT") or None,
        )

    @property
    def base_url(self) -> str:
        if self.endpoint:
            return self.endpoint.rstrip("/")
        if self.region:
            return f"https://{self.region}.api.cognitive.microsoft.com/spid/v1.0"
        return DEFAULT_ENDPOINT

    @property
    def identification_profiles_url(self) -> str:
        return f"{self.base_url}/identificationProfiles"

    @property
    def identify_url(self) -> str:
        return f"{self.base_url}/identify"

    @property
    def verification_profiles_url(self) -> str:
        return f"{self.base_url}/verificationProfiles"

    @property
    def verify_url(self) -> str:
        return f"{self.base_url}/verify"

    @property
    def verification_phrases_url(self) -> str:
        return f"{self.base_url}/verificationPhrases"

    def validate(self) -> None:
        if not self.subscription_key:
            raise ValueError("subscription_key is required for SpeakerRecognitionConfig")
