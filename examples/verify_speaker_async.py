"""
Example: enroll a verification profile and verify a recording with the async API.

Environment variables:
- SPEAKER_RECOGNITION_KEY (subscription key)
- SPEAKER_RECOGNITION_REGION (e.g., westus; optional)

Usage: python verify_speaker_async.py enroll1.wav enroll2.wav enroll3.wav test.wav
"""
import asyncio
import sys
from pathlib import Path

from speaker_recognition import SpeakerRecognitionConfig, SpeakerVerificationClient


async def main() -> None:
    if len(sys.argv) < 3:
        raise SystemExit("usage: verify_speaker_async.py ENROLL_AUDIO... TEST_AUDIO")
    *enrollments, test_audio = [Path(arg) for arg in sys.argv[1:]]
    config = SpeakerRecognitionConfig.from_environment()
    if not config.subscription_key:
        raise SystemExit("Set SPEAKER_RECOGNITION_KEY.")

    async with SpeakerVerificationClient(config) as client:
        phrases = await client.get_phrases_async("en-US")
        print("Say one of:", *(p.phrase for p in phrases), sep="\n  ")

        profile = await client.create_profile_async("en-US")
        for path in enrollments:
            enrollment = await client.enroll_async(path.read_bytes(), profile.verification_profile_id)
            print(f"{path.name}: {enrollment.remaining_enrollments} enrollments remaining")

        verification = await client.verify_async(test_audio.read_bytes(), profile.verification_profile_id)
        print(f"Result: {verification.result.value} (confidence {verification.confidence.value})")

        await client.delete_profile_async(profile.verification_profile_id)


if __name__ == "__main__":
    asyncio.run(main())
