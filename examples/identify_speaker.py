"""
Example: enroll a speaker for identification, then identify a recording.

Environment variables:
- SPEAKER_RECOGNITION_KEY (subscription key)
- SPEAKER_RECOGNITION_REGION (e.g., westus; optional)

Usage: python identify_speaker.py enrollment.wav unknown.wav
"""
import logging
import sys
import time
from pathlib import Path

from speaker_recognition import SpeakerIdentificationClient, SpeakerRecognitionConfig

POLL_INTERVAL = 1.0


def wait(poll, location):
    # The service gives no cadence; poll once per second until terminal.
    while True:
        operation = poll(location)
        if operation.status.is_terminal:
            return operation
        time.sleep(POLL_INTERVAL)


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) != 3:
        raise SystemExit("usage: identify_speaker.py ENROLLMENT_AUDIO TEST_AUDIO")
    config = SpeakerRecognitionConfig.from_environment()
    if not config.subscription_key:
        raise SystemExit("Set SPEAKER_RECOGNITION_KEY.")

    with SpeakerIdentificationClient(config) as client:
        profile = client.create_profile("en-us")
        print(f"Created profile {profile.identification_profile_id}")

        with Path(sys.argv[1]).open("rb") as audio:
            location = client.enroll(audio, profile.identification_profile_id, force_short_audio=True)
        enrollment = wait(client.check_enrollment_status, location)
        print(f"Enrollment {enrollment.status.value}: {enrollment.processing_result}")

        location = client.identify(Path(sys.argv[2]).read_bytes(), [profile.identification_profile_id])
        identification = wait(client.check_identification_status, location)
        print(f"Identification {identification.status.value}: {identification.processing_result}")

        client.delete_profile(profile.identification_profile_id)


if __name__ == "__main__":
    main()
