"""Pytest configuration and fixtures for MirAIe AC tests."""

import pytest

from custom_components.miraie_ac.models import (
    MirAIeDevice,
    MirAIeDeviceState,
    MirAIeHome,
    MirAIeSpace,
)

TEST_ACCESS_TOKEN = "test_access_token"
TEST_HOME_ID = "home-1"
TEST_DEVICE_ID = "device-1"
TEST_TOPIC_ROOT = "user-1/home-1/device-1"


@pytest.fixture
def sample_login_response() -> dict:
    """Fixture providing a sample login API response."""
    return {
        "userId": "user-1",
        "accessToken": TEST_ACCESS_TOKEN,
        "refreshToken": "test_refresh_token",
        "expiresIn": 86400,
    }


@pytest.fixture
def sample_homes_response() -> list:
    """Fixture providing a sample homes API response.

    Returns:
        A list with one home holding two spaces, one of which also lists a
        device without MQTT topics.

    """
    return [
        {
            "homeId": TEST_HOME_ID,
            "homeName": "Home",
            "spaces": [
                {
                    "spaceId": "space-1",
                    "spaceName": "Living Room",
                    "devices": [
                        {
                            "deviceId": TEST_DEVICE_ID,
                            "deviceName": "AC",
                            "topic": [TEST_TOPIC_ROOT],
                        },
                        {"deviceId": "device-no-topic", "deviceName": "Broken"},
                    ],
                },
                {
                    "spaceId": "space-2",
                    "spaceName": "Bedroom",
                    "devices": [
                        {
                            "deviceId": "device-2",
                            "deviceName": "Bedroom AC",
                            "topic": ["user-1/home-1/device-2"],
                        },
                    ],
                },
            ],
        },
    ]


@pytest.fixture
def sample_device() -> MirAIeDevice:
    """Fixture providing a MirAIe device."""
    return MirAIeDevice(
        device_id=TEST_DEVICE_ID,
        name="AC",
        topics=(TEST_TOPIC_ROOT,),
    )


@pytest.fixture
def sample_home(sample_device: MirAIeDevice) -> MirAIeHome:
    """Fixture providing a MirAIe home with one device."""
    return MirAIeHome(
        home_id=TEST_HOME_ID,
        name="Home",
        spaces=(
            MirAIeSpace(
                space_id="space-1",
                name="Living Room",
                devices=(sample_device,),
            ),
        ),
    )


@pytest.fixture
def sample_state() -> MirAIeDeviceState:
    """Fixture providing a fresh device state."""
    return MirAIeDeviceState()
