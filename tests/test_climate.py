"""Tests for the MirAIe AC Climate entity."""

from unittest.mock import AsyncMock, Mock

import pytest
from homeassistant.components.climate import HVACAction, HVACMode
from homeassistant.components.climate.const import SWING_OFF, SWING_ON
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature
from homeassistant.exceptions import HomeAssistantError

from custom_components.miraie_ac.climate import MirAIeClimateEntity, async_setup_entry
from custom_components.miraie_ac.const import DOMAIN
from custom_components.miraie_ac.models import (
    MirAIeDevice,
    MirAIeDeviceState,
    RunningState,
    TargetMode,
    accessory_uid,
)
from custom_components.miraie_ac.reconciler import MirAIeDeviceOfflineError

MIN_TEMP = 16.0
MAX_TEMP = 30.0
TEMP_STEP = 1.0
ROOM_TEMP = 27.5
TARGET_TEMP = 24.0


@pytest.fixture
def mock_reconciler(
    sample_device: MirAIeDevice, sample_state: MirAIeDeviceState
) -> Mock:
    """Create a mock device reconciler."""
    reconciler = Mock()
    reconciler.device = sample_device
    reconciler.state = sample_state
    reconciler.online = True
    reconciler.async_add_listener = Mock(return_value=Mock())
    reconciler.async_set_active = AsyncMock()
    reconciler.async_set_target_mode = AsyncMock()
    reconciler.async_set_temperature = AsyncMock()
    reconciler.async_set_fan_level = AsyncMock()
    reconciler.async_set_swing = AsyncMock()
    return reconciler


@pytest.fixture
def entity(mock_reconciler: Mock) -> MirAIeClimateEntity:
    """Create a climate entity for testing."""
    return MirAIeClimateEntity(mock_reconciler, "Living Room")


class TestAsyncSetupEntry:
    """Tests for async_setup_entry function."""

    @pytest.mark.asyncio
    async def test_creates_one_entity_per_reconciler(
        self, mock_reconciler: Mock
    ) -> None:
        """Test that every reconciler gets a climate entity."""
        coordinator = Mock()
        coordinator.reconcilers = {"device-1": mock_reconciler}
        coordinator.device_spaces = {"device-1": "Living Room"}
        hass = Mock()
        hass.data = {DOMAIN: {"entry": coordinator}}
        entry = Mock()
        entry.entry_id = "entry"
        add_entities = Mock()

        await async_setup_entry(hass, entry, add_entities)

        entities = add_entities.call_args.args[0]
        assert len(entities) == 1
        assert isinstance(entities[0], MirAIeClimateEntity)


class TestMirAIeClimateEntityInit:
    """Tests for entity attributes."""

    def test_identity(self, entity: MirAIeClimateEntity) -> None:
        """Test unique id and device info."""
        assert entity.unique_id == accessory_uid("device-1")
        device_info = entity.device_info
        assert device_info["identifiers"] == {(DOMAIN, "device-1")}
        assert device_info["name"] == "AC"
        assert device_info["suggested_area"] == "Living Room"

    def test_temperature_limits(self, entity: MirAIeClimateEntity) -> None:
        """Test the target temperature range."""
        assert entity.temperature_unit == UnitOfTemperature.CELSIUS
        assert entity.min_temp == MIN_TEMP
        assert entity.max_temp == MAX_TEMP
        assert entity.target_temperature_step == TEMP_STEP

    def test_supported_modes(self, entity: MirAIeClimateEntity) -> None:
        """Test the supported modes."""
        assert entity.hvac_modes == [
            HVACMode.OFF,
            HVACMode.AUTO,
            HVACMode.COOL,
            HVACMode.DRY,
        ]
        assert entity.fan_modes == ["auto", "quiet", "low", "medium", "high"]
        assert entity.swing_modes == [SWING_ON, SWING_OFF]
        assert entity.should_poll is False


class TestMirAIeClimateEntityState:
    """Tests for state properties."""

    def test_unknown_state_before_first_status(
        self, entity: MirAIeClimateEntity
    ) -> None:
        """Test that nothing is reported before the first status."""
        assert entity.hvac_mode is None
        assert entity.hvac_action is None
        assert entity.current_temperature is None
        assert entity.fan_mode is None
        assert entity.swing_mode is None

    def test_reports_reconciled_state(
        self, entity: MirAIeClimateEntity, sample_state: MirAIeDeviceState
    ) -> None:
        """Test that properties mirror the reconciled state."""
        sample_state.active = True
        sample_state.current_temperature = ROOM_TEMP
        sample_state.target_temperature = TARGET_TEMP
        sample_state.target_mode = TargetMode.COOL
        sample_state.running_state = RunningState.COOLING
        sample_state.fan_level = 3
        sample_state.swing_enabled = True

        assert entity.hvac_mode == HVACMode.COOL
        assert entity.hvac_action == HVACAction.COOLING
        assert entity.current_temperature == ROOM_TEMP
        assert entity.target_temperature == TARGET_TEMP
        assert entity.fan_mode == "medium"
        assert entity.swing_mode == SWING_ON

    def test_inactive_is_off(
        self, entity: MirAIeClimateEntity, sample_state: MirAIeDeviceState
    ) -> None:
        """Test that an inactive unit is off regardless of its mode."""
        sample_state.active = False
        sample_state.target_mode = TargetMode.AUTO
        sample_state.running_state = RunningState.HEATING

        assert entity.hvac_mode == HVACMode.OFF
        assert entity.hvac_action == HVACAction.OFF

    def test_available_follows_online_latch(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that an offline device is unavailable."""
        assert entity.available is True
        mock_reconciler.online = False
        assert entity.available is False


class TestMirAIeClimateEntityCommands:
    """Tests for entity commands."""

    @pytest.mark.asyncio
    async def test_set_hvac_mode_off(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that OFF powers the unit off."""
        await entity.async_set_hvac_mode(HVACMode.OFF)
        mock_reconciler.async_set_active.assert_awaited_once_with(False)
        mock_reconciler.async_set_target_mode.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_hvac_mode_powers_on_inactive_unit(
        self,
        entity: MirAIeClimateEntity,
        mock_reconciler: Mock,
        sample_state: MirAIeDeviceState,
    ) -> None:
        """Test that an inactive unit is powered on before the mode change."""
        sample_state.active = False
        await entity.async_set_hvac_mode(HVACMode.COOL)
        mock_reconciler.async_set_active.assert_awaited_once_with(True)
        mock_reconciler.async_set_target_mode.assert_awaited_once_with(TargetMode.COOL)

    @pytest.mark.asyncio
    async def test_set_hvac_mode_dry_uses_heat_slot(
        self,
        entity: MirAIeClimateEntity,
        mock_reconciler: Mock,
        sample_state: MirAIeDeviceState,
    ) -> None:
        """Test that DRY is sent through the HEAT target mode."""
        sample_state.active = True
        await entity.async_set_hvac_mode(HVACMode.DRY)
        mock_reconciler.async_set_active.assert_not_called()
        mock_reconciler.async_set_target_mode.assert_awaited_once_with(TargetMode.HEAT)

    @pytest.mark.asyncio
    async def test_set_temperature(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that the target temperature is sent."""
        await entity.async_set_temperature(**{ATTR_TEMPERATURE: 22.0})
        mock_reconciler.async_set_temperature.assert_awaited_once_with(22.0)

    @pytest.mark.asyncio
    async def test_set_temperature_without_value(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that a call without a temperature sends nothing."""
        await entity.async_set_temperature()
        mock_reconciler.async_set_temperature.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_fan_mode(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that fan modes map onto rotation levels."""
        await entity.async_set_fan_mode("quiet")
        mock_reconciler.async_set_fan_level.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_set_unknown_fan_mode(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that an unknown fan mode is not sent."""
        await entity.async_set_fan_mode("turbo")
        mock_reconciler.async_set_fan_level.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_swing_mode(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that swing modes toggle vertical swing."""
        await entity.async_set_swing_mode(SWING_OFF)
        mock_reconciler.async_set_swing.assert_awaited_once_with(False)

    @pytest.mark.asyncio
    async def test_turn_on_and_off(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that turn on and off switch the power."""
        await entity.async_turn_on()
        await entity.async_turn_off()
        assert [call.args for call in mock_reconciler.async_set_active.await_args_list] == [
            (True,),
            (False,),
        ]

    @pytest.mark.asyncio
    async def test_offline_device_raises_home_assistant_error(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that an offline device surfaces as HomeAssistantError."""
        mock_reconciler.async_set_temperature.side_effect = MirAIeDeviceOfflineError(
            "Device AC is offline"
        )
        with pytest.raises(HomeAssistantError, match="offline"):
            await entity.async_set_temperature(**{ATTR_TEMPERATURE: 22.0})


class TestMirAIeClimateEntityListener:
    """Tests for reconciler subscription."""

    @pytest.mark.asyncio
    async def test_added_to_hass_subscribes(
        self, entity: MirAIeClimateEntity, mock_reconciler: Mock
    ) -> None:
        """Test that the entity listens to reconciler updates."""
        await entity.async_added_to_hass()
        mock_reconciler.async_add_listener.assert_called_once_with(
            entity.async_write_ha_state
        )
