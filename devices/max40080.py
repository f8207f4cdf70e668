# MAX40080 current-sense amplifier with FIFO, driven over I2C with PEC
import logging
from typing import List, Tuple

from .base_device import (
    BaseDevice,
    DeviceConfiguration,
    DeviceError,
    FifoConfiguration,
    InputRange,
    Interrupt,
    Status,
)
from .i2c_bus import I2CBus, I2CSpeed

logger = logging.getLogger(__name__)

# Register map
REG_CONFIGURATION = 0x00
REG_STATUS = 0x02
REG_FIFO_CONFIGURATION = 0x0A
REG_CURRENT = 0x0C
REG_VOLTAGE = 0x0E
REG_CURRENT_AND_VOLTAGE = 0x10

FIFO_FLUSH_BIT = 0x8000
MEASUREMENT_VALID_BIT = 0x8000
CURRENT_AND_VOLTAGE_VALID_BIT = 0x80000000

ADC_FULL_SCALE_CODE = 4095
ADC_REFERENCE_V = 1.25
VOLTAGE_FULL_SCALE_V = 36.0
CURRENT_GAIN = {
    InputRange.RANGE_50_MV: 25.0,
    InputRange.RANGE_10_MV: 125.0,
}


def _to_word(value: int) -> List[int]:
    return [value & 0xFF, (value >> 8) & 0xFF]


def _from_bytes(data: List[int]) -> int:
    return int.from_bytes(bytes(data), "little")


def _sign_extend_13(value: int) -> int:
    value &= 0x1FFF
    if value & 0x1000:
        value -= 0x2000
    return value


def encode_configuration(config: DeviceConfiguration) -> int:
    word = int(config.operating_mode) & 0x07
    word |= int(config.i2c_timeout_disabled) << 3
    word |= (config.alert_response_time & 0x01) << 4
    word |= int(config.packet_error_checking) << 5
    word |= int(config.input_range) << 6
    word |= int(config.stay_hs_mode) << 7
    word |= (int(config.adc_sample_rate) & 0x0F) << 8
    word |= (int(config.digital_filter) & 0x07) << 12
    return word


def encode_fifo_configuration(config: FifoConfiguration) -> int:
    word = int(config.storing_mode) & 0x03
    word |= (config.overflow_warning_threshold & 0x3F) << 8
    word |= int(config.roll_over) << 14
    return word


class MAX40080(BaseDevice):
    """MAX40080 driver.

    The shunt value only affects the conversion of raw current codes into
    amperes; the sensor itself measures the voltage across the shunt.
    """

    def __init__(self, bus: I2CBus, shunt_resistor: float):
        self.bus = bus
        self.shunt_resistor = shunt_resistor
        self._input_range = InputRange.RANGE_50_MV

    @property
    def device_info(self) -> dict:
        return {
            'device_type': 'MAX40080',
            'bus': f"/dev/i2c-{self.bus.controller}",
            'address': f"0x{self.bus.address:02X}",
            'shunt_ohm': self.shunt_resistor,
        }

    def init(self) -> None:
        self.bus.open()
        self.bus.set_speed(I2CSpeed.FAST)
        # Power-on default keeps PEC enabled
        self.bus.packet_error_checking = True
        self.bus.quick_command()
        logger.info("Initialized %s", self.device_info)

    def deinit(self) -> None:
        self.bus.close()

    def get_default_configuration(self) -> DeviceConfiguration:
        return DeviceConfiguration()

    def set_configuration(self, config: DeviceConfiguration) -> None:
        word = encode_configuration(config)
        logger.debug("Writing configuration 0x%04X (%s)", word, config)
        self.bus.write(REG_CONFIGURATION, _to_word(word))
        self.bus.packet_error_checking = config.packet_error_checking
        self._input_range = config.input_range

    def get_fifo_default_configuration(self) -> FifoConfiguration:
        return FifoConfiguration()

    def set_fifo_configuration(self, config: FifoConfiguration) -> None:
        word = encode_fifo_configuration(config)
        logger.debug("Writing FIFO configuration 0x%04X (%s)", word, config)
        self.bus.write(REG_FIFO_CONFIGURATION, _to_word(word))

    def flush_fifo(self) -> None:
        word = _from_bytes(self.bus.read(REG_FIFO_CONFIGURATION, 2))
        self.bus.write(REG_FIFO_CONFIGURATION, _to_word(word | FIFO_FLUSH_BIT))

    def clear_pending_interrupts(self, mask: int) -> None:
        if mask & ~0xFF:
            raise DeviceError(Status.BAD_ARGUMENT, f"interrupt mask 0x{mask:X}")
        # Status flags are write-1-to-clear
        self.bus.write(REG_STATUS, _to_word(mask & 0xFF))

    def get_pending_interrupts(self) -> Interrupt:
        word = _from_bytes(self.bus.read(REG_STATUS, 2))
        return Interrupt(word & 0xFF)

    def _current_from_raw(self, raw: int) -> float:
        gain = CURRENT_GAIN[self._input_range]
        return raw * ADC_REFERENCE_V / ADC_FULL_SCALE_CODE / gain / self.shunt_resistor

    @staticmethod
    def _voltage_from_raw(raw: int) -> float:
        return raw * VOLTAGE_FULL_SCALE_V / ADC_FULL_SCALE_CODE

    def read_raw_current(self) -> int:
        word = _from_bytes(self.bus.read(REG_CURRENT, 2))
        if not word & MEASUREMENT_VALID_BIT:
            raise DeviceError(Status.BUFFER_EMPTY)
        return _sign_extend_13(word)

    def read_current(self) -> float:
        return self._current_from_raw(self.read_raw_current())

    def read_raw_voltage(self) -> int:
        word = _from_bytes(self.bus.read(REG_VOLTAGE, 2))
        if not word & MEASUREMENT_VALID_BIT:
            raise DeviceError(Status.BUFFER_EMPTY)
        return word & 0x0FFF

    def read_voltage(self) -> float:
        return self._voltage_from_raw(self.read_raw_voltage())

    def read_raw_current_and_voltage(self) -> Tuple[int, int]:
        word = _from_bytes(self.bus.read(REG_CURRENT_AND_VOLTAGE, 4))
        if not word & CURRENT_AND_VOLTAGE_VALID_BIT:
            raise DeviceError(Status.BUFFER_EMPTY)
        return _sign_extend_13(word), (word >> 16) & 0x0FFF

    def read_current_and_voltage(self) -> Tuple[float, float]:
        current, voltage = self.read_raw_current_and_voltage()
        return self._current_from_raw(current), self._voltage_from_raw(voltage)

