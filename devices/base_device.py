# Base sensor contract: status kinds, register encodings and the driver interface
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag
from typing import Tuple


class Status(Enum):
    """Result kinds reported by the sensor driver and the bus layer"""

    OK = "OK"
    BUS_NACK = "I2C Nack Received"
    BUS_ERROR = "Other I2C Error"
    BUS_TIMEOUT = "I2C Operation Timed Out"
    PACKET_CHECK_FAILED = "Packet Error Check Failed"
    NOT_IMPLEMENTED = "Specified operation is not implemented"
    BAD_ARGUMENT = "Bad Argument"
    INVALID_OPERATION = "Invalid Operation"
    BUFFER_EMPTY = "FIFO is empty"
    NOT_SUPPORTED = "Specified operation is not supported"

    def __str__(self) -> str:
        return self.value


class DeviceError(Exception):
    """Raised by drivers when a device operation does not complete with OK"""

    def __init__(self, status: Status, detail: str = ""):
        self.status = status
        self.detail = detail
        super().__init__(f"{status.value}: {detail}" if detail else status.value)


class OperatingMode(IntEnum):
    STANDBY = 0
    LOW_POWER = 1
    SINGLE_CONVERSION = 2
    ACTIVE = 3


class InputRange(IntEnum):
    RANGE_50_MV = 0
    RANGE_10_MV = 1


# ADC sample rates in ksps, ordered by their register code
ADC_SAMPLE_RATES_KSPS = (
    15, 18.75, 23.45, 30, 37.5, 47.1, 60, 93.5,
    120, 150, 234.5, 375, 468.5, 750, 1000, 0.5,
)


class AdcSampleRate(IntEnum):
    RATE_15_KSPS = 0
    RATE_18_75_KSPS = 1
    RATE_23_45_KSPS = 2
    RATE_30_KSPS = 3
    RATE_37_5_KSPS = 4
    RATE_47_1_KSPS = 5
    RATE_60_KSPS = 6
    RATE_93_5_KSPS = 7
    RATE_120_KSPS = 8
    RATE_150_KSPS = 9
    RATE_234_5_KSPS = 10
    RATE_375_KSPS = 11
    RATE_468_5_KSPS = 12
    RATE_750_KSPS = 13
    RATE_1000_KSPS = 14
    # The only rate at which current and voltage can be stored together
    BOTH_AT_0_5_KSPS = 15


# Number of averaged conversions, ordered by their register code
DIGITAL_FILTER_SAMPLES = (1, 8, 16, 32, 64, 128)


class DigitalFilter(IntEnum):
    NO_AVERAGE = 0
    AVERAGE_8 = 1
    AVERAGE_16 = 2
    AVERAGE_32 = 3
    AVERAGE_64 = 4
    AVERAGE_128 = 5


class FifoStoringMode(IntEnum):
    CURRENT_ONLY = 0
    VOLTAGE_ONLY = 1
    CURRENT_AND_VOLTAGE = 2


class Interrupt(IntFlag):
    WAKE_UP = 0x01
    CONVERSION_READY = 0x02
    OVER_CURRENT = 0x04
    OVER_VOLTAGE = 0x08
    UNDER_VOLTAGE = 0x10
    I2C_TIMEOUT = 0x20
    FIFO_ALARM = 0x40
    FIFO_OVERFLOWN = 0x80


@dataclass(frozen=True)
class DeviceConfiguration:
    operating_mode: OperatingMode = OperatingMode.STANDBY
    i2c_timeout_disabled: bool = False
    alert_response_time: int = 0
    packet_error_checking: bool = True
    input_range: InputRange = InputRange.RANGE_50_MV
    stay_hs_mode: bool = False
    adc_sample_rate: AdcSampleRate = AdcSampleRate.RATE_15_KSPS
    digital_filter: DigitalFilter = DigitalFilter.NO_AVERAGE


@dataclass(frozen=True)
class FifoConfiguration:
    storing_mode: FifoStoringMode = FifoStoringMode.CURRENT_ONLY
    overflow_warning_threshold: int = 0x34
    roll_over: bool = False


class BaseDevice(ABC):
    """Base class for current/voltage sensors polled through a FIFO.

    Every operation raises DeviceError when the device reports anything other
    than OK. An empty FIFO on a read surfaces as Status.BUFFER_EMPTY.
    """

    @abstractmethod
    def init(self) -> None:
        pass

    @abstractmethod
    def deinit(self) -> None:
        pass

    @abstractmethod
    def get_default_configuration(self) -> DeviceConfiguration:
        pass

    @abstractmethod
    def set_configuration(self, config: DeviceConfiguration) -> None:
        pass

    @abstractmethod
    def get_fifo_default_configuration(self) -> FifoConfiguration:
        pass

    @abstractmethod
    def set_fifo_configuration(self, config: FifoConfiguration) -> None:
        pass

    @abstractmethod
    def flush_fifo(self) -> None:
        pass

    @abstractmethod
    def clear_pending_interrupts(self, mask: int) -> None:
        pass

    @abstractmethod
    def get_pending_interrupts(self) -> Interrupt:
        pass

    @abstractmethod
    def read_raw_current(self) -> int:
        pass

    @abstractmethod
    def read_current(self) -> float:
        """Read one current sample in amperes"""
        pass

    @abstractmethod
    def read_raw_voltage(self) -> int:
        pass

    @abstractmethod
    def read_voltage(self) -> float:
        """Read one bus voltage sample in volts"""
        pass

    @abstractmethod
    def read_raw_current_and_voltage(self) -> Tuple[int, int]:
        pass

    @abstractmethod
    def read_current_and_voltage(self) -> Tuple[float, float]:
        pass
