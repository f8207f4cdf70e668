# Linux I2C bus access for register based sensors (smbus2 / i2c-dev)
import errno
import logging
from enum import IntEnum
from typing import List, Optional, Sequence

import crc
from smbus2 import SMBus, i2c_msg

from .base_device import DeviceError, Status

logger = logging.getLogger(__name__)

# Linux adapters report an unacknowledged transfer as any of these
_NACK_ERRNOS = (errno.ENXIO, errno.EREMOTEIO, errno.EIO)

# SMBus packet error code: CRC-8, polynomial x^8 + x^2 + x + 1, zero init
PEC_CONFIGURATION = crc.Configuration(
    width=8,
    polynomial=0x07,
    init_value=0x00,
    final_xor_value=0x00,
    reverse_input=False,
    reverse_output=False,
)
_pec_calculator = crc.Calculator(PEC_CONFIGURATION, optimized=True)


class I2CSpeed(IntEnum):
    STANDARD = 100_000
    FAST = 400_000
    FAST_PLUS = 1_000_000
    HIGH_SPEED = 3_400_000


def packet_error_code(data: Sequence[int]) -> int:
    return _pec_calculator.checksum(bytes(b & 0xFF for b in data))


def _status_from_os_error(exc: OSError) -> Status:
    if exc.errno in _NACK_ERRNOS:
        return Status.BUS_NACK
    if exc.errno == errno.ETIMEDOUT:
        return Status.BUS_TIMEOUT
    return Status.BUS_ERROR


class I2CBus:
    """Register read/write transactions against one device on /dev/i2c-N.

    With packet error checking enabled, writes carry a trailing PEC byte and
    reads expect one from the device, which is verified here.
    """

    def __init__(self, controller: int, address: int, smbus_factory=SMBus):
        self.controller = controller
        self.address = address
        self.speed = I2CSpeed.FAST
        self.packet_error_checking = True
        self._smbus_factory = smbus_factory
        self._bus: Optional[SMBus] = None

    def set_controller(self, controller: int) -> None:
        self.controller = controller

    def set_address(self, address: int) -> None:
        self.address = address

    def set_speed(self, speed: I2CSpeed) -> None:
        # i2c-dev cannot retune the adapter clock; the value is kept for reference
        self.speed = speed
        logger.debug("Requested I2C speed %d Hz on /dev/i2c-%d", int(speed), self.controller)

    @property
    def is_open(self) -> bool:
        return self._bus is not None

    def open(self) -> None:
        if self._bus is not None:
            return
        try:
            self._bus = self._smbus_factory(self.controller)
        except OSError as exc:
            raise DeviceError(_status_from_os_error(exc), f"cannot open /dev/i2c-{self.controller}: {exc}") from exc
        logger.info("Opened /dev/i2c-%d for device 0x%02X", self.controller, self.address)

    def close(self) -> None:
        if self._bus is None:
            return
        self._bus.close()
        self._bus = None

    def _require_bus(self) -> SMBus:
        if self._bus is None:
            raise DeviceError(Status.INVALID_OPERATION, "bus is not open")
        return self._bus

    def read(self, register: int, length: int) -> List[int]:
        bus = self._require_bus()
        wire_length = length + 1 if self.packet_error_checking else length
        write = i2c_msg.write(self.address, [register])
        read = i2c_msg.read(self.address, wire_length)
        try:
            bus.i2c_rdwr(write, read)
        except OSError as exc:
            raise DeviceError(_status_from_os_error(exc), f"read 0x{register:02X}") from exc

        data = list(read)
        logger.debug("I2C read 0x%02X -> %s", register, " ".join(f"{b:02X}" for b in data))
        if not self.packet_error_checking:
            return data

        payload, received_pec = data[:-1], data[-1]
        expected_pec = packet_error_code([self.address << 1, register, (self.address << 1) | 1] + payload)
        if received_pec != expected_pec:
            raise DeviceError(
                Status.PACKET_CHECK_FAILED,
                f"register 0x{register:02X}: PEC 0x{received_pec:02X}, expected 0x{expected_pec:02X}",
            )
        return payload

    def write(self, register: int, data: Sequence[int]) -> None:
        bus = self._require_bus()
        frame = [register] + [b & 0xFF for b in data]
        if self.packet_error_checking:
            frame.append(packet_error_code([self.address << 1] + frame))
        logger.debug("I2C write %s", " ".join(f"{b:02X}" for b in frame))
        try:
            bus.i2c_rdwr(i2c_msg.write(self.address, frame))
        except OSError as exc:
            raise DeviceError(_status_from_os_error(exc), f"write 0x{register:02X}") from exc

    def quick_command(self) -> None:
        bus = self._require_bus()
        try:
            bus.write_quick(self.address)
        except OSError as exc:
            raise DeviceError(_status_from_os_error(exc), "quick command") from exc
