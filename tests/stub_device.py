"""Scripted in-memory sensor used by the acquisition and CLI tests."""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from devices.base_device import (  # noqa: E402
    BaseDevice,
    DeviceConfiguration,
    DeviceError,
    FifoConfiguration,
    Interrupt,
    Status,
)


class StubDevice(BaseDevice):
    """Every read pops the next scripted item.

    A Status item is raised as DeviceError, an exception instance is raised
    as-is, anything else is returned as the reading. Setup operations fail
    when their name is listed in ``failing``.
    """

    def __init__(self, readings=(), failing=(), pending=Interrupt(0)):
        self.readings = list(readings)
        self.failing = dict.fromkeys(failing, Status.BUS_NACK)
        self.pending = pending
        self.calls = []
        self.configurations = []
        self.fifo_configurations = []
        self.read_count = 0

    def _call(self, name):
        self.calls.append(name)
        if name in self.failing:
            raise DeviceError(self.failing[name])

    def _next_reading(self, name):
        self.read_count += 1
        self.calls.append(name)
        item = self.readings.pop(0) if self.readings else Status.BUFFER_EMPTY
        if isinstance(item, Status):
            raise DeviceError(item)
        if isinstance(item, BaseException):
            raise item
        return item

    def init(self):
        self._call("init")

    def deinit(self):
        self._call("deinit")

    def get_default_configuration(self):
        return DeviceConfiguration()

    def set_configuration(self, config):
        self.configurations.append(config)
        name = "set_configuration" if len(self.configurations) == 1 else "set_standby"
        self._call(name)

    def get_fifo_default_configuration(self):
        return FifoConfiguration()

    def set_fifo_configuration(self, config):
        self.fifo_configurations.append(config)
        self._call("set_fifo_configuration")

    def flush_fifo(self):
        self._call("flush_fifo")

    def clear_pending_interrupts(self, mask):
        self._call("clear_pending_interrupts")

    def get_pending_interrupts(self):
        self._call("get_pending_interrupts")
        return self.pending

    def read_raw_current(self):
        return self._next_reading("read_raw_current")

    def read_current(self):
        return self._next_reading("read_current")

    def read_raw_voltage(self):
        return self._next_reading("read_raw_voltage")

    def read_voltage(self):
        return self._next_reading("read_voltage")

    def read_raw_current_and_voltage(self):
        return self._next_reading("read_raw_current_and_voltage")

    def read_current_and_voltage(self):
        return self._next_reading("read_current_and_voltage")
