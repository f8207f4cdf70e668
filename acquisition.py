"""Sensor configuration and the sample acquisition loop."""

from __future__ import annotations

import logging
import sys
import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Callable, Deque, Optional, TextIO, Tuple

import numpy as np

import config
from devices.base_device import (
    AdcSampleRate,
    BaseDevice,
    DeviceConfiguration,
    DeviceError,
    DigitalFilter,
    FifoConfiguration,
    FifoStoringMode,
    Interrupt,
    OperatingMode,
    Status,
)
from options import Options, Variable
from output_format import Sample, format_sample

logger = logging.getLogger(__name__)

# Latencies kept for the run summary; bounded so endless runs stay flat in memory
_LATENCY_WINDOW = 10_000

_STORING_MODES = {
    Variable.CURRENT: FifoStoringMode.CURRENT_ONLY,
    Variable.VOLTAGE: FifoStoringMode.VOLTAGE_ONLY,
    Variable.BOTH: FifoStoringMode.CURRENT_AND_VOLTAGE,
}


class AcquisitionError(RuntimeError):
    """A setup or teardown step failed; the run cannot continue"""


@dataclass
class RunResult:
    requested_count: int
    emitted: int = 0
    skipped: int = 0
    attempts: int = 0
    interrupted: bool = False
    fifo_overflown: bool = False
    latencies: Deque[float] = field(default_factory=lambda: deque(maxlen=_LATENCY_WINDOW))


def derive_configuration(
    options: Options,
    default_config: DeviceConfiguration,
    default_fifo_config: FifoConfiguration,
) -> Tuple[DeviceConfiguration, FifoConfiguration]:
    """Map validated options onto the sensor and FIFO configuration"""
    adc_sample_rate = default_config.adc_sample_rate
    if options.sample_rate_index is not None:
        adc_sample_rate = AdcSampleRate(options.sample_rate_index)
    elif options.variable is Variable.BOTH:
        adc_sample_rate = AdcSampleRate.BOTH_AT_0_5_KSPS

    digital_filter = default_config.digital_filter
    if options.averaging_index is not None:
        digital_filter = DigitalFilter(options.averaging_index)

    device_config = replace(
        default_config,
        operating_mode=OperatingMode.ACTIVE,
        adc_sample_rate=adc_sample_rate,
        digital_filter=digital_filter,
    )

    fifo_config = default_fifo_config
    if options.variable is not None:
        fifo_config = replace(default_fifo_config, storing_mode=_STORING_MODES[options.variable])

    return device_config, fifo_config


class SampleReader:
    """Reads one sample of a fixed kind (variable x raw/converted)"""

    def __init__(self, variable: Variable, raw: bool, read: Callable[[], object]):
        self.variable = variable
        self.raw = raw
        self._read = read

    def attempt(self) -> Tuple[Optional[Sample], Status]:
        try:
            value = self._read()
        except DeviceError as exc:
            return None, exc.status

        if self.variable is Variable.CURRENT:
            return Sample(self.variable, self.raw, current=value), Status.OK
        if self.variable is Variable.VOLTAGE:
            return Sample(self.variable, self.raw, voltage=value), Status.OK
        current, voltage = value
        return Sample(self.variable, self.raw, current=current, voltage=voltage), Status.OK


def select_reader(device: BaseDevice, variable: Optional[Variable], raw: bool) -> SampleReader:
    # Current is measured when no variable was requested
    variable = variable or Variable.CURRENT
    readers = {
        (Variable.CURRENT, True): device.read_raw_current,
        (Variable.CURRENT, False): device.read_current,
        (Variable.VOLTAGE, True): device.read_raw_voltage,
        (Variable.VOLTAGE, False): device.read_voltage,
        (Variable.BOTH, True): device.read_raw_current_and_voltage,
        (Variable.BOTH, False): device.read_current_and_voltage,
    }
    return SampleReader(variable, raw, readers[(variable, raw)])


def collect_sample(
    reader: SampleReader,
    out: TextIO,
    retry_limit: int = config.SAMPLE_RETRY_LIMIT,
) -> Tuple[bool, int]:
    """Try up to retry_limit reads for one sample and print it.

    Returns (emitted, attempts). An empty FIFO is retried silently, every
    other status is retried with a warning.
    """
    for attempt in range(1, retry_limit + 1):
        sample, status = reader.attempt()
        if status is Status.OK:
            print(format_sample(sample), file=out, flush=True)
            return True, attempt

        if status is Status.BUFFER_EMPTY:
            continue

        retry_sentence = "Trying again. " if attempt < retry_limit else ""
        logger.warning("Collecting sample failed with error. %sError details: %s", retry_sentence, status)

    logger.warning("Collecting sample failed. Giving up.")
    return False, retry_limit


def _setup_step(failure_message: str, operation: Callable, *args):
    try:
        return operation(*args)
    except DeviceError as exc:
        raise AcquisitionError(f"{failure_message} Details: {exc}") from exc


def run_acquisition(device: BaseDevice, options: Options, out: TextIO = sys.stdout) -> RunResult:
    """Initialize and configure the sensor, collect samples, then return it to standby.

    Raises AcquisitionError when initialization, configuration, FIFO setup or
    the final interrupt read fails. Failed samples only produce warnings.
    """
    _setup_step("Sensor initialization failed.", device.init)

    device_config, fifo_config = derive_configuration(
        options,
        device.get_default_configuration(),
        device.get_fifo_default_configuration(),
    )
    logger.info("Sensor configuration: %s", device_config)
    logger.info("FIFO configuration: %s", fifo_config)

    _setup_step("Setting sensor configuration failed.", device.set_configuration, device_config)
    _setup_step("Setting sensor FIFO configuration failed.", device.set_fifo_configuration, fifo_config)
    _setup_step("Flushing sensor FIFO failed.", device.flush_fifo)
    _setup_step("Clearing sensor pending interrupts failed.", device.clear_pending_interrupts, config.ALL_INTERRUPTS)

    reader = select_reader(device, options.variable, options.raw_output)
    result = RunResult(requested_count=options.sample_count)
    remaining = options.sample_count
    logger.info(
        "Collecting %s %s samples",
        "endless" if remaining == config.UNBOUNDED_SAMPLE_COUNT else remaining,
        reader.variable.value,
    )

    try:
        while remaining > 0 or remaining == config.UNBOUNDED_SAMPLE_COUNT:
            started = time.perf_counter()
            emitted, attempts = collect_sample(reader, out)
            result.latencies.append(time.perf_counter() - started)
            result.attempts += attempts
            if emitted:
                result.emitted += 1
            else:
                result.skipped += 1

            if remaining != config.UNBOUNDED_SAMPLE_COUNT:
                remaining -= 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        result.interrupted = True

    try:
        device.set_configuration(replace(device_config, operating_mode=OperatingMode.STANDBY))
    except DeviceError as exc:
        logger.warning("Returning sensor to standby failed. Details: %s", exc)

    pending = _setup_step("Error while reading sensor pending interrupts.", device.get_pending_interrupts)
    if pending & Interrupt.FIFO_OVERFLOWN:
        result.fifo_overflown = True
        logger.warning(
            "FIFO overflown while reading samples. Some samples were missing. Try reduce sample rate "
            "and/or increase I2C clock frequency and/or increase averaging value."
        )

    return result


def summarize(result: RunResult) -> None:
    requested = "endless" if result.requested_count == config.UNBOUNDED_SAMPLE_COUNT else result.requested_count
    logger.info(
        "Samples emitted: %d of %s (skipped: %d, read attempts: %d)",
        result.emitted,
        requested,
        result.skipped,
        result.attempts,
    )
    lat_array = np.array(result.latencies, dtype=float)
    if lat_array.size:
        logger.info(
            "Sample latency mean/p95/max: %.3f / %.3f / %.3f ms",
            float(np.mean(lat_array)) * 1000.0,
            float(np.percentile(lat_array, 95)) * 1000.0,
            float(np.max(lat_array)) * 1000.0,
        )
    if result.interrupted:
        logger.info("Acquisition was interrupted before the requested count was reached")
