#!/usr/bin/env python3
"""MAX40080 utility: configure the sensor and stream current/voltage samples."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

import config
from acquisition import AcquisitionError, run_acquisition, summarize
from devices.i2c_bus import I2CBus
from devices.max40080 import MAX40080
from options import Options, ValidationError, parse_options


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format=config.LOG_FORMAT,
        stream=sys.stderr,
    )


def _build_device(options: Options) -> MAX40080:
    controller = options.i2c_controller if options.i2c_controller is not None else config.DEFAULT_I2C_CONTROLLER
    address = options.i2c_address if options.i2c_address is not None else config.DEFAULT_I2C_ADDRESS
    shunt = options.shunt_resistor if options.shunt_resistor is not None else config.DEFAULT_SHUNT_RESISTOR
    return MAX40080(I2CBus(controller, address), shunt_resistor=shunt)


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        options = parse_options(argv)
    except ValidationError as exc:
        sys.stderr.write(exc.usage)
        sys.stderr.write(f"max40080-util: error: {exc}\n")
        return 1

    _configure_logging(options.log_level)
    device = _build_device(options)
    try:
        result = run_acquisition(device, options, sys.stdout)
    except AcquisitionError as exc:
        logging.error("%s", exc)
        return 1
    finally:
        device.deinit()

    summarize(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
