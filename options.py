"""Command line option validation for the MAX40080 utility.

Each flag is first collected as a plain string by argparse, then converted by
its own parse function. Cross-field rules (board presets versus explicit bus
settings, the fixed sample rate for simultaneous current and voltage
measurement) are checked once every flag has been consumed, so the order of
the flags on the command line never changes the outcome.
"""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass
from enum import Enum
from string import hexdigits
from typing import Optional, Sequence

import config
from devices.base_device import ADC_SAMPLE_RATES_KSPS, DIGITAL_FILTER_SAMPLES, AdcSampleRate
from devices.device_registry import BoardPreset, BoardRegistry

SAMPLE_RATE_TOLERANCE_KSPS = 0.01

_INT_RE = re.compile(r"\s*[+-]?\d+")
_FLOAT_RE = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class ValidationError(Exception):
    """Raised for any invalid or inconsistent command line input"""

    def __init__(self, message: str, usage: str = ""):
        super().__init__(message)
        self.usage = usage


class Variable(str, Enum):
    CURRENT = "current"
    VOLTAGE = "voltage"
    BOTH = "both"


@dataclass(frozen=True)
class Options:
    board: Optional[str] = None
    i2c_address: Optional[int] = None
    i2c_controller: Optional[int] = None
    shunt_resistor: Optional[float] = None
    variable: Optional[Variable] = None
    sample_rate_index: Optional[int] = None
    averaging_index: Optional[int] = None
    sample_count: int = config.DEFAULT_SAMPLE_COUNT
    raw_output: bool = False
    log_level: str = config.DEFAULT_LOG_LEVEL


def _format_choices(values: Sequence[object]) -> str:
    items = [str(value) for value in values]
    return ", ".join(items[:-1]) + " and " + items[-1]


def _parse_int(text: str, message: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValidationError(message)
    return int(text)


def _parse_float(text: str, message: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise ValidationError(message)
    return float(text)


def parse_board(text: str) -> BoardPreset:
    try:
        return BoardRegistry.get_board(text)
    except ValueError:
        supported = _format_choices([f"'{name}'" for name in BoardRegistry.list_available_boards()])
        raise ValidationError(f"Unknown board '{text}'. Supported boards are {supported}.") from None


def parse_i2c_address(text: str) -> int:
    if len(text) != 2 or any(char not in hexdigits for char in text):
        raise ValidationError(
            "Invalid I2C address value. I2C address must be entered as 2 digit hex value without any prefix."
        )
    high, low = (int(char, 16) for char in text)
    return high * 16 + low


def parse_i2c_controller(text: str) -> int:
    return _parse_int(text, "Invalid I2C Controller value.")


def parse_shunt(text: str) -> float:
    shunt = _parse_float(text, "Invalid shunt resistor value.")
    if not shunt > 0:
        raise ValidationError("Invalid shunt resistor value. Shunt resistance must be a positive number of ohms.")
    return shunt


def parse_variable(text: str) -> Variable:
    try:
        return Variable(text)
    except ValueError:
        raise ValidationError("Invalid variable value. Allowed values are current, voltage and both.") from None


def parse_sample_rate(text: str) -> int:
    """Return the index of the supported sample rate (in ksps) matching text"""
    sample_rate = _parse_float(text, "Invalid sample rate value.")
    for index, supported in enumerate(ADC_SAMPLE_RATES_KSPS):
        # Rounded so that a difference of exactly 0.01 survives binary floats
        if round(abs(sample_rate - supported), 6) <= SAMPLE_RATE_TOLERANCE_KSPS:
            return index
    raise ValidationError(
        f"Invalid sample rate. Allowed sample rates are {_format_choices(ADC_SAMPLE_RATES_KSPS)}."
    )


def parse_averaging(text: str) -> int:
    averaging = _parse_int(text, "Invalid averaging value.")
    if averaging not in DIGITAL_FILTER_SAMPLES:
        raise ValidationError(
            "Invalid averaging value. Allowed averaging modes are 1 (no averaging), 8, 16, 32, 64 and 128."
        )
    return DIGITAL_FILTER_SAMPLES.index(averaging)


def parse_count(text: str) -> int:
    count = _parse_int(text, "Invalid samples count value.")
    # -1 means indefinitely
    if count < config.UNBOUNDED_SAMPLE_COUNT or count == 0:
        raise ValidationError("Invalid samples count value. Use a positive number or -1 for endless sampling.")
    return count


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        raise ValidationError(message, usage=self.format_usage())


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="max40080-util",
        description="Utility for controlling MAX40080 sensor connected to the I2C bus.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-b", "--board",
        metavar="BOARD",
        help="Specify board. Supported boards are 'mikroe-current-6-click' and 'MAX40080EVSYS'.",
    )
    parser.add_argument(
        "-c", "--i2c-controler", "--i2c-controller",
        dest="i2c_controller",
        metavar="N",
        help="Specify I2C controller number. Device /dev/i2c-N will be used where N is value of this parameter.",
    )
    parser.add_argument(
        "-a", "--i2c-address",
        dest="i2c_address",
        metavar="HEX",
        help="Specify I2C address of MAX40080 device. Enter 7-bit address as a 2 digit HEX number with no prefix.",
    )
    parser.add_argument(
        "-r", "--shunt",
        metavar="FLOAT",
        help="Specify resistance of shunt resistor used for current sensing (float value in ohms).",
    )
    parser.add_argument(
        "-v", "--variable",
        metavar="current|voltage|both",
        help="Specify variable to measure.",
    )
    parser.add_argument(
        "-s", "--sample-rate",
        dest="sample_rate",
        metavar="FLOAT",
        help="Specify sample rate in kHz.",
    )
    parser.add_argument(
        "-f", "--averaging",
        metavar="N",
        help="Specify number of averaged samples.",
    )
    parser.add_argument(
        "-n", "--count",
        metavar="N",
        help="Specify number of continuously collected samples (-1 collects until interrupted).",
    )
    parser.add_argument(
        "-w", "--raw",
        action="store_true",
        help="Output raw values received from sensor.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=config.DEFAULT_LOG_LEVEL,
        help=f"Logger level (default: {config.DEFAULT_LOG_LEVEL}).",
    )
    parser.add_argument("--version", action="version", version=config.PROGRAM_VERSION)
    return parser


def _build_options(args: argparse.Namespace) -> Options:
    # Exclusivity is reported before any value is parsed
    if args.board is not None:
        if args.shunt is not None:
            raise ValidationError(
                "Board (-b/--board) and shunt resistor (-r/--shunt) cannot be specified together."
            )
        if args.i2c_address is not None:
            raise ValidationError(
                "Board (-b/--board) and I2C address (-a/--i2c-address) cannot be specified together."
            )
        preset = parse_board(args.board)
        i2c_address = preset.i2c_address
        shunt_resistor = preset.shunt_resistor
    else:
        i2c_address = parse_i2c_address(args.i2c_address) if args.i2c_address is not None else None
        shunt_resistor = parse_shunt(args.shunt) if args.shunt is not None else None

    variable = parse_variable(args.variable) if args.variable is not None else None
    sample_rate_index = parse_sample_rate(args.sample_rate) if args.sample_rate is not None else None
    if (
        variable is Variable.BOTH
        and sample_rate_index is not None
        and sample_rate_index != AdcSampleRate.BOTH_AT_0_5_KSPS
    ):
        raise ValidationError(
            "You can't measure at specified sample rate when measurement of both current and voltage is "
            "selected. Allowed sample rate in this configuration is 0.5 kHz."
        )

    return Options(
        board=args.board,
        i2c_address=i2c_address,
        i2c_controller=parse_i2c_controller(args.i2c_controller) if args.i2c_controller is not None else None,
        shunt_resistor=shunt_resistor,
        variable=variable,
        sample_rate_index=sample_rate_index,
        averaging_index=parse_averaging(args.averaging) if args.averaging is not None else None,
        sample_count=parse_count(args.count) if args.count is not None else config.DEFAULT_SAMPLE_COUNT,
        raw_output=args.raw,
        log_level=args.log_level,
    )


def parse_options(argv: Optional[Sequence[str]] = None) -> Options:
    """Parse and cross-validate command line arguments.

    Raises ValidationError with a user facing message (and the usage line)
    when any flag is malformed or the combination is inconsistent.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return _build_options(args)
    except ValidationError as exc:
        raise ValidationError(str(exc), usage=parser.format_usage()) from None
