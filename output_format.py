"""Text rendering of single sensor readings, one line per sample."""

from dataclasses import dataclass
from typing import Optional, Union

from options import Variable

Number = Union[int, float]


@dataclass(frozen=True)
class Sample:
    variable: Variable
    raw: bool
    current: Optional[Number] = None
    voltage: Optional[Number] = None


def _format_current(sample: Sample) -> str:
    if sample.raw:
        return f"{int(sample.current)}"
    return f"{sample.current:.6f}A"


def _format_voltage(sample: Sample) -> str:
    if sample.raw:
        return f"{int(sample.voltage)}"
    return f"{sample.voltage:.3f}V"


def format_sample(sample: Sample) -> str:
    """Render raw codes as bare integers, physical values with their unit"""
    if sample.variable is Variable.CURRENT:
        return _format_current(sample)
    if sample.variable is Variable.VOLTAGE:
        return _format_voltage(sample)
    return f"{_format_current(sample)}; {_format_voltage(sample)}"
