"""Soil moisture readings and the humidity ranges reported to the shadow."""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum


class HumidityRange(IntEnum):
    """Coarse soil humidity band."""

    UNKNOWN = 0
    VERY_DRY = 1
    DRY = 2
    OPTIMAL = 3
    WET = 4
    VERY_WET = 5


_RANGE_NAMES = {
    HumidityRange.VERY_DRY: "MUY_SECO",
    HumidityRange.DRY: "SECO",
    HumidityRange.OPTIMAL: "OPTIMO",
    HumidityRange.WET: "HUMEDO",
    HumidityRange.VERY_WET: "MUY_HUMEDO",
}
_UNKNOWN_NAME = "DESCONOCIDO"
_NAMES_TO_RANGE = {name: rng for rng, name in _RANGE_NAMES.items()}

# Upper percentage bound (inclusive) of each range, checked in order.
_THRESHOLDS = (
    (20, HumidityRange.VERY_DRY),
    (40, HumidityRange.DRY),
    (70, HumidityRange.OPTIMAL),
    (90, HumidityRange.WET),
)


def range_to_string(humidity_range: HumidityRange) -> str:
    """Name of a range as it appears in the shadow document."""
    return _RANGE_NAMES.get(humidity_range, _UNKNOWN_NAME)


def string_to_range(text: str) -> HumidityRange:
    """Parse a shadow range name; unrecognised names give ``UNKNOWN``."""
    return _NAMES_TO_RANGE.get(text, HumidityRange.UNKNOWN)


def _scale(value: int, in_min: int, in_max: int, out_min: int, out_max: int) -> int:
    """Linear integer rescaling that truncates toward zero."""
    numerator = (value - in_min) * (out_max - out_min)
    denominator = in_max - in_min
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        quotient = -quotient
    return quotient + out_min


def _classify(percentage: int) -> HumidityRange:
    for upper, humidity_range in _THRESHOLDS:
        if percentage <= upper:
            return humidity_range
    return HumidityRange.VERY_WET


class MoistureSensor:
    """Capacitive soil sensor calibrated between a dry and a wet raw reading."""

    def __init__(self, read_raw: Callable[[], int], dry_value: int, wet_value: int) -> None:
        if dry_value == wet_value:
            raise ValueError("dry and wet calibration values must differ")
        self._read_raw = read_raw
        self.dry_value = dry_value
        self.wet_value = wet_value
        self.raw_value = 0
        self.percentage = 0
        self.current_range = HumidityRange.UNKNOWN

    def update(self) -> None:
        """Take a reading and recompute the percentage and range."""
        self.raw_value = int(self._read_raw())
        scaled = _scale(self.raw_value, self.dry_value, self.wet_value, 0, 100)
        self.percentage = min(max(scaled, 0), 100)
        self.current_range = _classify(self.percentage)

    def range_string(self) -> str:
        """Shadow name of the current range."""
        return range_to_string(self.current_range)