import pytest

from plantshadow.moisture import (
    HumidityRange,
    MoistureSensor,
    range_to_string,
    string_to_range,
)


class Reader:
    def __init__(self, value=0):
        self.value = value

    def __call__(self):
        return self.value


@pytest.mark.parametrize(
    "humidity_range, name",
    [
        (HumidityRange.VERY_DRY, "MUY_SECO"),
        (HumidityRange.DRY, "SECO"),
        (HumidityRange.OPTIMAL, "OPTIMO"),
        (HumidityRange.WET, "HUMEDO"),
        (HumidityRange.VERY_WET, "MUY_HUMEDO"),
        (HumidityRange.UNKNOWN, "DESCONOCIDO"),
    ],
)
def test_range_names(humidity_range, name):
    assert range_to_string(humidity_range) == name


@pytest.mark.parametrize("humidity_range", list(HumidityRange))
def test_range_name_round_trip(humidity_range):
    assert string_to_range(range_to_string(humidity_range)) is humidity_range


@pytest.mark.parametrize("text", ["", "seco", "WET", "DESCONOCIDO"])
def test_unrecognised_names_are_unknown(text):
    assert string_to_range(text) is HumidityRange.UNKNOWN


def test_sensor_starts_without_reading():
    sensor = MoistureSensor(Reader(), 3000, 1200)
    assert sensor.raw_value == 0
    assert sensor.percentage == 0
    assert sensor.current_range is HumidityRange.UNKNOWN
    assert sensor.range_string() == "DESCONOCIDO"


def test_equal_calibration_rejected():
    with pytest.raises(ValueError):
        MoistureSensor(Reader(), 1000, 1000)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (0, HumidityRange.VERY_DRY),
        (20, HumidityRange.VERY_DRY),
        (21, HumidityRange.DRY),
        (40, HumidityRange.DRY),
        (41, HumidityRange.OPTIMAL),
        (70, HumidityRange.OPTIMAL),
        (71, HumidityRange.WET),
        (90, HumidityRange.WET),
        (91, HumidityRange.VERY_WET),
        (100, HumidityRange.VERY_WET),
    ],
)
def test_range_boundaries(raw, expected):
    sensor = MoistureSensor(Reader(raw), 0, 100)
    sensor.update()
    assert sensor.raw_value == raw
    assert sensor.percentage == raw
    assert sensor.current_range is expected


def test_inverted_calibration_end_points():
    reader = Reader(3000)
    sensor = MoistureSensor(reader, 3000, 1200)
    sensor.update()
    assert sensor.percentage == 0
    assert sensor.range_string() == "MUY_SECO"
    reader.value = 1200
    sensor.update()
    assert sensor.percentage == 100
    assert sensor.range_string() == "MUY_HUMEDO"


@pytest.mark.parametrize("raw", [4095, 3500, 0, 500])
def test_percentage_is_clamped(raw):
    sensor = MoistureSensor(Reader(raw), 3000, 1200)
    sensor.update()
    assert 0 <= sensor.percentage <= 100
    assert sensor.raw_value == raw


def test_percentage_truncates():
    sensor = MoistureSensor(Reader(1), 0, 3)
    sensor.update()
    assert sensor.percentage == 33


def test_drier_reading_never_gives_higher_percentage():
    reader = Reader()
    sensor = MoistureSensor(reader, 3000, 1200)
    previous = None
    for raw in range(1000, 3200, 37):
        reader.value = raw
        sensor.update()
        if previous is not None:
            assert sensor.percentage <= previous
        previous = sensor.percentage