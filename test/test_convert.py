"""Tests of the conversion of configuration strings."""

import pathlib
from typing import List, Optional, Tuple

import numpy as np
import pytest

from plugin_samples import Level
from nodebuild.errors import ConversionError
from nodebuild.plugins.convert import TypeConverterRegistry, convert, default_converters


@pytest.mark.parametrize(
    "value, target, expected",
    [
        ("42", int, 42),
        ("0x10", int, 16),
        ("1e3", int, 1000),
        ("2.5", float, 2.5),
        ("text", str, "text"),
        ("TRUE", bool, True),
        ("off", bool, False),
        ("/tmp/log", pathlib.Path, pathlib.Path("/tmp/log")),
        ("error", Level, Level.ERROR),
        ("7", Optional[int], 7),
        ("1, 2,3", List[int], [1, 2, 3]),
        ("a,b", Tuple[str, ...], ("a", "b")),
        ("a, b", list, ["a", "b"]),
    ],
)
def test_convert(value, target, expected):
    """Tests the built-in conversions."""
    assert convert(value, target) == expected


def test_convert_array():
    """Tests the conversion to a numpy array."""
    array = convert("1.5, 2 3", np.ndarray)

    assert isinstance(array, np.ndarray)
    assert array.dtype == np.float64
    np.testing.assert_allclose(array, [1.5, 2.0, 3.0])


def test_passthrough():
    """Non-strings, None and unknown targets are left alone."""
    marker = object()

    assert convert(None, int) is None
    assert convert(marker, int) is marker
    assert convert("value", object) == "value"
    assert convert(3, float) == 3


@pytest.mark.parametrize(
    "value, target",
    [("one", int), ("1.5", int), ("maybe", bool), ("fatal", Level), ("x", float)],
)
def test_convert_errors(value, target):
    """Tests that bad values raise a conversion error naming the value."""
    with pytest.raises(ConversionError) as excinfo:
        convert(value, target)

    assert excinfo.value.value == value
    assert excinfo.value.target is target
    assert repr(value) in str(excinfo.value)


def test_custom_converter():
    """Tests the registration of an additional converter."""
    registry = default_converters()
    registry.register(complex, complex)

    assert registry.supports(complex)
    assert registry.convert("1+2j", complex) == 1 + 2j
    assert not TypeConverterRegistry().supports(complex)
