"""Conversion of configuration strings to typed values."""

import enum
import pathlib
import re
import types
import typing
from typing import Any, Callable, Dict

import numpy as np

from nodebuild.errors import ConversionError

__all__ = ["TypeConverterRegistry", "convert", "default_converters"]

# Accepted boolean spellings
_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")

# Union origins, `X | None` included
_UNIONS = tuple(u for u in (typing.Union, getattr(types, "UnionType", None)) if u)

# Separator of list and array items
_SEP = re.compile(r"[,\s]+")


def _to_bool(value):
    lower = value.strip().lower()
    if lower in _TRUE:
        return True
    if lower in _FALSE:
        return False
    raise ConversionError(value, bool, f"must be one of {_TRUE + _FALSE}")


def _to_int(value):
    # Accept integral floats such as '1e3', reject '1.5'
    try:
        return int(value, 0)
    except ValueError:
        number = float(value)
        if not number.is_integer():
            raise
        return int(number)


def _to_array(value):
    items = [v for v in _SEP.split(value.strip()) if v]
    return np.array([float(v) for v in items], dtype=np.float64)


def _split(value):
    return [v.strip() for v in value.split(",") if v.strip()]


class TypeConverterRegistry:
    """Maps target types onto functions converting a string to them.

    Enumerations, optional types and homogeneous lists/tuples are handled
    generically on top of the registered converters.
    """

    def __init__(self, converters=None):
        self._converters: Dict[Any, Callable[[str], Any]] = dict(converters or {})

    def register(self, target, func):
        """Registers the converter of a target type.

        Parameters
        ----------
        target : type
            Type produced by the converter
        func : callable
            Function which takes a string and returns an instance of `target`
        """
        self._converters[target] = func

    def supports(self, target):
        return target in self._converters

    def convert(self, value, target):
        """Converts a value to a target type.

        Parameters
        ----------
        value : object
            Value to convert. Only strings are converted, other objects are
            returned untouched.
        target : type
            Requested type

        Returns
        -------
        object
            Converted value

        Raises
        ------
        ConversionError
            If the string cannot be converted to the requested type
        """
        if value is None or not isinstance(value, str) or target in (Any, str, None):
            return value

        # Unwrap Optional[X]
        origin = typing.get_origin(target)
        args = typing.get_args(target)
        if origin in _UNIONS:
            args = [a for a in args if a is not type(None)]
            if len(args) == 1:
                return self.convert(value, args[0])
            return value

        # Homogeneous sequences of items
        if origin in (list, tuple) or target in (list, tuple):
            item_type = args[0] if args else str
            items = [self.convert(v, item_type) for v in _split(value)]
            return tuple(items) if (origin or target) is tuple else items

        if isinstance(target, type) and issubclass(target, enum.Enum):
            for member in target:
                if member.name.lower() == value.strip().lower():
                    return member
            raise ConversionError(
                value, target, f"must be one of {[m.name for m in target]}"
            )

        func = self._converters.get(target)
        if func is None:
            return value

        try:
            return func(value)
        except ConversionError:
            raise
        except (TypeError, ValueError) as err:
            raise ConversionError(value, target, str(err)) from err


def default_converters():
    """Returns a registry loaded with the built-in converters.

    Returns
    -------
    TypeConverterRegistry
        Registry which converts to str, int, float, bool, pathlib.Path and
        numpy.ndarray, plus enumerations, optionals, lists and tuples
    """
    return TypeConverterRegistry(
        {
            str: str,
            int: _to_int,
            float: float,
            bool: _to_bool,
            pathlib.Path: pathlib.Path,
            np.ndarray: _to_array,
        }
    )


# Shared registry used by the built-in visitors
CONVERTERS = default_converters()


def convert(value, target):
    """Converts a value with the shared converter registry."""
    return CONVERTERS.convert(value, target)
