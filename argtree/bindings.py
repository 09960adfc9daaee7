r"""
Argtree typed bindings: text -> typed destination writes.

Overview
- Value types (tagged variants, each with one convert(text) operation)
  • String: raw text, verbatim, never fails.
  • SignedInt(width): 8/16/32/64-bit signed decimal integers (Int8 … Int64).
  • UnsignedInt(width): 8/16/32/64-bit unsigned decimal integers (UInt8 … UInt64).
  • Float(width): 32/64-bit floating point (Float32, Float64).
  • Bool: boolean literals; an option bound to Bool treats a bare flag as True.

- Binding(type, into)
  • Closes over one destination and exposes bind(value, context) -> error | None.
  • A successful conversion writes the destination exactly once; a failed one
    writes nothing and returns a ConversionError naming the option/argument
    and the offending text.

- Destinations
  • Any one-argument callable works as a destination.
  • Slot is a ready-made holder (slot.value); Slot.attribute(obj, name) and
    Slot.item(mapping, key) write into existing objects.

Conversion policy
- Integers: the whole text must match [+-]?[0-9]+ (unsigned: \+?[0-9]+) and the
  value must fit the width; no whitespace, no digit-group underscores.
- Floats: the whole text must be a decimal/scientific literal, inf/infinity or
  nan (case-insensitive); Float32 rounds to single precision and rejects
  finite values beyond its range.
- Booleans: true/false, yes/no, on/off, 1/0 (case-insensitive).
"""
import functools
import logging
import re
import struct

from .faults import ConversionError, FaultCode, MissingValueError, getdoc
from .utils import Unset, rename

logger = logging.getLogger(__name__)

_SIGNED = re.compile(r"[+-]?[0-9]+")
_UNSIGNED = re.compile(r"\+?[0-9]+")
_FLOATING = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_BOOLEANS = {
    "true": True, "yes": True, "on": True, "1": True,
    "false": False, "no": False, "off": False, "0": False,
}
_WIDTHS = (8, 16, 32, 64)


class ValueType:
    """
    Base of the value-type variants.

    Subclasses define:
    - typename: label used in messages and help ("int32", "float64", ...).
    - metavar: placeholder shown in help ("INT", "FLOAT", ...).
    - implicit: value written when an option receives no value (Unset when
      the type requires one).
    - convert(text): return the typed value, raise ValueError when the text is
      not a literal of the type, OverflowError when it is but does not fit.
    """
    typename = "value"
    metavar = "VALUE"
    implicit = Unset

    def convert(self, text, /):
        raise NotImplementedError

    def __repr__(self):
        return self.typename


class StringType(ValueType):
    typename = "string"
    metavar = "TEXT"

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def convert(self, text, /):
        return text


class SignedInt(ValueType):
    metavar = "INT"

    @functools.cache
    def __new__(cls, width, /):
        if width not in _WIDTHS:
            raise ValueError(f"{cls.__name__} width must be one of {', '.join(map(str, _WIDTHS))}")
        self = super().__new__(cls)
        self.width = width
        self.minimum = -(1 << (width - 1))
        self.maximum = (1 << (width - 1)) - 1
        self.typename = f"int{width}"
        return self

    def convert(self, text, /):
        if not _SIGNED.fullmatch(text):
            raise ValueError(text)
        value = int(text, 10)
        if not self.minimum <= value <= self.maximum:
            raise OverflowError(text)
        return value


class UnsignedInt(ValueType):
    metavar = "UINT"

    @functools.cache
    def __new__(cls, width, /):
        if width not in _WIDTHS:
            raise ValueError(f"{cls.__name__} width must be one of {', '.join(map(str, _WIDTHS))}")
        self = super().__new__(cls)
        self.width = width
        self.minimum = 0
        self.maximum = (1 << width) - 1
        self.typename = f"uint{width}"
        return self

    def convert(self, text, /):
        if not _UNSIGNED.fullmatch(text):
            raise ValueError(text)
        value = int(text, 10)
        if value > self.maximum:
            raise OverflowError(text)
        return value


class Float(ValueType):
    metavar = "FLOAT"

    @functools.cache
    def __new__(cls, width, /):
        if width not in (32, 64):
            raise ValueError(f"{cls.__name__} width must be one of 32, 64")
        self = super().__new__(cls)
        self.width = width
        self.typename = f"float{width}"
        return self

    def convert(self, text, /):
        if not _FLOATING.fullmatch(text):
            raise ValueError(text)
        value = float(text)
        if self.width == 32:
            # struct rejects finite values beyond single precision range
            try:
                value, = struct.unpack("=f", struct.pack("=f", value))
            except OverflowError:
                raise OverflowError(text) from None
        return value


class BoolType(ValueType):
    typename = "bool"
    metavar = "BOOL"
    implicit = True

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def convert(self, text, /):
        try:
            return _BOOLEANS[text.lower()]
        except KeyError:
            raise ValueError(text) from None


String = StringType()
Bool = BoolType()
Int8, Int16, Int32, Int64 = map(SignedInt, _WIDTHS)
UInt8, UInt16, UInt32, UInt64 = map(UnsignedInt, _WIDTHS)
Float32, Float64 = Float(32), Float(64)


class Slot:
    """
    Minimal destination: remembers the last value written.

        jobs = Slot(1)
        Option("j", "jobs", type=Int32, into=jobs)
        ...
        jobs.value
    """
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def __call__(self, value, /):
        self.value = value

    def __repr__(self):
        return f"Slot({self.value!r})"

    @staticmethod
    def attribute(object, name, /):
        """
        Destination writing `name` on `object`.
        """
        if not isinstance(name, str):
            raise TypeError("Slot.attribute() second argument must be a string")

        @rename(f"set_{name}")
        def setter(value):
            setattr(object, name, value)

        return setter

    @staticmethod
    def item(mapping, key, /):
        """
        Destination writing mapping[key].
        """

        @rename(f"set_{key}")
        def setter(value):
            mapping[key] = value

        return setter


class Binding:
    """
    A value type closed over one destination.

    bind(value, context) converts and writes; it returns None on success or a
    ParseError (never raises for bad user input).
    """
    __slots__ = ("type", "into")

    def __init__(self, type, into, /):
        if not isinstance(type, ValueType):
            raise TypeError("Binding() first argument must be a value type")
        if not callable(into):
            raise TypeError("Binding() second argument must be callable")
        self.type = type
        self.into = into

    def __repr__(self):
        return f"Binding({self.type!r}, {self.into!r})"

    def bind(self, value, context, /):
        if value is None:
            if self.type.implicit is Unset:
                return MissingValueError(
                    "%s '%s' expects a value, none were given" % (context.kind, context.name),
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    name=context.name,
                    index=context.offset,
                    hint="pass a %s value" % self.type.typename,
                    docs=getdoc(FaultCode.MISSING_VALUE),
                )
            self.into(self.type.implicit)
            return None

        try:
            converted = self.type.convert(value)
        except OverflowError:
            return ConversionError(
                "%s '%s' value '%s' is out of %s range" % (context.kind, context.name, value, self.type.typename),
                title="value out of range",
                code=FaultCode.OUT_OF_RANGE,
                name=context.name,
                index=context.offset,
                value=value,
                hint=_range_hint(self.type),
                docs=getdoc(FaultCode.OUT_OF_RANGE),
            )
        except ValueError:
            return ConversionError(
                "%s '%s' is not %s value: '%s'" % (context.kind, context.name, self.type.typename, value),
                title="invalid value",
                code=FaultCode.UNCONVERTIBLE_VALUE,
                name=context.name,
                index=context.offset,
                value=value,
                hint="pass a %s value" % self.type.typename,
                docs=getdoc(FaultCode.UNCONVERTIBLE_VALUE),
            )

        logger.debug("bound %s %r to %r", context.kind, context.name, converted)
        self.into(converted)
        return None


def _range_hint(type):
    if isinstance(type, SignedInt | UnsignedInt):
        return "pass an integer between %d and %d" % (type.minimum, type.maximum)
    return "pass a smaller %s value" % type.typename


__all__ = (
    # Value types
    "ValueType",
    "SignedInt",
    "UnsignedInt",
    "Float",
    "String",
    "Bool",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",

    # Destinations and bindings
    "Slot",
    "Binding",
)
