"""Typed label keys and the standard keys used by events."""

from __future__ import annotations

import math
import struct
from typing import Any

from gosimports.label import Key, Label, LabelMap, of64, of_string, of_value


class Value(Key):
    """A key for untyped values."""

    def of(self, value: Any) -> Label:
        return of_value(self, value)

    def from_label(self, label: Label) -> Any:
        return label.unpack_value()

    def get(self, lm: LabelMap) -> Any:
        """Return the value for this key in ``lm``, or None."""
        found = lm.find(self)
        return self.from_label(found) if found.valid() else None

    def format(self, label: Label) -> str:
        value = self.from_label(label)
        return "<nil>" if value is None else str(value)


class Tag(Key):
    """A key whose presence is the whole of its information."""

    def new(self) -> Label:
        return of_value(self, None)

    def format(self, label: Label) -> str:
        return ""


class IntKey(Key):
    """A key for fixed-width integers packed into 64 bits."""

    BITS = 64
    SIGNED = True

    @classmethod
    def _bounds(cls) -> tuple[int, int]:
        if cls.SIGNED:
            half = 1 << (cls.BITS - 1)
            return -half, half - 1
        return 0, (1 << cls.BITS) - 1

    def of(self, value: int) -> Label:
        low, high = self._bounds()
        if not low <= value <= high:
            raise OverflowError(
                f"{value} is out of range for {type(self).__name__}"
            )
        return of64(self, value)

    def from_label(self, label: Label) -> int:
        raw = label.unpack64() & ((1 << self.BITS) - 1)
        if self.SIGNED and raw >= 1 << (self.BITS - 1):
            raw -= 1 << self.BITS
        return raw

    def format(self, label: Label) -> str:
        return str(self.from_label(label))


class Int(IntKey):
    BITS, SIGNED = 64, True


class Int8(IntKey):
    BITS, SIGNED = 8, True


class Int16(IntKey):
    BITS, SIGNED = 16, True


class Int32(IntKey):
    BITS, SIGNED = 32, True


class Int64(IntKey):
    BITS, SIGNED = 64, True


class UInt(IntKey):
    BITS, SIGNED = 64, False


class UInt8(IntKey):
    BITS, SIGNED = 8, False


class UInt16(IntKey):
    BITS, SIGNED = 16, False


class UInt32(IntKey):
    BITS, SIGNED = 32, False


class UInt64(IntKey):
    BITS, SIGNED = 64, False


class FloatKey(Key):
    """A key for IEEE floats packed by their bit pattern."""

    BITS = 64

    @property
    def _float_code(self) -> str:
        return "f" if self.BITS == 32 else "d"

    @property
    def _int_code(self) -> str:
        return "I" if self.BITS == 32 else "Q"

    def _narrow(self, value: float) -> float:
        packed = struct.pack("<" + self._float_code, value)
        return struct.unpack("<" + self._float_code, packed)[0]

    def of(self, value: float) -> Label:
        packed = struct.pack("<" + self._float_code, value)
        return of64(self, struct.unpack("<" + self._int_code, packed)[0])

    def from_label(self, label: Label) -> float:
        raw = label.unpack64() & ((1 << self.BITS) - 1)
        packed = struct.pack("<" + self._int_code, raw)
        return struct.unpack("<" + self._float_code, packed)[0]

    def format(self, label: Label) -> str:
        value = self.from_label(label)
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
        for digits in range(17):
            text = f"{value:.{digits}E}"
            try:
                if self._narrow(float(text)) == value:
                    return text
            except OverflowError:
                continue
        return f"{value:.16E}"


class Float32(FloatKey):
    BITS = 32


class Float64(FloatKey):
    BITS = 64


_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def _quote(text: str) -> str:
    parts = ['"']
    for ch in text:
        code = ord(ch)
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        elif code < 0x80:
            parts.append(f"\\x{code:02x}")
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


class String(Key):
    """A key for string values."""

    def of(self, value: str) -> Label:
        return of_string(self, value)

    def from_label(self, label: Label) -> str:
        return label.unpack_string()

    def get(self, lm: LabelMap) -> str:
        """Return the string for this key in ``lm``, or the empty string."""
        found = lm.find(self)
        return self.from_label(found) if found.valid() else ""

    def format(self, label: Label) -> str:
        return _quote(self.from_label(label))


class Boolean(Key):
    """A key for boolean values."""

    def of(self, value: bool) -> Label:
        return of64(self, 1 if value else 0)

    def from_label(self, label: Label) -> bool:
        return label.unpack64() > 0

    def format(self, label: Label) -> str:
        return "true" if self.from_label(label) else "false"


class Error(Key):
    """A key for exception values."""

    def of(self, value: BaseException | None) -> Label:
        return of_value(self, value)

    def from_label(self, label: Label) -> BaseException | None:
        value = label.unpack_value()
        return value if isinstance(value, BaseException) else None

    def get(self, lm: LabelMap) -> BaseException | None:
        """Return the exception for this key in ``lm``, or None."""
        found = lm.find(self)
        return self.from_label(found) if found.valid() else None

    def format(self, label: Label) -> str:
        return str(self.from_label(label))


MSG = String("message", "a readable message")
LABEL = Tag("label", "a label context marker")
START = String("start", "span start")
END = Tag("end", "a span end marker")
DETACH = Tag("detach", "a span detach marker")
ERR = Error("error", "an error that occurred")
METRIC = Tag("metric", "a metric event marker")