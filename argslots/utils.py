"""
argslots utilities (shared by every layer)

- UnsetType / Unset: "not provided", distinct from None. Falsey, sealed,
  and usable on either side of `|` in isinstance checks (str | Unset).
- coalesce(value, default=None): Unset becomes default; everything else,
  falsey values included, is returned untouched.
- rename(callable, name) / @rename("name"): give generated callables
  readable __name__/__qualname__ values.
- mirror("attr"): read-only property over self._attr. Containers come back
  as fresh copies.
- quote(text): double-quoted text escaped the way Go's %q escapes it,
  control characters included. Fault messages are built with it.

    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> quote('my-arg')
    '"my-arg"'
"""
import builtins
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel; UnsetType() always returns the same object.
    """
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def _union(self, other, /):
        try:
            return other | UnsetType
        except TypeError:
            return NotImplemented

    __or__ = __ror__ = _union

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"


def coalesce(object, default=None, /):
    """
    Return default when object is Unset, object otherwise.
    """
    return default if object is Unset else object


def _relabel(callable, name, /):
    if not builtins.callable(callable):
        raise TypeError("rename() target must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    try:
        callable.__name__ = callable.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError("rename() target does not accept a new name") from None
    return callable


def rename(*parameters):
    """
    Relabel a callable in place, or build a decorator that will.

    - rename(callable, name) -> callable
    - rename(name) -> decorator
    """
    if len(parameters) == 2:
        return _relabel(*parameters)
    if len(parameters) != 1:
        raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))

    name, = parameters
    if not isinstance(name, str):
        raise TypeError("@rename() argument must be a string")

    def decorator(callable, /):
        return _relabel(callable, name)

    return _relabel(decorator, "rename")


def _detach(value):
    # Strings are sequences too; they are immutable and stay as they are.
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return {key: _detach(item) for key, item in value.items()}
    if isinstance(value, Sequence):
        return [_detach(item) for item in value]
    if isinstance(value, Set):
        return {_detach(item) for item in value}
    return value


def mirror(name, /):
    """
    Read-only property exposing self._{name}; containers are copied on read.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")
    field = "_" + name
    return property(rename(lambda self: _detach(getattr(self, field)), name))


_ESCAPES = {
    "\a": r"\a",
    "\b": r"\b",
    "\f": r"\f",
    "\n": r"\n",
    "\r": r"\r",
    "\t": r"\t",
    "\v": r"\v",
    "\\": r"\\",
    '"': r"\"",
}


def _escape(char):
    if (escape := _ESCAPES.get(char)) is not None:
        return escape
    if char.isprintable():
        return char
    if (point := ord(char)) < 0x20 or point == 0x7F:
        return "\\x%02x" % point
    if point < 0x10000:
        return "\\u%04x" % point
    return "\\U%08x" % point


def quote(text, /):
    """
    Return text double-quoted with Go's %q escapes.

    Printable characters are kept as they are. The named escapes (\\n, \\t, ...)
    come first, then \\xNN for the other ASCII controls and \\uNNNN or
    \\UNNNNNNNN for everything else that is not printable.
    """
    if not isinstance(text, str):
        raise TypeError("quote() argument must be a string")
    return '"%s"' % "".join(map(_escape, text))


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "quote",
    "UnsetType",
    "Unset",
)
