r"""
argslots argument slots: specifications, decorator and ready-made binders.

Overview
- Spec
  • Argument: one declared expectation about a position (or a run of
    positions) in the positional token list: arity, optionality and a bind
    callback.
  • Binding: the outcome a bind callback reports (CONSUMED or DECLINED);
    failures are exceptions.

- Decorator
  • @argument(...): build an Argument and bind the decorated function as its
    callback.

- Binders (writers into caller-owned storage)
  • namearg(target, field): one required token → target.field
  • namesarg(target, field): every remaining token → target.field (a list,
    possibly empty)
  • passthrough(target, field): every raw token after a bare "--" →
    target.field (left untouched when there is no "--")

Arity
- arity > 0: consume exactly that many tokens.
- arity < 0: capture every token not yet claimed (conventionally -1).
- arity == 0: a peek. The slot is called at the cursor (even past the last
  token) and consumes nothing, whatever it answers.

Bind contract
- Called as callback(tokens, offset) where tokens is the whole positional
  list and offset is where this slot's tokens begin.
- Return None or Binding.CONSUMED to consume, Binding.DECLINED to leave the
  tokens for the next slot, raise to fail (argslots.faults.BindError is the
  conventional type, but anything raised propagates unchanged).
- A failing match does not roll back earlier binds, so callbacks should only
  write to their own destination.

Quick example:
    >>> from types import SimpleNamespace
    >>> from argslots import positionals, namearg, namesarg
    >>> options = SimpleNamespace()
    >>> validate = positionals(namearg(options, "name"), namesarg(options, "rest"))
    >>> validate(["my-app", "a", "b"])
    >>> options.name, options.rest
    ('my-app', ['a', 'b'])
"""
import builtins
import enum
import functools
import operator
import re
from collections.abc import MutableMapping
from types import MethodType

from rich.text import Text

from .utils import *


class Binding(enum.Enum):
    """
    Outcome of a bind callback.

    - CONSUMED: the slot owns its tokens; the cursor moves past them.
    - DECLINED: the slot inspected its tokens and does not own them; they are
      offered, at the same offset, to the next slot. Capture slots cannot
      decline: their tokens are consumed either way.
    """
    CONSUMED = "consumed"
    DECLINED = "declined"

    def __repr__(self):
        return f"{type(self).__name__}.{self.name}"


class ArgumentType(type):
    """
    Metaclass giving argument specs a stable repr and read-only metadata.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      over the private backing field (see mirror()).
    - Provide __repr__/__rich_repr__ built from __displayable__ (or
      __introspectable__ when unset).
    - Seal factory-backed classes (one per constructed spec) against
      subclassing so a spec's shape never changes after construction.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
                "__module__": "dynamic-factory::arguments",
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(arity=1, optional=False, metavar='NAME', descr=None)
            """
            fields = ", ".join("%s=%r" % field for field in self.__rich_repr__())
            return "%s(%s)" % (type(self).__typename__, fields)
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("factory", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize argument metadata in place.

    - arity: int (bool rejected).
    - bind: Unset or callable.
    - metavar: Unset or non-empty string; defaults to "ARG" (or "ARGS" for
      captures).
    - descr: Unset, non-empty string or rich Text; defaults to None.

    Raises
    - TypeError: wrong types.
    - ValueError: blank strings.
    """
    if isinstance(arity := metadata["arity"], bool) or not isinstance(arity, int):
        raise TypeError(f"{cls.__typename__} 'arity' must be an integer")

    if not callable(metadata["bind"]) and metadata["bind"] is not Unset:
        raise TypeError(f"{cls.__typename__} 'bind' must be callable")

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar, "ARGS" if arity < 0 else "ARG")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


class Argument(metaclass=ArgumentType):
    """
    Positional argument slot.

    An Argument holds an arity, an optional flag and a bind callback. All the
    semantics live in the matcher (argslots.matcher); calling a spec simply
    runs its callback and normalizes the outcome to a Binding.

    Properties
    - arity, optional, metavar, descr: read-only mirrors of the sanitized
      metadata.
    - capture: True for negative arity.
    - usage: a compact usage fragment, e.g. "NAME", "[NAME]", "[ARGS...]".
    """

    __introspectable__ = (
        "arity",
        "optional",
        "metavar",
        "descr",
    )

    def __new__(
            cls,
            arity=1,
            /,
            optional=False,
            bind=Unset,
            *,
            metavar=Unset,
            descr=Unset,
    ):
        """
        Construct an Argument spec.

        Parameters
        - arity: int
          Positive: exact token count. Zero: peek without consuming. Negative:
          capture the rest.
        - optional: bool
          A fixed-arity slot may be skipped when too few tokens remain. Has no
          effect on captures, which are always satisfied.
        - bind: Unset | Callable[[Sequence[str], int], Binding | None]
          The callback; when Unset the slot consumes its tokens silently.
        - metavar: Unset | str
          Label used in usage strings.
        - descr: Unset | str | Text
          Short description.
        """
        metadata = {
            "arity": arity,
            "optional": bool(optional),
            "bind": bind,
            "metavar": metavar,
            "descr": descr,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(builtins.type(cls)(cls.__name__, (cls,), dict(cls.__dict__), factory=True))
        self._callback = metadata.pop("bind")  # Also bound later by @argument(...).

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        return self

    @property
    def capture(self):
        """
        Whether this slot claims every remaining token.
        """
        return self._arity < 0

    @property
    def usage(self):
        """
        Usage fragment for help lines and hints.
        """
        if self.capture:
            return "[%s...]" % self._metavar
        if not self._arity:
            return ""
        usage = " ".join([self._metavar] * self._arity)
        return "[%s]" % usage if self._optional else usage

    def __call__(self, tokens, offset, /):
        """
        Run the bind callback for the slice starting at offset.

        Returns
        - Binding.CONSUMED when the callback returns None or CONSUMED (or when
          there is no callback at all).
        - Binding.DECLINED when the callback declines.

        Raises
        - TypeError: the callback returned something other than None/Binding.
        - whatever the callback raises, unchanged.
        """
        if self._callback is Unset:
            return Binding.CONSUMED
        if (outcome := self._callback(tokens, offset)) is None:
            return Binding.CONSUMED
        if not isinstance(outcome, Binding):
            raise TypeError(f"{type(self).__typename__} bind must return a Binding or None, not {type(outcome).__name__}")
        return outcome

    def __argument__(self):
        """
        Introspection hook: identify this spec as an Argument.
        """
        return self


def argument(*args, **kwargs):
    """
    Decorator/factory for defining an argument slot with a bind callback.

    Usage
        @argument(1, metavar="NAME")
        def name(tokens, offset):
            options.name = tokens[offset]

        @argument(1)
        def alias(tokens, offset):
            if tokens[offset] not in aliases:
                return Binding.DECLINED
            options.alias = tokens[offset]

    Behavior
    - Validates that it decorates a callable and enforces single application.
    - Returns the configured Argument instance.

    Parameters
    - *args, **kwargs: forwarded to Argument(...).
    """
    argument = Argument(*args, **kwargs)

    @rename("argument")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@argument() must be applied to a callable")
        if argument._callback is not Unset:  # NOQA: E-501
            raise TypeError("@argument() must be applied only once")
        argument._callback = callback
        return argument

    # Advertise SupportsArgument by attaching an introspection hook.
    wrapper.__argument__ = MethodType(rename(lambda self: argument, "__argument__"), wrapper)
    return wrapper


def _writer(target, field, /):
    """
    Internal: the write capability a binder holds over caller-owned storage.

    Mutable mappings are written by key, everything else by attribute.
    """
    if not isinstance(field, str):
        raise TypeError("binder field must be a string")
    elif not (field := field.strip()):
        raise ValueError("binder field cannot be empty")
    if isinstance(target, MutableMapping):
        return functools.partial(operator.setitem, target, field)
    return functools.partial(setattr, target, field)


def namearg(target, field, /, **metadata):
    """
    Required single-token slot storing the token into target.field.
    """
    store = _writer(target, field)

    @rename("namearg")
    def bind(tokens, offset):
        store(tokens[offset])

    return Argument(1, bind=bind, **{"metavar": "NAME"} | metadata)


def namesarg(target, field, /, **metadata):
    """
    Capture slot storing every remaining token, as a list, into target.field.

    The destination always receives a list: an empty one when nothing is
    left, never an absent value.
    """
    store = _writer(target, field)

    @rename("namesarg")
    def bind(tokens, offset):
        store(list(tokens[offset:]))

    return Argument(-1, bind=bind, **{"metavar": "NAMES"} | metadata)


def passthrough(target, field, /, **metadata):
    """
    Capture slot storing the raw tokens found after a bare "--".

    Switch parsing drops the separator, so the slot reads tokens.raw (the
    command's unparsed vector) from tokens.dash, the "--" that actually ended
    switch parsing; a "--" taken as an option value is not a separator.
    Without one the destination is left untouched; with a trailing "--" it
    receives an empty list. Plain sequences fall back to their first "--".
    """
    store = _writer(target, field)

    @rename("passthrough")
    def bind(tokens, offset):
        raw = getattr(tokens, "raw", tokens)
        if (dash := getattr(tokens, "dash", Unset)) is Unset:
            dash = raw.index("--") if "--" in raw else None
        if dash is not None:
            store(list(raw[dash + 1:]))

    return Argument(-1, bind=bind, **{"metavar": "ARGS"} | metadata)


__all__ = (
    # Classes
    "Argument",
    "Binding",

    # Decorators
    "argument",

    # Binders
    "namearg",
    "namesarg",
    "passthrough",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del ArgumentType
