"""
argslots faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue, grouped
  by domain (routing, switches, positionals, bindings, warnings).
- CommandException / CommandWarning: a message plus read-only options. Both
  render through rich and surface themselves (raise, warn, or print-and-exit)
  according to the runtime options.
- trigger(): single entry point used by the matcher and the command host.
- getdoc(): optional documentation lookup supplied by the host application.

Messages
- str(fault) is exactly its message. The positional faults keep the wording
  existing scripts grep for:
  • "missing required argument(s)"
  • 'unknown command "<token>" for "<command>"'

Integration
- With no runtime options, exceptions are raised and warnings are warned, so
  the matcher works on its own.
- A Command merges tool, shell, fancy and colorful into the fault before
  triggering it. In shell mode the fault is printed on stderr through rich and
  exceptions exit with status 1.
"""
import copy
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes.

    - routing (1110x): UNKNOWN_COMMAND, a positional token no slot claimed.
    - switches (1111x): UNKNOWN_SWITCH, FLAG_ASSIGNMENT, DUPLICATED_SWITCH,
      OPTION_VALUE_REQUIRED.
    - positionals (1112x): MISSING_ARGUMENTS.
    - bindings (1113x): BIND_FAILURE.
    - warnings (12xxx): UNREACHABLE_ARGUMENT.
    """
    UNKNOWN_COMMAND             = 11101

    UNKNOWN_SWITCH              = 11112
    FLAG_ASSIGNMENT             = 11113
    DUPLICATED_SWITCH           = 11115
    OPTION_VALUE_REQUIRED       = 11117

    MISSING_ARGUMENTS           = 11125

    BIND_FAILURE                = 11131

    UNREACHABLE_ARGUMENT        = 12121

    def normalize(self):
        """
        label shown in fault headers; __main__.__codes__ may remap it.
        """
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


class _Fault:
    """
    Shared state and rendering of exceptions and warnings.

    Subclasses pick their colors through __palette__; the host may override
    any style key with __main__.__styles__.
    """
    __palette__ = {}

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **(dict(self.options) | overrides))

    @property
    def prog(self):
        main = __import__("__main__")
        if (prog := getattr(main, "__prog__", Unset)) is not Unset:
            return prog
        if (tool := self.options.get("tool")) is not None:
            return tool.root.name
        return "argslots"

    def __rich__(self):
        """
        "[ prog — code | Title ]", the message, "→ hint", then the docs line
        when getdoc() found one. fancy moves the body into a titled Panel.
        """
        colorful = self.options.get("colorful", True)
        styles = defaultdict(str, type(self).__palette__ | getattr(__import__("__main__"), "__styles__", {}))

        def text(fragment, style):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment if colorful else Text(fragment.plain)
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.options.get("code")
        title = self.options.get("title", type(self).__name__)
        header = Text.assemble(
            "[ ",
            text(self.prog, "prog-name"),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else code, "code"),
            " | ",
            text(str(title).title(), "title"),
            " ]",
        )

        body = [text(self.message, "message")]
        if hint := self.options.get("hint"):
            body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        if docs := self.options.get("docs"):
            body.append(text("   see %s" % docs, "docs"))

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)


class CommandException(_Fault, Exception):
    """
    Base class for every error surfaced by argslots.
    """
    __palette__ = {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "title": "bold #FF4DA6",
        "message": "#C8C8D0",
        "hint-arrow": "#9CE19C dim",
        "hint": "italic #9CE19C",
        "docs": "underline #00E5FF dim",
    }

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)


class UnknownSwitchError(CommandException): ...
class FlagAssignmentError(CommandException): ...
class DuplicatedSwitchError(CommandException): ...
class OptionValueRequiredError(CommandException): ...
class MissingArgumentError(CommandException): ...
class UnclaimedTokenError(CommandException): ...


class BindError(CommandException):
    """
    Raised by bind callbacks that reject the content of a token.

    Binders may raise any exception; this one only adds a fault code, a title
    and shell rendering. The matcher never wraps or retries it.
    """

    def __init__(self, message=Unset, /, **options):
        options.setdefault("code", FaultCode.BIND_FAILURE)
        options.setdefault("title", "invalid argument")
        super().__init__(message, **options)


class CommandWarning(_Fault, ABC, Warning):
    """
    Base class for non-fatal diagnostics. Printed in shell mode, warned
    otherwise; execution always continues.
    """
    __palette__ = CommandException.__palette__ | {
        "code": "bold #FFB400",
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    }

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)


class UnreachableArgumentWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into a copy of the fault via copy.replace.
    """
    if not callable(getattr(fault, "__trigger__", None)) or not callable(getattr(fault, "__replace__", None)):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    documentation registered by the host for a fault code, or None.

    the host exposes it as a __docs__ mapping in __main__ keyed by FaultCode.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "CommandException",
    "UnknownSwitchError",
    "FlagAssignmentError",
    "DuplicatedSwitchError",
    "OptionValueRequiredError",
    "MissingArgumentError",
    "UnclaimedTokenError",
    "BindError",
    "CommandWarning",
    "UnreachableArgumentWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
