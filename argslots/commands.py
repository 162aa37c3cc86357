"""
argslots command layer: the host that feeds positional tokens to the matcher.

What this module provides
- Switch: a named flag (--debug) or single-valued option (--since 1h).
- Command: wraps a callable into a runnable command that
  • routes to a child when the first token names one (or one of its aliases),
  • strips switches from the token stream, stopping at a bare "--",
  • hands the remaining positional tokens to its validator, together with the
    raw vector and the index of the "--" that ended switch parsing (so
    passthrough slots never mistake an option value of "--" for it),
  • calls the callback with the switch values as keyword arguments.
- Factories and helpers:
  • command(...): create a Command or a decorator that produces one.
  • invoke(obj, prompt): run a Command (or a plain callable) on a prompt.

Quick start
    from types import SimpleNamespace
    from argslots import Switch, command, invoke, positionals, namearg

    options = SimpleNamespace()

    @command(args=positionals(namearg(options, "name")), switches=[Switch("--since", nargs=1, default="")])
    def tail(since):
        print(options.name, since)

    invoke(tail, "my-app --since 1h")

Design notes
- A command with no declared args accepts no positional tokens: group
  commands reject unknown subcommand names with the same unclaimed-token
  fault the matcher raises.
- Faults are raised in plain mode and printed (then exit 1) in shell mode;
  see argslots.faults.
"""
import builtins
import re
import shlex
import sys
from collections.abc import Iterable

from .faults import *
from .matcher import Tokens, positionals
from .utils import *


class Switch:
    """
    Named switch stripped from the token stream before positional matching.

    - nargs=0: a flag; its value is True when present, default otherwise.
    - nargs=1: an option taking one value, spaced (--since 1h) or inline
      (--since=1h).

    The keyword the callback receives (dest) is the longest name without its
    leading dashes, with hyphens turned into underscores.
    """

    names = mirror("names")
    nargs = mirror("nargs")
    default = mirror("default")
    descr = mirror("descr")

    def __init__(self, *names, nargs=0, default=Unset, descr=Unset):
        if not names:
            raise TypeError("switch must specify at least one name")
        for name in names:
            if not isinstance(name, str):
                raise TypeError("switch names must be strings")
            elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
                raise ValueError("switch names must be valid shell-style option names (unicodes are allowed)")
        if len(set(names)) != len(names):
            raise ValueError("switch names cannot contain duplicates")

        if isinstance(nargs, bool) or nargs not in (0, 1):
            raise ValueError("switch 'nargs' must be 0 or 1")

        if not isinstance(descr, str | Unset):
            raise TypeError("switch 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError("switch 'descr' cannot be empty")

        self._names = names
        self._nargs = nargs
        self._default = coalesce(default, None if nargs else False)
        self._descr = coalesce(descr)

    @property
    def dest(self):
        return max(self._names, key=len).lstrip("-").replace("-", "_")

    @property
    def usage(self):
        name = max(self._names, key=len)
        return "%s %s" % (name, self.dest.upper()) if self._nargs else name

    def __repr__(self):
        return "switch(names=%r, nargs=%r, default=%r, descr=%r)" % (self.names, self.nargs, self.default, self.descr)


class CommandType(type):
    """
    Metaclass giving commands read-only metadata and a stable repr.

    - Names in __introspectable__ become read-only properties (see mirror()).
    - __repr__/__rich_repr__ list __displayable__ (never parent/children, to
      keep representations finite).
    - Factory-backed classes (one per constructed command) are sealed.
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
                "__module__": "dynamic-factory::commands",
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            )

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__repr__")
        def __repr__(self):
            fields = ", ".join("%s=%r" % field for field in self.__rich_repr__())
            return "%s(%s)" % (type(self).__typename__, fields)
        self.__repr__ = __repr__

        if options.get("factory", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_name(cls, name, /, what="name"):
    """
    Internal: command names and aliases are non-empty words that cannot be
    mistaken for a switch.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {what} must be a string")
    elif not re.fullmatch(r"[^\W\d_][\w.-]*", name := name.strip()):
        raise ValueError(f"{cls.__typename__} {what} {name!r} is not a valid command name")
    return name


def _attach_to_parent(self, parent):
    """
    Register this command (and its aliases) under its parent.

    Raises
    - ValueError: a sibling already uses one of the names.
    """
    for route in (self.name, *self.aliases):
        if parent._routes.get(route, self) is not self:
            raise ValueError(f"{type(self).__typename__} name {route!r} is already in use under {parent.name!r}")
    parent._children[self.name] = self
    for route in (self.name, *self.aliases):
        parent._routes[route] = self


class Command(metaclass=CommandType):
    """
    Runnable command: switch stripping, positional validation, dispatch.

    Lifecycle
    - Constructed once per command definition; its validator (and the
      argument specs inside it) is reused for every invocation.
    - Each invocation builds a fresh Tokens list, runs the validator (which
      runs the bind callbacks) and then the callback.
    """

    __introspectable__ = (
        "name",
        "descr",
        "aliases",
        "switches",
        "parent",
        "children",
        "shell",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "name",
        "descr",
        "aliases",
        "switches",
        "shell",
        "fancy",
        "colorful",
    )

    @property
    def root(self):
        """
        Return the topmost command in the hierarchy.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def validator(self):
        return self._validator

    @property
    def usage(self):
        """
        One-line usage: route, switches (if any) and positional slots.
        """
        parts = [" ".join(step.name for step in self.path)]
        if self._switches:
            parts.append("[switches]")
        if usage := getattr(self._validator, "usage", ""):
            parts.append(usage)
        return " ".join(parts)

    def __new__(
            cls,
            callback=Unset,
            /,
            name=Unset,
            descr=Unset,
            *,
            args=Unset,
            switches=(),
            aliases=(),
            parent=Unset,
            shell=False,
            fancy=False,
            colorful=True,
    ):
        """
        Construct a Command.

        Parameters
        - callback: Unset | Callable[..., Any]
          Called with the switch values as keyword arguments once the
          positional tokens validated. Unset makes a pure group command.
        - name: Unset | str
          Defaults to the callback's __name__ with underscores as hyphens.
        - descr: Unset | str
          Short description.
        - args: Unset | Callable[[Tokens], None]
          Positional validator, normally positionals(...). Unset accepts no
          positional tokens at all.
        - switches: Iterable[Switch]
        - aliases: Iterable[str]
          Extra routes under the parent.
        - parent: Unset | Command
        - shell, fancy, colorful: bool
          Fault surfacing: print-and-exit instead of raise, panel chrome,
          colors.

        Raises
        - TypeError / ValueError on malformed metadata or name clashes.
        """
        if callback is not Unset and not callable(callback):
            raise TypeError(f"{cls.__typename__} callback must be callable")
        if name is Unset:
            if callback is Unset:
                raise TypeError(f"{cls.__typename__} without a callback must specify a 'name'")
            name = callback.__name__.replace("_", "-")
        name = _sanitize_name(cls, name)

        if not isinstance(descr, str | Unset):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")

        if args is Unset:
            args = positionals()
        elif not callable(args):
            raise TypeError(f"{cls.__typename__} 'args' must be a callable validator")

        if isinstance(aliases, str) or not isinstance(aliases, Iterable):
            raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
        aliases = tuple(_sanitize_name(cls, alias, "alias") for alias in aliases)
        if len(set((name, *aliases))) != len(aliases) + 1:
            raise ValueError(f"{cls.__typename__} aliases cannot repeat the name or each other")

        if not isinstance(switches, Iterable):
            raise TypeError(f"{cls.__typename__} 'switches' must be an iterable of switches")
        table = {}
        for switch in switches:
            if not isinstance(switch, Switch):
                raise TypeError(f"{cls.__typename__} 'switches' must be an iterable of switches")
            for input in switch.names:
                if table.setdefault(input, switch) is not switch:
                    raise ValueError(f"{cls.__typename__} switch name {input!r} is already in use")

        if parent is not Unset and not isinstance(parent, Command):
            raise TypeError(f"{cls.__typename__} parent must be a command")

        self = super().__new__(builtins.type(cls)(cls.__name__, (cls,), dict(cls.__dict__), factory=True))
        self._callback = callback
        self._name = name
        self._descr = coalesce(descr)
        self._validator = args
        self._aliases = aliases
        self._switches = table
        self._parent = coalesce(parent)
        self._children = {}
        self._routes = {}
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

        if parent is not Unset:
            _attach_to_parent(self, parent)

        return self

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a child command (directly or as a decorator) under this one.
        """
        return command(source, *args, parent=self, **kwargs)

    def find(self, *path):
        """
        Return the descendant reached by following names/aliases, or None.
        """
        command = self
        for step in path:
            if (command := command._routes.get(step)) is None:
                return None
        return command

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this command's runtime options merged in.
        """
        trigger(fault, **options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)

    def _strip(self, tokens):
        """
        split tokens into positionals, a switch namespace and the index of the
        "--" that ended switch parsing (None when there was none).

        rules
        - a bare "--" ends switch parsing; it is dropped and every later token
          is positional.
        - "-" alone and tokens not starting with "-" are positional.
        - options take the inline value (--name=value) or the next token.
        """
        arguments = []
        namespace = {}
        dash = None
        index = 0
        while index < len(tokens):
            token = tokens[index]
            index += 1

            if token == "--":
                dash = index - 1
                arguments.extend(tokens[index:])
                break
            if token == "-" or not token.startswith("-"):
                arguments.append(token)
                continue

            input, inline, value = token.partition("=")
            route = " ".join(step.name for step in self.path)
            if (switch := self._switches.get(input)) is None:
                self.trigger(UnknownSwitchError(
                    "unknown switch %s for %s" % (quote(input), quote(self.name)),
                    title="unknown switch",
                    code=FaultCode.UNKNOWN_SWITCH,
                    input=input,
                    index=index - 1,
                    hint="use one of %s" % ", ".join(sorted(self._switches)) if self._switches else "'%s' takes no switches" % route,
                    docs=getdoc(FaultCode.UNKNOWN_SWITCH),
                ))
                continue
            if switch.dest in namespace:
                self.trigger(DuplicatedSwitchError(
                    "switch %s was already provided" % quote(input),
                    title="duplicated switch",
                    code=FaultCode.DUPLICATED_SWITCH,
                    input=input,
                    index=index - 1,
                    hint="keep a single %s" % input,
                    docs=getdoc(FaultCode.DUPLICATED_SWITCH),
                ))
                continue

            if not switch.nargs:
                if inline:
                    self.trigger(FlagAssignmentError(
                        "flag %s does not take a value" % quote(input),
                        title="flag assignment",
                        code=FaultCode.FLAG_ASSIGNMENT,
                        input=input,
                        index=index - 1,
                        hint="use %s on its own" % input,
                        docs=getdoc(FaultCode.FLAG_ASSIGNMENT),
                    ))
                    continue
                namespace[switch.dest] = True
                continue

            if not inline:
                if index >= len(tokens):
                    self.trigger(OptionValueRequiredError(
                        "option %s requires a value" % quote(input),
                        title="missing value",
                        code=FaultCode.OPTION_VALUE_REQUIRED,
                        input=input,
                        index=index - 1,
                        hint="use %s" % switch.usage,
                        docs=getdoc(FaultCode.OPTION_VALUE_REQUIRED),
                    ))
                    continue
                value = tokens[index]
                index += 1
            namespace[switch.dest] = value

        return arguments, namespace, dash

    def _execute(self, tokens):
        """
        route, strip switches, validate positionals, then call the callback.
        """
        if tokens and (child := self._routes.get(tokens[0])) is not None:
            return child._execute(tokens[1:])

        arguments, namespace, dash = self._strip(tokens)

        try:
            self._validator(Tokens(arguments, raw=tokens, use=self.name, dash=dash))
        except CommandException as fault:
            if "hint" not in fault.options or isinstance(fault, UnclaimedTokenError):
                return self.trigger(fault, hint="run as: %s" % self.usage)
            return self.trigger(fault)

        if self._callback is Unset:
            return None

        for switch in self._switches.values():
            namespace.setdefault(switch.dest, switch.default)
        return self._callback(**namespace)

    def __invoke__(self, prompt=Unset):
        """
        Execute this command with a token stream.

        Parameters
        - prompt:
          • Unset: sys.argv[1:].
          • str: shell-like string split with shlex.split.
          • Iterable[str]: pre-tokenized sequence, used verbatim.

        Returns
        - whatever the reached command's callback returns (None for groups).

        Raises
        - TypeError: prompt is not Unset/str/Iterable[str].
        - CommandException subclasses (plain mode) or SystemExit (shell mode).
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        return self._execute(tokens)


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator building one.

    Invocation modes
    - Direct: cmd = command(func, name="x", args=positionals(...))
    - Decorator: @command(args=positionals(...))
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands or callables.

    - Objects implementing __invoke__ are run with prompt.
    - Plain callables are wrapped with command(...) first.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if callable(object):
        return invoke(command(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Switch",
    "Command",
    "command",
    "invoke",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del CommandType
