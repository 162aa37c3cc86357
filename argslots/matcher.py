"""
argslots matcher: bind an ordered sequence of argument slots to positional tokens.

What this module provides
- Tokens: the immutable positional token list of one invocation, carrying the
  raw argument vector, the command name and the position of the "--" that
  ended switch parsing alongside the tokens.
- match(specs, tokens): the single left-to-right pass.
- positionals(*specs): validator factory; the returned callable is what a
  Command calls (after switch parsing, before its callback).

Algorithm
- A cursor starts at 0 and specs are consulted in declaration order.
- Fixed arity N: when N tokens remain the slot is called at the cursor;
  CONSUMED advances the cursor by N, DECLINED leaves it in place so the next
  spec sees the same tokens. When fewer remain, optional specs are skipped
  and required ones fail with "missing required argument(s)".
- Capture: the slot is called at the cursor and the cursor jumps to the end,
  whatever the slot answers.
- Tokens left after the last spec fail with
  'unknown command "<token>" for "<command>"', naming the first leftover.

Construction-time checks (positionals)
- At most one capture per sequence (ValueError): with two, nothing decides
  which capture owns which tokens.
- A required fixed spec declared after a capture can never be satisfied by a
  non-empty tail and warns with UnreachableArgumentWarning.
"""
from collections.abc import Iterable, Sequence

from .arguments import Argument, Binding
from .faults import *
from .utils import *


class Tokens(tuple):
    """
    Positional tokens of one invocation (switches already stripped).

    Attributes
    - raw: the command's unparsed argument vector, "--" and all. Defaults to
      the tokens themselves.
    - use: the command's declared name, used in unclaimed-token messages.
    - dash: index in raw of the "--" that ended switch parsing, or None when
      there was none. A "--" consumed as an option value does not count.
      Defaults to the first "--" found in raw.
    """

    def __new__(cls, tokens=(), /, raw=Unset, use="", dash=Unset):
        tokens = tuple(tokens)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("Tokens() items must be strings")
        if not isinstance(use, str):
            raise TypeError("Tokens() 'use' must be a string")
        raw = tuple(coalesce(raw, tokens))
        if dash is Unset:
            dash = raw.index("--") if "--" in raw else None
        elif dash is not None and (isinstance(dash, bool) or not isinstance(dash, int)):
            raise TypeError("Tokens() 'dash' must be an integer or None")
        elif dash is not None and not (0 <= dash < len(raw) and raw[dash] == "--"):
            raise ValueError("Tokens() 'dash' must point at a \"--\" in raw")
        self = super().__new__(cls, tokens)
        self._raw = raw
        self._use = use
        self._dash = dash
        return self

    @property
    def raw(self):
        return self._raw

    @property
    def use(self):
        return self._use

    @property
    def dash(self):
        return self._dash

    def __repr__(self):
        return f"Tokens({list(self)!r}, raw={list(self._raw)!r}, use={self._use!r}, dash={self._dash!r})"


def _resolve(spec, /):
    """
    Internal: accept Argument instances and objects advertising __argument__().
    """
    if isinstance(spec, Argument):
        return spec
    if callable(getattr(spec, "__argument__", None)) and isinstance(spec := spec.__argument__(), Argument):
        return spec
    raise TypeError("positionals() arguments must be argument specs")


def match(specs, tokens, /):
    """
    Bind specs to tokens in one pass; return None on success, raise otherwise.

    Parameters
    - specs: Sequence[Argument], in declaration (= consumption) order.
    - tokens: Tokens or any sequence of strings (coerced to Tokens).

    Raises
    - MissingArgumentError: a required fixed-arity spec ran out of tokens.
    - UnclaimedTokenError: tokens remained after every spec had its turn.
    - anything a bind callback raises, unchanged.

    Binds that ran before a failure keep their effects.
    """
    if not isinstance(tokens, Tokens):
        tokens = Tokens(tokens)

    position = 0
    for spec in specs:
        if spec.capture:
            spec(tokens, position)  # Captures cannot decline.
            position = len(tokens)
            continue

        if position + spec.arity > len(tokens):
            if spec.optional:
                continue
            raise MissingArgumentError(
                "missing required argument(s)",
                title="missing arguments",
                code=FaultCode.MISSING_ARGUMENTS,
                index=position,
                argument=spec,
                hint="expected %s" % " ".join(filter(None, (item.usage for item in specs))),
                docs=getdoc(FaultCode.MISSING_ARGUMENTS),
            )

        if spec(tokens, position) is Binding.CONSUMED:
            position += spec.arity

    if position < len(tokens):
        raise UnclaimedTokenError(
            "unknown command %s for %s" % (quote(tokens[position]), quote(tokens.use)),
            title="unknown command",
            code=FaultCode.UNKNOWN_COMMAND,
            input=tokens[position],
            index=position,
            use=tokens.use,
            hint="remove the extra value%s" % ("s" * (len(tokens) - position > 1)),
            docs=getdoc(FaultCode.UNKNOWN_COMMAND),
        )


def positionals(*specs):
    """
    Build a positional-argument validator from argument specs.

    The returned validator takes a token list (Tokens, or a plain sequence of
    strings) and returns None once every applicable bind has run; it raises
    the first fault otherwise (see match()).

    With no specs the validator accepts only an empty token list, which is
    what group commands use to reject unknown subcommand names.

    Raises
    - TypeError: a spec is not an Argument (nor advertises __argument__).
    - ValueError: more than one capture spec.

    Warns
    - UnreachableArgumentWarning: a required fixed spec follows a capture.
    """
    specs = tuple(map(_resolve, specs))

    captured = False
    for index, spec in enumerate(specs):
        if spec.capture:
            if captured:
                raise ValueError("positionals() accepts at most one capture argument")
            captured = True
        elif captured and not spec.optional:
            trigger(UnreachableArgumentWarning(
                "required argument at index %d follows a capture argument" % index,
                title="unreachable argument",
                code=FaultCode.UNREACHABLE_ARGUMENT,
                argument=spec,
                hint="declare it before the capture or make it optional",
                docs=getdoc(FaultCode.UNREACHABLE_ARGUMENT),
            ))

    @rename("positionals")
    def validator(tokens, /):
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("positionals() validator argument must be a sequence of strings")
        return match(specs, tokens if isinstance(tokens, Sequence) else tuple(tokens))

    validator.specs = specs
    validator.usage = " ".join(filter(None, (spec.usage for spec in specs)))
    return validator


__all__ = (
    "Tokens",
    "match",
    "positionals",
)
