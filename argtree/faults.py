"""
Argtree faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain so logs and searches stay predictable.
- ParseError / ParseWarning: base types that carry a message plus read-only
  options (code, title, hint, name, index, suggestions, ...) and know how to
  render themselves with rich.
- trigger(): central entry point to surface a fault (raise/warn, or print and exit
  in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Errors are values
- The parser never raises a ParseError: it returns it inside an Err result.
  ParseError still derives from Exception so Result.unwrap() and trigger() can
  raise it for callers that prefer exceptions.

Integration
- Hosts may define __styles__, __codes__, __docs__ and __prog__ in __main__ to
  restyle output, relabel codes, attach docs and rename the program.
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - malformed invocation (111xx)
      • NEGATIVE_COUNT, INVALID_COUNT, MISSING_VALUE
    - unknown tokens (112xx)
      • UNEXPECTED_OPTION, UNSUPPORTED_COMMAND, UNKNOWN_COMMAND
    - conversions (113xx)
      • UNCONVERTIBLE_VALUE, OUT_OF_RANGE
    - structural shortfalls (114xx)
      • NOT_ENOUGH_ARGUMENTS, UNEXPECTED_ARGUMENTS
    - delegated errors (115xx)
      • DELEGATED_ERROR
    - warnings (12xxx)
      • DUPLICATE_ALIAS
    """
    # --- malformed invocation (111xx) ---
    NEGATIVE_COUNT        = 11101
    INVALID_COUNT         = 11102
    MISSING_VALUE         = 11103

    # --- unknown tokens (112xx) ---
    UNEXPECTED_OPTION     = 11201
    UNSUPPORTED_COMMAND   = 11202
    UNKNOWN_COMMAND       = 11203

    # --- conversions (113xx) ---
    UNCONVERTIBLE_VALUE   = 11301
    OUT_OF_RANGE          = 11302

    # --- structural shortfalls (114xx) ---
    NOT_ENOUGH_ARGUMENTS  = 11401
    UNEXPECTED_ARGUMENTS  = 11402

    # --- delegated (115xx) ---
    DELEGATED_ERROR       = 11501

    # --- warnings (12xxx) ---
    DUPLICATE_ALIAS       = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _renderer(fault, palette, title_style, message_style):
    """
    Build the rich renderable shared by errors and warnings.

    Layout
    - header: "[ prog — code | title ]"
    - body: the message, then "→ hint" when a hint is present.
    - fancy: the body goes inside a Panel titled with the header.
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    prog = text(getattr(main, "__prog__", fault.options.get("prog", "argtree")), "prog-name")
    code = fault.options.get("code")
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else "-", "code"),
        " | ",
        text(fault.options.get("title", type(fault).__name__).title(), title_style),
        " ]"
    )
    body = [text(fault.message, message_style)]
    if hint := fault.options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    if docs := fault.options.get("docs"):
        body.append(text(docs, "docs"))

    if fault.options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


class ParseError(Exception):
    """
    Base type of every parse-time error value.

    Attributes
    - message: str, lowercased human-readable sentence (also str(error)).
    - options: read-only mapping with rendering and diagnostic context.
    """

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self):
        return hash((type(self), self.message))

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r})"

    def __rich__(self):
        return _renderer(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "underline #00E5FF dim",
        }, "error-title", "error-message")

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from self.__cause__
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedInvocationError(ParseError): ...
class MissingValueError(ParseError): ...
class UnexpectedOptionError(ParseError): ...
class UnsupportedCommandError(ParseError): ...
class UnknownCommandError(ParseError): ...
class ConversionError(ParseError): ...
class NotEnoughArgumentsError(ParseError): ...
class UnexpectedArgumentsError(ParseError): ...


class DelegatedError(ParseError):
    """
    Wraps an exception raised (or a message returned) by user code: option and
    argument callbacks, or a terminal action. The original exception, when
    any, is available as options["exception"] and as __cause__.
    """

    def __init__(self, message, /, **options):
        super().__init__(message, **options)
        self.__cause__ = options.get("exception")


class ParseWarning(Warning):
    """
    Base type of construction-time and parse-time warnings.
    """

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _renderer(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }, "warning-title", "warning-message")

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateAliasWarning(ParseWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console (errors then exit
      with status 1); otherwise errors are raised and warnings are warned.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    return fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings. when
    not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return coalesce(getattr(__import__("__main__"), "__docs__", {}).get(code, Unset))


__all__ = (
    "FaultCode",
    "ParseError",
    "MalformedInvocationError",
    "MissingValueError",
    "UnexpectedOptionError",
    "UnsupportedCommandError",
    "UnknownCommandError",
    "ConversionError",
    "NotEnoughArgumentsError",
    "UnexpectedArgumentsError",
    "DelegatedError",
    "ParseWarning",
    "DuplicateAliasWarning",
    "trigger",
    "getdoc",
)
