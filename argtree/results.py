"""
Explicit success/error values.

- Ok(value) / Err(error): the two variants of Result. Every internal parsing
  step returns one of them; nothing on the parse path raises.
- Terminal: the success payload of a full parse. It names the resolved command
  and, when called, runs that command's action (the parser never runs it).

Both variants support structural pattern matching:

    match parser.parse(argv):
        case Ok(terminal):
            terminal()
        case Err(error):
            print(error)
"""
from .faults import DelegatedError, FaultCode, ParseError


class Result:
    """
    Common base of Ok and Err (not instantiated directly).
    """
    __slots__ = ()

    def __init_subclass__(cls, **options):
        if cls.__module__ != __name__:
            raise TypeError(f"type {Result.__name__!r} is not an acceptable base type")
        super().__init_subclass__(**options)


class Ok(Result):
    __slots__ = ("value",)
    __match_args__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    @property
    def error(self):
        return None

    def __bool__(self):
        return True

    def __eq__(self, other):
        if not isinstance(other, Ok):
            return NotImplemented
        return self.value == other.value

    __hash__ = None

    def __repr__(self):
        return f"Ok({self.value!r})"

    def __rich_repr__(self):
        yield self.value

    def unwrap(self):
        return self.value

    def map(self, function, /):
        return Ok(function(self.value))


class Err(Result):
    __slots__ = ("error",)
    __match_args__ = ("error",)

    def __init__(self, error, /):
        if not isinstance(error, BaseException):
            raise TypeError("Err() argument must be an exception instance")
        self.error = error

    @property
    def value(self):
        return None

    def __bool__(self):
        return False

    def __eq__(self, other):
        if not isinstance(other, Err):
            return NotImplemented
        return self.error == other.error

    __hash__ = None

    def __repr__(self):
        return f"Err({self.error!r})"

    def __rich_repr__(self):
        yield self.error

    def unwrap(self):
        """
        Raise the carried error (callers opting into exceptions).
        """
        raise self.error

    def map(self, function, /):
        return self


class Terminal:
    """
    Resolved end of a parse: the command whose action should run.

    Calling a Terminal runs the action with no arguments and normalizes its
    outcome into a Result:
    - a returned Result is passed through unchanged,
    - any other return value becomes Ok(value),
    - a raised exception becomes Err(DelegatedError) with the exception attached.
    """
    __slots__ = ("command",)

    def __init__(self, command, /):
        self.command = command

    @property
    def action(self):
        return self.command.action

    @property
    def route(self):
        return tuple(step.name for step in self.command.path)

    def __eq__(self, other):
        if not isinstance(other, Terminal):
            return NotImplemented
        return self.command is other.command

    __hash__ = None

    def __repr__(self):
        return f"Terminal({' '.join(self.route)!r})"

    def __call__(self):
        try:
            outcome = self.command.action()
        except Exception as exception:
            return Err(DelegatedError(
                "action of %r failed: %s" % (" ".join(self.route), exception),
                title="action failed",
                code=FaultCode.DELEGATED_ERROR,
                hint="check additional logs for more details",
                exception=exception,
            ))
        if isinstance(outcome, Result):
            return outcome
        if isinstance(outcome, ParseError):
            return Err(outcome)
        return Ok(outcome)


__all__ = (
    "Result",
    "Ok",
    "Err",
    "Terminal",
)
