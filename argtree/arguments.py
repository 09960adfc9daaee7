r"""
Argtree argument specifications and decorators.

Overview
- Specs
  • Option: named argument with one or more aliases (e.g., j/jobs), an arity
    and a conversion callback (value | None, context) -> error | None.
  • Argument: positional argument with a single name and a conversion callback
    (value, context) -> error | None. Declaration order is binding order.

- Arity
  • REQUIRED: a value must follow (inline "name=value" or as the next token).
  • OPTIONAL: a value may follow; the callback receives None otherwise.
  • NOT_REQUIRED: the option carries no value of its own (help, version, ...).

- Decorators
  • @option(...): build an Option and bind the decorated function as its callback.
  • @argument(...): build an Argument and bind the decorated function as its callback.

Typed destinations
- Instead of a callback, pass type= (a value type from argtree.bindings) and
  into= (a destination). The option or argument then converts and writes
  through a Binding:
    Option("j", "jobs", type=Int32, into=jobs)
    Argument("target", into=target)             # String by default
  Options bound to Bool default to OPTIONAL arity: a bare flag writes True.
  Types without an implicit value (Int32, String, ...) need REQUIRED arity.
  Arguments default their metavar to the upper-cased name.

Metadata (sanitized on construction)
- names: bare aliases (no prefix characters), matching r"[^\W\d_](-?[^\W_]+)*";
  duplicates within one option are rejected.
- descr: Unset | str (short help), non-empty when provided.
- metavar: Unset | str (value label in help), non-empty when provided.
- hidden: bool (suppresses from help).

Callback outcomes
- None → success; a ParseError → returned as-is; any other exception instance
  or a plain string → wrapped in a DelegatedError; an exception raised by the
  callback → wrapped in a DelegatedError as well.
"""
import enum
import functools
import operator
import re

from rich.text import Text

from .bindings import Binding, String, ValueType
from .faults import DelegatedError, FaultCode, ParseError, getdoc
from .utils import *


class Arity(enum.Enum):
    """
    How many values an option expects (positional arguments always take one).
    """
    REQUIRED = "required"
    OPTIONAL = "optional"
    NOT_REQUIRED = "not-required"

    def __repr__(self):
        return f"{type(self).__name__}.{self.name}"


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable, read-only descriptors.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.

    Conventions
    - __typename__ is derived from the class name (camel-case split with
      hyphens) and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(names=('j', 'jobs'), arity=Arity.REQUIRED, ...)
            """
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the shared 'descr' and 'metavar' fields.

    Raises
    - TypeError: if a field is not a string (or rich Text for descr) or Unset.
    - ValueError: if a field is a string but empty after trimming.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = metavar


def _sanitize_names(cls, names, /):
    """
    Internal: validate aliases and return them as an ordered tuple.

    Names are bare (the parser's prefix character is not part of them): "v",
    "version", "dry-run". Unicode letters are allowed; underscores and leading
    digits are not, to keep CLI style conventional.
    """
    if not names:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    sanitized = []
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} name {name!r} must be a bare shell-style name (unicodes are allowed)")
        elif name in sanitized:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        sanitized.append(name)
    return tuple(sanitized)


def _sanitize_binding_metadata(cls, metadata, /):
    """
    Internal: resolve callback/type/into into a single callback.

    Accepted shapes
    - callback only: used as-is.
    - into (+ optional type, String by default): wrapped in a Binding.
    - none of them: the callback is bound later by a decorator (no-op until then).
    """
    callback, type, into = metadata.pop("callback"), metadata.pop("type"), metadata.pop("into")

    if callback is not Unset:
        if type is not Unset or into is not Unset:
            raise TypeError(f"{cls.__typename__} cannot combine 'callback' with 'type' or 'into'")
        if not callable(callback):
            raise TypeError(f"{cls.__typename__} 'callback' must be callable")
        metadata["callback"] = callback
        metadata["type"] = None
        return

    if type is not Unset and not isinstance(type, ValueType):
        raise TypeError(f"{cls.__typename__} 'type' must be a value type (see argtree.bindings)")
    if into is Unset:
        if type is not Unset:
            raise TypeError(f"{cls.__typename__} 'type' requires an 'into' destination")
        metadata["callback"] = Unset
        metadata["type"] = None
        return
    if not callable(into):
        raise TypeError(f"{cls.__typename__} 'into' must be callable")

    type = coalesce(type, String)
    metadata["callback"] = Binding(type, into).bind
    metadata["type"] = type
    metadata["metavar"] = coalesce(metadata["metavar"], type.metavar)


def _outcome(spec, outcome, context, /):
    """
    Internal: normalize whatever a callback returned into None or a ParseError.
    """
    if outcome is None or isinstance(outcome, ParseError):
        return outcome
    if isinstance(outcome, BaseException | str):
        return DelegatedError(
            "%s '%s' failed: %s" % (context.kind, context.name, outcome),
            title="delegated %s error" % context.kind,
            code=FaultCode.DELEGATED_ERROR,
            name=context.name,
            index=context.offset,
            hint="check additional logs for more details",
            docs=getdoc(FaultCode.DELEGATED_ERROR),
            exception=outcome if isinstance(outcome, BaseException) else None,
        )
    raise TypeError(f"{spec.__typename__} callback must return None, an error or a message, not {outcome!r}")


class Option(metaclass=ArgumentType):
    """
    Named argument specification.

    Highlights
    - Aliases via 'names' (e.g., "v", "version"); matched exactly and
      case-sensitively against the name extracted from a flag token.
    - Arity decides whether a missing value is an error before the callback runs.
    - Typed destinations via type=/into=, or a raw callback.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "names",
        "descr",
        "arity",
        "type",
        "metavar",
        "hidden",
    )

    def __new__(
            cls,
            *names,
            type=Unset,
            into=Unset,
            arity=Unset,
            callback=Unset,
            descr=Unset,
            metavar=Unset,
            hidden=False,
    ):
        """
        Construct an Option spec.

        Parameters
        - names: one or more bare aliases.
        - type / into: typed destination (see argtree.bindings).
        - arity: Arity; defaults to OPTIONAL for types with an implicit value
          (Bool), REQUIRED otherwise.
        - callback: (value | None, context) -> error | None, exclusive with type/into.
        - descr, metavar, hidden: help metadata.
        """
        metadata = {
            "names": _sanitize_names(cls, names),
            "descr": descr,
            "metavar": metavar,
            "hidden": bool(hidden),
            "callback": callback,
            "type": type,
            "into": into,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_binding_metadata(cls, metadata)

        implicit = metadata["type"] is not None and metadata["type"].implicit is not Unset
        if arity is Unset:
            arity = Arity.OPTIONAL if implicit else Arity.REQUIRED
        elif not isinstance(arity, Arity):
            raise TypeError(f"{cls.__typename__} 'arity' must be an Arity member")
        elif metadata["type"] is not None and not implicit and arity is not Arity.REQUIRED:
            raise TypeError(f"{cls.__typename__} {metadata['type'].typename} destinations need a value, 'arity' must be required")
        metadata["arity"] = arity

        self = super().__new__(cls)
        self._callback = metadata.pop("callback")
        for name, object in metadata.items():
            setattr(self, "_" + name, coalesce(object))
        return self

    def matches(self, name, /):
        """
        Whether `name` is one of this option's aliases (exact, case-sensitive).
        """
        return name in self._names

    def match(self, value, context, /):
        """
        Run the callback for a matched token; return None or a ParseError.
        """
        if self._callback is Unset:
            return None
        try:
            outcome = self._callback(value, context)
        except Exception as exception:
            outcome = exception
        return _outcome(self, outcome, context)

    __call__ = match


class Argument(metaclass=ArgumentType):
    """
    Positional argument specification.

    A positional argument always consumes exactly one token; booleans bound to
    an Argument therefore always require a literal value.
    """

    __introspectable__ = (
        "name",
        "descr",
        "type",
        "metavar",
        "hidden",
    )

    def __new__(
            cls,
            name,
            /,
            type=Unset,
            into=Unset,
            callback=Unset,
            descr=Unset,
            metavar=Unset,
            hidden=False,
    ):
        metadata = {
            "name": _sanitize_names(cls, (name,))[0],
            "descr": descr,
            "metavar": metavar,
            "hidden": bool(hidden),
            "callback": callback,
            "type": type,
            "into": into,
        }
        _sanitize_metadata(cls, metadata)
        metadata["metavar"] = coalesce(metadata["metavar"], metadata["name"].upper())
        _sanitize_binding_metadata(cls, metadata)

        self = super().__new__(cls)
        self._callback = metadata.pop("callback")
        for name, object in metadata.items():
            setattr(self, "_" + name, coalesce(object))
        return self

    def match(self, value, context, /):
        if self._callback is Unset:
            return None
        try:
            outcome = self._callback(value, context)
        except Exception as exception:
            outcome = exception
        return _outcome(self, outcome, context)

    __call__ = match


def option(*args, **kwargs):
    """
    Decorator/factory for defining an option handler.

    Usage
        @option("o", "output", arity=Arity.OPTIONAL, descr="write here")
        def on_output(value, context):
            ...

    Behavior
    - Validates that it decorates a callable and enforces single application.
    - Returns the configured Option with the function bound as its callback.
    """
    if any(key in kwargs for key in ("callback", "type", "into")):
        raise TypeError("@option() binds its own callback; 'callback', 'type' and 'into' are not allowed")
    option = Option(*args, **kwargs)

    @rename("option")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@option() must be applied to a callable")
        if option._callback is not Unset:
            raise TypeError("@option() must be applied only once")
        option._callback = callback
        return option

    return wrapper


def argument(*args, **kwargs):
    """
    Decorator/factory for defining a positional argument handler.

    Usage
        @argument("target", descr="what to build")
        def on_target(value, context):
            ...
    """
    if any(key in kwargs for key in ("callback", "type", "into")):
        raise TypeError("@argument() binds its own callback; 'callback', 'type' and 'into' are not allowed")
    argument = Argument(*args, **kwargs)

    @rename("argument")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@argument() must be applied to a callable")
        if argument._callback is not Unset:
            raise TypeError("@argument() must be applied only once")
        argument._callback = callback
        return argument

    return wrapper


__all__ = (
    # Enumerations
    "Arity",

    # Classes (specifications)
    "Option",
    "Argument",

    # Decorators
    "option",
    "argument",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del ArgumentType
