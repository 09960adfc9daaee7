"""
Argtree parser: tokenizer, option matcher, recursive dispatcher.

Flow
- Parser.parse() validates the token count, then dispatches from the root at
  offset 1 (index 0 is the program name).
- dispatch(command, context) runs in three states:
  • matching options: consume leading flag tokens against command.options;
  • resolving the positional: descend into a child, bind positional
    arguments, or fail;
  • terminal: the resolved command is returned inside Ok(Terminal(...)).
- Every step returns a Result; the first error aborts and unwinds to the
  caller. Destinations written by earlier successful matches stay written.

Token grammar
- prefix name [separator value], e.g. "-v", "--jobs=4", "--jobs 4".
- One prefix for short names, two for long ones; both spellings resolve to
  the same alias (the name is what follows the prefixes).

Built-in options
- Parser.help_option() and Parser.version_option() are ordinary options;
  the dispatcher does not special-case them.
"""
import collections
import difflib
import logging
import sys

from rich.console import Console

from .arguments import Arity, Option
from .commands import Command
from .faults import *
from .rendering import flag, render_help, render_version
from .results import Err, Ok, Terminal
from .utils import *

logger = logging.getLogger(__name__)


class Context(collections.namedtuple("Context", ("count", "tokens", "offset", "name", "kind", "parser"))):
    """
    Immutable per-site parsing state handed to callbacks.

    Fields
    - count: number of tokens taken into account.
    - tokens: the token vector (index 0 is the program name).
    - offset: index of the current token.
    - name: option, argument or command name being matched.
    - kind: "option", "argument" or "command".
    - parser: the Parser, for shared configuration (prefix, console, ...).

    Derive fresh values with _replace().
    """
    __slots__ = ()

    @property
    def token(self):
        return self.tokens[self.offset] if 0 <= self.offset < self.count else None


def split_token(token, /, prefix="-", separator="="):
    """
    Split a flag token into (name, value | None).

    The name starts after two prefix characters when the token begins with
    two, after one otherwise; it runs up to the first separator. Everything
    after the separator is the inline value (possibly empty).

        split_token("--jobs=4")  -> ("jobs", "4")
        split_token("-o=")       -> ("o", "")
        split_token("--verbose") -> ("verbose", None)
    """
    if token.startswith(prefix * 2):
        token = token[2:]
    elif token.startswith(prefix):
        token = token[1:]
    name, found, value = token.partition(separator)
    return name, value if found else None


def _suggest(name, candidates):
    return difflib.get_close_matches(name, list(candidates), n=3, cutoff=0.6)


def _hint(suggestions, render, fallback):
    if suggestions:
        return "did you mean %s?" % " or ".join(map(render, suggestions))
    return fallback


def match_options(context, options, /):
    """
    Consume the flag tokens starting at context.offset.

    Returns Ok(index of the first non-flag token) or Err(ParseError).

    Rules
    - With no inline value, a following token that does not start with the
      prefix is consumed as the value (whatever the option's arity).
    - Every option whose aliases contain the name runs, in declaration order;
      a REQUIRED option given no value fails before any conversion.
    - A name matching no option fails with UnexpectedOptionError.
    """
    parser = context.parser
    prefix, separator = parser.prefix, parser.separator
    offset = context.offset

    while offset < context.count:
        if not (token := context.tokens[offset]).startswith(prefix):
            break

        name, value = split_token(token, prefix, separator)
        if value is None and offset + 1 < context.count and not context.tokens[offset + 1].startswith(prefix):
            offset += 1
            value = context.tokens[offset]
        site = context._replace(offset=offset, name=name, kind="option")

        if not (matched := [option for option in options if option.matches(name)]):
            aliases = [alias for option in options if not option.hidden for alias in option.names]
            suggestions = _suggest(name, aliases)
            return Err(UnexpectedOptionError(
                "unexpected option '%s'" % name,
                title="unexpected option",
                code=FaultCode.UNEXPECTED_OPTION,
                name=name,
                index=offset,
                suggestions=tuple(suggestions),
                hint=_hint(suggestions, lambda alias: repr(flag(alias, prefix)), "run with %s for a list of options" % flag("help", prefix)),
                docs=getdoc(FaultCode.UNEXPECTED_OPTION),
            ))

        logger.debug("token %r matched %d option(s) with value %r", token, len(matched), value)
        for option in matched:
            if value is None and option.arity is Arity.REQUIRED:
                return Err(MissingValueError(
                    "option '%s' expects a value, none were given" % name,
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    name=name,
                    index=offset,
                    hint="pass it as %s%s<value> or as the next token" % (flag(name, prefix), separator),
                    docs=getdoc(FaultCode.MISSING_VALUE),
                ))
            if error := option.match(value, site):
                return Err(error)
        offset += 1

    return Ok(offset)


def _bind_arguments(command, context):
    """
    Bind every declared positional argument, left to right, from
    context.offset to the end of the tokens. Counts are checked before any
    write; the first conversion error aborts.

    Options are only recognized before the first positional: every token from
    context.offset on is a value, prefixed ones included ("copy a --force"
    binds "--force" to the second argument).
    """
    arguments = command.arguments
    given = context.count - context.offset

    if given < len(arguments):
        missing = [argument.name for argument in arguments[given:]]
        return Err(NotEnoughArgumentsError(
            "not enough arguments",
            title="not enough arguments",
            code=FaultCode.NOT_ENOUGH_ARGUMENTS,
            name=missing[0],
            index=context.count,
            hint="missing %s" % ", ".join(map(str.upper, missing)),
            docs=getdoc(FaultCode.NOT_ENOUGH_ARGUMENTS),
        ))
    if given > len(arguments):
        return Err(UnexpectedArgumentsError(
            "unexpected arguments given",
            title="unexpected arguments",
            code=FaultCode.UNEXPECTED_ARGUMENTS,
            index=context.offset + len(arguments),
            hint="%r expects %d positional argument(s), got %d" % (" ".join(step.name for step in command.path), len(arguments), given),
            docs=getdoc(FaultCode.UNEXPECTED_ARGUMENTS),
        ))

    for index, argument in enumerate(arguments, context.offset):
        site = context._replace(offset=index, name=argument.name, kind="argument")
        if error := argument.match(context.tokens[index], site):
            return Err(error)
        logger.debug("argument %r bound from token %d", argument.name, index)

    return Ok(Terminal(command))


def dispatch(command, context, /):
    """
    Resolve the tokens from context.offset against `command`, recursively.

    Leading prefixed tokens are matched as options of `command`; the first
    bare token then names a child or starts the positional arguments.

    Returns Ok(Terminal) or Err(ParseError).
    """
    result = match_options(context, command.options)
    if not result:
        return result
    offset = result.value

    if offset < context.count:
        token = context.tokens[offset]

        if command.children:
            if (child := command.find(token)) is None:
                suggestions = _suggest(token, command.children)
                return Err(UnsupportedCommandError(
                    "command '%s' not supported" % token,
                    title="unsupported command",
                    code=FaultCode.UNSUPPORTED_COMMAND,
                    name=token,
                    index=offset,
                    suggestions=tuple(suggestions),
                    hint=_hint(suggestions, repr, "available: %s" % ", ".join(command.children)),
                    docs=getdoc(FaultCode.UNSUPPORTED_COMMAND),
                ))
            logger.debug("descending into %r at token %d", token, offset)
            return dispatch(child, context._replace(offset=offset + 1, name=token, kind="command"))

        if command.arguments:
            return _bind_arguments(command, context._replace(offset=offset))

        return Err(UnexpectedArgumentsError(
            "unexpected arguments given",
            title="unexpected arguments",
            code=FaultCode.UNEXPECTED_ARGUMENTS,
            name=token,
            index=offset,
            hint="%r takes no positional arguments" % " ".join(step.name for step in command.path),
            docs=getdoc(FaultCode.UNEXPECTED_ARGUMENTS),
        ))

    if command.terminal:
        logger.debug("resolved terminal %r", command.name)
        return Ok(Terminal(command))

    return Err(NotEnoughArgumentsError(
        "not enough arguments",
        title="not enough arguments",
        code=FaultCode.NOT_ENOUGH_ARGUMENTS,
        name=command.name,
        index=context.count,
        hint="expected a command" if command.children else "missing %s" % ", ".join(argument.name.upper() for argument in command.arguments),
        docs=getdoc(FaultCode.NOT_ENOUGH_ARGUMENTS),
    ))


def _sanitize_character(label, character):
    if not isinstance(character, str):
        raise TypeError(f"parser {label!r} must be a string")
    if len(character) != 1 or character.isspace() or character.isalnum():
        raise ValueError(f"parser {label!r} must be a single punctuation character")
    return character


class Parser:
    """
    Entry point: a root command plus shared configuration.

        parser = Parser("build things", [
            Parser.version_option("tool", "1.2.0"),
            Parser.help_option(),
        ])
        build = parser.command("build", "compile a target", options=[
            Option("j", "jobs", type=Int32, into=jobs),
        ])
        build.argument(Argument("target", into=target))

        match parser.parse(["tool", "build", "--jobs=4", "main"]):
            case Ok(terminal):
                terminal()
            case Err(error):
                ...

    Configuration
    - prefix / separator: single punctuation characters, distinct ("-", "=").
    - console: rich Console used by help/version rendering (stdout by default).
    - colorful / fancy: rendering flags shared with faults.
    - shell: when True, invoke() prints faults and exits instead of raising.
    """

    descr = mirror("descr")
    prefix = mirror("prefix")
    separator = mirror("separator")
    console = mirror("console")
    colorful = mirror("colorful")
    fancy = mirror("fancy")
    shell = mirror("shell")
    root = mirror("root")

    @property
    def options(self):
        return self._root.options

    @property
    def commands(self):
        return self._root.children

    def __init__(
            self,
            descr=Unset,
            /,
            options=(),
            *,
            name=Unset,
            prefix="-",
            separator="=",
            console=Unset,
            colorful=False,
            fancy=False,
            shell=False,
    ):
        self._prefix = _sanitize_character("prefix", prefix)
        self._separator = _sanitize_character("separator", separator)
        if prefix == separator:
            raise ValueError("parser 'prefix' and 'separator' must differ")

        if not isinstance(console, Console | Unset):
            raise TypeError("parser 'console' must be a rich console")

        self._root = Command(descr, options, name=coalesce(name, getattr(__import__("__main__"), "__prog__", Unset)))
        self._descr = self._root.descr
        self._console = coalesce(console, Console())
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._shell = bool(shell)

    def __repr__(self):
        return "parser(%r, prefix=%r, separator=%r)" % (self._root, self._prefix, self._separator)

    def command(self, name, /, descr=Unset, options=(), arguments=(), action=Unset):
        """
        Attach a top-level command (see Command.command).
        """
        return self._root.command(name, descr, options, arguments, action)

    def option(self, option, /):
        return self._root.option(option)

    def argument(self, argument, /):
        return self._root.argument(argument)

    def handler(self, action, /):
        return self._root.handler(action)

    def parse(self, *parameters):
        """
        Parse a token vector; never raises for bad user input.

        Forms
        - parse(): read sys.argv.
        - parse(argv): every token of argv.
        - parse(count, argv): the first `count` tokens of argv.

        Returns Ok(Terminal) or Err(ParseError).
        """
        match len(parameters):
            case 0:
                count, argv = len(sys.argv), sys.argv
            case 1:
                argv, = parameters
                count = Unset
            case 2:
                count, argv = parameters
            case _:
                raise TypeError(f"parse() takes at most 2 arguments ({len(parameters)} given)")

        if isinstance(argv, str):
            raise TypeError("parse() argv must be a sequence of strings")
        argv = tuple(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("parse() argv must be a sequence of strings")
        if count is Unset:
            count = len(argv)
        elif not isinstance(count, int) or isinstance(count, bool):
            raise TypeError("parse() count must be an integer")

        if count < 0:
            return Err(MalformedInvocationError(
                "number of arguments can not be negative",
                title="malformed invocation",
                code=FaultCode.NEGATIVE_COUNT,
                index=count,
                docs=getdoc(FaultCode.NEGATIVE_COUNT),
            ))
        if count > len(argv):
            return Err(MalformedInvocationError(
                "invalid number of arguments",
                title="malformed invocation",
                code=FaultCode.INVALID_COUNT,
                index=count,
                hint="count is %d but only %d token(s) were given" % (count, len(argv)),
                docs=getdoc(FaultCode.INVALID_COUNT),
            ))

        if count < 1:
            if self._root.terminal:
                return Ok(Terminal(self._root))
            return Err(NotEnoughArgumentsError(
                "not enough arguments",
                title="not enough arguments",
                code=FaultCode.NOT_ENOUGH_ARGUMENTS,
                index=0,
                docs=getdoc(FaultCode.NOT_ENOUGH_ARGUMENTS),
            ))

        logger.debug("parsing %d token(s): %r", count, argv[:count])
        return dispatch(self._root, Context(count, argv[:count], 1, argv[0], "command", self))

    @staticmethod
    def version_option(name, version, /):
        """
        Built-in -v/--version option rendering "<name> — <version>".
        """
        if not isinstance(name, str) or not isinstance(version, str):
            raise TypeError("version_option() arguments must be strings")

        @rename("print_version")
        def callback(value, context):
            parser = context.parser
            render_version(parser.console, name, version, colorful=parser.colorful, fancy=parser.fancy)
            return None

        return Option("v", "version", arity=Arity.NOT_REQUIRED, callback=callback, descr="print version")

    @staticmethod
    def help_option():
        """
        Built-in -h/--help option.

        Without a value it renders the root help; with a value it renders the
        help of that top-level command, or fails with UnknownCommandError.
        """

        @rename("print_help")
        def callback(value, context):
            parser = context.parser
            command = parser.root
            if value is not None:
                if (command := parser.root.find(value)) is None:
                    suggestions = _suggest(value, parser.root.children)
                    return UnknownCommandError(
                        "unknown command '%s'" % value,
                        title="unknown command",
                        code=FaultCode.UNKNOWN_COMMAND,
                        name=value,
                        index=context.offset,
                        suggestions=tuple(suggestions),
                        hint=_hint(suggestions, repr, "run with %s for a list of commands" % flag("help", parser.prefix)),
                        docs=getdoc(FaultCode.UNKNOWN_COMMAND),
                    )
            render_help(parser.console, command, prefix=parser.prefix, colorful=parser.colorful, fancy=parser.fancy)
            return None

        return Option("h", "help", arity=Arity.NOT_REQUIRED, callback=callback, descr="print help")


def invoke(parser, argv=Unset, /):
    """
    Parse, then run the resolved action.

    Faults are surfaced through trigger(): raised in non-shell mode, printed
    (then exit status 1) in shell mode. Returns the action's Result otherwise.
    """
    if not isinstance(parser, Parser):
        raise TypeError("invoke() first argument must be a parser")

    options = {
        "prog": parser.root.name,
        "shell": parser.shell,
        "colorful": parser.colorful,
        "fancy": parser.fancy,
    }

    result = parser.parse() if argv is Unset else parser.parse(argv)
    if not result:
        return trigger(result.error, **options)

    outcome = result.value()
    if not outcome:
        error = outcome.error
        if not isinstance(error, ParseError):
            error = DelegatedError(
                "action of %r failed: %s" % (" ".join(result.value.route), error),
                title="action failed",
                code=FaultCode.DELEGATED_ERROR,
                hint="check additional logs for more details",
                exception=error,
            )
        return trigger(error, **options)
    return outcome


__all__ = (
    "Context",
    "split_token",
    "match_options",
    "dispatch",
    "Parser",
    "invoke",
)
