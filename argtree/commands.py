"""
Argtree command layer: the static shape of the CLI surface.

What this module provides
- Command: a node of the command tree carrying a description, an ordered set
  of options, an ordered set of positional arguments, a mapping of uniquely
  named child commands, and a terminal action (zero-argument callable).

Lifecycle
- Built once (constructor plus the attachment helpers command(), option(),
  argument() and handler()), then consulted read-only by the parser. Nothing
  in the parser mutates a Command.

Lookup
- find(name): exact, case-sensitive child lookup (None when absent).
- matching(name): every option whose aliases contain `name`, in declaration order.

Design notes
- A node routes a positional token either to a child command or to its
  positional arguments, never both: declaring both on one node is rejected.
- Duplicate aliases across options of one node are allowed but warned about
  (DuplicateAliasWarning); every matching option runs, in declaration order.
"""
import functools
import operator
import os.path
import re
import sys

from rich.text import Text

from .arguments import Option, Argument
from .faults import DuplicateAliasWarning, FaultCode, trigger
from .utils import *


def _idle():
    """
    Default terminal action: succeed without doing anything.
    """
    return None


class CommandType(type):
    """
    Metaclass exposing __introspectable__ fields as read-only properties and
    providing stable __repr__/__rich_repr__ (restricted to __displayable__).
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
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _attach_to_parent(self, parent):
    """
    Register this command under its parent, enforcing unique names and the
    arguments-or-children rule on the parent.
    """
    if parent._arguments:
        raise ValueError(f"{type(self).__typename__} {parent.name!r} declares positional arguments and cannot have subcommands")
    if parent._children.setdefault(name := self.name, self) is self:
        return
    typeof = "subcommand" if parent.parent else "command"
    raise ValueError(f"{type(self).__typename__} {typeof} name {name!r} is already in use")


class Command(metaclass=CommandType):
    """
    Node of the command tree.

    Attributes (read-only)
    - name: str, the token that selects this node (the program name for roots).
    - descr: str | Text | None, used by help rendering.
    - options: tuple[Option, ...], in declaration order.
    - arguments: tuple[Argument, ...], bound left to right.
    - children: mapping name -> Command.
    - parent: Command | None.
    - action: zero-argument callable run by the caller once parsing resolves here.
    """

    __introspectable__ = (
        "name",
        "descr",
        "options",
        "arguments",
        "children",
        "parent",
        "action",
    )

    # parent is left out: a child's repr would otherwise recurse through its parent's children
    __displayable__ = (
        "name",
        "descr",
        "options",
        "arguments",
        "children",
    )

    @property
    def root(self):
        """
        Topmost command of this hierarchy.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Ancestry from the root to this command (inclusive), e.g. for routes
        like 'tool build' in hints and help.
        """
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def terminal(self):
        """
        Whether parsing may stop here with no positional tokens left.
        """
        return not self._arguments and not self._children

    def __new__(
            cls,
            descr=Unset,
            /,
            options=(),
            arguments=(),
            action=Unset,
            *,
            name=Unset,
            parent=Unset,
    ):
        """
        Construct a command node.

        Parameters
        - descr: str | Text | Unset, short description for help.
        - options: Iterable[Option].
        - arguments: Iterable[Argument].
        - action: zero-argument callable; defaults to an idle action.
        - name: str; required for children, defaults to the program name for roots.
        - parent: Command | Unset; when given, the node is attached under it.

        Raises
        - TypeError / ValueError on invalid metadata, duplicate child names, or
          a parent that already declares positional arguments.
        """
        if not isinstance(parent, Command | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")

        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")

        if name is Unset:
            if parent:
                raise TypeError(f"{cls.__typename__} subcommands must specify a name")
            name = os.path.basename(sys.argv[0]) or "argtree"
        elif not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif parent and not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} name {name!r} must be a shell-style name (unicodes are allowed)")

        if not callable(action := coalesce(action, _idle)):
            raise TypeError(f"{cls.__typename__} 'action' must be callable")

        self = super().__new__(cls)
        self._name = name
        self._descr = coalesce(descr)
        self._options = []
        self._arguments = []
        self._children = {}
        self._parent = coalesce(parent)
        self._action = action
        self._handled = action is not _idle

        for option in options:
            self.option(option)
        for argument in arguments:
            self.argument(argument)

        if parent:
            _attach_to_parent(self, parent)
        return self

    def command(self, name, /, descr=Unset, options=(), arguments=(), action=Unset):
        """
        Create a child command under this one and return it.

        The child's action can be given here or attached later with
        child.handler (decorator-friendly):

            build = root.command("build", "compile things", options=[...])

            @build.handler
            def run_build():
                ...
        """
        return Command(descr, options, arguments, action, name=name, parent=self)

    def option(self, option, /):
        """
        Append an option to this node. Returns the option.

        Aliases already used by another option of this node are accepted (every
        matching option runs) but reported with a DuplicateAliasWarning.
        """
        if not isinstance(option, Option):
            raise TypeError(f"{type(self).__typename__} options must be Option instances")
        for name in option.names:
            if self.matching(name):
                trigger(DuplicateAliasWarning(
                    "option alias %r is declared more than once in %r" % (name, " ".join(step.name for step in self.path)),
                    title="duplicate option alias",
                    code=FaultCode.DUPLICATE_ALIAS,
                    name=name,
                    hint="every option declaring %r will run when it is given" % name,
                ))
        self._options.append(option)
        return option

    def argument(self, argument, /):
        """
        Append a positional argument to this node. Returns the argument.
        """
        if not isinstance(argument, Argument):
            raise TypeError(f"{type(self).__typename__} arguments must be Argument instances")
        if self._children:
            raise ValueError(f"{type(self).__typename__} {self.name!r} has subcommands and cannot declare positional arguments")
        if any(argument.name == other.name for other in self._arguments):
            raise ValueError(f"{type(self).__typename__} argument name {argument.name!r} is already in use")
        self._arguments.append(argument)
        return argument

    def handler(self, action, /):
        """
        Set the terminal action once; returns it so it can be used as a decorator.
        """
        if not callable(action):
            raise TypeError(f"{type(self).__typename__} handler must be callable")
        if self._handled:
            raise TypeError(f"{type(self).__typename__} handler cannot be overridden")
        self._action = action
        self._handled = True
        return action

    def find(self, name, /):
        """
        Child command named exactly `name`, or None.
        """
        return self._children.get(name)

    def matching(self, name, /):
        """
        Options of this node whose aliases contain `name`, in declaration order.
        """
        return tuple(option for option in self._options if option.matches(name))


__all__ = (
    "Command",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del CommandType
