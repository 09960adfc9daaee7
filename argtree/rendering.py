"""
Argtree help and version rendering (rich).

Both renderers write to a caller-provided rich Console so hosts and tests can
capture output (Console(file=io.StringIO())).

Palette keys
- help: usage-label, program-name, usage-section, description-section,
  group-label, argument-description, option-name, metavar, children-title,
  children-table, children, children-description, panel-title
- version: program-name, program-version, panel-title

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed.
- When fancy is True, output is wrapped in a Panel.
"""
from collections import defaultdict, deque

from rich.box import ROUNDED
from rich.console import Group
from rich.containers import Lines
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Arity


def _palette(palette, colorful):
    styles = defaultdict(str, palette | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        # Normalize to Text; strip styles in non-colorful mode but keep existing Text spans otherwise.
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment.copy()
        return Text(str(fragment), style)

    return styler, text


def flag(name, prefix="-"):
    """
    Display form of an option alias: one prefix for single-character names
    ("-v"), two otherwise ("--version").
    """
    return prefix * (1 + (len(name) > 1)) + name


def render_help(console, command, /, *, prefix="-", colorful=False, fancy=False):
    """
    Render help for `command` (a node of the command tree) to `console`.

    Layout
    - usage line: route from the root, visible options, then either
      "<command>" or the positional argument metavars.
    - description paragraph.
    - children table (commands of the root, subcommands below it).
    - options and arguments groups with hanging-indent descriptions.
    """
    styler, text = _palette({
        # === Head sections ===
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "usage-section": "bold #36C5F0",
        "description-section": "italic #A3A3A3",

        # === Groups / arguments ===
        "group-label": "bold #FFFFFF",
        "argument-description": "#9CA3AF",
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",

        # === Children table ===
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    }, colorful)

    renders = []
    width = console.width - 4 * fancy
    route = " ".join(step.name for step in command.path)

    def names(option):
        return Text(", ").join(text(flag(name, prefix), styler("option-name")) for name in option.names)

    def metavar(spec):
        label = spec.metavar or "VALUE"
        match getattr(spec, "arity", Arity.REQUIRED):
            case Arity.REQUIRED:
                return Text.assemble("<", text(label, styler("metavar")), ">")
            case Arity.OPTIONAL:
                return Text.assemble("[", text(label, styler("metavar")), "]")
            case _:
                return Text("")

    options = [option for option in command.options if not option.hidden]
    arguments = [argument for argument in command.arguments if not argument.hidden]

    # Usage line: route + [options] + positionals or <command>, wrapped under the route
    usage = Text()
    usage.append(text("usage", styler("usage-label"))).append(":")
    usage.append(" ")
    usage.append(text(route, styler("program-name")))
    usage.append(" ")
    offset = len(usage)

    inputs = deque()
    for option in options:
        if value := metavar(option):
            inputs.append(Text.assemble("[", text(flag(option.names[0], prefix), styler("option-name")), " ", value, "]"))
        else:
            inputs.append(Text.assemble("[", text(flag(option.names[0], prefix), styler("option-name")), "]"))
    for argument in arguments:
        inputs.append(text(argument.metavar or argument.name.upper(), styler("metavar")))
    if command.children:
        inputs.append(text("<command>", styler("usage-section")))

    try:
        lines = Lines([inputs.popleft()])
    except IndexError:
        lines = Lines()
    while inputs:
        if len(lines[-1]) + 1 + len(input := inputs.popleft()) > width - offset:
            lines.append(input)
        else:
            lines[-1].append(Text(" ") + input)
    try:
        usage.append(lines.pop(0))
    except IndexError:
        usage.rstrip()
    for line in lines:
        usage.append("\n").append(" " * offset).append(line)
    renders.append(usage.append("\n"))

    if command.descr:
        renders.append(text(command.descr, styler("description-section")).append("\n"))

    if command.children:
        typeof = "subcommands" if command.parent else "commands"
        table = Table(
            "name", "help",
            title=text(typeof, styler("children-title")),
            width=int(width * (2 / 3)),
            box=ROUNDED,
            style=styler("children-table"),
            header_style=styler("children-title"),
        )
        # "--help <name>" only resolves top-level commands of a root that declares it
        hinted = command.parent is None and command.matching("help")
        for name, child in command.children.items():
            if child.descr:
                help = text(child.descr, styler("children-description"))
            elif hinted:
                help = text(f"run '{route} {prefix * 2}help {name}' for details", styler("children-description"))
            else:
                help = Text("")
            table.add_row(text(name, styler("children")), help)
        renders.append(table)

    groups = Text("\n" if command.children else "")
    sections = {
        "options": [(names(option), metavar(option), option.descr) for option in options],
        "arguments": [(text(argument.metavar or argument.name.upper(), styler("metavar")), Text(""), argument.descr) for argument in arguments],
    }
    sections = {group: rows for group, rows in sections.items() if rows}

    padding = 2
    indent = 24
    for index, (group, rows) in enumerate(sections.items()):
        groups.append(text(group, styler("group-label"))).append(":")
        groups.append("\n")
        for label, value, descr in rows:
            section = Text(" " * padding)
            section.append(label)
            if value:
                section.append(" ").append(value)
            if descr := text(descr, styler("argument-description")):
                if len(section) >= indent:
                    section.append("\n").append(" " * indent)
                else:
                    section.append(" " * (indent - len(section)))
                wrapped = descr.wrap(console, max(width - indent, 1))
                try:
                    section.append(wrapped.pop(0))
                except IndexError:
                    pass
                for line in wrapped:
                    section.append("\n").append(" " * indent).append(line)
            groups.append(section).append("\n")
        groups.append("\n" * (index < len(sections) - 1))

    if groups:
        renders.append(groups)

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()
    renderable = Group(*renders)

    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{route} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    console.print(renderable)


def render_version(console, name, version, /, *, colorful=False, fancy=False):
    """
    Render "<name> — <version>" to `console`.
    """
    styler, text = _palette({
        "program-name": "bold #FF4D94",
        "program-version": "bold #00E6FF",
        "panel-title": "bold #FF4D94",
    }, colorful)

    renderable = Text(" — ").join((
        text(name, styler("program-name")),
        text(version, styler("program-version")),
    ))

    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{name} VERSION".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    console.print(renderable)


__all__ = (
    "flag",
    "render_help",
    "render_version",
)
