"""
Interactive front-end and command loading.

- load(target): build a Registry from a module name, "module:attribute", or a
  path to a .py file.
- Shell: a line-oriented REPL over a registry. Each line is executed as one
  command; payloads print as JSON, faults render through rich on stderr.

Meta-commands: ".exit" / "exit" quit, ".clear" clears the screen.
"""
import importlib
import importlib.util
import pathlib
import sys
from collections.abc import Mapping

from rich.console import Console
from rich.text import Text

from .executor import run, BUILTINS
from .faults import trigger
from .arguments import spelling
from .registry import Command, Registry, discover, extract_command_path, find_command, list_commands
from .utils import *


def _module(target):
    if target.endswith(".py") or "/" in target or "\\" in target:
        path = pathlib.Path(target).resolve()
        if not path.is_file():
            raise FileNotFoundError(f"file not found: {path}")
        spec = importlib.util.spec_from_file_location(path.stem, path)
        module = importlib.util.module_from_spec(spec)
        sys.modules.setdefault(path.stem, module)
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(target)


def load(target, /, *, name=Unset, version=Unset):
    """
    Load a Registry from a module.

    Targets
    - "pkg.tools": a module's "commands" mapping, or its public module-level Commands
    - "pkg.tools:registry": one attribute (a Registry, a mapping of commands, or a Command)
    - "./tools.py": a module loaded from a file path, same rules as a module name

    Raises
    - TypeError: when target is not a string or the attribute is not command-shaped.
    - ValueError: when no commands are found.
    - ImportError / FileNotFoundError / AttributeError: when the target cannot be resolved.
    """
    if not isinstance(target, str):
        raise TypeError("load() argument must be a string")

    location, separator, attribute = target.strip().rpartition(":")
    if not separator or not attribute.isidentifier():
        location, attribute = target.strip(), Unset

    module = _module(location)
    options = {
        "name": coalesce(name, pathlib.Path(location).stem if location.endswith(".py") else location),
        "version": coalesce(version, str(getattr(module, "__version__", "0.0.0"))),
    }

    if attribute is Unset:
        commands = discover(module)
    elif isinstance(object := getattr(module, attribute), Registry):
        return object if name is Unset and version is Unset else object.replace(**options)
    elif isinstance(object, Command):
        commands = {attribute: object}
    elif isinstance(object, Mapping):
        commands = dict(object.items())
    else:
        raise TypeError(f"attribute {attribute!r} of {location!r} is not a registry or command mapping")

    if not commands:
        raise ValueError(f"no commands found in {target!r}")
    return Registry(commands, **options)


class Shell:
    """
    Line-oriented REPL bound to one registry.

    Parameters
    - registry: Registry
    - prompt: str (defaults to "<name>> ")
    - console: rich Console used for input and JSON output
    - colorful/fancy: rendering switches forwarded to faults
    - strict: forwarded to the tokenizer
    """

    def __init__(self, registry, /, *, prompt=Unset, console=Unset, colorful=True, fancy=False, strict=False):
        if not isinstance(registry, Registry):
            raise TypeError("shell() argument must be a registry")
        self.registry = registry
        self.prompt = coalesce(prompt, f"{registry.name}> ")
        self.console = coalesce(console, Console())
        self.colorful = colorful
        self.fancy = fancy
        self.strict = strict
        self.running = False

    def banner(self):
        count = len(list_commands(self.registry))
        self.console.print(Text.assemble(
            (self.registry.name, "bold"), " ", (f"v{self.registry.version}", "dim"),
        ))
        self.console.print(Text(f"loaded {count} {pluralize('command') if count != 1 else 'command'}", "dim"))
        self.console.print(Text("type 'help' for commands, '.exit' to quit", "dim"))

    def completions(self, line, /):
        """
        Candidates for the last word of line.

        The first word completes to top-level names, built-ins and meta-commands;
        later words complete to the matched command's subcommands and options.
        """
        words = line.split()
        if not words or line[-1].isspace():
            words.append("")
        *head, word = words
        if head[:1] in (["help"], ["schema"]):
            head = head[1:]
            names = [*self.registry] if not head else []
        elif not head:
            names = [*self.registry, *BUILTINS, ".exit", ".clear"]
        else:
            names = []

        path, rest = extract_command_path(self.registry, head)
        if (node := find_command(self.registry, path)) is not None and not rest:
            names = [*node.subcommands, *map(spelling, node.arguments)]
        elif node is not None:
            names = [*map(spelling, node.arguments)]
        return [name for name in names if name.startswith(word)]

    def _complete(self, text, state, /):
        import readline

        matches = self.completions(readline.get_line_buffer()[:readline.get_endidx()])
        return matches[state] if state < len(matches) else None

    def handle(self, line, /):
        """
        Execute one line. Returns the Outcome, or None for blank lines and meta-commands.
        """
        if not (line := line.strip()):
            return None
        if line in (".exit", "exit"):
            self.running = False
            return None
        if line == ".clear":
            self.console.clear()
            return None

        outcome = run(self.registry, line, strict=self.strict)
        if outcome:
            self.console.print_json(data=outcome.value, default=str)
        else:
            trigger(
                outcome.fault,
                shell=True,
                colorful=self.colorful,
                fancy=self.fancy,
                prog=self.registry.name,
            )
        return outcome

    def loop(self):
        """
        Read and execute lines until .exit, end of input or interrupt.
        Tab completes the current word through readline.
        """
        import readline

        readline.set_completer(self._complete)
        readline.set_completer_delims(" \t\n")
        readline.parse_and_bind("tab: complete")
        self.running = True
        self.banner()
        while self.running:
            try:
                line = self.console.input(self.prompt)
            except (EOFError, KeyboardInterrupt):
                break
            self.handle(line)
        self.running = False
        self.console.print(Text("bye!", "dim"))


__all__ = (
    "load",
    "Shell",
)
