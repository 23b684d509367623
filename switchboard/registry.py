"""
Switchboard command layer: command nodes, the registry and the router.

What this module provides
- Command: one node of the command tree. It wraps an optional handler and
  carries its description, examples, argument schema and nested subcommands.
  Nodes are immutable once built and can be shared by concurrent invocations.
- command(...): create a Command or a decorator that produces one.
- Registry: read-only mapping of top-level command names to Commands, plus the
  program name and version used by discovery. discover(module) collects the
  commands a module exposes, ready to be merged with |.
- Router: extract_command_path(), find_command() and list_commands().

Core ideas
- Static shape: everything a parse needs (kinds, indexes, aliases, the compiled
  validation model) is decided when a Command is built, never at parse time.
- Eager rejection: a schema with duplicate positional indexes or short aliases is
  a programmer error and raises on construction.
- Copy-on-write: hot reloading means building a new Registry and swapping the
  reference, never mutating nodes in place.

Quick start
    from switchboard import Argument, Kind, Registry, command

    @command(arguments={"query": Argument(Kind.STRING, positional=0)})
    def search(query):
        "Search the index."
        return {"query": query}

    registry = Registry({"search": search}, name="tools", version="1.0.0")
"""
import functools
import inspect
import operator
import re
from collections.abc import Mapping, Iterable
from types import MappingProxyType

from .arguments import Argument
from .parser import build_model
from .utils import *


class CommandType(type):
    """
    Metaclass providing read-only introspectable properties and stable reprs.

    - every name in __introspectable__ becomes a mirror() property over "_{name}".
    - __displayable__ narrows which properties are shown by __rich_repr__.
    - __typename__ is derived from the class name for messages.
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
                name: mirror(name, frozen=True) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, /, *, label="command"):
    """
    Internal: validate one command name.

    Names are non-empty, contain no whitespace and never start with '-' (a token
    starting with '-' always ends the command path).
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {label} name must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} {label} name cannot be empty")
    elif any(map(str.isspace, name)):
        raise ValueError(f"{cls.__typename__} {label} name {name!r} cannot contain whitespace")
    elif name.startswith("-"):
        raise ValueError(f"{cls.__typename__} {label} name {name!r} cannot start with '-'")
    return name


def _sanitize_children(cls, children, /, *, label="subcommand"):
    """
    Internal: validate a name → Command mapping and freeze it.

    Static nested descriptions are accepted too: a plain mapping value is built
    into a Command with its "handler" key as the handler and the rest as metadata.
    """
    if not isinstance(children, Mapping):
        raise TypeError(f"{cls.__typename__} {pluralize(label)} must be a mapping")
    sanitized = {}
    for name, child in children.items():
        _sanitize_name(cls, name, label=label)
        if isinstance(child, Mapping):
            child = dict(child)
            child = Command(child.pop("handler", Unset), **child)
        elif not isinstance(child, Command):
            raise TypeError(f"{cls.__typename__} {label} {name!r} must be a command")
        sanitized[name] = child
    return MappingProxyType(sanitized)


def _sanitize_arguments(cls, arguments, /):
    """
    Internal: validate an argument schema and enforce schema-level uniqueness.

    - field names are python identifiers (handlers receive them as keywords).
    - no two fields share a positional index or a short alias.
    """
    if not isinstance(arguments, Mapping):
        raise TypeError(f"{cls.__typename__} 'arguments' must be a mapping")

    positionals = {}
    shorts = {}
    for name, argument in arguments.items():
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} argument names must be strings")
        elif not name.isidentifier():
            raise ValueError(f"{cls.__typename__} argument name {name!r} must be a valid identifier")
        if not isinstance(argument, Argument):
            raise TypeError(f"{cls.__typename__} argument {name!r} must be an argument")

        if (index := argument.positional) is not Unset:
            if (other := positionals.setdefault(index, name)) != name:
                raise ValueError(
                    f"{cls.__typename__} arguments {other!r} and {name!r} share positional index {index}"
                )
        if (short := argument.short) is not Unset:
            if (other := shorts.setdefault(short, name)) != name:
                raise ValueError(
                    f"{cls.__typename__} arguments {other!r} and {name!r} share short alias '-{short}'"
                )

    return MappingProxyType(dict(arguments))


class Command(metaclass=CommandType):
    """
    One node of the command tree.

    A node with subcommands and no handler requires a subcommand; a leaf without a
    handler is reported by the executor when invoked. Calling a Command calls its
    handler directly, so decorated functions stay usable as plain functions.

    Properties
    - handler, descr, examples, arguments, subcommands: read-only mirrors.
    - model: the pydantic model validating this command's arguments.
    """
    __introspectable__ = (
        "handler",
        "descr",
        "examples",
        "arguments",
        "subcommands",
    )
    __displayable__ = (
        "descr",
        "arguments",
        "subcommands",
    )

    def __init__(self, handler=Unset, /, descr=Unset, arguments=Unset, subcommands=Unset, examples=()):
        """
        Build a command node.

        Parameters
        - handler: Unset | Callable
          Called with the parsed arguments as keywords; may return an awaitable.
        - descr: str
          Required. Defaults to the first paragraph of the handler's docstring.
        - arguments: Mapping[str, Argument]
        - subcommands: Mapping[str, Command | Mapping]
        - examples: Iterable[str]

        Raises
        - TypeError/ValueError on invalid metadata, names or schemas.
        """
        cls = type(self)

        if handler is not Unset and not callable(handler):
            raise TypeError(f"{cls.__typename__} handler must be callable")

        if descr is Unset and handler is not Unset and (docstring := inspect.getdoc(handler)):
            descr = docstring.split("\n\n")[0]
        if descr is Unset:
            raise TypeError(f"{cls.__typename__} 'descr' is required")
        elif not isinstance(descr, str):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        elif not (descr := " ".join(descr.split())):
            raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")

        if isinstance(examples, str) or not isinstance(examples, Iterable):
            raise TypeError(f"{cls.__typename__} 'examples' must be an iterable of strings")
        examples = tuple(examples)
        if not all(isinstance(example, str) and example.strip() for example in examples):
            raise ValueError(f"{cls.__typename__} 'examples' must contain non-empty strings")

        arguments = _sanitize_arguments(cls, coalesce(arguments, {}))
        subcommands = _sanitize_children(cls, coalesce(subcommands, {}))

        object.__setattr__(self, "_handler", handler)
        object.__setattr__(self, "_descr", descr)
        object.__setattr__(self, "_examples", examples)
        object.__setattr__(self, "_arguments", arguments)
        object.__setattr__(self, "_subcommands", subcommands)
        object.__setattr__(self, "_model", build_model(arguments, name=getattr(handler, "__name__", "command")))

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__typename__} is read-only")

    @property
    def model(self):
        return self._model

    @property
    def requires_subcommand(self):
        return bool(self._subcommands) and self._handler is Unset

    def __call__(self, *args, **kwargs):
        if self._handler is Unset:
            raise TypeError(f"{type(self).__typename__} has no handler")
        return self._handler(*args, **kwargs)


def command(source=Unset, /, **kwargs):
    """
    Create a Command or return a decorator that builds one.

    Invocation modes
    - Direct: cmd = command(func, descr="...", arguments={...})
    - Decorator:
        @command(arguments={...})
        def func(...): ...

    Keyword arguments are forwarded to Command (descr, arguments, subcommands, examples).
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


class Registry(Mapping):
    """
    Read-only mapping of top-level command names to Commands.

    Besides the commands, a registry carries the program name, version, description
    and examples shown by discovery. It never changes after construction:
    replace() and the | operator return new registries.
    """
    __typename__ = "registry"

    def __init__(self, commands=Unset, /, *, name="switchboard", version="0.0.0", descr=Unset, examples=()):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("registry name must be a non-empty string")
        if not isinstance(version, str):
            raise TypeError("registry version must be a string")
        if not isinstance(descr, str | Unset):
            raise TypeError("registry description must be a string")
        if isinstance(examples, str) or not isinstance(examples, Iterable):
            raise TypeError("registry examples must be an iterable of strings")

        self._commands = _sanitize_children(Registry, coalesce(commands, {}), label="command")
        self._name = name.strip()
        self._version = version
        self._descr = coalesce(descr, f"{self._name} commands")
        self._examples = tuple(examples)

    name = mirror("name")
    version = mirror("version")
    descr = mirror("descr")
    examples = mirror("examples", frozen=True)

    def __getitem__(self, name, /):
        return self._commands[name]

    def __iter__(self):
        return iter(self._commands)

    def __len__(self):
        return len(self._commands)

    def __repr__(self):
        return f"registry(name={self._name!r}, commands={list(self._commands)!r})"

    def __or__(self, other, /):
        """
        Merge two registries (or a registry and a mapping of commands) into a new one.

        Raises ValueError when both sides define the same command name.
        """
        if not isinstance(other, Mapping):
            return NotImplemented
        if collisions := sorted(set(self._commands).intersection(other)):
            raise ValueError(f"command name {collisions[0]!r} is already in use")
        return self.replace(commands={**self._commands, **other})

    def replace(self, **overrides):
        """
        Return a copy of this registry with some of its settings replaced.
        """
        options = {
            "commands": self._commands,
            "name": self._name,
            "version": self._version,
            "descr": self._descr,
            "examples": self._examples,
        } | overrides
        return Registry(options.pop("commands"), **options)


def discover(module, /):
    """
    Collect the commands a module exposes, as a name → Command dict.

    A "commands" mapping attribute wins; otherwise public module-level Commands
    are collected under their attribute names.
    """
    if isinstance(commands := getattr(module, "commands", None), Mapping):
        return dict(commands)
    return {
        name: object
        for name, object in inspect.getmembers(module)
        if isinstance(object, Command) and not name.startswith("_")
    }


def extract_command_path(registry, tokens, /):
    """
    Split tokens into (matched command path, remaining argument tokens).

    Walks from the root; stops at the first token starting with '-' or at the first
    token that is not a child of the current level. Never backtracks.

    Example
    - ["a", "b", "c", "--x", "1"] → (("a", "b", "c"), ("--x", "1"))
    - ["a", "--help", "b"]        → (("a",), ("--help", "b"))
    """
    tokens = tuple(tokens)
    children = registry
    path = []
    for token in tokens:
        if token.startswith("-") or token not in children:
            break
        path.append(token)
        children = children[token].subcommands
    return tuple(path), tokens[len(path):]


def find_command(registry, path, /):
    """
    Resolve a command path to its node.

    Returns None for an empty path or an unknown first segment; otherwise the
    deepest node matched so far (a known parent with an unknown child resolves
    to the parent).
    """
    path = tuple(path)
    if not path or path[0] not in registry:
        return None
    node = registry[path[0]]
    for segment in path[1:]:
        if segment not in node.subcommands:
            break
        node = node.subcommands[segment]
    return node


def list_commands(registry, /):
    """
    List every command as (qualified name, description), depth-first in insertion order.

    Parents precede their children; qualified names join path segments with single spaces.
    """
    def walk(children, prefix):
        for name, node in children.items():
            yield " ".join((*prefix, name)), node.descr
            yield from walk(node.subcommands, (*prefix, name))

    return list(walk(registry, ()))


__all__ = (
    "Command",
    "command",
    "Registry",
    "discover",
    "extract_command_path",
    "find_command",
    "list_commands",
)

del CommandType
