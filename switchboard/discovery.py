"""
Discovery payloads: help, schema and version.

Each function reads the registry's static shape and returns a plain,
JSON-friendly dict; the executor wraps it in a Success. Nothing here parses
or validates input, so discovery works for any command path, known or not.

- help(registry, path): root overview or one command's description, subcommands
  and arguments.
- schema(registry, path): JSON Schema of every command (tree) or of one command,
  generated by the command's compiled pydantic model.
- version(registry): package and implementation versions.
"""
from .arguments import spelling
from .registry import extract_command_path, find_command, list_commands
from .utils import Unset

USAGE = "<command> [subcommand] [options]"


def _argument(name, argument):
    entry = {
        "name": spelling(name),
        "type": str(argument.kind),
        "required": argument.required,
    }
    if argument.has_default:
        entry["default"] = argument.default
    if argument.positional is not Unset:
        entry["positional"] = argument.positional
    if argument.short is not Unset:
        entry["short"] = "-" + argument.short
    if argument.descr:
        entry["description"] = argument.descr
    if examples := argument.examples:
        entry["examples"] = examples
    return entry


def _toplevel(registry):
    return [
        {"name": name, "description": descr}
        for name, descr in list_commands(registry)
        if " " not in name
    ]


def help(registry, path=(), /):
    """
    Build a help payload.

    - empty path: registry description, top-level commands, usage and examples
      (the registry's own examples, else the first three command names).
    - known path: the deepest matched command with its subcommands and arguments.
    - unknown first segment: a description naming the missing command plus the
      top-level commands.
    """
    path = tuple(path)
    if not path:
        return {
            "name": registry.name,
            "description": registry.descr,
            "commands": _toplevel(registry),
            "usage": USAGE,
            "examples": list(registry.examples) or [name for name, _ in list_commands(registry)[:3]],
        }

    matched, _ = extract_command_path(registry, path)
    if (node := find_command(registry, matched)) is None:
        return {
            "description": f"command {' '.join(path)!r} not found",
            "commands": _toplevel(registry),
        }

    payload = {"description": node.descr, "command": " ".join(matched)}
    if subcommands := node.subcommands:
        payload["subcommands"] = [
            {"name": name, "description": child.descr}
            for name, child in subcommands.items()
        ]
    if arguments := node.arguments:
        payload["arguments"] = [_argument(name, argument) for name, argument in arguments.items()]
    if examples := node.examples:
        payload["examples"] = list(examples)
    return payload


def _tree(children):
    tree = {}
    for name, node in children.items():
        entry = {"description": node.descr}
        if node.subcommands:
            entry["subcommands"] = _tree(node.subcommands)
        if node.arguments:
            entry["inputSchema"] = node.model.model_json_schema(by_alias=True)
        tree[name] = entry
    return tree


def schema(registry, path=(), /):
    """
    Build a schema payload: the whole command tree, or one command's input schema.
    """
    path = tuple(path)
    if not path:
        return {"commands": _tree(registry)}
    matched, _ = extract_command_path(registry, path)
    if (node := find_command(registry, matched)) is None:
        return {"error": f"command {' '.join(path)!r} not found"}
    return {
        "command": " ".join(matched),
        "inputSchema": node.model.model_json_schema(by_alias=True),
        "outputSchema": {"type": "object"},
    }


def version(registry, /):
    """
    Build a version payload.
    """
    from . import __version__

    return {
        "version": __version__,
        "implementation": {
            "name": registry.name,
            "version": registry.version,
        },
    }


__all__ = (
    "help",
    "schema",
    "version",
)
