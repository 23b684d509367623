"""
Switchboard executor: one command string in, one Outcome out.

Pipeline
1. tokenize the string (or sanitize a pre-split token list)
2. reject empty commands
3. answer the built-ins: help, schema, version (and a leading --version)
4. route the tokens through the registry
5. answer --help / -h for the matched command
6. report incomplete commands (subcommand required) and missing handlers
7. parse the argument tokens against the command's schema
8. call the handler with the typed arguments as keywords, awaiting awaitables

Every expected failure comes back as Failure(fault); a handler that raises is
reported as an EXECUTION_ERROR carrying the original exception as __cause__.
Built-in names take precedence over registered commands with the same name.
"""
import asyncio
import difflib
import inspect

from . import discovery
from .faults import *
from .parser import parse_arguments
from .registry import extract_command_path, find_command, list_commands
from .results import Success, Failure
from .tokenizer import tokenize, sanitize
from .utils import Unset

BUILTINS = ("help", "schema", "version")


def _wants_help(node, tokens):
    """
    internal: True when --help/-h appears before any "--" and the command does not
    declare the switch itself.
    """
    arguments = node.arguments
    shorts = {argument.short for argument in arguments.values()}
    for token in tokens:
        if token == "--":
            return False
        if token == "--help" and "help" not in arguments:
            return True
        if token == "-h" and "h" not in shorts:
            return True
    return False


def _suggest(word, choices):
    return difflib.get_close_matches(word, list(choices), 5)


def _not_found(registry, token):
    suggestions = _suggest(token, registry)
    return CommandNotFoundError(
        f"command {token!r} not found",
        title="unknown command",
        hint=f"did you mean {suggestions[0]!r}? run 'help' for available commands"
        if suggestions else "run 'help' for available commands",
        suggestions=suggestions,
        examples=[name for name, _ in list_commands(registry)[:3]],
    )


def _incomplete(node, path, rest):
    route = " ".join(path)
    suggestions = _suggest(rest[0], node.subcommands) if rest and not rest[0].startswith("-") else []
    if suggestions:
        hint = f"did you mean '{route} {suggestions[0]}'?"
    else:
        hint = f"run 'help {route}' for available subcommands"
    return SubcommandRequiredError(
        f"{route!r} requires a subcommand",
        title="subcommand required",
        hint=hint,
        path=route,
        suggestions=suggestions,
        examples=[f"{route} {name}" for name in list(node.subcommands)[:3]],
    )


async def execute(registry, command, /, *, strict=False):
    """
    Run one command against a registry.

    Parameters
    - registry: Registry
    - command: str | Iterable[str]
      A raw command string (tokenized) or a pre-split token list (argv style).
    - strict: bool (keyword-only)
      Forwarded to tokenize() for string commands.

    Returns
    - Success(handler result | discovery payload) or Failure(fault).
    """
    if isinstance(command, str):
        outcome = tokenize(command, strict=strict)
    else:
        outcome = sanitize(command)
    if not outcome:
        return outcome

    if not (tokens := outcome.value):
        return Failure(EmptyCommandError(
            "empty command",
            title="empty command",
            hint="run 'help' for available commands",
        ))

    match tokens[0]:
        case "help":
            return Success(discovery.help(registry, tokens[1:]))
        case "schema":
            return Success(discovery.schema(registry, tokens[1:]))
        case "version" | "--version":
            return Success(discovery.version(registry))

    path, rest = extract_command_path(registry, tokens)
    if not path:
        return Failure(_not_found(registry, tokens[0]))

    node = find_command(registry, path)
    if _wants_help(node, rest):
        return Success(discovery.help(registry, path))

    if node.handler is Unset:
        if node.subcommands:
            return Failure(_incomplete(node, path, rest))
        return Failure(MissingHandlerError(
            f"command {' '.join(path)!r} has no handler",
            title="missing handler",
            path=" ".join(path),
        ))

    if not (outcome := parse_arguments(rest, node)):
        return outcome

    try:
        result = node.handler(**outcome.value)
        if inspect.isawaitable(result):
            result = await result
    except CommandException as fault:
        return Failure(fault)
    except Exception as exception:
        fault = DelegatedCommandError(
            f"command failed: {exception}",
            title="command failed",
            path=" ".join(path),
        )
        fault.__cause__ = exception
        return Failure(fault)

    return Success(result)


def run(registry, command, /, *, strict=False):
    """
    Synchronous wrapper around execute() for callers without an event loop.
    """
    return asyncio.run(execute(registry, command, strict=strict))


__all__ = (
    "BUILTINS",
    "execute",
    "run",
)
