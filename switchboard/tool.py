"""
MCP integration: a whole registry behind one tool.

Agents see a single tool taking one "command" string. Its description lists the
top-level commands; everything else (arguments, subcommands, schemas) is found
by running "help" or "schema" through the same tool.

- describe(registry, descr): the generated tool description.
- register(server, registry): add the tool to an existing FastMCP server.
- serve(registry): a FastMCP server exposing only that tool.

Each call runs execute() and returns the response envelope
({"success": ..., "data" | "error": ...}), failures included.

Quick start
    server = serve(registry, name="tools")
    server.run()  # stdio transport
"""
from typing import Annotated

from fastmcp import FastMCP
from pydantic import Field

from .executor import execute
from .registry import Registry
from .utils import *


def describe(registry, descr=Unset, /):
    """
    Build the tool description from the registry's top-level command names.
    """
    listing = f"Commands: {', '.join(registry)}. Run 'help' for details."
    return f"{descr} {listing}" if descr else listing


def register(server, registry, /, *, name="cli", descr=Unset, strict=False):
    """
    Register one tool named `name` on a FastMCP server.

    Parameters
    - server: FastMCP
    - registry: Registry
    - name: str (keyword-only), the tool name
    - descr: str (keyword-only), prepended to the generated command list
    - strict: bool (keyword-only), forwarded to the tokenizer

    Returns the server, so calls can be chained.
    """
    if not isinstance(registry, Registry):
        raise TypeError("register() argument must be a registry")
    if not isinstance(name, str) or not name.strip():
        raise TypeError("register() tool name must be a non-empty string")

    example = f"{next(iter(registry), 'help')} --help"

    async def invoke(command: Annotated[str, Field(description=f"command string (e.g., '{example}')")]) -> dict:
        outcome = await execute(registry, command, strict=strict)
        return outcome.to_response()

    server.tool(name=name.strip(), description=describe(registry, descr))(invoke)
    return server


def serve(registry, /, *, name=Unset, descr=Unset, strict=False):
    """
    Build a FastMCP server named after the registry, exposing it as one tool.
    """
    if not isinstance(registry, Registry):
        raise TypeError("serve() argument must be a registry")
    server = FastMCP(registry.name, instructions=registry.descr)
    return register(server, registry, name=coalesce(name, "cli"), descr=descr, strict=strict)


__all__ = (
    "describe",
    "register",
    "serve",
)
