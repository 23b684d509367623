"""
python -m switchboard: run commands from a module without writing a front-end.

    python -m switchboard exec <target> <command...>
    python -m switchboard repl <target>
    python -m switchboard serve <target>

<target> is a module name, "module:attribute" or a path to a .py file (see
switchboard.shell.load). exec prints the JSON response envelope and exits with
status 1 on failure; serve runs one MCP tool over stdio. Options meant for the
loaded command go after "--" or inside one quoted command string.
"""
import sys

from fastmcp import FastMCP
from rich.console import Console

from . import __version__
from .arguments import Argument, ArrayOf, Kind
from .executor import execute, run
from .faults import trigger
from .registry import Registry, command
from .results import Outcome
from .shell import Shell, load
from .tool import serve

console = Console()


@command(
    arguments={
        "target": Argument(Kind.STRING, positional=0, descr="module, module:attribute or .py file"),
        "command": Argument(ArrayOf(Kind.STRING), positional=1, descr="command to run", min_length=1),
        "strict": Argument(Kind.BOOLEAN, default=False, descr="block shell metacharacters"),
    },
    examples=(
        "exec tools.py 'add 1 2'",
        "exec tools -- search rust --limit 5",
    ),
)
async def exec_command(target, command, strict):
    """Execute a single command and print the JSON response."""
    registry = load(target)
    return await execute(registry, command[0] if len(command) == 1 else command, strict=strict)


@command(
    arguments={
        "target": Argument(Kind.STRING, positional=0, descr="module, module:attribute or .py file"),
        "prompt": Argument(Kind.STRING, optional=True, descr="prompt text"),
        "strict": Argument(Kind.BOOLEAN, default=False, descr="block shell metacharacters"),
        "fancy": Argument(Kind.BOOLEAN, default=False, descr="render faults inside panels"),
    },
    examples=("repl tools.py",),
)
def repl_command(target, prompt, strict, fancy):
    """Start an interactive shell over the loaded commands."""
    options = {} if prompt is None else {"prompt": prompt}
    return Shell(load(target), strict=strict, fancy=fancy, **options)


@command(
    arguments={
        "target": Argument(Kind.STRING, positional=0, descr="module, module:attribute or .py file"),
        "name": Argument(Kind.STRING, default="cli", descr="tool name"),
        "strict": Argument(Kind.BOOLEAN, default=False, descr="block shell metacharacters"),
    },
    examples=("serve tools.py --name tools",),
)
def serve_command(target, name, strict):
    """Serve the loaded commands as one MCP tool over stdio."""
    return serve(load(target), name=name, strict=strict)


cli = Registry(
    {"exec": exec_command, "repl": repl_command, "serve": serve_command},
    name="switchboard",
    version=__version__,
    descr="run switchboard commands from a module",
    examples=("exec tools.py 'add 1 2'", "repl tools.py", "serve tools.py"),
)


def main(argv=None, /):
    outcome = run(cli, sys.argv[1:] if argv is None else argv)
    if not outcome:
        trigger(outcome.fault, shell=True, colorful=True, prog=cli.name)
        return 1
    if isinstance(result := outcome.value, Outcome):
        console.print_json(data=result.to_response(), default=str)
        return 0 if result else 1
    if isinstance(result, Shell):
        # the loop runs its own event loops, one per line
        result.loop()
        return 0
    if isinstance(result, FastMCP):
        result.run()
        return 0
    if result is not None:
        console.print_json(data=result, default=str)
    return 0


if __name__ == "__main__":
    sys.exit(main())
