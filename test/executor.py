"""
Executor behavioral tests (pipeline, built-ins, routing faults, handlers).

Scope
- Validate the end-to-end pipeline for string and token-list commands.
- Validate built-in help/schema/version commands and the --help/--version switches.
- Validate routing faults: unknown commands, missing subcommands, missing handlers.
- Validate sync/async handlers and conversion of handler exceptions.

Conventions
- Test method names follow CamelCase per project convention.
- Synchronous tests go through run(); async behavior through IsolatedAsyncioTestCase.
"""

import asyncio
import unittest
from unittest import TestCase, IsolatedAsyncioTestCase

from switchboard import (
    Argument,
    ArrayOf,
    Command,
    FaultCode,
    Kind,
    Registry,
    command,
    execute,
    run,
)
from switchboard.faults import (
    CommandException,
    CommandNotFoundError,
    DelegatedCommandError,
    EmptyCommandError,
    InvalidArgumentError,
    MissingHandlerError,
    SubcommandRequiredError,
    UnclosedQuoteError,
)


@command(
    arguments={
        "query": Argument(Kind.STRING, positional=0, descr="search terms"),
        "limit": Argument(Kind.INTEGER, short="n", default=10, ge=1, le=100),
        "tag": Argument(ArrayOf(Kind.STRING), default=()),
        "verbose": Argument(Kind.BOOLEAN, short="v", default=False),
    },
    examples=("search rust --limit 5",),
)
def search(query, limit, tag, verbose):
    """Search the index."""
    return {"query": query, "limit": limit, "tag": tag, "verbose": verbose}


@command(arguments={"a": Argument(Kind.NUMBER, positional=0), "b": Argument(Kind.NUMBER, positional=1)})
async def add(a, b):
    """Add two numbers."""
    await asyncio.sleep(0)
    return {"result": a + b}


@command
def fail():
    """Always fails."""
    raise RuntimeError("disk on fire")


@command
def refuse():
    """Fails with a command fault."""
    raise InvalidArgumentError("nothing to do", hint="try again later")


registry = Registry(
    {
        "search": search,
        "add": add,
        "fail": fail,
        "refuse": refuse,
        "users": Command(descr="manage users", subcommands={
            "list": Command(lambda: ["ada", "grace"], descr="list users"),
            "create": Command(lambda name: {"created": name}, descr="create a user", arguments={
                "name": Argument(positional=0),
            }),
        }),
        "orphan": Command(descr="declared without a handler"),
        "custom": Command(lambda help: {"help": help}, descr="declares its own help", arguments={
            "help": Argument(Kind.BOOLEAN, default=False),
        }),
    },
    name="tools",
    version="1.2.3",
)


class TestPipeline(TestCase):
    """End-to-end runs of registered commands."""

    def testSearch(self):
        outcome = run(registry, 'search "rust async" -n 5 --tag a --tag b -v')
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.value, {
            "query": "rust async",
            "limit": 5,
            "tag": ["a", "b"],
            "verbose": True,
        })

    def testDefaults(self):
        self.assertEqual(run(registry, "search rust").value["limit"], 10)

    def testTokenList(self):
        outcome = run(registry, ["search", "rust async", "--limit", "3"])
        self.assertEqual(outcome.value["query"], "rust async")
        self.assertEqual(outcome.value["limit"], 3)

    def testAsyncHandler(self):
        self.assertEqual(run(registry, "add 2 3").value, {"result": 5})

    def testNestedCommand(self):
        self.assertEqual(run(registry, "users create ada").value, {"created": "ada"})

    def testLiteralMetacharacters(self):
        self.assertEqual(run(registry, "search a;b").value["query"], "a;b")

    def testStrictMode(self):
        outcome = run(registry, "search a;b", strict=True)
        self.assertEqual(outcome.fault.code, FaultCode.INJECTION_BLOCKED)

    def testValidationFailure(self):
        outcome = run(registry, "search rust --limit 500")
        self.assertEqual(outcome.fault.code, FaultCode.VALIDATION_ERROR)

    def testResponseEnvelope(self):
        self.assertEqual(run(registry, "add 1 1").to_response(), {"success": True, "data": {"result": 2}})


class TestPipelineFaults(TestCase):
    """Faults produced before the handler runs."""

    def testEmptyCommand(self):
        outcome = run(registry, "   ")
        self.assertIsInstance(outcome.fault, EmptyCommandError)
        self.assertEqual(outcome.fault.code, FaultCode.PARSE_ERROR)
        self.assertIn("help", outcome.fault.hint)

    def testTokenizerFailure(self):
        self.assertIsInstance(run(registry, 'search "open').fault, UnclosedQuoteError)

    def testUnknownCommand(self):
        outcome = run(registry, "serch rust")
        self.assertIsInstance(outcome.fault, CommandNotFoundError)
        self.assertEqual(outcome.fault.code, FaultCode.COMMAND_NOT_FOUND)
        self.assertEqual(outcome.fault.options["suggestions"][0], "search")
        self.assertIn("did you mean 'search'", outcome.fault.hint)
        self.assertEqual(outcome.fault.to_dict()["examples"], ["search", "add", "fail"])

    def testSubcommandRequired(self):
        outcome = run(registry, "users")
        self.assertIsInstance(outcome.fault, SubcommandRequiredError)
        self.assertEqual(outcome.fault.code, FaultCode.VALIDATION_ERROR)
        self.assertIn("requires a subcommand", outcome.fault.message)
        self.assertEqual(outcome.fault.hint, "run 'help users' for available subcommands")

    def testUnknownSubcommandSuggestion(self):
        outcome = run(registry, "users lst")
        self.assertIsInstance(outcome.fault, SubcommandRequiredError)
        self.assertEqual(outcome.fault.options["suggestions"], ["list"])

    def testMissingHandler(self):
        outcome = run(registry, "orphan")
        self.assertIsInstance(outcome.fault, MissingHandlerError)
        self.assertEqual(outcome.fault.code, FaultCode.EXECUTION_ERROR)


class TestHandlerFaults(TestCase):
    """Exceptions raised by handlers."""

    def testExceptionBecomesExecutionError(self):
        outcome = run(registry, "fail")
        self.assertIsInstance(outcome.fault, DelegatedCommandError)
        self.assertEqual(outcome.fault.message, "command failed: disk on fire")
        self.assertIsInstance(outcome.fault.__cause__, RuntimeError)

    def testCommandFaultPassesThrough(self):
        outcome = run(registry, "refuse")
        self.assertIsInstance(outcome.fault, InvalidArgumentError)
        self.assertEqual(outcome.fault.hint, "try again later")

    def testUnwrapRaises(self):
        with self.assertRaises(CommandException):
            run(registry, "fail").unwrap()


class TestBuiltins(TestCase):
    """help, schema, version and the help/version switches."""

    def testRootHelp(self):
        payload = run(registry, "help").value
        self.assertEqual(payload["name"], "tools")
        self.assertEqual(
            [entry["name"] for entry in payload["commands"]],
            ["search", "add", "fail", "refuse", "users", "orphan", "custom"],
        )
        self.assertEqual(payload["examples"], ["search", "add", "fail"])

    def testCommandHelp(self):
        payload = run(registry, "help search").value
        self.assertEqual(payload["command"], "search")
        self.assertEqual(payload["description"], "Search the index.")
        names = [entry["name"] for entry in payload["arguments"]]
        self.assertEqual(names, ["--query", "--limit", "--tag", "--verbose"])
        self.assertEqual(payload["arguments"][1]["default"], 10)
        self.assertTrue(payload["arguments"][0]["required"])

    def testNestedHelpListsSubcommands(self):
        payload = run(registry, "help users").value
        self.assertEqual([entry["name"] for entry in payload["subcommands"]], ["list", "create"])

    def testUnknownHelp(self):
        self.assertIn("not found", run(registry, "help nope").value["description"])

    def testHelpSwitch(self):
        payload = run(registry, "users create --help").value
        self.assertEqual(payload["command"], "users create")

    def testShortHelpSwitch(self):
        self.assertEqual(run(registry, "search -h").value["command"], "search")

    def testHelpAfterTerminatorIsData(self):
        self.assertEqual(run(registry, "users create -- --help").value, {"created": "--help"})

    def testDeclaredHelpIsNotIntercepted(self):
        self.assertEqual(run(registry, "custom --help").value, {"help": True})

    def testSchema(self):
        payload = run(registry, "schema search").value
        schema = payload["inputSchema"]
        self.assertEqual(schema["type"], "object")
        self.assertEqual(list(schema["properties"]), ["query", "limit", "tag", "verbose"])
        self.assertEqual(schema["required"], ["query"])

    def testSchemaTree(self):
        tree = run(registry, "schema").value["commands"]
        self.assertIn("inputSchema", tree["search"])
        self.assertIn("create", tree["users"]["subcommands"])

    def testUnknownSchema(self):
        self.assertIn("error", run(registry, "schema nope").value)

    def testVersion(self):
        payload = run(registry, "version").value
        self.assertEqual(payload["implementation"], {"name": "tools", "version": "1.2.3"})

    def testVersionSwitch(self):
        self.assertEqual(run(registry, "--version").value, run(registry, "version").value)


class TestConcurrentExecution(IsolatedAsyncioTestCase):
    """One registry shared by concurrent invocations."""

    async def testGather(self):
        outcomes = await asyncio.gather(*(execute(registry, f"add {n} {n}") for n in range(10)))
        self.assertEqual([outcome.value["result"] for outcome in outcomes], [2 * n for n in range(10)])


if __name__ == '__main__':
    unittest.main()
