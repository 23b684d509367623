"""
Tokenizer behavioral tests (quoting, escaping, limits, strict policy).

Scope
- Validate whitespace splitting, quote spans and backslash escapes.
- Validate the three size guards and the first-offender rule.
- Validate that shell metacharacters are literal unless strict mode is requested.
- Validate argv-style token lists through sanitize().

Conventions
- Test method names follow CamelCase per project convention.
"""

import unittest
from unittest import TestCase

from switchboard import tokenize, sanitize, MAX_TOKENS, MAX_COMMAND_LENGTH, FaultCode
from switchboard.faults import (
    UnclosedQuoteError,
    CommandTooLongError,
    TokenTooLongError,
    TooManyTokensError,
    InjectionBlockedError,
)


class TestTokenizeSplitting(TestCase):
    """Whitespace handling and quote spans."""

    def testSimpleWords(self):
        self.assertEqual(tokenize("search rust --limit 5").value, ("search", "rust", "--limit", "5"))

    def testWhitespaceRunsCollapse(self):
        self.assertEqual(tokenize("  a \t\t b\n c  ").value, ("a", "b", "c"))

    def testUnicodeWhitespaceSeparates(self):
        self.assertEqual(tokenize("a\u3000b\u00a0c\ufeffd").value, ("a", "b", "c", "d"))

    def testInformationSeparatorsAreText(self):
        self.assertEqual(tokenize("a\x1cb\x1fc d").value, ("a\x1cb\x1fc", "d"))

    def testEmptyInputYieldsNoTokens(self):
        outcome = tokenize("")
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.value, ())

    def testWhitespaceOnlyInputYieldsNoTokens(self):
        self.assertEqual(tokenize(" \t \u3000 ").value, ())

    def testDoubleQuotesKeepWhitespace(self):
        self.assertEqual(tokenize('say "hello   world"').value, ("say", "hello   world"))

    def testSingleQuotesKeepWhitespace(self):
        self.assertEqual(tokenize("say 'hello world'").value, ("say", "hello world"))

    def testQuotesJoinAdjacentText(self):
        self.assertEqual(tokenize('--name="John Smith"').value, ("--name=John Smith",))

    def testSingleQuoteInsideDoubleQuotes(self):
        self.assertEqual(tokenize('"it\'s"').value, ("it's",))

    def testDoubleQuoteInsideSingleQuotes(self):
        self.assertEqual(tokenize("'say \"hi\"'").value, ('say "hi"',))

    def testEmptyQuotesProduceNoToken(self):
        self.assertEqual(tokenize("a '' b").value, ("a", "b"))


class TestTokenizeEscapes(TestCase):
    """Backslash escapes outside and inside quote spans."""

    def testEscapedSpaceJoinsWords(self):
        self.assertEqual(tokenize(r"hello\ world").value, ("hello world",))

    def testEscapedQuoteIsLiteral(self):
        self.assertEqual(tokenize(r"\"quoted\"").value, ('"quoted"',))

    def testEscapeActiveInsideDoubleQuotes(self):
        self.assertEqual(tokenize(r'"a \" b"').value, ('a " b',))

    def testBackslashLiteralInsideSingleQuotes(self):
        self.assertEqual(tokenize(r"'C:\path\to'").value, (r"C:\path\to",))

    def testEscapedBackslash(self):
        self.assertEqual(tokenize(r"a\\b").value, ("a\\b",))

    def testTrailingBackslashIsDropped(self):
        self.assertEqual(tokenize("abc\\").value, ("abc",))


class TestTokenizeLiterals(TestCase):
    """Shell metacharacters are plain text by default."""

    def testMetacharactersAreLiteral(self):
        outcome = tokenize("echo a;b | c && $(rm) `x` > out < in")
        self.assertTrue(outcome.ok)
        self.assertEqual(
            outcome.value,
            ("echo", "a;b", "|", "c", "&&", "$(rm)", "`x`", ">", "out", "<", "in"),
        )

    def testStrictModeBlocksMetacharacters(self):
        outcome = tokenize("echo a;b", strict=True)
        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.fault, InjectionBlockedError)
        self.assertEqual(outcome.fault.code, FaultCode.INJECTION_BLOCKED)

    def testStrictModeBlocksBackslash(self):
        self.assertIsInstance(tokenize(r"a\ b", strict=True).fault, InjectionBlockedError)

    def testStrictModeAcceptsPlainInput(self):
        self.assertEqual(tokenize("search 'two words'", strict=True).value, ("search", "two words"))


class TestTokenizeFaults(TestCase):
    """Unclosed quotes and size guards."""

    def testUnclosedDoubleQuote(self):
        outcome = tokenize('say "hello')
        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.fault, UnclosedQuoteError)
        self.assertEqual(outcome.fault.message, "unclosed double quote")
        self.assertEqual(outcome.fault.code, FaultCode.PARSE_ERROR)
        self.assertIn('"', outcome.fault.hint)

    def testUnclosedSingleQuote(self):
        outcome = tokenize("say 'hello")
        self.assertIsInstance(outcome.fault, UnclosedQuoteError)
        self.assertEqual(outcome.fault.message, "unclosed single quote")

    def testUnclosedQuoteAfterLongContent(self):
        self.assertFalse(tokenize("x" * 5000 + ' "').ok)

    def testMaximumLengthAccepted(self):
        outcome = tokenize("x" * MAX_COMMAND_LENGTH)
        self.assertTrue(outcome.ok)
        self.assertEqual(len(outcome.value[0]), MAX_COMMAND_LENGTH)

    def testOverMaximumLengthRejected(self):
        outcome = tokenize("x" * (MAX_COMMAND_LENGTH + 1))
        self.assertIsInstance(outcome.fault, CommandTooLongError)
        self.assertEqual(outcome.fault.code, FaultCode.PARSE_ERROR)

    def testMaximumTokenCountAccepted(self):
        outcome = tokenize(" ".join("x" * MAX_TOKENS))
        self.assertEqual(len(outcome.value), MAX_TOKENS)

    def testOverMaximumTokenCountRejected(self):
        outcome = tokenize(" ".join("x" * (MAX_TOKENS + 1)))
        self.assertIsInstance(outcome.fault, TooManyTokensError)

    def testTokenCountCheckedBeforeUnclosedQuote(self):
        outcome = tokenize(" ".join("x" * (MAX_TOKENS + 1)) + ' "open')
        self.assertIsInstance(outcome.fault, TooManyTokensError)

    def testUnwrapRaisesFault(self):
        with self.assertRaises(UnclosedQuoteError):
            tokenize('"open').unwrap()

    def testNonStringInputRaises(self):
        with self.assertRaises(TypeError):
            tokenize(["a", "b"])


class TestTokenizeIdempotence(TestCase):
    """Re-tokenizing the space-joined output yields the same tokens."""

    def testRejoinedTokensAreStable(self):
        for line in (
            "search rust --limit 5",
            "a  b\tc",
            "x --tag=a --tag=b -- --literal",
            "deploy prod -fv --region eu-west-1",
        ):
            tokens = tokenize(line).value
            self.assertEqual(tokenize(" ".join(tokens)).value, tokens, line)


class TestSanitize(TestCase):
    """Pre-split token lists."""

    def testAcceptsList(self):
        self.assertEqual(sanitize(["a", "b c"]).value, ("a", "b c"))

    def testRejectsTooManyTokens(self):
        self.assertIsInstance(sanitize(["x"] * (MAX_TOKENS + 1)).fault, TooManyTokensError)

    def testRejectsLongToken(self):
        self.assertIsInstance(sanitize(["x" * (MAX_COMMAND_LENGTH + 1)]).fault, TokenTooLongError)

    def testRejectsString(self):
        with self.assertRaises(TypeError):
            sanitize("a b")

    def testRejectsNonStringItems(self):
        with self.assertRaises(TypeError):
            sanitize(["a", 1])


if __name__ == '__main__':
    unittest.main()
