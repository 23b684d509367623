r"""
POSIX-like command tokenizer.

Splits one command string into tokens without any shell involvement: nothing is
expanded, substituted or executed. Characters a shell would treat specially
(';', '|', '&', '`', '$', parentheses, redirections) are plain text here;
safety is structural (no execution path exists), not lexical filtering.

Grammar
- Whitespace (any unicode whitespace, including the full-width space and U+FEFF)
  outside quotes separates tokens; runs of whitespace collapse. The information
  separators U+001C..U+001F are ordinary text.
- '...' keeps everything verbatim, backslashes included.
- "..." keeps whitespace; backslash escapes stay active inside.
- \x outside single quotes yields x literally (quotes and whitespace included).

Limits (part of the contract, not tunable defaults)
- MAX_COMMAND_LENGTH characters of input.
- MAX_TOKEN_LENGTH characters per token.
- MAX_TOKENS tokens per command.

Quick example:
    >>> tokenize('search --tag "two words" -- --literal').value
    ('search', '--tag', 'two words', '--', '--literal')
"""
from collections.abc import Iterable

from .faults import *
from .results import Success, Failure

MAX_COMMAND_LENGTH = 10_000
MAX_TOKEN_LENGTH = 10_000
MAX_TOKENS = 100

# Characters rejected by the opt-in strict policy.
METACHARACTERS = frozenset(";|&`$()<>\\")


# str.isspace() also accepts the information separators U+001C..U+001F
_SEPARATORS = frozenset("\x1c\x1d\x1e\x1f")


def _isspace(char):
    return (char.isspace() and char not in _SEPARATORS) or char == "\ufeff"


class _Collector:
    """
    accumulate completed tokens while enforcing the per-token and count limits.

    limits are checked as each token completes, so the first offender wins.
    """
    __slots__ = ("tokens",)

    def __init__(self):
        self.tokens = []

    def push(self, token):
        if len(token) > MAX_TOKEN_LENGTH:
            raise TokenTooLongError(
                "argument exceeds maximum length of %d characters" % MAX_TOKEN_LENGTH,
                title="argument too long",
                hint="shorten the value or split it across several arguments",
                index=len(self.tokens),
            )
        if len(self.tokens) == MAX_TOKENS:
            raise TooManyTokensError(
                "too many arguments (max: %d)" % MAX_TOKENS,
                title="too many arguments",
                hint="pass fewer arguments per command",
            )
        self.tokens.append(token)


def _scan(input):
    collector = _Collector()
    current = []
    single = double = escaped = False

    for char in input:
        if escaped:
            current.append(char)
            escaped = False
            continue

        if char == "\\" and not single:
            escaped = True
            continue

        if char == "'" and not double:
            single = not single
            continue

        if char == '"' and not single:
            double = not double
            continue

        if _isspace(char) and not single and not double:
            if current:
                collector.push("".join(current))
            current.clear()
            continue

        current.append(char)

    if single:
        raise UnclosedQuoteError("unclosed single quote", title="unclosed quote", hint="add closing '")
    if double:
        raise UnclosedQuoteError("unclosed double quote", title="unclosed quote", hint='add closing "')

    if current:
        collector.push("".join(current))

    return tuple(collector.tokens)


def tokenize(input, /, *, strict=False):
    """
    Tokenize a command string.

    Parameters
    - input: str
      The raw command line.
    - strict: bool (keyword-only)
      Opt into the early injection policy: any shell metacharacter or backslash
      anywhere in the input is rejected with INJECTION_BLOCKED. Off by default,
      since no shell is ever invoked.

    Returns
    - Success(tuple[str, ...]) with tokens in left-to-right completion order
      (empty for empty or all-whitespace input), or
    - Failure(ParseError | InjectionBlockedError).

    Raises
    - TypeError when input is not a string (programmer error).
    """
    if not isinstance(input, str):
        raise TypeError("tokenize() argument must be a string")

    if len(input) > MAX_COMMAND_LENGTH:
        return Failure(CommandTooLongError(
            "command exceeds maximum length of %d characters" % MAX_COMMAND_LENGTH,
            title="command too long",
            hint="shorten the command or move large values into a file",
        ))

    if strict and (found := sorted(METACHARACTERS.intersection(input))):
        return Failure(InjectionBlockedError(
            "blocked shell metacharacter %r" % found[0],
            title="injection blocked",
            hint="remove shell syntax; commands are never run by a shell",
            characters=found,
        ))

    try:
        return Success(_scan(input))
    except ParseError as fault:
        return Failure(fault)


def sanitize(tokens, /):
    """
    Validate a pre-split token sequence (e.g., sys.argv[1:]) against the same limits.

    Returns
    - Success(tuple[str, ...]) or Failure(TokenTooLongError | TooManyTokensError).

    Raises
    - TypeError when tokens is not an iterable of strings (programmer error).
    """
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("sanitize() argument must be an iterable of strings")

    collector = _Collector()
    try:
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("sanitize() argument must be an iterable of strings")
            collector.push(token)
    except ParseError as fault:
        return Failure(fault)
    return Success(tuple(collector.tokens))


__all__ = (
    "MAX_COMMAND_LENGTH",
    "MAX_TOKEN_LENGTH",
    "MAX_TOKENS",
    "tokenize",
    "sanitize",
)
