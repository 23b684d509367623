"""
Switchboard faults (errors) and rendering.

Scope
- FaultCode: canonical, stable identifiers for every user-facing failure. These
  are the codes carried by the response envelope handed back to agents.
- CommandException: base type that carries a message + read-only options and knows
  how to render itself (rich) and how to serialize itself (to_dict).
- trigger(): central entry point to surface a fault (raise it, or render it in shell mode).

UX goals
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The tokenizer, router, parser and executor never raise these for expected
  failures: they return Failure(fault). Callers that prefer exceptions use
  Outcome.unwrap(), which raises the carried fault.
- Terminal front-ends render faults via rich on stderr.
"""
import sys
from collections import defaultdict
from enum import StrEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(StrEnum):
    """
    canonical fault codes (stable identifiers shared with the response envelope).

    grouping
    - tokenization: PARSE_ERROR, INJECTION_BLOCKED
    - routing: COMMAND_NOT_FOUND
    - arguments (and incomplete commands): VALIDATION_ERROR
    - handlers: EXECUTION_ERROR
    """
    PARSE_ERROR       = "PARSE_ERROR"
    INJECTION_BLOCKED = "INJECTION_BLOCKED"
    COMMAND_NOT_FOUND = "COMMAND_NOT_FOUND"
    VALIDATION_ERROR  = "VALIDATION_ERROR"
    EXECUTION_ERROR   = "EXECUTION_ERROR"

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application can provide a __codes__ mapping in __main__ to
        display friendlier labels; the serialized code never changes.
        """
        return str(getattr(sys.modules.get("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base fault: a message plus read-only options.

    well-known options
    - code: FaultCode (defaults to the class __fault__)
    - title: short lowercase title for the rendered header
    - hint: one actionable sentence
    - examples: sequence of example command strings
    - path: dotted field path (argument faults) or command route
    - shell/fancy/colorful/prog: rendering switches (see trigger())
    """
    __fault__ = FaultCode.EXECUTION_ERROR

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code", type(self).__fault__)

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return self.message or ""

    def to_dict(self):
        """
        serialize as the "error" member of the response envelope.

        keys: code, message, and hint/examples only when present.
        """
        detail = {"code": str(self.code), "message": str(self)}
        if self.hint:
            detail["hint"] = self.hint
        if examples := self.options.get("examples"):
            detail["examples"] = list(examples)
        return detail

    def __rich__(self):
        main = sys.modules.get("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        prog = getattr(main, "__prog__", self.options.get("prog", "switchboard"))

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(FaultCode(self.code).normalize(), "code"),
            " | ",
            text(self.options.get("title", type(self).__name__).title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        parts = [message]
        if self.hint:
            parts.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*parts), title=header, title_align="left")

        return Group(header, *parts)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParseError(CommandException):
    __fault__ = FaultCode.PARSE_ERROR

class EmptyCommandError(ParseError): ...
class UnclosedQuoteError(ParseError): ...
class CommandTooLongError(ParseError): ...
class TokenTooLongError(ParseError): ...
class TooManyTokensError(ParseError): ...


class InjectionBlockedError(CommandException):
    __fault__ = FaultCode.INJECTION_BLOCKED


class CommandNotFoundError(CommandException):
    __fault__ = FaultCode.COMMAND_NOT_FOUND


class ArgumentError(CommandException):
    __fault__ = FaultCode.VALIDATION_ERROR

class UnknownOptionError(ArgumentError): ...
class OptionValueRequiredError(ArgumentError): ...
class NegationError(ArgumentError): ...
class InvalidArgumentError(ArgumentError): ...
class MissingArgumentError(InvalidArgumentError): ...
class SubcommandRequiredError(ArgumentError): ...


class ExecutionError(CommandException):
    __fault__ = FaultCode.EXECUTION_ERROR

class MissingHandlerError(ExecutionError): ...
class DelegatedCommandError(ExecutionError): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandException",
    "ParseError",
    "EmptyCommandError",
    "UnclosedQuoteError",
    "CommandTooLongError",
    "TokenTooLongError",
    "TooManyTokensError",
    "InjectionBlockedError",
    "CommandNotFoundError",
    "ArgumentError",
    "UnknownOptionError",
    "OptionValueRequiredError",
    "NegationError",
    "InvalidArgumentError",
    "MissingArgumentError",
    "SubcommandRequiredError",
    "ExecutionError",
    "MissingHandlerError",
    "DelegatedCommandError",
    "trigger",
)
