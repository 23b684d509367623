"""
Outcomes of the command pipeline.

Every stage (tokenize, parse_arguments, execute) hands back either a Success
carrying its value or a Failure carrying one CommandException. There is no
partial state: a Failure never carries a value.

Response envelope
- Success → {"success": True, "data": value}  (plus "message" when given)
- Failure → {"success": False, "error": fault.to_dict()}

This is the shape agents receive from the single multiplexed tool.
"""
from .faults import CommandException
from .utils import Unset


class Outcome:
    """
    Common base for Success and Failure.

    ok is the discriminant; unwrap() returns the value or raises the fault.
    """
    __slots__ = ()
    ok = False

    def __bool__(self):
        return self.ok


class Success(Outcome):
    __slots__ = ("value", "message")
    ok = True

    def __init__(self, value, /, message=Unset):
        self.value = value
        self.message = message

    def unwrap(self):
        return self.value

    def to_response(self):
        response = {"success": True, "data": self.value}
        if self.message:
            response["message"] = self.message
        return response

    def __repr__(self):
        return f"success({self.value!r})"

    def __eq__(self, other):
        if not isinstance(other, Success):
            return NotImplemented
        return self.value == other.value

    __hash__ = None


class Failure(Outcome):
    __slots__ = ("fault",)
    ok = False

    def __init__(self, fault, /):
        if not isinstance(fault, CommandException):
            raise TypeError("failure() argument must be a command exception")
        self.fault = fault

    def unwrap(self):
        raise self.fault

    def to_response(self):
        return {"success": False, "error": self.fault.to_dict()}

    def __repr__(self):
        return f"failure({type(self.fault).__name__}({self.fault.message!r}))"


__all__ = (
    "Outcome",
    "Success",
    "Failure",
)
