r"""
Switchboard argument specifications.

Overview
- Kind: the closed set of scalar argument kinds
  (string, number, integer, boolean, date, bigint).
- ArrayOf(kind): a repeated argument whose values accumulate (--tag a --tag b).
- Argument: one field of a command's argument schema. The kind is decided when
  the Argument is built and stored on it, so parsing never has to inspect
  validator objects to tell flags, values and arrays apart.

Metadata (sanitized on construction)
- positional: Unset | int >= 0 (index among positional values; unique per schema).
- short: Unset | str, a single character used as -x (unique per schema).
- default: any value; presence makes the field non-required.
- optional: bool; absent optional fields resolve to None.
- descr / examples: help metadata (non-empty strings).
- constraints: ge/gt/le/lt (numbers, dates), min_length/max_length (strings,
  arrays), pattern (strings, searched), choices (allowed values), validators
  (callables value -> value raising ValueError).

Derived (read-only)
- is_array, is_flag (boolean with a default: presence alone sets it true),
  has_default, required.

Validation highlights
- Constraints that make no sense for the kind are rejected (e.g. pattern on a number).
- choices reject duplicates.
- Schema-level rules (unique positional indexes and short aliases) are enforced
  by the command that owns the schema, see switchboard.registry.

Quick example:
    >>> from switchboard import Argument, ArrayOf, Kind
    >>> arguments = {
    ...     "query": Argument(Kind.STRING, positional=0),
    ...     "limit": Argument(Kind.INTEGER, short="n", default=10, ge=1, le=100),
    ...     "tag": Argument(ArrayOf(Kind.STRING), default=()),
    ...     "verbose": Argument(Kind.BOOLEAN, short="v", default=False),
    ... }
"""
import datetime
import functools
import operator
import re
from collections.abc import Iterable
from enum import StrEnum
from types import MappingProxyType

from .utils import *


class Kind(StrEnum):
    """
    scalar argument kinds.

    each kind maps to the native python type values are coerced to:
    string → str, number → float, integer → int, boolean → bool,
    date → datetime.datetime, bigint → int.
    """
    STRING  = "string"
    NUMBER  = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DATE    = "date"
    BIGINT  = "bigint"

    @property
    def native(self):
        return {
            Kind.STRING: str,
            Kind.NUMBER: float,
            Kind.INTEGER: int,
            Kind.BOOLEAN: bool,
            Kind.DATE: datetime.datetime,
            Kind.BIGINT: int,
        }[self]


class ArrayOf:
    """
    Repeated argument of a scalar kind.

    Instances are interned per kind, so ArrayOf(Kind.STRING) is ArrayOf(Kind.STRING).
    str(ArrayOf(Kind.STRING)) == "array-of-string".
    """
    __slots__ = ("kind",)

    @functools.cache
    def __new__(cls, kind, /):
        if not isinstance(kind, Kind):
            raise TypeError("ArrayOf() argument must be a scalar kind")
        self = super().__new__(cls)
        object.__setattr__(self, "kind", kind)
        return self

    def __setattr__(self, name, value, /):
        raise AttributeError("array-of kinds are read-only")

    def __reduce__(self):
        return ArrayOf, (self.kind,)

    def __str__(self):
        return f"array-of-{self.kind}"

    def __repr__(self):
        return f"ArrayOf({self.kind!r})"


# Spellings accepted in static definitions, including the legacy argument types.
_ALIASES = MappingProxyType({
    "str": Kind.STRING,
    "float": Kind.NUMBER,
    "int": Kind.INTEGER,
    "bool": Kind.BOOLEAN,
    "flag": Kind.BOOLEAN,
    "datetime": Kind.DATE,
    "array": ArrayOf(Kind.STRING),
})


def _resolve_kind(kind, /):
    """
    Normalize a kind spelling into Kind | ArrayOf.

    Accepted
    - Kind / ArrayOf instances (returned as-is)
    - "string", "number", ..., "array-of-number"
    - legacy names: "flag", "datetime", "array" (array of strings), "int", ...
    """
    if isinstance(kind, Kind | ArrayOf):
        return kind
    if not isinstance(kind, str):
        raise TypeError("argument 'kind' must be a kind or a kind name")
    name = kind.strip().lower()
    if name in _ALIASES:
        return _ALIASES[name]
    if name.startswith("array-of-"):
        return ArrayOf(_resolve_kind(name.removeprefix("array-of-")))
    try:
        return Kind(name)
    except ValueError:
        raise ValueError(f"unknown argument kind {kind!r}") from None


class ArgumentType(type):
    """
    Metaclass that exposes sanitized metadata as read-only properties.

    Responsibilities
    - mirror() every name in __introspectable__ (backed by "_{name}").
    - Provide stable __repr__/__rich_repr__ listing the introspectable fields
      that differ from Unset/empty.
    - Derive __typename__ (camel-case split with hyphens) for messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
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
            for name in type(self).__introspectable__:
                object = getattr(self, name)
                if object is Unset or object is None or object == []:
                    continue
                yield name, object
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize identity/help metadata.

    - positional: Unset or a non-negative int (bools rejected).
    - short: Unset or exactly one printable, non-space character other than '-' and '='.
    - descr: Unset or a non-empty string (trimmed), stored as None when Unset.
    - examples: iterable of non-empty strings, stored as a tuple.
    """
    if not isinstance(positional := metadata["positional"], int | Unset) or isinstance(positional, bool):
        raise TypeError(f"{cls.__typename__} 'positional' must be an integer")
    elif isinstance(positional, int) and positional < 0:
        raise ValueError(f"{cls.__typename__} 'positional' must be a non-negative integer")

    if not isinstance(short := metadata["short"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'short' must be a string")
    elif isinstance(short, str) and (len(short) != 1 or short in "-=" or short.isspace() or not short.isprintable()):
        raise ValueError(f"{cls.__typename__} 'short' must be a single character other than '-' or '='")

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if isinstance(examples := metadata["examples"], str) or not isinstance(examples, Iterable):
        raise TypeError(f"{cls.__typename__} 'examples' must be an iterable of strings")
    sanitized = []
    for example in examples:
        if not isinstance(example, str):
            raise TypeError(f"{cls.__typename__} 'examples' must be an iterable of strings")
        elif not (example := example.strip()):
            raise ValueError(f"{cls.__typename__} 'examples' cannot contain empty strings")
        sanitized.append(example)
    metadata["examples"] = tuple(sanitized)


def _sanitize_constraints(cls, metadata, /):
    """
    Internal: check that constraints fit the argument kind.

    - ge/gt/le/lt: number, integer, bigint, date (or arrays of them; applied per item).
    - min_length/max_length: non-negative ints; strings or arrays.
    - pattern: str or compiled pattern; strings (or arrays of strings; per item).
    - choices: iterable without duplicates, stored as a tuple.
    - validators: iterable of callables, stored as a tuple.
    """
    kind = metadata["kind"]
    scalar = kind.kind if isinstance(kind, ArrayOf) else kind
    ordered = scalar in (Kind.NUMBER, Kind.INTEGER, Kind.BIGINT, Kind.DATE)

    for bound in ("ge", "gt", "le", "lt"):
        if metadata[bound] is Unset:
            continue
        if not ordered:
            raise TypeError(f"{cls.__typename__} '{bound}' requires a numeric or date kind, not {str(kind)!r}")

    for bound in ("min_length", "max_length"):
        if (length := metadata[bound]) is Unset:
            continue
        if not isinstance(length, int) or isinstance(length, bool):
            raise TypeError(f"{cls.__typename__} '{bound}' must be an integer")
        elif length < 0:
            raise ValueError(f"{cls.__typename__} '{bound}' must be a non-negative integer")
        elif scalar is not Kind.STRING and not isinstance(kind, ArrayOf):
            raise TypeError(f"{cls.__typename__} '{bound}' requires a string or array kind, not {str(kind)!r}")

    if (pattern := metadata["pattern"]) is not Unset:
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as exception:
                raise ValueError(f"{cls.__typename__} 'pattern' is not a valid regular expression: {exception}") from None
        elif not isinstance(pattern, re.Pattern):
            raise TypeError(f"{cls.__typename__} 'pattern' must be a string or a compiled pattern")
        if scalar is not Kind.STRING:
            raise TypeError(f"{cls.__typename__} 'pattern' requires a string kind, not {str(kind)!r}")
        metadata["pattern"] = pattern

    if isinstance(choices := metadata["choices"], str) or not isinstance(choices, Iterable):
        raise TypeError(f"{cls.__typename__} 'choices' must be iterable")
    sanitized = []
    for choice in choices:
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    if not isinstance(validators := metadata["validators"], Iterable):
        raise TypeError(f"{cls.__typename__} 'validators' must be an iterable of callables")
    if not all(map(callable, validators := tuple(validators))):
        raise TypeError(f"{cls.__typename__} 'validators' must be an iterable of callables")
    metadata["validators"] = validators


class Argument(metaclass=ArgumentType):
    """
    One field of a command's argument schema.

    The field name is the key under which the Argument is declared in the
    command's arguments mapping; it is spelled --name on the command line
    (underscores shown as hyphens) and handed to the handler as a keyword.

    Properties
    - The names listed in __introspectable__ are read-only attributes mirroring
      the sanitized metadata.
    """

    __introspectable__ = (
        "kind",
        "positional",
        "short",
        "default",
        "optional",
        "descr",
        "examples",
        "ge",
        "gt",
        "le",
        "lt",
        "min_length",
        "max_length",
        "pattern",
        "choices",
        "validators",
    )

    def __init__(
            self,
            kind=Kind.STRING,
            /,
            positional=Unset,
            short=Unset,
            default=Unset,
            optional=False,
            descr=Unset,
            examples=(),
            *,
            ge=Unset,
            gt=Unset,
            le=Unset,
            lt=Unset,
            min_length=Unset,
            max_length=Unset,
            pattern=Unset,
            choices=(),
            validators=()
    ):
        """
        Construct an argument spec.

        Parameters
        - kind: Kind | ArrayOf | str
          Scalar kind, array kind, or its name ("number", "array-of-string", legacy "flag", ...).
          The legacy "flag" spelling also implies default=False.
        - positional, short, default, optional, descr, examples:
          see the module documentation.
        - ge, gt, le, lt, min_length, max_length, pattern, choices, validators:
          constraints checked after coercion (keyword-only).

        Raises
        - TypeError/ValueError on invalid metadata or constraints that do not fit the kind.
        """
        if isinstance(kind, str) and kind.strip().lower() == "flag" and default is Unset:
            default = False

        if not isinstance(optional, bool):
            raise TypeError(f"{type(self).__typename__} 'optional' must be a boolean")

        metadata = {
            "kind": _resolve_kind(kind),
            "positional": positional,
            "short": short,
            "default": default,
            "optional": optional,
            "descr": descr,
            "examples": examples,
            "ge": ge,
            "gt": gt,
            "le": le,
            "lt": lt,
            "min_length": min_length,
            "max_length": max_length,
            "pattern": pattern,
            "choices": choices,
            "validators": validators,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_constraints(type(self), metadata)

        if isinstance(default := metadata["default"], list):
            metadata["default"] = tuple(default)

        for name, value in metadata.items():
            object.__setattr__(self, "_" + name, value)

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__typename__} is read-only")

    @property
    def is_array(self):
        return isinstance(self._kind, ArrayOf)

    @property
    def scalar(self):
        """the scalar kind (the element kind for arrays)."""
        return self._kind.kind if self.is_array else self._kind

    @property
    def is_boolean(self):
        return self._kind is Kind.BOOLEAN

    @property
    def is_flag(self):
        return self.is_boolean and self.has_default

    @property
    def has_default(self):
        return self._default is not Unset

    @property
    def required(self):
        return not self.has_default and not self._optional


def spelling(name, /):
    """
    Return the long option spelling for a field name: "dry_run" → "--dry-run".
    """
    return "--" + name.replace("_", "-")


__all__ = (
    "Kind",
    "ArrayOf",
    "Argument",
    "spelling",
)
