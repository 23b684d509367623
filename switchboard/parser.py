r"""
argument parser: argument tokens → typed argument map.

scope
- one left-to-right scan builds a raw (string-typed) map and a list of
  positional candidates, then positional assignment, coercion and validation
  run once over the whole map.
- validation is delegated to a pydantic model compiled once per schema
  (build_model), so constraint errors share one shape.

scan rules
- "--": every later token is a positional candidate verbatim; scanning stops.
- "--no-<key>": sets boolean <key> to False, unless the schema declares a
  literal "no_<key>" field, in which case the token is a normal long option.
- "--name" / "--name=value": flags are set by presence (an inline value is
  read as boolean text); other fields take the inline value or the next token.
  arrays accumulate, scalars are overwritten by later occurrences.
- "-x", "-abc", "-xvalue", "-x=value": flags stack; the first value-taking
  alias consumes the rest of the token or the next token and ends the cluster.
- "-" alone and negative numbers (when no digit is a short alias) are
  positional candidates, as is anything else.

behavior
- named values win: a candidate whose receiving field was set by name is dropped.
- an array positional field collects every candidate from its index onwards.
- candidates with no receiving index are ignored.
- coercion failures are left in place for the validator to report.
- the first failure (schema declaration order) is returned as Failure(fault).

example:
    >>> schema = {"query": Argument(Kind.STRING, positional=0),
    ...           "limit": Argument(Kind.INTEGER, short="n", default=10)}
    >>> parse_arguments(["rust", "-n5"], schema).value
    {'query': 'rust', 'limit': 5}
"""
import datetime
import functools
import re
from collections.abc import Mapping
from typing import Annotated

from pydantic import AfterValidator, ConfigDict, Field, ValidationError, create_model

from .arguments import Kind, spelling
from .faults import *
from .results import Success, Failure
from .utils import Unset

_NEGATIVE_NUMBER = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def _pattern_validator(pattern):
    def validate(value):
        if not pattern.search(value):
            raise ValueError(f"string does not match pattern {pattern.pattern!r}")
        return value
    return validate


def _choices_validator(choices):
    def validate(value):
        if value not in choices:
            raise ValueError("expected one of %s" % ", ".join(map(repr, choices)))
        return value
    return validate


def _annotation(argument):
    """
    translate one Argument into a pydantic annotation.

    bounds, pattern, choices and validators apply to each element of an array;
    min_length/max_length apply to the list itself for arrays.
    """
    scalar = argument.scalar
    bounds = {
        name: value
        for name in ("ge", "gt", "le", "lt")
        if (value := getattr(argument, name)) is not Unset
    }
    lengths = {
        name: value
        for name in ("min_length", "max_length")
        if (value := getattr(argument, name)) is not Unset
    }

    metadata = []
    if bounds or (lengths and not argument.is_array):
        metadata.append(Field(**bounds, **({} if argument.is_array else lengths)))
    if argument.pattern is not Unset:
        metadata.append(AfterValidator(_pattern_validator(argument.pattern)))
    if choices := argument.choices:
        metadata.append(AfterValidator(_choices_validator(tuple(choices))))
    for validator in argument.validators:
        metadata.append(AfterValidator(validator))

    annotation = Annotated[scalar.native, *metadata] if metadata else scalar.native
    if argument.is_array:
        annotation = list[annotation]
        if lengths:
            annotation = Annotated[annotation, Field(**lengths)]
    if argument.optional:
        annotation = annotation | None
    return annotation


def _schema_extra(argument):
    extra = {}
    if argument.positional is not Unset:
        extra["positional"] = argument.positional
    if argument.short is not Unset:
        extra["short"] = argument.short
    if not argument.is_array:
        if argument.pattern is not Unset:
            extra["pattern"] = argument.pattern.pattern
        if (choices := argument.choices) and all(isinstance(choice, str | int | float | bool) for choice in choices):
            extra["enum"] = list(choices)
    return extra or None


def build_model(schema, /, *, name="command"):
    """
    Compile an argument schema into a pydantic model.

    Field order follows declaration order. Internal field names are positional
    ("field_0", ...) and the declared names are aliases, so declared names may
    freely shadow BaseModel attributes (schema, json, model_*). Validation input,
    error locations and JSON schemas all use the declared names.
    """
    fields = {}
    for index, (alias, argument) in enumerate(schema.items()):
        options = {
            "alias": alias,
            "description": argument.descr,
            "json_schema_extra": _schema_extra(argument),
        }
        if examples := argument.examples:
            options["examples"] = examples
        if argument.has_default:
            if argument.is_array and isinstance(default := argument.default, list | tuple):
                options["default_factory"] = functools.partial(list, tuple(default))
            else:
                options["default"] = argument.default
        elif argument.optional:
            options["default"] = None
        fields[f"field_{index}"] = (_annotation(argument), Field(**options))

    title = "".join(map(str.capitalize, re.split(r"[\W_]+", name))) or "Command"
    return create_model(
        title + "Arguments",
        __config__=ConfigDict(extra="forbid", title=title + "Arguments"),
        **fields,
    )


def _coerce(kind, value):
    """
    convert a raw string to the native representation of kind.

    failures return the string unchanged.
    """
    if not isinstance(value, str):
        return value
    try:
        match kind:
            case Kind.NUMBER:
                try:
                    return float(value)
                except ValueError:
                    return int(value, 0)
            case Kind.INTEGER:
                return int(value)
            case Kind.BIGINT:
                try:
                    return int(value)
                except ValueError:
                    return int(value, 0)
            case Kind.DATE:
                return datetime.datetime.fromisoformat(value)
    except ValueError:
        return value
    return value


def _scan(tokens, schema):
    """
    internal: scan tokens into (raw values, positional candidates).

    raises ArgumentError subclasses; parse_arguments turns them into failures.
    """
    shorts = {
        argument.short: name
        for name, argument in schema.items()
        if argument.short is not Unset
    }
    numeric = not any(map(str.isdigit, shorts))
    values = {}
    candidates = []

    def assign(name, value):
        if schema[name].is_array:
            values.setdefault(name, []).append(value)
        else:
            values[name] = value

    def unknown(option):
        return UnknownOptionError(
            f"unknown option: {option}",
            title="unknown option",
            hint="check the available options with help",
            option=option,
        )

    def required(option):
        return OptionValueRequiredError(
            f"option {option} requires a value",
            title="missing value",
            hint=f"provide {option} <value>",
            option=option,
        )

    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        if token == "--":
            candidates.extend(tokens[index:])
            break

        if token.startswith("--no-") and len(token) > 5:
            key = token[5:].replace("-", "_")
            if "no_" + key.partition("=")[0] not in schema:
                if key not in schema:
                    raise unknown(token)
                if not schema[key].is_boolean:
                    raise NegationError(
                        f"option {token} can only be used with boolean flags",
                        title="invalid negation",
                        hint=f"provide {spelling(key)} <value>",
                        option=token,
                    )
                values[key] = False
                continue

        if token.startswith("--"):
            option, separator, inline = token[2:].partition("=")
            name = option.replace("-", "_")
            if name not in schema:
                raise unknown("--" + option)
            if schema[name].is_flag:
                values[name] = inline if separator else True
            elif separator:
                assign(name, inline)
            elif index < len(tokens):
                assign(name, tokens[index])
                index += 1
            else:
                raise required("--" + option)
            continue

        if token.startswith("-") and len(token) > 1 and not (numeric and _NEGATIVE_NUMBER.fullmatch(token)):
            for position, char in enumerate(token[1:], start=2):
                if char not in shorts:
                    raise unknown("-" + char)
                name = shorts[char]
                rest = token[position:]
                if schema[name].is_flag:
                    if rest.startswith("="):
                        values[name] = rest[1:]
                        break
                    values[name] = True
                    continue
                if rest:
                    assign(name, rest.removeprefix("="))
                elif index < len(tokens):
                    assign(name, tokens[index])
                    index += 1
                else:
                    raise required("-" + char)
                break
            continue

        candidates.append(token)

    return values, candidates


def _assign_positionals(schema, values, candidates):
    """
    internal: hand positional candidates to fields by index.

    candidates without a receiving index are ignored. an array field takes every
    candidate from its index onwards, so later indexes receive nothing.
    """
    receivers = {
        argument.positional: name
        for name, argument in schema.items()
        if argument.positional is not Unset
    }
    named = set(values)

    for position, candidate in enumerate(candidates):
        if (name := receivers.get(position)) is None:
            continue
        if schema[name].is_array:
            if name not in named:
                values[name] = list(candidates[position:])
            break
        if name not in named:
            values[name] = candidate


def _describe(error, schema):
    """
    internal: turn the first pydantic error into an InvalidArgumentError.
    """
    location = error["loc"]
    path = ".".join(map(str, location))
    if error["type"] == "value_error" and "error" in error.get("ctx", {}):
        message = str(error["ctx"]["error"])
    else:
        message = error["msg"][:1].lower() + error["msg"][1:]
    message = f"invalid value for {path}: {message}" if path else message

    if error["type"] != "missing" or not location or location[0] not in schema:
        return InvalidArgumentError(message, title="invalid value", path=path)

    name = location[0]
    if (index := schema[name].positional) is not Unset:
        hint = f"provide {name.upper()} as positional argument {index + 1} or {spelling(name)} <value>"
    else:
        hint = f"provide {spelling(name)} <value>"
    return MissingArgumentError(message, title="missing value", hint=hint, path=path)


def parse_arguments(tokens, schema, /):
    """
    Parse argument tokens against a command's argument schema.

    Parameters
    - tokens: Iterable[str]
      The argument tokens left after routing.
    - schema: Command | Mapping[str, Argument]
      A Command (its compiled model is reused) or a bare argument mapping
      (compiled on the fly).

    Returns
    - Success(dict) mapping every declared field to its typed value (defaults
      applied, absent optional fields as None), or
    - Failure(ArgumentError) describing the first problem found.
    """
    if isinstance(schema, Mapping):
        model = build_model(schema)
    else:
        schema, model = schema.arguments, schema.model

    tokens = tuple(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse_arguments() tokens must be strings")

    try:
        values, candidates = _scan(tokens, schema)
        _assign_positionals(schema, values, candidates)
    except ArgumentError as fault:
        return Failure(fault)

    for name, value in values.items():
        argument = schema[name]
        if argument.is_array and isinstance(value, list):
            values[name] = [_coerce(argument.scalar, item) for item in value]
        else:
            values[name] = _coerce(argument.scalar, value)

    try:
        instance = model.model_validate(values)
    except ValidationError as exception:
        return Failure(_describe(exception.errors()[0], schema))

    return Success({
        info.alias: getattr(instance, field)
        for field, info in type(instance).model_fields.items()
    })


__all__ = (
    "build_model",
    "parse_arguments",
)
