from __future__ import annotations
import datetime as dt
import json
import re
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse

if TYPE_CHECKING:
    from .validator import Validator

# check(validator, attribute, value, params) -> passed
Check = Callable[["Validator", str, Any, List[str]], bool]


@dataclass(frozen=True)
class Rule:
    name: str
    check: Check
    # str, or {"numeric"|"string"|"array": str} for size-aware rules
    message: Union[str, Dict[str, str]]
    # runs even when the field is missing or empty
    implicit: bool = False
    # names bound positionally to params in the message (":min", ":max", ...)
    placeholders: Tuple[str, ...] = ()
    # ":values" gets every param, comma separated
    lists_values: bool = False
    # ":other" / ":values" name other fields, so they get display names
    names_fields: bool = False


RULES: Dict[str, Rule] = {}

# Modifiers read by the validator itself; they never fail.
MARKERS = frozenset({"bail", "nullable", "sometimes"})

NUMERIC_RULES = frozenset({"numeric", "integer"})

_INT_RE = re.compile(r"^[+-]?\d+$")
_NUM_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ALPHA_DASH_RE = re.compile(r"^[\w-]+$")
_ACCEPTED = ("yes", "on", "1", 1, True, "true")
_BOOLEANS = (True, False, 0, 1, "0", "1", "true", "false")


def rule(name: str, message: Union[str, Dict[str, str]], **opts):
    """Register the decorated check under `name`."""
    def deco(fn: Check) -> Check:
        RULES[name] = Rule(name=name, check=fn, message=message, **opts)
        return fn
    return deco


def register_rule(name: str, check: Check, message: str, *, implicit: bool = False) -> Rule:
    r = Rule(name=name, check=check, message=message, implicit=implicit)
    RULES[name] = r
    return r


def get_rule(name: str) -> Rule:
    try:
        return RULES[name]
    except KeyError:
        raise ValueError(f"Unknown validation rule: {name}") from None


# -----------------------------------------------------------------------------
# Rule-string parsing
# -----------------------------------------------------------------------------

def parse_rule(text: str) -> Tuple[str, List[str]]:
    """'max:255' -> ('max', ['255']); regex patterns keep their commas."""
    name, _, raw = text.strip().partition(":")
    name = name.strip().lower()
    if not raw:
        return name, []
    if name in ("regex", "not_regex"):
        return name, [raw]
    return name, [p.strip() for p in raw.split(",")]


def parse_rules(expr: Union[str, Sequence[str]]) -> List[Tuple[str, List[str]]]:
    """
    'required|string|max:255' or ['required', 'regex:^(a|b)$'].
    Use the list form when a parameter contains '|'.
    """
    items = expr.split("|") if isinstance(expr, str) else list(expr)
    return [parse_rule(str(item)) for item in items if str(item).strip()]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(_NUM_RE.match(value.strip()))


def _number(param: str) -> float:
    try:
        return float(param)
    except (TypeError, ValueError):
        raise ValueError(f"Rule parameter must be numeric, got {param!r}") from None


def _require_params(name: str, params: List[str], count: int) -> None:
    if len(params) < count:
        raise ValueError(f"Validation rule {name} requires at least {count} parameter(s)")


def _parse_date(value: Any) -> Optional[dt.datetime]:
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    elif isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None
    # compare aware values as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return parsed


def _as_strings(value: Any) -> List[str]:
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    if isinstance(value, bool):
        return ["1" if value else "0"]
    return [str(value)]


# -----------------------------------------------------------------------------
# Presence
# -----------------------------------------------------------------------------

@rule("required", "The :attribute field is required.", implicit=True)
def _required(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return not is_empty(value)

@rule("present", "The :attribute field must be present.", implicit=True)
def _present(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return v.has(attribute)

@rule("filled", "The :attribute field must have a value.", implicit=True)
def _filled(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return not v.has(attribute) or not is_empty(value)

@rule("accepted", "The :attribute must be accepted.", implicit=True)
def _accepted(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return not is_empty(value) and value in _ACCEPTED

@rule("required_with", "The :attribute field is required when :values is present.",
      implicit=True, lists_values=True, names_fields=True)
def _required_with(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if any(not is_empty(v.get(other)) for other in params):
        return not is_empty(value)
    return True

@rule("required_without", "The :attribute field is required when :values is not present.",
      implicit=True, lists_values=True, names_fields=True)
def _required_without(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if any(is_empty(v.get(other)) for other in params):
        return not is_empty(value)
    return True

@rule("required_if", "The :attribute field is required when :other is :value.",
      implicit=True, placeholders=("other", "value"), names_fields=True)
def _required_if(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if len(params) < 2:
        raise ValueError("required_if needs a field and at least one value")
    other, wanted = params[0], params[1:]
    if any(s in wanted for s in _as_strings(v.get(other))):
        return not is_empty(value)
    return True


# -----------------------------------------------------------------------------
# Types
# -----------------------------------------------------------------------------

@rule("string", "The :attribute must be a string.")
def _string(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return isinstance(value, str)

@rule("integer", "The :attribute must be an integer.")
def _integer(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and bool(_INT_RE.match(value.strip()))

@rule("numeric", "The :attribute must be a number.")
def _numeric(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return _is_number(value)

@rule("boolean", "The :attribute field must be true or false.")
def _boolean(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if isinstance(value, str):
        return value.lower() in ("0", "1", "true", "false")
    return value in _BOOLEANS

@rule("array", "The :attribute must be an array.")
def _array(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return isinstance(value, (list, tuple, dict))

@rule("email", "The :attribute must be a valid email address.")
def _email(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return isinstance(value, str) and bool(_EMAIL_RE.match(value))

@rule("url", "The :attribute format is invalid.")
def _url(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if not isinstance(value, str):
        return False
    parts = urlparse(value)
    return parts.scheme in ("http", "https", "ftp", "ftps") and bool(parts.netloc)

@rule("uuid", "The :attribute must be a valid UUID.")
def _uuid(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True

@rule("json", "The :attribute must be a valid JSON string.")
def _json(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if not isinstance(value, str):
        return False
    try:
        json.loads(value)
    except ValueError:
        return False
    return True

@rule("date", "The :attribute is not a valid date.")
def _date(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return _parse_date(value) is not None

@rule("alpha", "The :attribute may only contain letters.")
def _alpha(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return isinstance(value, str) and value.isalpha()

@rule("alpha_num", "The :attribute may only contain letters and numbers.")
def _alpha_num(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    if isinstance(value, int) and not isinstance(value, bool):
        return value >= 0
    return isinstance(value, str) and value.isalnum()

@rule("alpha_dash", "The :attribute may only contain letters, numbers, dashes and underscores.")
def _alpha_dash(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool) and bool(_ALPHA_DASH_RE.match(str(value)))


# -----------------------------------------------------------------------------
# Size
# -----------------------------------------------------------------------------

@rule("min", {
    "numeric": "The :attribute must be at least :min.",
    "string": "The :attribute must be at least :min characters.",
    "array": "The :attribute must have at least :min items.",
}, placeholders=("min",))
def _min(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("min", params, 1)
    size = v.size_of(attribute, value)
    return size is not None and size >= _number(params[0])

@rule("max", {
    "numeric": "The :attribute may not be greater than :max.",
    "string": "The :attribute may not be greater than :max characters.",
    "array": "The :attribute may not have more than :max items.",
}, placeholders=("max",))
def _max(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("max", params, 1)
    size = v.size_of(attribute, value)
    return size is not None and size <= _number(params[0])

@rule("between", {
    "numeric": "The :attribute must be between :min and :max.",
    "string": "The :attribute must be between :min and :max characters.",
    "array": "The :attribute must have between :min and :max items.",
}, placeholders=("min", "max"))
def _between(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("between", params, 2)
    size = v.size_of(attribute, value)
    return size is not None and _number(params[0]) <= size <= _number(params[1])

@rule("size", {
    "numeric": "The :attribute must be :size.",
    "string": "The :attribute must be :size characters.",
    "array": "The :attribute must contain :size items.",
}, placeholders=("size",))
def _size(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("size", params, 1)
    size = v.size_of(attribute, value)
    return size is not None and size == _number(params[0])

@rule("digits", "The :attribute must be :digits digits.", placeholders=("digits",))
def _digits(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("digits", params, 1)
    s = str(value)
    return not isinstance(value, bool) and s.isdigit() and len(s) == int(params[0])

@rule("digits_between", "The :attribute must be between :min and :max digits.",
      placeholders=("min", "max"))
def _digits_between(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("digits_between", params, 2)
    s = str(value)
    return not isinstance(value, bool) and s.isdigit() and int(params[0]) <= len(s) <= int(params[1])


# -----------------------------------------------------------------------------
# Membership / patterns
# -----------------------------------------------------------------------------

@rule("in", "The selected :attribute is invalid.", lists_values=True)
def _in(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return all(s in params for s in _as_strings(value))

@rule("not_in", "The selected :attribute is invalid.", lists_values=True)
def _not_in(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return not any(s in params for s in _as_strings(value))

@rule("regex", "The :attribute format is invalid.")
def _regex(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("regex", params, 1)
    return isinstance(value, (str, int, float)) and re.search(params[0], str(value)) is not None

@rule("not_regex", "The :attribute format is invalid.")
def _not_regex(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("not_regex", params, 1)
    return isinstance(value, (str, int, float)) and re.search(params[0], str(value)) is None

@rule("starts_with", "The :attribute must start with one of the following: :values.", lists_values=True)
def _starts_with(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return str(value).startswith(tuple(params))

@rule("ends_with", "The :attribute must end with one of the following: :values.", lists_values=True)
def _ends_with(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return str(value).endswith(tuple(params))


# -----------------------------------------------------------------------------
# Comparisons with other fields
# -----------------------------------------------------------------------------

@rule("confirmed", "The :attribute confirmation does not match.")
def _confirmed(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    return v.get(f"{attribute}_confirmation") == value

@rule("same", "The :attribute and :other must match.", placeholders=("other",), names_fields=True)
def _same(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("same", params, 1)
    return v.get(params[0]) == value

@rule("different", "The :attribute and :other must be different.",
      placeholders=("other",), names_fields=True)
def _different(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("different", params, 1)
    return v.get(params[0]) != value

def _date_param(v: "Validator", param: str) -> Optional[dt.datetime]:
    # a field name wins over a literal date
    if v.has(param):
        return _parse_date(v.get(param))
    target = _parse_date(param)
    if target is None:
        raise ValueError(f"Not a date or a date field: {param!r}")
    return target

@rule("before", "The :attribute must be a date before :date.", placeholders=("date",))
def _before(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("before", params, 1)
    d, target = _parse_date(value), _date_param(v, params[0])
    return d is not None and target is not None and d < target

@rule("after", "The :attribute must be a date after :date.", placeholders=("date",))
def _after(v: "Validator", attribute: str, value: Any, params: List[str]) -> bool:
    _require_params("after", params, 1)
    d, target = _parse_date(value), _date_param(v, params[0])
    return d is not None and target is not None and d > target
