"""
Plugin support utilities.

Shared helpers for selector assembly, label merging, metric-name
templating and Prometheus durations. Every metric-type plugin builds its
selectors through this module so the emitted PromQL has the same shape
regardless of plugin.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import re


LABEL_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
METRIC_NAME_PATTERN = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")

# Characters that turn a selector value into a regex match
REGEX_METACHARACTERS = set(".|*+?()[]{}^$\\")

EQUAL = "="
NOT_EQUAL = "!="
REGEX_MATCH = "=~"
REGEX_NO_MATCH = "!~"
SELECTOR_OPERATORS = (EQUAL, NOT_EQUAL, REGEX_MATCH, REGEX_NO_MATCH)

# Selector value prefixes
NEGATION = "!"
ESCAPED_NEGATION = "\\!"

COMPARISON_OPERATORS = ("<", "<=", ">", ">=", "==", "!=")
_NEGATED_COMPARISONS = {
    "<": ">=",
    "<=": ">",
    ">": "<=",
    ">=": "<",
    "==": "!=",
    "!=": "==",
}

_DURATION_UNITS = [
    ("y", timedelta(days=365)),
    ("w", timedelta(weeks=1)),
    ("d", timedelta(days=1)),
    ("h", timedelta(hours=1)),
    ("m", timedelta(minutes=1)),
    ("s", timedelta(seconds=1)),
    ("ms", timedelta(milliseconds=1)),
]
_DURATION_PATTERN = re.compile(r"^((\d+)(ms|y|w|d|h|m|s))+$")
_DURATION_PART = re.compile(r"(\d+)(ms|y|w|d|h|m|s)")


@dataclass(frozen=True)
class SelectorClause:
    """One label matcher, e.g. job=~"prometheus|thanos"."""

    label: str
    operator: str
    pattern: str

    def __post_init__(self):
        if not LABEL_NAME_PATTERN.match(self.label):
            raise ValueError(f"Invalid label name: {self.label!r}")
        if self.operator not in SELECTOR_OPERATORS:
            raise ValueError(f"Invalid selector operator: {self.operator!r}")

    def render(self) -> str:
        escaped = self.pattern.replace("\\", "\\\\").replace('"', '\\"')
        return f'{self.label}{self.operator}"{escaped}"'


@dataclass(frozen=True)
class TargetMetric:
    """A resolved metric name plus the clauses that always apply to it."""

    name: str
    clauses: Sequence[SelectorClause] = ()

    def series(self, selectors: Iterable[SelectorClause] = ()) -> str:
        """Render the series selector with shared clauses first."""
        return render_series(self.name, list(selectors) + list(self.clauses))


def is_regex(pattern: str) -> bool:
    return any(c in REGEX_METACHARACTERS for c in pattern)


def clause_from_value(label: str, value: str) -> SelectorClause:
    """
    Build a clause from a spec selector value.

    A leading "!" negates the match; write "\\!" for a value that starts
    with a literal "!". Values with regex metacharacters, "." included,
    become regex matches. A dot also matches itself, so literal values
    such as "api.v1" still select their series.
    """
    if not isinstance(value, str):
        raise ValueError(f"Selector value for {label!r} must be a string, got {value!r}")

    if value.startswith(ESCAPED_NEGATION):
        negate = False
        pattern = value[1:]
    else:
        negate = value.startswith(NEGATION)
        pattern = value[1:] if negate else value

    if is_regex(pattern):
        operator = REGEX_NO_MATCH if negate else REGEX_MATCH
    else:
        operator = NOT_EQUAL if negate else EQUAL

    return SelectorClause(label=label, operator=operator, pattern=pattern)


def clauses_from_selectors(selectors: Mapping[str, str]) -> List[SelectorClause]:
    """Convert a selector mapping to clauses, keeping insertion order."""
    return [clause_from_value(label, value) for label, value in selectors.items()]


def merge_clauses(*groups: Iterable[SelectorClause]) -> List[SelectorClause]:
    """
    Concatenate clause groups, later groups overriding earlier labels.

    An overridden clause keeps the position of the first occurrence of
    its label so output order stays stable.
    """
    merged: Dict[str, SelectorClause] = {}
    for group in groups:
        for clause in group:
            merged[clause.label] = clause
    return list(merged.values())


def merge_labels(*label_sets: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge label mappings left to right; None entries are skipped."""
    merged: Dict[str, str] = {}
    for labels in label_sets:
        if labels:
            merged.update(labels)
    return merged


def render_selector(clauses: Iterable[SelectorClause]) -> str:
    """Render clauses as a PromQL label selector body, braces included."""
    rendered = ", ".join(clause.render() for clause in clauses)
    return "{" + rendered + "}"


def render_series(metric: str, clauses: Iterable[SelectorClause] = ()) -> str:
    """Render metric{clauses}; the braces are dropped when there are no clauses."""
    clauses = list(clauses)
    if not clauses:
        return metric
    return f"{metric}{render_selector(clauses)}"


def describe_clause(clause: SelectorClause) -> str:
    """Human readable form used in panel descriptions."""
    return f'{clause.label} {clause.operator} "{clause.pattern}"'


def sanitize_metric_name(name: str) -> str:
    """Replace characters that are not valid in a metric name with '_'."""
    safe = re.sub(r"[^a-zA-Z0-9_:]", "_", name)
    if safe and safe[0].isdigit():
        safe = f"_{safe}"
    return safe


def metric_name(template: str, **values: str) -> str:
    """
    Fill a metric-name template such as "{product}:{sli_id}:queues:count".

    Substituted values are sanitized; the result must be a valid metric name.
    """
    safe_values = {key: sanitize_metric_name(str(value)) for key, value in values.items()}
    try:
        name = template.format(**safe_values)
    except KeyError as e:
        raise ValueError(f"Metric name template {template!r} is missing value {e}") from e

    if not METRIC_NAME_PATTERN.match(name):
        raise ValueError(f"Invalid metric name: {name!r}")
    return name


def negate_comparison(operator: str) -> str:
    """Return the operator that holds exactly when `operator` does not."""
    try:
        return _NEGATED_COMPARISONS[operator]
    except KeyError:
        raise ValueError(f"Unknown comparison operator: {operator!r}") from None


def format_number(value: float) -> str:
    """Format a threshold without a trailing .0 for integral values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def parse_duration(duration: str) -> timedelta:
    """Parse a Prometheus duration string (e.g. "1m", "1h30m", "30d")."""
    if not isinstance(duration, str) or not _DURATION_PATTERN.match(duration):
        raise ValueError(f"Invalid duration: {duration!r}")

    units = dict(_DURATION_UNITS)
    total = timedelta()
    for amount, unit in _DURATION_PART.findall(duration):
        total += int(amount) * units[unit]

    if total <= timedelta():
        raise ValueError(f"Duration must be positive: {duration!r}")
    return total


def format_duration(duration: timedelta) -> str:
    """Convert timedelta to Prometheus duration format, largest exact unit."""
    if duration <= timedelta():
        raise ValueError(f"Duration must be positive: {duration}")

    for suffix, unit in _DURATION_UNITS:
        if duration % unit == timedelta():
            return f"{duration // unit}{suffix}"
    # Sub-millisecond remainders cannot be expressed
    raise ValueError(f"Duration is not expressible in Prometheus format: {duration}")
