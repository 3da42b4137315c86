"""
Rule Validator

Static checks on generated rules: PromQL shape (balanced delimiters, no
dangling operators, no empty aggregations), record name syntax, record
references in dependency order, and record/label collisions.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple
import re

from ..errors import RuleValidationError
from ..generators.alert_rule_generator import AlertingRule
from ..generators.recording_rule_generator import RecordingRule
from ..selectors import METRIC_NAME_PATTERN


@dataclass
class ValidationError:
    """Validation error details"""
    rule: Optional[str]
    message: str
    severity: str = "error"


class RuleValidator:
    """Validates generated recording and alerting rules."""

    def validate_expression(self, promql: str) -> List[str]:
        """
        Validate a single PromQL expression.

        Args:
            promql: PromQL expression string

        Returns:
            List of error messages (empty if valid)
        """
        if not promql or not promql.strip():
            return ["Empty PromQL expression"]

        errors: List[str] = []
        if not self._check_balanced_delimiters(promql):
            errors.append("Unbalanced parentheses, brackets, or braces")

        stripped = promql.strip()
        if re.search(r"(\band|\bor|\bunless|\bby|\bwithout|\bbool|[-+*/<>=])$", stripped):
            errors.append("Expression ends with binary operator")

        if re.search(r'\b(sum|avg|min|max|count)\s*\(\s*\)', promql):
            errors.append("Empty aggregation function")

        return errors

    def validate_recording_rules(self, rules: Sequence[RecordingRule]) -> List[ValidationError]:
        """
        Validate an ordered rule sequence.

        Every record name defined in the sequence may only be referenced by
        rules that come after its first definition.
        """
        errors: List[ValidationError] = []
        defined_names = {rule.record for rule in rules}
        seen: Set[str] = set()

        for rule in rules:
            if not METRIC_NAME_PATTERN.match(rule.record):
                errors.append(ValidationError(rule.record, f"Invalid record name: {rule.record!r}"))

            for message in self.validate_expression(rule.expr):
                errors.append(ValidationError(rule.record, message))

            for name in referenced_names(rule.expr, defined_names):
                if name not in seen:
                    errors.append(ValidationError(
                        rule.record,
                        f"References '{name}' before it is defined"
                    ))

            seen.add(rule.record)

        return errors

    def validate_unique_series(self, rules: Iterable[RecordingRule]) -> List[ValidationError]:
        """Two rules may share a record name only if their labels differ."""
        errors: List[ValidationError] = []
        seen: Set[Tuple[str, Tuple[Tuple[str, str], ...]]] = set()

        for rule in rules:
            key = (rule.record, tuple(sorted(rule.labels.items())))
            if key in seen:
                errors.append(ValidationError(
                    rule.record,
                    f"Duplicate series '{rule.record}' with labels {dict(key[1])}"
                ))
            seen.add(key)

        return errors

    def validate_alerting_rules(
        self,
        alerts: Sequence[AlertingRule],
        recorded_names: Set[str]
    ) -> List[ValidationError]:
        """Alerts may only reference records present in the recording rules."""
        errors: List[ValidationError] = []
        alert_names: Set[str] = set()

        for alert in alerts:
            if alert.alert in alert_names:
                errors.append(ValidationError(alert.alert, f"Duplicate alert name '{alert.alert}'"))
            alert_names.add(alert.alert)

            for message in self.validate_expression(alert.expr):
                errors.append(ValidationError(alert.alert, message))

            if not referenced_names(alert.expr, recorded_names):
                errors.append(ValidationError(
                    alert.alert,
                    "Alert does not reference any recorded SLI series"
                ))

        return errors

    def _check_balanced_delimiters(self, promql: str) -> bool:
        """Check if parentheses, brackets, and braces are balanced outside strings."""
        stack = []
        pairs = {'(': ')', '[': ']', '{': '}'}
        in_string = False
        escaped = False

        for char in promql:
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char in pairs:
                stack.append(char)
            elif char in pairs.values():
                if not stack or pairs[stack.pop()] != char:
                    return False

        return len(stack) == 0 and not in_string


def referenced_names(expr: str, names: Iterable[str]) -> List[str]:
    """Return the metric names from `names` used as identifiers in `expr`."""
    # Label values are quoted; drop them so a pattern never counts as a reference
    unquoted = re.sub(r'"(?:[^"\\]|\\.)*"', '""', expr)
    found = []
    for name in names:
        if re.search(rf"(?<![a-zA-Z0-9_:]){re.escape(name)}(?![a-zA-Z0-9_:])", unquoted):
            found.append(name)
    return sorted(found)


def check_recording_rules(
    rules: Sequence[RecordingRule],
    product: Optional[str] = None,
    sli_id: Optional[str] = None
) -> None:
    """Raise RuleValidationError if the ordered rules are inconsistent."""
    errors = RuleValidator().validate_recording_rules(rules)
    if errors:
        raise RuleValidationError(_summarize(errors), product=product, sli_id=sli_id)


def check_rule_documents(
    recording_rules: Sequence[RecordingRule],
    alerting_rules: Sequence[AlertingRule]
) -> None:
    """Raise RuleValidationError on collisions or dangling alert references."""
    validator = RuleValidator()
    errors = validator.validate_unique_series(recording_rules)
    errors.extend(validator.validate_alerting_rules(
        alerting_rules,
        {rule.record for rule in recording_rules}
    ))
    if errors:
        raise RuleValidationError(_summarize(errors))


def _summarize(errors: List[ValidationError]) -> str:
    return "; ".join(
        f"{error.rule}: {error.message}" if error.rule else error.message
        for error in errors
    )
