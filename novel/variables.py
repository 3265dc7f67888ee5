"""
Variable store and the condition/effect mini-languages.

Conditions are ``&&``-joined clauses of the form ``name OP value``.
Effects are comma-separated clauses: ``name=true``, ``name+N``, ``name-N``
or ``name=N``. Malformed clauses never raise: unparsable conditions count as
satisfied and unknown effects are skipped.
"""

import logging
import math
import re
from typing import Any, Iterable, Mapping, Union

from .models import VariableDef

logger = logging.getLogger(__name__)

Value = Union[int, float, bool]

CONDITION_PATTERN = re.compile(r"^(\w+)\s*(>=|<=|==|!=|>|<)\s*(.+)$", re.ASCII)
BOOL_ASSIGN_PATTERN = re.compile(r"^(\w+)=(true|false)$", re.ASCII)
STEP_PATTERN = re.compile(r"^(\w+)([+-])(\d+)$", re.ASCII)
NUMBER_ASSIGN_PATTERN = re.compile(r"^(\w+)=(\d+)$", re.ASCII)


def parse_number(text: str, default: float = 0) -> Union[int, float]:
    """Parse a numeric literal, keeping integers as int."""
    text = text.strip()
    if not text:
        return 0
    # int()/float() also take digit separators and non-ASCII digits
    if "_" in text or not text.isascii():
        return default
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return default
    return default if math.isnan(number) else number


def to_number(value: Any, default: float = 0) -> Union[int, float]:
    """Coerce a stored value to a number; booleans become 1/0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return default if isinstance(value, float) and math.isnan(value) else value
    if isinstance(value, str):
        return parse_number(value, default)
    return default


def _parse_literal(raw: str) -> Value:
    if raw == "true":
        return True
    if raw == "false":
        return False
    return parse_number(raw, math.nan)


def _loose_equals(left: Any, right: Any) -> bool:
    # A boolean never equals a number here, unlike Python's True == 1.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


class VariableStore:
    """Holds the named game variables of one session."""

    def __init__(self):
        self._variables: dict[str, Value] = {}

    def init(self, defs: Iterable[VariableDef]) -> None:
        """Reset the store to exactly the given definitions."""
        self._variables = {}
        for definition in defs:
            if definition.default_value == "true":
                self._variables[definition.var_name] = True
            elif definition.default_value == "false":
                self._variables[definition.var_name] = False
            else:
                self._variables[definition.var_name] = parse_number(
                    str(definition.default_value)
                )

    def get(self, name: str) -> Value:
        """Current value, or 0 when the name is unknown."""
        return self._variables.get(name, 0)

    def get_all(self) -> dict[str, Value]:
        """Snapshot of every variable."""
        return dict(self._variables)

    def load_from(self, snapshot: Mapping[str, Value]) -> None:
        """Replace the whole variable set."""
        self._variables = dict(snapshot)

    def __contains__(self, name: str) -> bool:
        return name in self._variables

    def check_condition(self, condition: str | None) -> bool:
        """Evaluate a condition expression against the current values."""
        if not condition or not condition.strip():
            return True

        clauses = [part.strip() for part in condition.split("&&")]
        return all(self._eval_clause(clause) for clause in clauses)

    def _eval_clause(self, clause: str) -> bool:
        match = CONDITION_PATTERN.match(clause)
        if not match:
            logger.debug("Unparsable condition clause %r treated as true", clause)
            return True

        name, operator, raw_value = match.groups()
        current = self.get(name)
        target = _parse_literal(raw_value)

        if operator == "==":
            return _loose_equals(current, target)
        elif operator == "!=":
            return not _loose_equals(current, target)

        left = to_number(current, math.nan)
        right = to_number(target, math.nan)
        if operator == ">=":
            return left >= right
        elif operator == "<=":
            return left <= right
        elif operator == ">":
            return left > right
        elif operator == "<":
            return left < right
        return True

    def apply_effect(self, effect: str | None) -> None:
        """Apply a comma-separated list of mutations, left to right."""
        if not effect or not effect.strip():
            return

        for clause in effect.split(","):
            self._apply_clause(clause.strip())

    def _apply_clause(self, clause: str) -> None:
        match = BOOL_ASSIGN_PATTERN.match(clause)
        if match:
            name, value = match.groups()
            self._variables[name] = value == "true"
            return

        match = STEP_PATTERN.match(clause)
        if match:
            name, sign, amount = match.groups()
            current = to_number(self._variables.get(name, 0))
            delta = int(amount)
            self._variables[name] = current + delta if sign == "+" else current - delta
            return

        match = NUMBER_ASSIGN_PATTERN.match(clause)
        if match:
            name, value = match.groups()
            self._variables[name] = int(value)
            return

        logger.debug("Ignoring unrecognized effect clause %r", clause)
