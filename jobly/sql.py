"""
Parameterized SQL construction.

Two pure builders feed the record-access layer:

- sql_for_partial_update: the SET clause of a partial UPDATE.
- build_filter: the WHERE predicate of a search, checked against a
  per-entity CriterionSpec.

Both emit positional placeholders ($1, $2, ...) whose number is the
1-based position of the bound value. to_statement turns them into
SQLAlchemy named binds right before execution.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from .errors import InvalidArgumentError, InvalidCriteriaError

FieldMap = Mapping[str, str]
Pairs = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]

FLAG_VALUES = ("true", "false")

# Range of an INTEGER column on PostgreSQL; SQLite accepts a superset
INTEGER_MIN = -(2 ** 31)
INTEGER_MAX = 2 ** 31 - 1

_PLACEHOLDER = re.compile(r"\$(\d+)")
_INTEGER = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class ParameterizedClause:
    """SQL fragment with positional placeholders and the values bound to them."""

    sql: str
    values: Tuple[Any, ...]

    @property
    def is_empty(self) -> bool:
        return not self.sql


class CriterionKind(Enum):
    SUBSTRING = "substring"
    LOWER_BOUND = "lower_bound"
    UPPER_BOUND = "upper_bound"
    FLAG = "flag"


@dataclass(frozen=True)
class Criterion:
    name: str
    column: str
    kind: CriterionKind


# Ordered: emission order of the fragments follows the tuple order.
CriterionSpec = Tuple[Criterion, ...]

COMPANY_CRITERIA: CriterionSpec = (
    Criterion("minEmployees", "num_employees", CriterionKind.LOWER_BOUND),
    Criterion("maxEmployees", "num_employees", CriterionKind.UPPER_BOUND),
    Criterion("name", "name", CriterionKind.SUBSTRING),
)

JOB_CRITERIA: CriterionSpec = (
    Criterion("title", "title", CriterionKind.SUBSTRING),
    Criterion("minSalary", "salary", CriterionKind.LOWER_BOUND),
    Criterion("hasEquity", "equity", CriterionKind.FLAG),
)


def _ordered_pairs(data: Pairs) -> List[Tuple[str, Any]]:
    if isinstance(data, Mapping):
        return list(data.items())
    return [(field, value) for field, value in data]


def sql_for_partial_update(data: Pairs, field_map: FieldMap) -> ParameterizedClause:
    """
    Build the SET clause of a partial update.

    Args:
        data: Fields to change, as a mapping or a sequence of (field, value)
            pairs. Iteration order decides placeholder numbering.
        field_map: API field name -> column name. Unmapped fields are used
            as the column name unchanged.

    Returns:
        ParameterizedClause such as '"first_name"=$1, "age"=$2'

    Raises:
        InvalidArgumentError: If data is empty
    """
    pairs = _ordered_pairs(data)
    if not pairs:
        raise InvalidArgumentError("No data")

    cols = []
    values = []
    for idx, (field, value) in enumerate(pairs, start=1):
        column = field_map.get(field, field)
        cols.append(f'"{column}"=${idx}')
        values.append(value)

    return ParameterizedClause(", ".join(cols), tuple(values))


def parse_integer(raw: Any) -> int:
    """
    Parse an integer column value from outside input.

    Accepts ints and plain decimal strings such as "42" or "-3" (surrounding
    whitespace ignored), within INTEGER_MIN..INTEGER_MAX. Python-only forms
    like "1_0" or "+3" are rejected.

    Raises:
        ValueError: If the value is not such an integer
    """
    if isinstance(raw, str) and _INTEGER.fullmatch(raw.strip()):
        raw = int(raw.strip())
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError("expected an integer")
    if not INTEGER_MIN <= raw <= INTEGER_MAX:
        raise ValueError(f"out of range ({INTEGER_MIN} to {INTEGER_MAX})")
    return raw


def _parse_bound(name: str, raw: Any) -> int:
    try:
        return parse_integer(raw)
    except ValueError as e:
        raise InvalidCriteriaError(f"Invalid value for {name}: {e}") from None


def check_criteria(criteria: Mapping[str, Any], spec: CriterionSpec) -> Dict[str, Any]:
    """
    Validate raw search criteria against an entity's CriterionSpec.

    None and empty-string values count as absent. Bounds are parsed to int,
    flags must be exactly "true" or "false".

    Returns:
        Parsed values keyed by criterion name (absent criteria left out)

    Raises:
        InvalidCriteriaError: On unknown keys, malformed values, or a lower
            bound above its upper bound
    """
    known = {c.name: c for c in spec}
    unknown = sorted(k for k in criteria if k not in known)
    if unknown:
        raise InvalidCriteriaError(f"Invalid search criteria: {', '.join(unknown)}")

    parsed: Dict[str, Any] = {}
    for name, raw in criteria.items():
        if raw is None or raw == "":
            continue
        kind = known[name].kind
        if kind is CriterionKind.FLAG:
            if raw not in FLAG_VALUES:
                raise InvalidCriteriaError(f"Invalid value for {name}: expected 'true' or 'false'")
            parsed[name] = raw
        elif kind in (CriterionKind.LOWER_BOUND, CriterionKind.UPPER_BOUND):
            parsed[name] = _parse_bound(name, raw)
        else:
            parsed[name] = str(raw)

    lowers = [c for c in spec if c.kind is CriterionKind.LOWER_BOUND and c.name in parsed]
    uppers = [c for c in spec if c.kind is CriterionKind.UPPER_BOUND and c.name in parsed]
    for lower in lowers:
        for upper in uppers:
            if upper.column == lower.column and parsed[lower.name] > parsed[upper.name]:
                raise InvalidCriteriaError(
                    f"{upper.name} must be greater than or equal to {lower.name}"
                )

    return parsed


def escape_like(value: str) -> str:
    """Backslash-escape LIKE wildcards so the value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filter(
    criteria: Mapping[str, Any],
    spec: CriterionSpec,
    like_operator: str = "ILIKE",
    escape_wildcards: bool = True,
) -> ParameterizedClause:
    """
    Build the WHERE predicate for a search.

    Args:
        criteria: Raw criteria as received at the input boundary
        spec: Recognized criteria for the entity, in emission order
        like_operator: ILIKE for PostgreSQL, LIKE for SQLite
        escape_wildcards: Escape % and _ in substring values (adds an
            ESCAPE clause to the fragment)

    Returns:
        ParameterizedClause joined with AND; empty when nothing constrains
        the search, in which case the caller must leave out WHERE

    Raises:
        InvalidCriteriaError: See check_criteria
    """
    parsed = check_criteria(criteria, spec)

    fragments: List[str] = []
    values: List[Any] = []
    for criterion in spec:
        if criterion.name not in parsed:
            continue
        value = parsed[criterion.name]
        idx = len(values) + 1
        column = criterion.column

        if criterion.kind is CriterionKind.SUBSTRING:
            if escape_wildcards:
                fragments.append(f"{column} {like_operator} ${idx} ESCAPE '\\'")
                values.append(f"%{escape_like(value)}%")
            else:
                fragments.append(f"{column} {like_operator} ${idx}")
                values.append(f"%{value}%")
        elif criterion.kind is CriterionKind.LOWER_BOUND:
            fragments.append(f"{column} >= ${idx}")
            values.append(value)
        elif criterion.kind is CriterionKind.UPPER_BOUND:
            fragments.append(f"{column} <= ${idx}")
            values.append(value)
        elif value == "true":
            # "false" adds no constraint
            fragments.append(f"{column} > ${idx}")
            values.append(0)

    return ParameterizedClause(" AND ".join(fragments), tuple(values))


def to_statement(sql: str, values: Sequence[Any]) -> Tuple[TextClause, Dict[str, Any]]:
    """
    Convert $n placeholders to SQLAlchemy named binds.

    Returns:
        (text clause, bind parameters) ready for Session.execute

    Raises:
        ValueError: If a placeholder has no matching value
    """
    params: Dict[str, Any] = {}

    def _bind(match: "re.Match") -> str:
        index = int(match.group(1))
        if not 1 <= index <= len(values):
            raise ValueError(f"Placeholder ${index} has no bound value")
        name = f"p{index}"
        params[name] = values[index - 1]
        return f":{name}"

    rendered = _PLACEHOLDER.sub(_bind, sql)
    return text(rendered), params
