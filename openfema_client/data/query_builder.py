"""
Translate structured filters and field selections into OpenFEMA query descriptors.

Filter specs map a field name to one predicate or a list of predicates:

    {
        "countyCode": "= 01001",
        "yearOfLoss": [">= 2010", "<= 2020"],
        "state": ["VA", "MD"],
    }

becomes

    countyCode eq '01001' and (yearOfLoss ge 2010 and yearOfLoss le 2020)
    and (state eq 'VA' or state eq 'MD')

Rules:
- A predicate is a bare value (equality) or a value prefixed by an operator
  token (>=, <=, !=, <>, ==, =, >, <) or an OData word (eq, ne, gt, ge, lt, le)
  followed by a number or a quoted value
- Equality predicates on one field are ORed, other predicates are ANDed
- Each field contributes exactly one top-level clause; clauses are ANDed
- Strings are single-quoted with embedded quotes doubled; numbers and booleans
  stay bare unless the catalog types the field as a string
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from openfema_client.api.errors import InvalidQueryError
from openfema_client.api.models import QueryDescriptor
from openfema_client.config import MAX_PAGE_SIZE
from openfema_client.data.catalog import DATE_TYPES, STRING_TYPES, DatasetCatalog, get_catalog

logger = logging.getLogger(__name__)

FilterSpec = Mapping[str, Any]
FieldSelection = Union[None, str, Sequence[str]]

# Longest tokens first so ">=" is not read as ">"
_OPERATOR_TOKENS: List[Tuple[str, str]] = [
    (">=", "ge"),
    ("<=", "le"),
    ("!=", "ne"),
    ("<>", "ne"),
    ("==", "eq"),
    ("=", "eq"),
    (">", "gt"),
    ("<", "lt"),
]
_WORD_OPERATOR = re.compile(r"^(eq|ne|gt|ge|lt|le)\s+(.+)$", re.IGNORECASE | re.DOTALL)
_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NUMBER = re.compile(r"^-?(0|[1-9]\d*)(\.\d+)?$")


@dataclass(frozen=True)
class Predicate:
    """One comparison against a field, with the literal already escaped."""

    operator: str  # OData operator: eq, ne, gt, ge, lt, le
    literal: str

    def render(self, field: str) -> str:
        return f"{field} {self.operator} {self.literal}"


def quote_string(value: str) -> str:
    """Single-quote a string literal, doubling embedded single quotes."""
    return "'" + value.replace("'", "''") + "'"


def format_literal(value: Any, field_type: Optional[str] = None) -> str:
    """
    Render a Python value as an OData literal.

    Args:
        value: Value from the filter spec
        field_type: Catalog type of the field, when known

    Returns:
        Escaped literal ready for inclusion in $filter
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            raise InvalidQueryError("filter value", value, "a finite number")
        return str(value)
    if isinstance(value, (datetime, date)):
        return quote_string(value.isoformat())

    text = str(value).strip()
    if not text:
        raise InvalidQueryError("filter value", value, "a non-empty value")

    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return quote_string(text[1:-1])

    kind = (field_type or "").lower()
    if kind in STRING_TYPES or kind in DATE_TYPES:
        return quote_string(text)
    if text.lower() in ("true", "false", "null"):
        return text.lower()
    if _NUMBER.match(text):
        return text
    return quote_string(text)


def _is_explicit_literal(text: str) -> bool:
    if _NUMBER.match(text):
        return True
    return len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"')


def parse_predicate(raw: Any, field_type: Optional[str] = None) -> Predicate:
    """Split an operator prefix off ``raw`` and escape the remaining value."""
    if not isinstance(raw, str):
        return Predicate("eq", format_literal(raw, field_type))

    text = raw.strip()
    for token, operator in _OPERATOR_TOKENS:
        if text.startswith(token):
            return Predicate(operator, format_literal(text[len(token):], field_type))

    # Word operators need a number or quoted value after them ("ge 2010", "ne 'VA'")
    match = _WORD_OPERATOR.match(text)
    if match and _is_explicit_literal(match.group(2).strip()):
        return Predicate(match.group(1).lower(), format_literal(match.group(2), field_type))

    return Predicate("eq", format_literal(text, field_type))


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _check_field_name(name: Any, param_name: str) -> str:
    if not isinstance(name, str) or not _FIELD_NAME.match(name):
        raise InvalidQueryError(param_name, name, "a field name made of letters, digits and _")
    return name


class QueryBuilder:
    """
    Build QueryDescriptors against a dataset catalog.

    The builder is pure: it never touches the network.
    """

    def __init__(self, catalog: Optional[DatasetCatalog] = None):
        self.catalog = catalog or get_catalog()

    def build(
        self,
        dataset_id: str,
        selected_fields: FieldSelection = None,
        filter_spec: Optional[FilterSpec] = None,
        page_size: int = MAX_PAGE_SIZE,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> QueryDescriptor:
        """
        Build the descriptor for one page of a query.

        Raises:
            UnknownDatasetError: If ``dataset_id`` is not in the catalog
            InvalidQueryError: If the filter spec or selection is malformed
        """
        dataset = self.catalog.get_dataset(dataset_id)
        field_types = dataset.field_types

        descriptor = QueryDescriptor(
            dataset_id=dataset.name,
            version=dataset.version,
            selected_fields=self.build_selection(selected_fields, dataset.identifier_field),
            filter_expression=self.build_filter(filter_spec, field_types),
            page_size=page_size,
            offset=offset,
            limit=limit,
        )
        logger.debug(
            f"Built query for {descriptor.dataset_id}: filter={descriptor.filter_expression!r} "
            f"select={descriptor.selected_fields}"
        )
        return descriptor

    def build_filter(
        self,
        filter_spec: Optional[FilterSpec],
        field_types: Optional[Mapping[str, str]] = None,
    ) -> Optional[str]:
        """Combine a filter spec into one $filter expression (None when empty)."""
        if not filter_spec:
            return None
        if not isinstance(filter_spec, Mapping):
            raise InvalidQueryError("filter_spec", filter_spec, "a mapping of field -> predicate(s)")

        field_types = field_types or {}
        clauses = [
            self._field_clause(_check_field_name(field, "filter field"), raw, field_types.get(field))
            for field, raw in filter_spec.items()
        ]
        return " and ".join(clauses)

    def _field_clause(self, field: str, raw: Any, field_type: Optional[str]) -> str:
        values = _as_list(raw)
        if not values:
            raise InvalidQueryError(f"filter for '{field}'", raw, "at least one predicate")

        predicates = [parse_predicate(value, field_type) for value in values]
        equalities = [p.render(field) for p in predicates if p.operator == "eq"]
        others = [p.render(field) for p in predicates if p.operator != "eq"]

        parts: List[str] = []
        if len(equalities) == 1:
            parts.append(equalities[0])
        elif equalities:
            parts.append("(" + " or ".join(equalities) + ")")
        parts.extend(others)

        if len(parts) == 1:
            return parts[0]
        return "(" + " and ".join(parts) + ")"

    def build_selection(
        self, selected_fields: FieldSelection, identifier_field: str = "id"
    ) -> Optional[Tuple[str, ...]]:
        """
        Normalize a field selection.

        ``None`` or ``"all"`` selects every field. Otherwise fields are
        deduplicated in order and the identifier field is appended if missing.
        """
        if selected_fields is None:
            return None
        if isinstance(selected_fields, str):
            if selected_fields.strip().lower() == "all":
                return None
            selected_fields = [f.strip() for f in selected_fields.split(",") if f.strip()]

        fields: List[str] = []
        for name in selected_fields:
            _check_field_name(name, "selected field")
            if name not in fields:
                fields.append(name)
        if not fields:
            raise InvalidQueryError("selected_fields", selected_fields, "at least one field name or 'all'")
        if identifier_field not in fields:
            fields.append(identifier_field)
        return tuple(fields)


def build_query(
    dataset_id: str,
    selected_fields: FieldSelection = None,
    filter_spec: Optional[FilterSpec] = None,
    page_size: int = MAX_PAGE_SIZE,
    offset: int = 0,
    catalog: Optional[DatasetCatalog] = None,
) -> QueryDescriptor:
    """Convenience wrapper around ``QueryBuilder(catalog).build(...)``."""
    return QueryBuilder(catalog).build(
        dataset_id,
        selected_fields=selected_fields,
        filter_spec=filter_spec,
        page_size=page_size,
        offset=offset,
    )


def split_filter_arg(items: Iterable[str]) -> Dict[str, List[str]]:
    """
    Parse CLI-style ``field=predicate`` strings into a filter spec.

    ``yearOfLoss=>= 2010`` and ``yearOfLoss=<= 2020`` collect under one field.
    """
    spec: Dict[str, List[str]] = {}
    for item in items:
        field, sep, predicate = item.partition("=")
        if not sep or not field.strip():
            raise InvalidQueryError("filter", item, "field=predicate")
        spec.setdefault(field.strip(), []).append(predicate.strip())
    return spec
