"""Translate HTTP query strings into database queries.

A request such as ``GET /tours?duration[gte]=5&sort=-price,name&fields=name,price&page=2``
goes through two steps:

1. :func:`translate` turns the raw parameters into a :class:`QuerySpec`
   (predicates, sort keys, projection, pagination).
2. :func:`apply` runs the :class:`QuerySpec` against a SQLAlchemy ``Query`` in the order
   filter, sort, field selection, pagination.

Field names are accepted in camelCase or snake_case and normalised to
snake_case. The translator does not validate names against a schema: a
predicate on a field the model does not expose matches no rows, and unknown
sort or projection fields are ignored.
"""

import operator
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from pydantic.alias_generators import to_snake
from sqlalchemy import false, inspect
from sqlalchemy.orm import defer, load_only

from natours.core import config
from natours.core.exceptions import ValidationError

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})
DEFAULT_SORT = "-created_at"
VERSION_FIELD = "version"
MAX_SQL_INTEGER = 2**63 - 1

OPERATORS = {
    "eq": operator.eq,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_BRACKET_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]+)\]$")
_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


@dataclass(frozen=True)
class Predicate:
    field: str
    op: str
    value: str


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    def allows(self, name: str) -> bool:
        if self.include:
            return name == "id" or name in self.include
        return name not in self.exclude


@dataclass(frozen=True)
class QuerySpec:
    predicates: tuple[Predicate, ...] = ()
    sort: tuple[SortKey, ...] = ()
    projection: Projection = field(default_factory=Projection)
    page: int = 1
    limit: int = config.DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def normalize_field(name: str) -> str:
    return to_snake(name.strip())


def parse_query_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Fold raw query pairs into a nested mapping.

    ``price[gte]=100`` becomes ``{"price": {"gte": "100"}}``. A repeated key
    keeps its last value.
    """
    params: dict[str, Any] = {}
    for key, value in items:
        match = _BRACKET_KEY.match(key)
        if match:
            nested = params.get(match["field"])
            if not isinstance(nested, dict):
                nested = {}
                params[match["field"]] = nested
            nested[match["op"]] = value
        else:
            params[key] = value
    return params


def _parse_positive_int(value: Any, default: int) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 1 else default


def _split_list(value: Any) -> list[str]:
    if not isinstance(value, str):
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _build_predicates(params: Mapping[str, Any]) -> tuple[Predicate, ...]:
    predicates: list[Predicate] = []
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        name = normalize_field(key)
        if isinstance(value, Mapping):
            for op, operand in value.items():
                if op not in OPERATORS:
                    raise ValidationError(f"Invalid filter operator '{op}' for field '{key}'.")
                predicates.append(Predicate(name, op, str(operand)))
        else:
            predicates.append(Predicate(name, "eq", str(value)))
    return tuple(predicates)


def _build_sort(value: Any) -> tuple[SortKey, ...]:
    keys = []
    for item in _split_list(value) or [DEFAULT_SORT]:
        descending = item.startswith("-")
        name = item[1:] if descending else item
        if name:
            keys.append(SortKey(normalize_field(name), descending))
    return tuple(keys)


def _build_projection(value: Any) -> Projection:
    items = _split_list(value)
    if not items:
        return Projection(exclude=(VERSION_FIELD,))

    include = tuple(normalize_field(item) for item in items if not item.startswith("-"))
    exclude = tuple(normalize_field(item[1:]) for item in items if item.startswith("-") and item[1:])
    if include and exclude:
        raise ValidationError("Field selection cannot mix included and excluded fields.")
    return Projection(include=include, exclude=exclude)


def _build_pagination(page_value: Any, limit_value: Any) -> tuple[int, int]:
    limit = min(_parse_positive_int(limit_value, config.DEFAULT_PAGE_LIMIT), config.MAX_PAGE_LIMIT)
    page = _parse_positive_int(page_value, 1)
    # OFFSET must fit a signed 64-bit SQL integer.
    if (page - 1) * limit > MAX_SQL_INTEGER:
        page = 1
    return page, limit


def translate(params: Mapping[str, Any]) -> QuerySpec:
    page, limit = _build_pagination(params.get("page"), params.get("limit"))
    return QuerySpec(
        predicates=_build_predicates(params),
        sort=_build_sort(params.get("sort")),
        projection=_build_projection(params.get("fields")),
        page=page,
        limit=limit,
    )


def model_fields(
    model,
    aliases: Mapping[str, str] | None = None,
    hidden: Iterable[str] = (),
) -> dict[str, Any]:
    """Map public field names to the model's column attributes.

    Args:
        model: Declarative model class.
        aliases: Public name -> attribute key, replacing the attribute key.
        hidden: Attribute keys never exposed to filters, sorts or output.
    """
    aliases = dict(aliases or {})
    renamed = {key: name for name, key in aliases.items()}
    hidden = set(hidden)
    fields: dict[str, Any] = {}
    for attr in inspect(model).column_attrs:
        if attr.key in hidden:
            continue
        fields[renamed.get(attr.key, attr.key)] = getattr(model, attr.key)
    return fields


def _python_type(column) -> type | None:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def coerce_value(name: str, column, raw: str) -> Any:
    python_type = _python_type(column)
    try:
        if python_type is bool:
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if python_type is int:
            try:
                value = int(raw)
            except ValueError:
                return float(raw)
            if abs(value) > MAX_SQL_INTEGER:
                raise ValueError(raw)
            return value
        if python_type is float:
            return float(raw)
        if python_type is Decimal:
            return Decimal(raw)
        if python_type is datetime:
            return datetime.fromisoformat(raw)
        if python_type is date:
            return date.fromisoformat(raw)
        if python_type is str:
            return raw
    except (ValueError, InvalidOperation) as exc:
        raise ValidationError(f"Invalid {name}: {raw}") from exc
    return None


def apply_filter(query, predicates: Iterable[Predicate], fields: Mapping[str, Any]):
    for predicate in predicates:
        column = fields.get(predicate.field)
        value = coerce_value(predicate.field, column, predicate.value) if column is not None else None
        if column is None or value is None:
            # Missing or non-scalar field: nothing can match it.
            query = query.filter(false())
            continue
        query = query.filter(OPERATORS[predicate.op](column, value))
    return query


def apply_sort(query, sort: Iterable[SortKey], fields: Mapping[str, Any]):
    clauses = []
    for key in sort:
        column = fields.get(key.field)
        if column is not None:
            clauses.append(column.desc() if key.descending else column.asc())
    if "id" in fields:
        clauses.append(fields["id"].asc())
    return query.order_by(*clauses) if clauses else query


def apply_projection(query, projection: Projection, fields: Mapping[str, Any]):
    if projection.include:
        columns = [column for name, column in fields.items() if projection.allows(name)]
        return query.options(load_only(*columns)) if columns else query
    deferred = [fields[name] for name in projection.exclude if name in fields and name != "id"]
    return query.options(*(defer(column) for column in deferred)) if deferred else query


def apply_pagination(query, spec: QuerySpec):
    return query.offset(spec.offset).limit(spec.limit)


def apply(spec: QuerySpec, query, fields: Mapping[str, Any]):
    """Run a query spec against ``query``: filter, sort, field selection, pagination."""
    query = apply_filter(query, spec.predicates, fields)
    query = apply_sort(query, spec.sort, fields)
    query = apply_projection(query, spec.projection, fields)
    return apply_pagination(query, spec)
