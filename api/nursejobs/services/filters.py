from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from nursejobs.core.geography import city_from_slug, city_slug
from nursejobs.core.taxonomy import DIMENSION_NAMES, TaxonomyRegistry

OP_IN = "in"
OP_NOT_IN = "not_in"
OP_EQ = "eq"
OP_NE = "ne"
OP_NOT_NULL = "not_null"
OP_ANY_NOT_NULL = "any_not_null"
OP_CITY_SLUG = "city_slug"

TEXT_FIELDS = frozenset(
    {"id", "slug", "state", "city", "specialty", "job_type", "shift_type", "experience_level", "employer_id"}
)
NUMERIC_FIELDS = frozenset({"salary_min_hourly", "salary_max_hourly", "salary_min_annual", "salary_max_annual"})
BOOL_FIELDS = frozenset({"has_sign_on_bonus"})
FILTER_FIELDS = TEXT_FIELDS | NUMERIC_FIELDS | BOOL_FIELDS

# Dimensions a FilterContext can pin, in canonical path order.
CONTEXT_DIMENSIONS = ("employer", "state", "city", *DIMENSION_NAMES, "sign_on_bonus")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _lower(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip().lower()


@dataclass(frozen=True, slots=True)
class Condition:
    field: str
    op: str
    values: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        fields = self.values if self.op == OP_ANY_NOT_NULL else (self.field,)
        for name in fields:
            if name not in FILTER_FIELDS:
                raise ValueError(f"unsupported filter field: {name}")

    def matches(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        if self.op == OP_IN:
            return _lower(value) in {_lower(item) for item in self.values}
        if self.op == OP_NOT_IN:
            return _is_blank(value) or _lower(value) not in {_lower(item) for item in self.values}
        if self.op == OP_EQ:
            return value == self.values[0]
        if self.op == OP_NE:
            return value != self.values[0]
        if self.op == OP_NOT_NULL:
            return not _is_blank(value)
        if self.op == OP_ANY_NOT_NULL:
            return any(record.get(name) is not None for name in self.values)
        if self.op == OP_CITY_SLUG:
            return city_slug(value) == self.values[0]
        raise ValueError(f"unsupported filter op: {self.op}")


def any_of(field_name: str, values: Iterable[str]) -> Condition:
    return Condition(field_name, OP_IN, tuple(sorted({str(item).strip().lower() for item in values})))


def none_of(field_name: str, values: Iterable[str]) -> Condition:
    return Condition(field_name, OP_NOT_IN, tuple(sorted({str(item).strip().lower() for item in values})))


def equals(field_name: str, value: Any) -> Condition:
    return Condition(field_name, OP_EQ, (value,))


def not_equal(field_name: str, value: Any) -> Condition:
    return Condition(field_name, OP_NE, (value,))


def not_null(field_name: str) -> Condition:
    return Condition(field_name, OP_NOT_NULL)


def any_not_null(*field_names: str) -> Condition:
    return Condition(field_names[0], OP_ANY_NOT_NULL, tuple(field_names))


def city_is(slug: str) -> Condition:
    return Condition("city", OP_CITY_SLUG, (slug,))


@dataclass(frozen=True, slots=True)
class JobPredicate:
    """AND of conditions over job records; inactive jobs never match unless asked."""

    conditions: tuple[Condition, ...] = ()
    include_inactive: bool = False

    def where(self, *conditions: Condition) -> JobPredicate:
        return replace(self, conditions=self.conditions + tuple(conditions))

    def with_inactive(self) -> JobPredicate:
        return replace(self, include_inactive=True)

    def matches(self, record: Mapping[str, Any]) -> bool:
        if not self.include_inactive and not record.get("is_active"):
            return False
        return all(condition.matches(record) for condition in self.conditions)


@dataclass(frozen=True, slots=True)
class EmployerRef:
    id: str
    name: str
    slug: str


@dataclass(frozen=True, slots=True)
class FilterContext:
    """Resolved constraints for one listing page plus its pagination."""

    state: str | None = None
    city_slug: str | None = None
    specialty: str | None = None
    job_type: str | None = None
    shift_type: str | None = None
    experience_level: str | None = None
    employer: EmployerRef | None = None
    sign_on_bonus: bool = False
    page: int = 1
    limit: int = 20
    city_name: str | None = field(default=None, compare=False)

    def value_of(self, dimension: str) -> Any:
        if dimension == "city":
            return self.city_slug
        return getattr(self, dimension)

    def is_pinned(self, dimension: str) -> bool:
        value = self.value_of(dimension)
        return bool(value)

    def pinned(self) -> tuple[str, ...]:
        return tuple(name for name in CONTEXT_DIMENSIONS if self.is_pinned(name))

    def without(self, dimension: str) -> FilterContext:
        if dimension == "state":
            return replace(self, state=None, city_slug=None, city_name=None)
        if dimension == "city":
            return replace(self, city_slug=None, city_name=None)
        if dimension == "sign_on_bonus":
            return replace(self, sign_on_bonus=False)
        if dimension not in CONTEXT_DIMENSIONS:
            raise KeyError(f"unknown filter dimension: {dimension}")
        return replace(self, **{dimension: None})

    def with_page(self, page: int, limit: int | None = None) -> FilterContext:
        return replace(self, page=page, limit=limit if limit is not None else self.limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_predicate(self, taxonomy: TaxonomyRegistry) -> JobPredicate:
        conditions: list[Condition] = []
        if self.state:
            conditions.append(equals("state", self.state.upper()))
        if self.city_slug:
            conditions.append(city_is(self.city_slug))
        for name in DIMENSION_NAMES:
            canonical = getattr(self, name)
            if not canonical:
                continue
            variants = taxonomy.dimension(name).to_db_values(canonical) or [canonical]
            conditions.append(any_of(name, variants))
        if self.employer is not None:
            conditions.append(equals("employer_id", self.employer.id))
        if self.sign_on_bonus:
            conditions.append(equals("has_sign_on_bonus", True))
        return JobPredicate(conditions=tuple(conditions))

    def describe(self) -> dict[str, Any]:
        described: dict[str, Any] = {}
        for name in self.pinned():
            if name == "employer" and self.employer is not None:
                described[name] = self.employer.slug
            elif name == "city":
                described[name] = self.city_name or city_from_slug(self.city_slug or "")
            else:
                described[name] = self.value_of(name)
        return described
