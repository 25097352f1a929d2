from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
import logging
import re
from types import MappingProxyType

from nursejobs.core import vocabulary

logger = logging.getLogger(__name__)

_AMPERSAND_RE = re.compile(r"\s*&\s*")
_WHITESPACE_RE = re.compile(r"\s+")

DIMENSION_NAMES = ("specialty", "job_type", "shift_type", "experience_level")


def slugify(value: str) -> str:
    lowered = value.strip().lower()
    lowered = _AMPERSAND_RE.sub("-", lowered).replace("/", "-")
    return _WHITESPACE_RE.sub("-", lowered)


def _clean(raw: str) -> str:
    return _WHITESPACE_RE.sub(" ", raw.strip())


@dataclass(frozen=True, slots=True)
class TaxonomyValue:
    canonical: str
    slug: str
    raw_variants: frozenset[str]


class Dimension:
    """One closed vocabulary: canonical values, aliases and slug/store mappings.

    Lookups are case-insensitive. Store variants are lowercase so filters can
    compare against ``lower(field)``.
    """

    def __init__(
        self,
        name: str,
        canonical_values: Sequence[str],
        *,
        aliases: Mapping[str, str] | None = None,
        store_variants: Mapping[str, Sequence[str]] | None = None,
        slug_aliases: Mapping[str, str] | None = None,
    ) -> None:
        self.name = name
        aliases = aliases or {}
        store_variants = store_variants or {}
        slug_aliases = slug_aliases or {}

        by_lower = {value.lower(): value for value in canonical_values}
        if len(by_lower) != len(canonical_values):
            raise ValueError(f"duplicate canonical value in dimension {name}")

        alias_table: dict[str, str] = {}
        for canonical, variants in store_variants.items():
            if canonical not in canonical_values:
                raise ValueError(f"store variants reference unknown value {canonical!r} in {name}")
            for variant in variants:
                alias_table[_clean(variant).lower()] = canonical
        for raw, canonical in aliases.items():
            if canonical not in canonical_values:
                raise ValueError(f"alias {raw!r} references unknown value {canonical!r} in {name}")
            alias_table[_clean(raw).lower()] = canonical

        values: list[TaxonomyValue] = []
        by_slug: dict[str, TaxonomyValue] = {}
        for canonical in canonical_values:
            slug = slugify(canonical)
            if slug in by_slug:
                raise ValueError(f"slug collision {slug!r} in dimension {name}")
            variants = {canonical.lower(), slug}
            variants.update(_clean(item).lower() for item in store_variants.get(canonical, ()))
            variants.update(raw for raw, target in alias_table.items() if target == canonical)
            value = TaxonomyValue(canonical=canonical, slug=slug, raw_variants=frozenset(variants))
            values.append(value)
            by_slug[slug] = value

        slug_redirects: dict[str, str] = {}
        for alias_slug, target_slug in slug_aliases.items():
            if target_slug not in by_slug:
                raise ValueError(f"slug alias {alias_slug!r} references unknown slug {target_slug!r} in {name}")
            slug_redirects[alias_slug.lower()] = target_slug

        self._values = tuple(values)
        self._by_canonical = MappingProxyType({value.canonical: value for value in values})
        self._by_lower = MappingProxyType(by_lower)
        self._by_slug = MappingProxyType(by_slug)
        self._aliases = MappingProxyType(alias_table)
        self._slug_aliases = MappingProxyType(slug_redirects)

    def __iter__(self) -> Iterator[TaxonomyValue]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Dimension(name={self.name!r}, values={len(self._values)})"

    def canonicalize(self, raw: str | None) -> TaxonomyValue | None:
        if raw is None:
            return None
        cleaned = _clean(raw)
        if not cleaned:
            return None
        key = cleaned.lower()
        canonical = self._aliases.get(key) or self._by_lower.get(key)
        if canonical is not None:
            return self._by_canonical[canonical]
        return self._by_slug.get(slugify(cleaned))

    def normalize(self, raw: str | None) -> str | None:
        if raw is None:
            return None
        value = self.canonicalize(raw)
        if value is not None:
            return value.canonical
        cleaned = _clean(raw)
        if cleaned:
            logger.debug("taxonomy value unmatched dimension=%s raw=%s", self.name, cleaned)
        return cleaned or None

    def to_slug(self, canonical: str | None) -> str | None:
        value = self.canonicalize(canonical)
        return value.slug if value is not None else None

    def canonical_slug(self, slug: str | None) -> str | None:
        if not slug:
            return None
        key = _WHITESPACE_RE.sub("-", slug.strip().lower().replace("/", "-"))
        if key in self._by_slug:
            return key
        return self._slug_aliases.get(key)

    def to_display(self, slug: str | None) -> str | None:
        canonical_slug = self.canonical_slug(slug)
        if canonical_slug is None:
            return None
        return self._by_slug[canonical_slug].canonical

    def to_db_values(self, canonical: str | None) -> list[str] | None:
        value = self.canonicalize(canonical)
        if value is None:
            return None
        return sorted(value.raw_variants)

    def is_valid_slug(self, slug: str | None) -> bool:
        return self.canonical_slug(slug) is not None


@dataclass(frozen=True, slots=True)
class TaxonomyRegistry:
    specialty: Dimension
    job_type: Dimension
    shift_type: Dimension
    experience_level: Dimension

    def dimension(self, name: str) -> Dimension:
        if name not in DIMENSION_NAMES:
            raise KeyError(f"unknown taxonomy dimension: {name}")
        return getattr(self, name)

    def dimensions(self) -> tuple[Dimension, ...]:
        return tuple(self.dimension(name) for name in DIMENSION_NAMES)


def build_default_registry() -> TaxonomyRegistry:
    return TaxonomyRegistry(
        specialty=Dimension(
            "specialty",
            vocabulary.SPECIALTIES,
            aliases=vocabulary.SPECIALTY_ALIASES,
            slug_aliases=vocabulary.SPECIALTY_SLUG_ALIASES,
        ),
        job_type=Dimension(
            "job_type",
            vocabulary.JOB_TYPES,
            aliases=vocabulary.JOB_TYPE_ALIASES,
            store_variants=vocabulary.JOB_TYPE_STORE_VARIANTS,
            slug_aliases=vocabulary.JOB_TYPE_SLUG_ALIASES,
        ),
        shift_type=Dimension(
            "shift_type",
            vocabulary.SHIFT_TYPES,
            aliases=vocabulary.SHIFT_TYPE_ALIASES,
            store_variants=vocabulary.SHIFT_TYPE_STORE_VARIANTS,
        ),
        experience_level=Dimension(
            "experience_level",
            vocabulary.EXPERIENCE_LEVELS,
            aliases=vocabulary.EXPERIENCE_LEVEL_ALIASES,
        ),
    )


@lru_cache
def get_taxonomy_registry() -> TaxonomyRegistry:
    return build_default_registry()
