"""
Listing filter engine.

One generic ``apply_filter`` over a predicate assembled from independent
criterion builders and combined with logical AND. The business and promotion
filters are only different compositions of the same criteria.

Contract shared by every filter here:

* the source sequence is never mutated, a new list is returned;
* relative input order is preserved (input arrives ``created_at`` desc);
* filtering is idempotent;
* an empty term, unset category or unset weekday is the identity for that
  criterion.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, TypeVar

from doctavende.schemas.business import Business
from doctavende.schemas.promotion import Promotion

T = TypeVar("T")
Predicate = Callable[[T], bool]


class PromotionListing(NamedTuple):
    promotion: Promotion
    business: Business


@dataclass(frozen=True)
class ListingCriteria:
    term: str = ""
    category: Optional[str] = None
    day: Optional[int] = None

    @classmethod
    def build(
        cls,
        term: Optional[str] = None,
        category: Optional[str | Enum] = None,
        day: Optional[int] = None,
    ) -> "ListingCriteria":
        if isinstance(category, Enum):
            category = str(category.value)
        return cls(term=(term or "").strip(), category=category or None, day=day)


# ------------------------------------------------------------------------- #
# Generic machinery
# ------------------------------------------------------------------------- #
def always(_item: object) -> bool:
    return True


def all_of(*predicates: Predicate[T]) -> Predicate[T]:
    active = [p for p in predicates if p is not always]
    if not active:
        return always
    if len(active) == 1:
        return active[0]

    def combined(item: T) -> bool:
        return all(p(item) for p in active)

    return combined


def apply_filter(items: Iterable[T], predicate: Predicate[T]) -> list[T]:
    return [item for item in items if predicate(item)]


# ------------------------------------------------------------------------- #
# Criteria
# ------------------------------------------------------------------------- #
def _contains(haystack: Optional[str], needle: str) -> bool:
    # description puede venir en null: nunca matchea, nunca explota
    return bool(haystack) and needle in haystack.lower()


def text_predicate(term: str, *fields: Callable[[T], Optional[str]]) -> Predicate[T]:
    """Case-insensitive substring match of ``term`` against ANY of ``fields``."""
    needle = term.strip().lower()
    if not needle:
        return always

    def matches(item: T) -> bool:
        return any(_contains(field(item), needle) for field in fields)

    return matches


def category_predicate(category: Optional[str], get_category: Callable[[T], str]) -> Predicate[T]:
    if not category:
        return always

    def matches(item: T) -> bool:
        value = get_category(item)
        if isinstance(value, Enum):
            value = value.value
        return value == category

    return matches


def weekday_predicate(day: Optional[int], get_days: Callable[[T], Iterable[int]]) -> Predicate[T]:
    if day is None:
        return always

    def matches(item: T) -> bool:
        return day in set(get_days(item))

    return matches


def active_parent_predicate(get_parent: Callable[[T], Business]) -> Predicate[T]:
    def matches(item: T) -> bool:
        return bool(get_parent(item).active)

    return matches


# ------------------------------------------------------------------------- #
# Compositions
# ------------------------------------------------------------------------- #
def business_predicate(criteria: ListingCriteria) -> Predicate[Business]:
    return all_of(
        text_predicate(criteria.term, lambda b: b.name, lambda b: b.description),
        category_predicate(criteria.category, lambda b: b.category),
    )


def promotion_predicate(criteria: ListingCriteria) -> Predicate[PromotionListing]:
    return all_of(
        active_parent_predicate(lambda pl: pl.business),
        text_predicate(
            criteria.term,
            lambda pl: pl.promotion.title,
            lambda pl: pl.promotion.description,
            lambda pl: pl.business.name,
        ),
        category_predicate(criteria.category, lambda pl: pl.business.category),
        weekday_predicate(criteria.day, lambda pl: pl.promotion.days_of_week),
    )


def filter_businesses(
    businesses: Sequence[Business],
    term: Optional[str] = None,
    category: Optional[str | Enum] = None,
) -> list[Business]:
    criteria = ListingCriteria.build(term, category)
    return apply_filter(businesses, business_predicate(criteria))


def filter_promotions(
    listings: Sequence[PromotionListing],
    term: Optional[str] = None,
    category: Optional[str | Enum] = None,
    day: Optional[int] = None,
) -> list[PromotionListing]:
    criteria = ListingCriteria.build(term, category, day)
    return apply_filter(listings, promotion_predicate(criteria))


def pair_with_active_businesses(
    promotions: Iterable[Promotion],
    businesses: Iterable[Business],
) -> list[PromotionListing]:
    """Join promotions to their parent, dropping those whose parent is missing or inactive."""
    active = {b.id: b for b in businesses if b.active}
    return [
        PromotionListing(promotion, active[promotion.business_id])
        for promotion in promotions
        if promotion.business_id in active
    ]
