from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypeVar

from .genetics import genetic_multiplier
from .models import AnimalInfo, MedicationData

PEDIATRIC_KEY = "pediatric"
GERIATRIC_KEY = "geriatric"
DEFAULT_PEDIATRIC_MONTHS = 6.0
DEFAULT_GERIATRIC_YEARS = 7.0

RuleT = TypeVar("RuleT")


@dataclass(frozen=True)
class ResolvedAdjustment:
    """One multiplier source after lookup; 1.0 means no effect."""

    multiplier: float = 1.0
    warnings: tuple[str, ...] = ()
    contraindicated_routes: tuple[str, ...] = ()
    max_daily_dose: float | None = None

    @property
    def applied(self) -> bool:
        return self.multiplier != 1.0


NO_ADJUSTMENT = ResolvedAdjustment()


@dataclass(frozen=True)
class AdjustmentSet:
    species: ResolvedAdjustment
    breed: ResolvedAdjustment
    age: ResolvedAdjustment
    route: ResolvedAdjustment

    @property
    def total_multiplier(self) -> float:
        return compose_multiplier(self)


def normalize_key(value: str) -> str:
    return value.strip().lower()


def _lookup(table: Mapping[str, RuleT], key: str) -> RuleT | None:
    wanted = normalize_key(key)
    for name, rule in table.items():
        if normalize_key(name) == wanted:
            return rule
    return None


def _partial_lookup(table: Mapping[str, RuleT], key: str) -> RuleT | None:
    wanted = normalize_key(key)
    for name, rule in table.items():
        candidate = normalize_key(name)
        if not candidate:
            continue
        if candidate in wanted or wanted in candidate:
            return rule
    return None


def resolve_species(medication: MedicationData, species: str) -> ResolvedAdjustment:
    rule = _lookup(medication.species_adjustments, species)
    if rule is None:
        return NO_ADJUSTMENT
    return ResolvedAdjustment(
        multiplier=rule.multiplier,
        warnings=tuple(rule.additional_warnings),
        contraindicated_routes=tuple(rule.contraindicated_routes),
        max_daily_dose=rule.max_daily_dose,
    )


def resolve_breed(medication: MedicationData, breed: str | None, species: str) -> ResolvedAdjustment:
    """Resolve the breed multiplier.

    Explicit table entries win over the built-in genetic rules: first an exact
    match, then a substring match in either direction, and only then the
    MDR1/greyhound fallback for dogs.
    """
    if not breed or not breed.strip():
        return NO_ADJUSTMENT

    rule = _lookup(medication.breed_considerations, breed)
    if rule is None:
        rule = _partial_lookup(medication.breed_considerations, breed)
    if rule is not None:
        return ResolvedAdjustment(
            multiplier=rule.multiplier if rule.multiplier is not None else 1.0,
            warnings=tuple(rule.additional_warnings),
            contraindicated_routes=tuple(rule.contraindicated_routes),
        )

    multiplier = genetic_multiplier(breed, species, medication.generic_name)
    if multiplier is None:
        return NO_ADJUSTMENT
    return ResolvedAdjustment(multiplier=multiplier)


def resolve_age(medication: MedicationData, animal: AnimalInfo) -> ResolvedAdjustment:
    has_age = bool(animal.age_years and animal.age_years > 0) or bool(animal.age_months and animal.age_months > 0)
    if not has_age:
        return NO_ADJUSTMENT

    age_in_months = (animal.age_years or 0) * 12 + (animal.age_months or 0)
    age_in_years = animal.age_years or 0

    # Pediatric is checked first if both could match.
    pediatric = _lookup(medication.age_adjustments, PEDIATRIC_KEY)
    if pediatric is not None:
        threshold = pediatric.min_age_months if pediatric.min_age_months is not None else DEFAULT_PEDIATRIC_MONTHS
        if age_in_months < threshold:
            return ResolvedAdjustment(multiplier=pediatric.multiplier, warnings=tuple(pediatric.additional_warnings))

    geriatric = _lookup(medication.age_adjustments, GERIATRIC_KEY)
    if geriatric is not None:
        threshold = geriatric.min_age_years if geriatric.min_age_years is not None else DEFAULT_GERIATRIC_YEARS
        if age_in_years >= threshold:
            return ResolvedAdjustment(multiplier=geriatric.multiplier, warnings=tuple(geriatric.additional_warnings))

    return NO_ADJUSTMENT


def resolve_route(medication: MedicationData, route: str) -> ResolvedAdjustment:
    if not route:
        return NO_ADJUSTMENT
    rule = _lookup(medication.route_adjustments, route)
    if rule is None:
        return NO_ADJUSTMENT
    return ResolvedAdjustment(multiplier=rule.multiplier, warnings=tuple(rule.additional_warnings))


def resolve_adjustments(medication: MedicationData, animal: AnimalInfo, route: str) -> AdjustmentSet:
    return AdjustmentSet(
        species=resolve_species(medication, animal.species),
        breed=resolve_breed(medication, animal.breed, animal.species),
        age=resolve_age(medication, animal),
        route=resolve_route(medication, route),
    )


def compose_multiplier(adjustments: AdjustmentSet) -> float:
    return (
        adjustments.species.multiplier
        * adjustments.breed.multiplier
        * adjustments.age.multiplier
        * adjustments.route.multiplier
    )
