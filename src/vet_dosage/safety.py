from __future__ import annotations

from .adjustments import AdjustmentSet, normalize_key
from .config import DEFAULT_POLICY, SafetyPolicy
from .errors import ContraindicatedError
from .models import AnimalInfo, MedicationData, SafetyLevel

DANGER_PREFIX = "warning:"
DANGER_KEYWORD = "contraindicated"


def find_contraindication(medication: MedicationData, animal: AnimalInfo) -> tuple[str, str] | None:
    """Return the first ``(contraindication, condition)`` pair that matches."""
    for contraindication in medication.contraindications:
        needle = contraindication.strip().lower()
        if not needle:
            continue
        for condition in animal.conditions:
            if needle in condition.lower():
                return contraindication, condition
    return None


def check_contraindications(medication: MedicationData, animal: AnimalInfo) -> None:
    match = find_contraindication(medication, animal)
    if match is not None:
        raise ContraindicatedError(*match)


def _route_listed(route: str, routes: tuple[str, ...]) -> bool:
    wanted = normalize_key(route)
    return any(normalize_key(r) == wanted for r in routes)


def collect_warnings(
    medication: MedicationData,
    animal: AnimalInfo,
    route: str,
    adjustments: AdjustmentSet,
) -> list[str]:
    warnings: list[str] = []
    if medication.warnings:
        warnings.append(medication.warnings)

    warnings.extend(adjustments.species.warnings)
    warnings.extend(adjustments.breed.warnings)
    warnings.extend(adjustments.age.warnings)
    warnings.extend(adjustments.route.warnings)

    if route and _route_listed(route, adjustments.species.contraindicated_routes):
        warnings.append(f"WARNING: {route} route is contraindicated for {animal.species}")
    if route and _route_listed(route, adjustments.breed.contraindicated_routes):
        warnings.append(f"WARNING: {route} route may not be suitable for {animal.breed}")
    return warnings


def is_danger_warning(warning: str) -> bool:
    lowered = warning.strip().lower()
    return DANGER_KEYWORD in lowered or lowered.startswith(DANGER_PREFIX)


def classify_safety(
    warnings: list[str],
    total_multiplier: float,
    medication: MedicationData,
    policy: SafetyPolicy = DEFAULT_POLICY,
) -> SafetyLevel:
    if any(is_danger_warning(w) for w in warnings):
        return "danger"
    if total_multiplier <= policy.caution_multiplier_low or total_multiplier >= policy.caution_multiplier_high:
        return "caution"
    if medication.controlled_substance:
        return "caution"
    if warnings:
        return "caution"
    return "safe"


def escalate(current: SafetyLevel, other: SafetyLevel) -> SafetyLevel:
    order = ("safe", "caution", "danger")
    return current if order.index(current) >= order.index(other) else other
