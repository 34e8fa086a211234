from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

from .adjustments import AdjustmentSet, compose_multiplier, resolve_adjustments
from .config import DEFAULT_POLICY, SafetyPolicy
from .errors import (
    DosageError,
    IncompleteMedicationError,
    InvalidSpeciesError,
    InvalidWeightError,
    InvalidWeightUnitError,
    MissingDosageConfigError,
)
from .models import (
    AlternativeFormat,
    CalculationMethod,
    DailyInfo,
    DosageCalculationInput,
    DosageResult,
    MedicationData,
    SafetyLevel,
)
from .safety import check_contraindications, classify_safety, collect_warnings, escalate
from .units import mg_to_target_unit, round_half_up, round_to_vet_precision, weight_to_kg

ACCEPTED_WEIGHT_UNITS = ("kg", "lbs")
MAX_BATCH_SIZE = 20

FREQUENCY_BY_HOURS = {
    24: "Once daily",
    12: "Twice daily",
    8: "Three times daily",
    6: "Four times daily",
}
FREQUENCY_BY_COUNT = {
    1: "Once daily",
    2: "Twice daily",
    3: "Three times daily",
}


@dataclass(frozen=True)
class BaseDosage:
    min: float
    max: float
    typical: float


def validate_input(calc_input: DosageCalculationInput) -> None:
    animal = calc_input.animal
    medication = calc_input.medication

    if not animal.species or not animal.species.strip():
        raise InvalidSpeciesError()
    if not animal.weight or not math.isfinite(animal.weight) or animal.weight <= 0:
        raise InvalidWeightError()
    if animal.weight_unit not in ACCEPTED_WEIGHT_UNITS:
        raise InvalidWeightUnitError()
    if not medication.id or not medication.generic_name:
        raise IncompleteMedicationError()
    check_contraindications(medication, animal)
    if not medication.dosage_typical_mg_kg:
        raise MissingDosageConfigError()


def base_dosage(medication: MedicationData) -> BaseDosage:
    typical = medication.dosage_typical_mg_kg or 0.0
    return BaseDosage(
        min=medication.dosage_min_mg_kg or 0.0,
        max=medication.dosage_max_mg_kg or typical,
        typical=typical,
    )


def determine_calculation_method(adjustments: AdjustmentSet) -> CalculationMethod:
    """Reporting label only; precedence is breed, age, route, species."""
    if adjustments.breed.applied:
        return "breed_adjusted"
    if adjustments.age.applied:
        return "age_adjusted"
    if adjustments.route.applied:
        return "route_adjusted"
    if adjustments.species.applied:
        return "species_adjusted"
    return "standard"


def describe_adjustments(adjustments: AdjustmentSet) -> list[str]:
    described: list[str] = []
    for label, adjustment in (
        ("Species", adjustments.species),
        ("Breed", adjustments.breed),
        ("Age", adjustments.age),
        ("Route", adjustments.route),
    ):
        if adjustment.applied:
            described.append(f"{label} adjustment: {adjustment.multiplier * 100:.0f}%")
    return described


def alternative_formats(dose_mg: float, medication: MedicationData) -> list[AlternativeFormat]:
    formats: list[AlternativeFormat] = []
    if medication.concentration_mg_ml and medication.concentration_mg_ml > 0:
        formats.append(
            AlternativeFormat(
                dose=round_to_vet_precision(dose_mg / medication.concentration_mg_ml, "ml"),
                unit="mL",
                description="Liquid volume",
            )
        )
    if medication.units_per_tablet and medication.units_per_tablet > 0:
        formats.append(
            AlternativeFormat(
                dose=round_to_vet_precision(dose_mg / medication.units_per_tablet, "tablets"),
                unit="tablets",
                description="Number of tablets",
            )
        )
    return formats


def doses_per_day(medication: MedicationData) -> int | None:
    if medication.max_frequency_per_day:
        return int(medication.max_frequency_per_day)
    if medication.typical_frequency_hours:
        count = math.floor(24 / medication.typical_frequency_hours)
        # Less often than daily has no per-day schedule.
        return count if count >= 1 else None
    return None


def _format_interval(hours: float) -> str:
    if hours >= 1:
        value = round_half_up(hours, 2)
        text = f"{value:g}"
        return f"{text} hour" if value == 1 else f"{text} hours"
    return f"{round_half_up(hours * 60, 0):g} minutes"


def daily_info(single_dose: float, unit: str, medication: MedicationData) -> DailyInfo | None:
    count = doses_per_day(medication)
    if count is None:
        return None
    return DailyInfo(
        total_daily_dose=round_to_vet_precision(single_dose * count, unit),
        doses_per_day=count,
        time_between_doses=_format_interval(24 / count),
    )


def frequency_description(medication: MedicationData) -> str | None:
    hours = medication.typical_frequency_hours
    if hours:
        return FREQUENCY_BY_HOURS.get(hours, f"Every {hours:g} hours")

    count = medication.max_frequency_per_day
    if count:
        return FREQUENCY_BY_COUNT.get(count, f"{count} times daily")
    return None


def max_daily_dose_warning(calc_input: DosageCalculationInput) -> str | None:
    """Warn when the scheduled daily mg total exceeds the daily limit.

    The species limit wins over the medication's. This check is separate from
    :func:`calculate` and never changes a result's warnings or safety level.
    """
    validate_input(calc_input)
    medication = calc_input.medication
    adjustments = resolve_adjustments(medication, calc_input.animal, calc_input.effective_route)
    single_dose_mg = (
        base_dosage(medication).typical
        * compose_multiplier(adjustments)
        * weight_to_kg(calc_input.animal.weight, calc_input.animal.weight_unit)
    )

    count = doses_per_day(medication)
    limit = adjustments.species.max_daily_dose or medication.max_daily_dose_mg
    if count is None or not limit:
        return None
    total_mg = single_dose_mg * count
    if total_mg <= limit:
        return None
    return (
        f"Total daily dose of {round_to_vet_precision(total_mg, 'mg'):g} mg "
        f"exceeds the maximum daily dose of {limit:g} mg"
    )


def calculate(calc_input: DosageCalculationInput, policy: SafetyPolicy = DEFAULT_POLICY) -> DosageResult:
    """Compute a dose for one animal and one medication.

    Raises a :class:`~vet_dosage.errors.DosageError` subclass on any invalid
    input, contraindication or missing conversion fact; no partial result is
    ever returned.
    """
    animal = calc_input.animal
    medication = calc_input.medication

    validate_input(calc_input)

    route = calc_input.effective_route
    weight_in_kg = weight_to_kg(animal.weight, animal.weight_unit)
    base = base_dosage(medication)

    adjustments = resolve_adjustments(medication, animal, route)
    total_multiplier = compose_multiplier(adjustments)

    final_dose_mg_kg = base.typical * total_multiplier
    min_dose_mg_kg = base.min * total_multiplier
    max_dose_mg_kg = base.max * total_multiplier

    final_dose_mg = final_dose_mg_kg * weight_in_kg
    min_dose_mg = min_dose_mg_kg * weight_in_kg
    max_dose_mg = max_dose_mg_kg * weight_in_kg

    conversion_facts = {
        "concentration_mg_ml": medication.concentration_mg_ml,
        "units_per_tablet": medication.units_per_tablet,
    }
    dose, unit = mg_to_target_unit(final_dose_mg, calc_input.target_unit, **conversion_facts)
    min_dose, _ = mg_to_target_unit(min_dose_mg, calc_input.target_unit, **conversion_facts)
    max_dose, _ = mg_to_target_unit(max_dose_mg, calc_input.target_unit, **conversion_facts)

    warnings = collect_warnings(medication, animal, route, adjustments)

    return DosageResult(
        dose=dose,
        unit=unit,
        frequency=frequency_description(medication),
        min_dose=min_dose,
        max_dose=max_dose,
        typical_dose=dose,
        warnings=warnings,
        safety_level=classify_safety(warnings, total_multiplier, medication, policy),
        calculation_method=determine_calculation_method(adjustments),
        applied_adjustments=describe_adjustments(adjustments),
        weight_in_kg=round_to_vet_precision(weight_in_kg, "kg"),
        base_dose_mg_kg=base.typical,
        final_dose_mg_kg=round_to_vet_precision(final_dose_mg_kg, "mg"),
        total_multiplier=total_multiplier,
        alternative_formats=alternative_formats(final_dose_mg, medication),
        daily_info=daily_info(dose, calc_input.target_unit, medication),
    )


# --- batch ------------------------------------------------------------------


@dataclass(frozen=True)
class BatchFailure:
    index: int
    error: str
    kind: str


@dataclass(frozen=True)
class BatchResult:
    results: list[DosageResult | BatchFailure]
    total: int
    successful: int
    failed: int


def calculate_batch(
    inputs: Sequence[DosageCalculationInput],
    policy: SafetyPolicy = DEFAULT_POLICY,
) -> BatchResult:
    """Run :func:`calculate` on each input; one failure never affects another."""
    if not inputs:
        raise ValueError("batch must contain at least one calculation")
    if len(inputs) > MAX_BATCH_SIZE:
        raise ValueError(f"batch is limited to {MAX_BATCH_SIZE} calculations")

    results: list[DosageResult | BatchFailure] = []
    failed = 0
    for index, calc_input in enumerate(inputs):
        try:
            results.append(calculate(calc_input, policy))
        except DosageError as exc:
            results.append(BatchFailure(index=index, error=str(exc), kind=type(exc).__name__))
            failed += 1

    return BatchResult(results=results, total=len(inputs), successful=len(inputs) - failed, failed=failed)


# --- proposed dose check ----------------------------------------------------


@dataclass(frozen=True)
class DoseValidation:
    is_valid: bool
    safety_level: SafetyLevel
    warnings: list[str]
    recommendations: list[str]
    suggested_min: float
    suggested_max: float
    suggested_typical: float
    unit: str = "mg"


def validate_proposed_dose(
    calc_input: DosageCalculationInput,
    proposed_dose_mg: float,
    policy: SafetyPolicy = DEFAULT_POLICY,
) -> DoseValidation:
    """Compare a caregiver's proposed mg dose against the recommended range."""
    if proposed_dose_mg <= 0:
        raise ValueError("proposed_dose_mg must be greater than 0")

    recommended = calculate(replace(calc_input, target_unit="mg"), policy)
    within_range = recommended.min_dose <= proposed_dose_mg <= recommended.max_dose

    warnings: list[str] = []
    recommendations: list[str] = []
    level: SafetyLevel = "safe"

    if proposed_dose_mg < recommended.min_dose:
        warnings.append("Proposed dose is below the recommended minimum")
        recommendations.append("Consider increasing the dose to the recommended range")
        level = "caution"
    elif proposed_dose_mg > recommended.max_dose:
        warnings.append("Proposed dose exceeds the recommended maximum")
        recommendations.append("Consider reducing the dose to the recommended range")
        level = "danger" if proposed_dose_mg > recommended.max_dose * policy.overdose_danger_ratio else "caution"

    if recommended.warnings:
        warnings.extend(recommended.warnings)
        level = escalate(level, recommended.safety_level)

    return DoseValidation(
        is_valid=within_range and level != "danger",
        safety_level=level,
        warnings=warnings,
        recommendations=recommendations,
        suggested_min=recommended.min_dose,
        suggested_max=recommended.max_dose,
        suggested_typical=recommended.dose,
    )
