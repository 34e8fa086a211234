from dataclasses import replace

import pytest

from vet_dosage.dosage import (
    MAX_BATCH_SIZE,
    BatchFailure,
    calculate,
    calculate_batch,
    frequency_description,
    max_daily_dose_warning,
    validate_proposed_dose,
)
from vet_dosage.errors import (
    ContraindicatedError,
    DosageError,
    IncompleteMedicationError,
    InvalidSpeciesError,
    InvalidWeightError,
    InvalidWeightUnitError,
    MissingConcentrationError,
    MissingDosageConfigError,
    MissingUnitsPerTabletError,
    UnsupportedUnitError,
)
from vet_dosage.models import AnimalInfo, DosageCalculationInput, MedicationData, RouteAdjustment, SpeciesAdjustment


def _calc(animal: AnimalInfo, medication: MedicationData, **kwargs) -> DosageCalculationInput:
    return DosageCalculationInput(animal=animal, medication=medication, **kwargs)


def test_basic_dog_dose(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    result = calculate(_calc(dog, basic_medication))

    assert result.dose == 450.0
    assert result.unit == "mg"
    assert result.min_dose == 300.0
    assert result.max_dose == 600.0
    assert result.typical_dose == 450.0
    assert result.safety_level == "safe"
    assert result.calculation_method == "standard"
    assert result.applied_adjustments == []
    assert result.warnings == []
    assert result.weight_in_kg == 30.0
    assert result.base_dose_mg_kg == 15.0
    assert result.final_dose_mg_kg == 15.0
    assert result.total_multiplier == 1.0


@pytest.mark.parametrize(
    ("weight_kg", "expected"),
    [(0.35, 5.3), (4.2, 63.0), (12.5, 187.5), (30.0, 450.0), (61.7, 925.5)],
)
def test_unadjusted_dose_is_weight_times_typical(basic_medication: MedicationData, weight_kg: float, expected: float) -> None:
    animal = AnimalInfo(species="dog", weight=weight_kg)
    result = calculate(_calc(animal, basic_medication))
    assert result.dose == expected


def test_exact_ties_round_up(basic_medication: MedicationData) -> None:
    medication = replace(basic_medication, dosage_min_mg_kg=None, dosage_max_mg_kg=None, dosage_typical_mg_kg=3.5)
    result = calculate(_calc(AnimalInfo(species="dog", weight=3.5), medication))

    assert result.dose == 12.3
    assert result.max_dose == 12.3


def test_weight_in_pounds(basic_medication: MedicationData, cat: AnimalInfo) -> None:
    result = calculate(_calc(cat, basic_medication))

    assert result.weight_in_kg == 4.54
    assert result.dose == pytest.approx(68.04, abs=0.1)
    assert result.min_dose == pytest.approx(45.36, abs=0.1)
    assert result.max_dose == pytest.approx(90.72, abs=0.1)


def test_dose_in_millilitres(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    result = calculate(_calc(dog, basic_medication, target_unit="ml"))

    assert result.dose == 9.0
    assert result.unit == "mL"
    assert result.min_dose == 6.0
    assert result.max_dose == 12.0
    assert result.daily_info is not None
    assert result.daily_info.total_daily_dose == 18.0


def test_dose_in_tablets(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    result = calculate(_calc(dog, basic_medication, target_unit="tablets"))

    assert result.dose == 1.8
    assert result.unit == "tablets"
    assert result.min_dose == 1.2
    assert result.max_dose == 2.4


def test_cat_species_adjustment(adjusted_medication: MedicationData, cat: AnimalInfo) -> None:
    result = calculate(_calc(cat, adjusted_medication))

    assert result.dose == round(10 / 2.20462 * 15 * 0.8, 1)
    assert result.calculation_method == "species_adjusted"
    assert "Species adjustment: 80%" in result.applied_adjustments
    assert "Monitor for GI upset" in result.warnings
    assert result.safety_level == "caution"


def test_bird_species_adjustment(adjusted_medication: MedicationData) -> None:
    bird = AnimalInfo(species="bird", weight=0.5)
    result = calculate(_calc(bird, adjusted_medication))

    assert result.dose == 9.0
    assert result.calculation_method == "species_adjusted"
    assert result.applied_adjustments == ["Species adjustment: 120%"]


def test_explicit_collie_rule(adjusted_medication: MedicationData) -> None:
    collie = AnimalInfo(species="dog", breed="Border Collie", weight=25.0, age_years=3)
    result = calculate(_calc(collie, adjusted_medication))

    assert result.dose == 187.5
    assert result.calculation_method == "breed_adjusted"
    assert "Breed adjustment: 50%" in result.applied_adjustments
    assert "MDR1 gene sensitivity" in result.warnings
    assert result.safety_level == "caution"


def test_mdr1_fallback_for_ivermectin(basic_medication: MedicationData) -> None:
    ivermectin = replace(basic_medication, generic_name="Ivermectin")
    collie = AnimalInfo(species="dog", breed="Border Collie", weight=25.0)
    result = calculate(_calc(collie, ivermectin))

    assert result.dose == 187.5
    assert result.total_multiplier == 0.5
    assert result.calculation_method == "breed_adjusted"
    assert result.applied_adjustments == ["Breed adjustment: 50%"]
    assert result.safety_level == "caution"


def test_greyhound_adjustment(basic_medication: MedicationData) -> None:
    greyhound = AnimalInfo(species="dog", breed="Greyhound", weight=30.0)
    result = calculate(_calc(greyhound, basic_medication))

    assert result.dose == pytest.approx(405.0)
    assert result.calculation_method == "breed_adjusted"
    assert result.applied_adjustments == ["Breed adjustment: 90%"]


def test_pediatric_with_breed(adjusted_medication: MedicationData) -> None:
    puppy = AnimalInfo(species="dog", breed="Collie", weight=15.0, age_months=1)
    result = calculate(_calc(puppy, adjusted_medication))

    assert result.dose == pytest.approx(90.0)
    assert result.calculation_method == "breed_adjusted"
    assert "Age adjustment: 80%" in result.applied_adjustments
    assert "Breed adjustment: 50%" in result.applied_adjustments


def test_geriatric_adjustment(adjusted_medication: MedicationData) -> None:
    senior = AnimalInfo(species="dog", weight=40.0, weight_unit="lbs", age_years=12)
    result = calculate(_calc(senior, adjusted_medication))

    assert result.dose == pytest.approx(40 / 2.20462 * 15 * 0.9, abs=0.1)
    assert result.calculation_method == "age_adjusted"
    assert result.applied_adjustments == ["Age adjustment: 90%"]


def test_route_override(adjusted_medication: MedicationData, dog: AnimalInfo) -> None:
    result = calculate(_calc(dog, adjusted_medication, route="IV"))

    assert result.dose == pytest.approx(315.0)
    assert result.calculation_method == "route_adjusted"
    assert result.applied_adjustments == ["Route adjustment: 70%"]
    assert "Monitor infusion site" in result.warnings


def test_route_falls_back_to_medication_route(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    medication = replace(basic_medication, route_adjustments={"ORAL": RouteAdjustment(multiplier=1.1)})
    result = calculate(_calc(dog, medication))

    assert result.calculation_method == "route_adjusted"
    assert result.dose == pytest.approx(495.0)


def test_all_four_adjustments(adjusted_medication: MedicationData) -> None:
    animal = AnimalInfo(species="cat", breed="Collie", weight=15.0, age_months=1)
    result = calculate(_calc(animal, adjusted_medication, route="IV"))

    assert result.dose == 50.4
    assert len(result.applied_adjustments) == 4
    assert result.warnings
    assert result.calculation_method == "breed_adjusted"
    assert result.safety_level == "caution"
    assert result.final_dose_mg_kg == 3.4


def test_extreme_reduction_is_caution(basic_medication: MedicationData, cat: AnimalInfo) -> None:
    medication = replace(basic_medication, species_adjustments={"cat": SpeciesAdjustment(multiplier=0.3)})
    result = calculate(_calc(cat, medication))
    assert result.safety_level == "caution"


def test_route_contraindicated_for_species_is_danger(basic_medication: MedicationData, cat: AnimalInfo) -> None:
    medication = replace(
        basic_medication,
        species_adjustments={"cat": SpeciesAdjustment(multiplier=0.3, contraindicated_routes=("IV",))},
    )
    result = calculate(_calc(cat, medication, route="IV"))

    assert "WARNING: IV route is contraindicated for cat" in result.warnings
    assert result.safety_level == "danger"


def test_controlled_substance_is_caution(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    result = calculate(_calc(dog, replace(basic_medication, controlled_substance=True)))
    assert result.safety_level == "caution"


def test_contraindicated_condition_aborts(adjusted_medication: MedicationData, dog: AnimalInfo) -> None:
    allergic = replace(dog, conditions=("Penicillin Allergy",))
    with pytest.raises(ContraindicatedError, match="This medication is contraindicated for the animal's conditions"):
        calculate(_calc(allergic, adjusted_medication))


def test_contraindication_checked_before_dosage_config(adjusted_medication: MedicationData, dog: AnimalInfo) -> None:
    allergic = replace(dog, conditions=("penicillin allergy",))
    unconfigured = replace(adjusted_medication, dosage_typical_mg_kg=None)
    with pytest.raises(ContraindicatedError):
        calculate(_calc(allergic, unconfigured))


def test_alternative_formats(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    result = calculate(_calc(dog, basic_medication))

    formats = {f.unit: f for f in result.alternative_formats}
    assert len(result.alternative_formats) == 2
    assert formats["mL"].dose == 9.0
    assert formats["mL"].description == "Liquid volume"
    assert formats["tablets"].dose == 1.8
    assert formats["tablets"].description == "Number of tablets"


def test_alternative_formats_skip_missing_facts(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    medication = replace(basic_medication, concentration_mg_ml=None)
    result = calculate(_calc(dog, medication))
    assert [f.unit for f in result.alternative_formats] == ["tablets"]


def test_daily_info(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    result = calculate(_calc(dog, basic_medication))

    assert result.frequency == "Twice daily"
    assert result.daily_info is not None
    assert result.daily_info.doses_per_day == 2
    assert result.daily_info.total_daily_dose == 900.0
    assert result.daily_info.time_between_doses == "12 hours"


def test_daily_info_from_hours_only(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    medication = replace(basic_medication, typical_frequency_hours=8, max_frequency_per_day=None)
    result = calculate(_calc(dog, medication))

    assert result.frequency == "Three times daily"
    assert result.daily_info is not None
    assert result.daily_info.doses_per_day == 3
    assert result.daily_info.total_daily_dose == 1350.0
    assert result.daily_info.time_between_doses == "8 hours"


def test_daily_info_absent_without_frequency(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    medication = replace(basic_medication, typical_frequency_hours=None, max_frequency_per_day=None)
    result = calculate(_calc(dog, medication))

    assert result.frequency is None
    assert result.daily_info is None


def test_daily_info_absent_for_less_than_daily(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    medication = replace(basic_medication, typical_frequency_hours=36, max_frequency_per_day=None)
    result = calculate(_calc(dog, medication))

    assert result.frequency == "Every 36 hours"
    assert result.daily_info is None


@pytest.mark.parametrize(
    ("hours", "per_day", "expected"),
    [
        (24, None, "Once daily"),
        (12, None, "Twice daily"),
        (8, None, "Three times daily"),
        (6, None, "Four times daily"),
        (4, None, "Every 4 hours"),
        (None, 1, "Once daily"),
        (None, 3, "Three times daily"),
        (None, 4, "4 times daily"),
        (None, None, None),
    ],
)
def test_frequency_description(
    basic_medication: MedicationData,
    hours: float | None,
    per_day: int | None,
    expected: str | None,
) -> None:
    medication = replace(basic_medication, typical_frequency_hours=hours, max_frequency_per_day=per_day)
    assert frequency_description(medication) == expected


def test_max_daily_dose_warning(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    calc_input = _calc(dog, replace(basic_medication, max_daily_dose_mg=500.0))

    assert max_daily_dose_warning(calc_input) == "Total daily dose of 900 mg exceeds the maximum daily dose of 500 mg"
    result = calculate(calc_input)
    assert result.warnings == []
    assert result.safety_level == "safe"


def test_daily_limit_never_changes_safety_level(basic_medication: MedicationData) -> None:
    horse = AnimalInfo(species="horse", weight=250.0)
    calc_input = _calc(horse, basic_medication)

    result = calculate(calc_input)

    assert result.dose == 3750.0
    assert result.warnings == []
    assert result.safety_level == "safe"
    assert max_daily_dose_warning(calc_input) == "Total daily dose of 7500 mg exceeds the maximum daily dose of 3000 mg"


def test_species_max_daily_dose_overrides_medication(adjusted_medication: MedicationData) -> None:
    bird = AnimalInfo(species="bird", weight=10.0)
    warning = max_daily_dose_warning(_calc(bird, adjusted_medication))

    assert warning == "Total daily dose of 360 mg exceeds the maximum daily dose of 200 mg"


def test_daily_limit_within_bounds(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    assert max_daily_dose_warning(_calc(dog, basic_medication)) is None
    no_schedule = replace(basic_medication, typical_frequency_hours=None, max_frequency_per_day=None, max_daily_dose_mg=1.0)
    assert max_daily_dose_warning(_calc(dog, no_schedule)) is None


def test_missing_min_and_max_default(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    medication = replace(basic_medication, dosage_min_mg_kg=None, dosage_max_mg_kg=None)
    result = calculate(_calc(dog, medication))

    assert result.min_dose == 0.0
    assert result.max_dose == result.dose == 450.0


@pytest.mark.parametrize(
    ("animal_changes", "error"),
    [
        ({"species": ""}, InvalidSpeciesError),
        ({"species": "   "}, InvalidSpeciesError),
        ({"weight": 0.0}, InvalidWeightError),
        ({"weight": -4.0}, InvalidWeightError),
        ({"weight_unit": "stone"}, InvalidWeightUnitError),
        ({"weight_unit": "g"}, InvalidWeightUnitError),
    ],
)
def test_invalid_animal(basic_medication: MedicationData, dog: AnimalInfo, animal_changes: dict, error: type) -> None:
    with pytest.raises(error):
        calculate(_calc(replace(dog, **animal_changes), basic_medication))


@pytest.mark.parametrize(
    ("medication_changes", "error", "message"),
    [
        ({"generic_name": ""}, IncompleteMedicationError, "Medication information is incomplete"),
        ({"id": ""}, IncompleteMedicationError, "Medication information is incomplete"),
        ({"dosage_typical_mg_kg": None}, MissingDosageConfigError, "does not have dosage information configured"),
    ],
)
def test_invalid_medication(
    basic_medication: MedicationData,
    dog: AnimalInfo,
    medication_changes: dict,
    error: type,
    message: str,
) -> None:
    with pytest.raises(error, match=message):
        calculate(_calc(dog, replace(basic_medication, **medication_changes)))


def test_missing_conversion_facts(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    with pytest.raises(MissingConcentrationError, match=r"Concentration \(mg/mL\) is required for mL calculation"):
        calculate(_calc(dog, replace(basic_medication, concentration_mg_ml=None), target_unit="ml"))
    with pytest.raises(MissingUnitsPerTabletError, match="Units per tablet is required for tablet calculation"):
        calculate(_calc(dog, replace(basic_medication, units_per_tablet=None), target_unit="tablets"))


def test_unsupported_target_unit(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    with pytest.raises(UnsupportedUnitError, match="Unsupported target unit: invalid"):
        calculate(_calc(dog, basic_medication, target_unit="invalid"))


def test_errors_share_a_base_class() -> None:
    for error in (InvalidSpeciesError(), MissingConcentrationError(), UnsupportedUnitError("x")):
        assert isinstance(error, DosageError)
        assert isinstance(error, ValueError)


def test_batch_reports_failures_per_entry(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    no_concentration = replace(basic_medication, concentration_mg_ml=None)
    batch = calculate_batch(
        [
            _calc(dog, basic_medication),
            _calc(dog, no_concentration, target_unit="ml"),
            _calc(dog, basic_medication, target_unit="tablets"),
        ]
    )

    assert batch.total == 3
    assert batch.successful == 2
    assert batch.failed == 1
    failure = batch.results[1]
    assert isinstance(failure, BatchFailure)
    assert failure.index == 1
    assert failure.kind == "MissingConcentrationError"
    assert batch.results[2].dose == 1.8


def test_batch_size_limits(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    with pytest.raises(ValueError):
        calculate_batch([])
    with pytest.raises(ValueError):
        calculate_batch([_calc(dog, basic_medication)] * (MAX_BATCH_SIZE + 1))


@pytest.mark.parametrize(
    ("proposed_mg", "is_valid", "level", "warning"),
    [
        (450.0, True, "safe", None),
        (300.0, True, "safe", None),
        (200.0, False, "caution", "Proposed dose is below the recommended minimum"),
        (700.0, False, "caution", "Proposed dose exceeds the recommended maximum"),
        (1000.0, False, "danger", "Proposed dose exceeds the recommended maximum"),
    ],
)
def test_validate_proposed_dose(
    basic_medication: MedicationData,
    dog: AnimalInfo,
    proposed_mg: float,
    is_valid: bool,
    level: str,
    warning: str | None,
) -> None:
    validation = validate_proposed_dose(_calc(dog, basic_medication, target_unit="tablets"), proposed_mg)

    assert validation.is_valid is is_valid
    assert validation.safety_level == level
    assert validation.suggested_min == 300.0
    assert validation.suggested_max == 600.0
    assert validation.suggested_typical == 450.0
    assert validation.unit == "mg"
    if warning is None:
        assert validation.warnings == []
    else:
        assert validation.warnings[0] == warning
        assert validation.recommendations


def test_validate_proposed_dose_inherits_medication_warnings(adjusted_medication: MedicationData, dog: AnimalInfo) -> None:
    validation = validate_proposed_dose(_calc(dog, adjusted_medication), 450.0)

    assert validation.is_valid
    assert validation.safety_level == "caution"
    assert "May cause GI upset if not given with food" in validation.warnings


def test_validate_proposed_dose_rejects_non_positive(basic_medication: MedicationData, dog: AnimalInfo) -> None:
    with pytest.raises(ValueError):
        validate_proposed_dose(_calc(dog, basic_medication), 0.0)
