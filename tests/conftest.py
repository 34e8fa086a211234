import pytest

from vet_dosage.models import (
    AgeAdjustment,
    AnimalInfo,
    BreedConsideration,
    MedicationData,
    RouteAdjustment,
    SpeciesAdjustment,
)


@pytest.fixture
def basic_medication() -> MedicationData:
    return MedicationData(
        id="med-123",
        generic_name="Amoxicillin",
        brand_name="Amoxil",
        route="ORAL",
        form="TABLET",
        dosage_min_mg_kg=10.0,
        dosage_max_mg_kg=20.0,
        dosage_typical_mg_kg=15.0,
        max_daily_dose_mg=3000.0,
        concentration_mg_ml=50.0,
        units_per_tablet=250.0,
        typical_frequency_hours=12,
        max_frequency_per_day=2,
    )


@pytest.fixture
def adjusted_medication(basic_medication: MedicationData) -> MedicationData:
    return MedicationData(
        id=basic_medication.id,
        generic_name=basic_medication.generic_name,
        brand_name=basic_medication.brand_name,
        route=basic_medication.route,
        form=basic_medication.form,
        dosage_min_mg_kg=10.0,
        dosage_max_mg_kg=20.0,
        dosage_typical_mg_kg=15.0,
        max_daily_dose_mg=3000.0,
        concentration_mg_ml=50.0,
        units_per_tablet=250.0,
        typical_frequency_hours=12,
        max_frequency_per_day=2,
        species_adjustments={
            "cat": SpeciesAdjustment(multiplier=0.8, additional_warnings=("Monitor for GI upset",)),
            "bird": SpeciesAdjustment(multiplier=1.2, max_daily_dose=200.0),
        },
        route_adjustments={
            "IV": RouteAdjustment(multiplier=0.7, additional_warnings=("Monitor infusion site",)),
        },
        age_adjustments={
            "pediatric": AgeAdjustment(multiplier=0.8, min_age_months=2),
            "geriatric": AgeAdjustment(multiplier=0.9, min_age_years=7),
        },
        breed_considerations={
            "collie": BreedConsideration(multiplier=0.5, additional_warnings=("MDR1 gene sensitivity",)),
        },
        contraindications=("penicillin allergy", "severe renal disease"),
        warnings="May cause GI upset if not given with food",
    )


@pytest.fixture
def dog() -> AnimalInfo:
    return AnimalInfo(species="dog", breed="Golden Retriever", weight=30.0, weight_unit="kg", age_years=5)


@pytest.fixture
def cat() -> AnimalInfo:
    return AnimalInfo(species="cat", weight=10.0, weight_unit="lbs", age_months=18)
