from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

WeightUnit = Literal["kg", "lbs"]
TargetUnit = Literal["mg", "ml", "tablets"]
SafetyLevel = Literal["safe", "caution", "danger"]
CalculationMethod = Literal[
    "standard",
    "species_adjusted",
    "breed_adjusted",
    "age_adjusted",
    "route_adjusted",
]


def _check_multiplier(multiplier: float | None) -> None:
    if multiplier is not None and multiplier <= 0:
        raise ValueError("multiplier must be greater than 0")


@dataclass(frozen=True)
class SpeciesAdjustment:
    multiplier: float = 1.0
    max_daily_dose: float | None = None
    additional_warnings: tuple[str, ...] = ()
    contraindicated_routes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_multiplier(self.multiplier)


@dataclass(frozen=True)
class RouteAdjustment:
    multiplier: float = 1.0
    additional_warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_multiplier(self.multiplier)


@dataclass(frozen=True)
class AgeAdjustment:
    """Pediatric rules use ``min_age_months``, geriatric rules ``min_age_years``."""

    multiplier: float = 1.0
    min_age_months: float | None = None
    min_age_years: float | None = None
    additional_warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_multiplier(self.multiplier)


@dataclass(frozen=True)
class BreedConsideration:
    multiplier: float | None = None
    contraindicated_routes: tuple[str, ...] = ()
    additional_warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_multiplier(self.multiplier)


@dataclass(frozen=True)
class MedicationData:
    """Dosing rules for one medication, dosages in mg/kg."""

    id: str
    generic_name: str
    route: str
    form: str
    brand_name: str | None = None

    dosage_min_mg_kg: float | None = None
    dosage_max_mg_kg: float | None = None
    dosage_typical_mg_kg: float | None = None
    max_daily_dose_mg: float | None = None

    concentration_mg_ml: float | None = None
    units_per_tablet: float | None = None
    typical_frequency_hours: float | None = None
    max_frequency_per_day: int | None = None

    species_adjustments: Mapping[str, SpeciesAdjustment] = field(default_factory=dict)
    route_adjustments: Mapping[str, RouteAdjustment] = field(default_factory=dict)
    age_adjustments: Mapping[str, AgeAdjustment] = field(default_factory=dict)
    breed_considerations: Mapping[str, BreedConsideration] = field(default_factory=dict)

    contraindications: tuple[str, ...] = ()
    warnings: str | None = None
    controlled_substance: bool = False


@dataclass(frozen=True)
class AnimalInfo:
    species: str
    weight: float
    weight_unit: str = "kg"
    breed: str | None = None
    age_years: float | None = None
    age_months: float | None = None
    conditions: tuple[str, ...] = ()


@dataclass(frozen=True)
class DosageCalculationInput:
    animal: AnimalInfo
    medication: MedicationData
    route: str | None = None
    target_unit: str = "mg"

    @property
    def effective_route(self) -> str:
        return self.route or self.medication.route


@dataclass(frozen=True)
class AlternativeFormat:
    dose: float
    unit: str
    description: str


@dataclass(frozen=True)
class DailyInfo:
    total_daily_dose: float
    doses_per_day: int
    time_between_doses: str


@dataclass(frozen=True)
class DosageResult:
    dose: float
    unit: str
    frequency: str | None

    min_dose: float
    max_dose: float
    typical_dose: float

    warnings: list[str]
    safety_level: SafetyLevel

    calculation_method: CalculationMethod
    applied_adjustments: list[str]
    weight_in_kg: float
    base_dose_mg_kg: float
    final_dose_mg_kg: float
    total_multiplier: float

    alternative_formats: list[AlternativeFormat] = field(default_factory=list)
    daily_info: DailyInfo | None = None


@dataclass(frozen=True)
class ConversionResult:
    value: float
    unit: str
    original_value: float
    original_unit: str
    precision: int
