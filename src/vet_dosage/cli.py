import json
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import structlog
import typer

from .config import get_config
from .dosage import calculate as calculate_dose
from .dosage import calculate_batch, max_daily_dose_warning, validate_proposed_dose
from .errors import DosageError
from .log import configure_logging
from .models import AnimalInfo, DosageCalculationInput
from .records import (
    batch_to_record,
    conversion_to_record,
    input_from_record,
    is_known_species,
    is_plausible_breed,
    medication_from_record,
    result_to_record,
    validate_dosage_range,
    validation_to_record,
)
from .units import convert_dosage as convert_dosage_units
from .units import convert_volume as convert_volume_units
from .units import convert_weight as convert_weight_units

app = typer.Typer(help="Veterinary dosage calculator")
logger = structlog.get_logger(__name__)


@app.callback()
def main() -> None:
    configure_logging(get_config().logging)


def _echo(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False))


def _fail(command: str, exc: DosageError) -> NoReturn:
    logger.warning("command_failed", command=command, kind=type(exc).__name__, error=str(exc))
    _echo({"error": str(exc), "kind": type(exc).__name__})
    raise typer.Exit(code=1)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise typer.BadParameter(f"{path}: {exc}") from exc


def _build_input(
    medication_path: Path,
    species: str,
    weight: float,
    weight_unit: str,
    breed: Optional[str],
    age_years: Optional[float],
    age_months: Optional[float],
    conditions: Optional[List[str]],
    route: Optional[str],
    unit: str,
) -> DosageCalculationInput:
    record = _read_json(medication_path)
    if not isinstance(record, dict):
        raise typer.BadParameter("medication file must contain a JSON object", param_hint="--medication")
    try:
        medication = medication_from_record(record)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--medication") from exc
    if not validate_dosage_range(
        medication.dosage_min_mg_kg, medication.dosage_typical_mg_kg, medication.dosage_max_mg_kg
    ):
        logger.warning("inconsistent_dosage_range", medication_id=medication.id)
    if species and not is_known_species(species):
        logger.warning("unknown_species", species=species)
    if not is_plausible_breed(breed, species):
        logger.warning("implausible_breed", breed=breed, species=species)

    animal = AnimalInfo(
        species=species,
        weight=weight,
        weight_unit=weight_unit,
        breed=breed,
        age_years=age_years,
        age_months=age_months,
        conditions=tuple(conditions or ()),
    )
    return DosageCalculationInput(animal=animal, medication=medication, route=route, target_unit=unit)


MEDICATION_OPTION = typer.Option(..., "--medication", exists=True, dir_okay=False, help="Medication JSON record")
SPECIES_OPTION = typer.Option(..., help="Animal species, e.g. dog, cat")
WEIGHT_OPTION = typer.Option(..., help="Animal weight")
WEIGHT_UNIT_OPTION = typer.Option("kg", help="Weight unit: kg or lbs")
BREED_OPTION = typer.Option(None, help="Animal breed")
AGE_YEARS_OPTION = typer.Option(None, help="Age in years")
AGE_MONTHS_OPTION = typer.Option(None, help="Age in months")
CONDITION_OPTION = typer.Option(None, "--condition", help="Known condition; repeat for several")
ROUTE_OPTION = typer.Option(None, help="Administration route; defaults to the medication's route")


@app.command()
def calculate(
    medication: Path = MEDICATION_OPTION,
    species: str = SPECIES_OPTION,
    weight: float = WEIGHT_OPTION,
    weight_unit: str = WEIGHT_UNIT_OPTION,
    breed: Optional[str] = BREED_OPTION,
    age_years: Optional[float] = AGE_YEARS_OPTION,
    age_months: Optional[float] = AGE_MONTHS_OPTION,
    condition: Optional[List[str]] = CONDITION_OPTION,
    route: Optional[str] = ROUTE_OPTION,
    unit: str = typer.Option("mg", help="Display unit: mg, ml or tablets"),
) -> None:
    """Calculate a dose for one animal and one medication."""
    calc_input = _build_input(medication, species, weight, weight_unit, breed, age_years, age_months, condition, route, unit)
    try:
        result = calculate_dose(calc_input, get_config().safety)
    except DosageError as exc:
        _fail("calculate", exc)
    logger.debug("dose_calculated", medication_id=calc_input.medication.id, safety_level=result.safety_level)
    daily_limit = max_daily_dose_warning(calc_input)
    if daily_limit:
        logger.warning("max_daily_dose_exceeded", medication_id=calc_input.medication.id, detail=daily_limit)
    _echo(result_to_record(result))


@app.command()
def batch(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of calculation records"),
) -> None:
    """Calculate several doses; failures are reported per entry."""
    records = _read_json(path)
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise typer.BadParameter("batch file must contain a JSON list of objects")
    try:
        result = calculate_batch([input_from_record(r) for r in records], get_config().safety)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    logger.debug("batch_calculated", total=result.total, failed=result.failed)
    _echo(batch_to_record(result))


@app.command()
def validate(
    medication: Path = MEDICATION_OPTION,
    species: str = SPECIES_OPTION,
    weight: float = WEIGHT_OPTION,
    weight_unit: str = WEIGHT_UNIT_OPTION,
    breed: Optional[str] = BREED_OPTION,
    age_years: Optional[float] = AGE_YEARS_OPTION,
    age_months: Optional[float] = AGE_MONTHS_OPTION,
    condition: Optional[List[str]] = CONDITION_OPTION,
    route: Optional[str] = ROUTE_OPTION,
    proposed_mg: float = typer.Option(..., min=0.0001, help="Proposed dose in mg"),
) -> None:
    """Check a proposed mg dose against the recommended range."""
    calc_input = _build_input(medication, species, weight, weight_unit, breed, age_years, age_months, condition, route, "mg")
    try:
        result = validate_proposed_dose(calc_input, proposed_mg, get_config().safety)
    except DosageError as exc:
        _fail("validate", exc)
    logger.debug("dose_validated", medication_id=calc_input.medication.id, is_valid=result.is_valid)
    _echo(validation_to_record(result))


@app.command()
def convert_weight(value: float, from_unit: str, to_unit: str) -> None:
    """Convert a weight between kg, lbs, g and oz."""
    try:
        _echo(conversion_to_record(convert_weight_units(value, from_unit, to_unit)))
    except DosageError as exc:
        _fail("convert-weight", exc)


@app.command()
def convert_volume(value: float, from_unit: str, to_unit: str) -> None:
    """Convert a volume between ml, L, tsp, tbsp, fl_oz and cup."""
    try:
        _echo(conversion_to_record(convert_volume_units(value, from_unit, to_unit)))
    except DosageError as exc:
        _fail("convert-volume", exc)


@app.command()
def convert_dosage(
    value: float,
    from_unit: str,
    to_unit: str,
    concentration: Optional[float] = typer.Option(None, help="Concentration in mg/mL, needed for ml"),
) -> None:
    """Convert a dose between mg, mcg, g and ml."""
    try:
        _echo(conversion_to_record(convert_dosage_units(value, from_unit, to_unit, concentration)))
    except DosageError as exc:
        _fail("convert-dosage", exc)


if __name__ == "__main__":
    app()
