from __future__ import annotations


class DosageError(ValueError):
    """Base class for every failure that aborts a dosage calculation."""


class InputValidationError(DosageError):
    pass


class InvalidSpeciesError(InputValidationError):
    def __init__(self) -> None:
        super().__init__("Animal species is required")


class InvalidWeightError(InputValidationError):
    def __init__(self) -> None:
        super().__init__("Animal weight must be greater than 0")


class InvalidWeightUnitError(InputValidationError):
    def __init__(self) -> None:
        super().__init__("Weight unit must be kg or lbs")


class IncompleteMedicationError(InputValidationError):
    def __init__(self) -> None:
        super().__init__("Medication information is incomplete")


class MissingDosageConfigError(InputValidationError):
    def __init__(self) -> None:
        super().__init__("Medication does not have dosage information configured")


class ContraindicatedError(DosageError):
    def __init__(self, contraindication: str, condition: str) -> None:
        super().__init__("This medication is contraindicated for the animal's conditions")
        self.contraindication = contraindication
        self.condition = condition


class ConfigurationError(DosageError):
    """A conversion fact is missing or a unit is not supported."""


class MissingConcentrationError(ConfigurationError):
    def __init__(self, message: str = "Concentration (mg/mL) is required for mL calculation") -> None:
        super().__init__(message)


class MissingUnitsPerTabletError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("Units per tablet is required for tablet calculation")


class UnsupportedUnitError(ConfigurationError):
    def __init__(self, unit: str, kind: str = "target") -> None:
        super().__init__(f"Unsupported {kind} unit: {unit}")
        self.unit = unit
