"""
modules/validation package: data quality guards before any optimization run.
"""
from trip_optimizer.modules.validation.ingestion_validator import (
    InputValidationError,
    ValidationResult,
    validate_candidate,
    validate_lodging,
    validate_trip,
    require_valid_inputs,
    require_lodgings,
    filter_valid,
)

__all__ = [
    "InputValidationError",
    "ValidationResult",
    "validate_candidate",
    "validate_lodging",
    "validate_trip",
    "require_valid_inputs",
    "require_lodgings",
    "filter_valid",
]
