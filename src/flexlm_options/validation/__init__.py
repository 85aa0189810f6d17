"""Validators, the seat calculator and the engine that runs them in order."""

from flexlm_options.validation.base import GroupIndex, ValidationContext, Validator
from flexlm_options.validation.directive_checker import check_directives
from flexlm_options.validation.engine import ValidationEngine, ValidationReport, validate
from flexlm_options.validation.group_checker import check_groups
from flexlm_options.validation.nnu_checker import check_named_user
from flexlm_options.validation.product_checker import check_products
from flexlm_options.validation.seat_calculator import (
    SeatCalculation,
    calculate_seats,
    subtraction_amount,
)

__all__ = [
    "GroupIndex",
    "SeatCalculation",
    "ValidationContext",
    "ValidationEngine",
    "ValidationReport",
    "Validator",
    "calculate_seats",
    "check_directives",
    "check_groups",
    "check_named_user",
    "check_products",
    "subtraction_amount",
    "validate",
]
