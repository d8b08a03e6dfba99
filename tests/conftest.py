"""Shared fixtures for guideline tests."""

from decimal import Decimal

import pytest
import structlog

from cssd_core import ChildSchedule, CssdConfig, GuidelineCalculator, GuidelineInput


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo structlog configuration applied by calculators and fillers."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def test_config() -> CssdConfig:
    """Configuration with default policies, isolated from any .env file."""
    return CssdConfig(_env_file=None, env="test")


@pytest.fixture
def calculator(test_config: CssdConfig) -> GuidelineCalculator:
    return GuidelineCalculator(test_config)


@pytest.fixture
def one_child_input() -> GuidelineInput:
    """Mother 60,000/8,000, father 40,000/5,000, one child living with mother."""
    return GuidelineInput(
        mother_gross_annual=Decimal("60000"),
        mother_deductions_annual=Decimal("8000"),
        father_gross_annual=Decimal("40000"),
        father_deductions_annual=Decimal("5000"),
        number_of_children=1,
        parenting_schedule=[ChildSchedule(mother_overnights=365, father_overnights=0)],
    )
