"""Configuration system for the CSSD guideline engine.

This module provides Pydantic Settings-based configuration with environment
variable support. The statutory tables are not configurable; only the
policy decisions around them (input handling, schedule fallbacks, band
overflow) and the template locations are.

Usage:
    from cssd_core.config import CssdConfig

    # Load from environment variables and .env file
    config = CssdConfig()

    if config.negative_input_policy == NegativeInputPolicy.REJECT:
        print("Negative form values will be rejected")
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NegativeInputPolicy(str, Enum):
    """How negative currency or overnight inputs are handled."""

    CLAMP = "clamp"
    REJECT = "reject"


class BandOverflowPolicy(str, Enum):
    """How Worksheet C treats an income ratio above the top band."""

    CLAMP = "clamp"  # use the 11% band
    ZERO = "zero"  # legacy behavior, multiplier stays at 0


class ScheduleDefaults(BaseSettings):
    """Fallback parenting schedule used when no schedule is supplied.

    Environment Variables:
        CSSD_SCHEDULE_MOTHER_OVERNIGHTS: Mother overnights per year
        CSSD_SCHEDULE_FATHER_OVERNIGHTS: Father overnights per year
    """

    model_config = SettingsConfigDict(
        env_prefix="CSSD_SCHEDULE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mother_overnights: int = Field(
        default=255,
        ge=0,
        le=366,
        description="Overnights assigned to the mother when no schedule exists",
    )
    father_overnights: int = Field(
        default=110,
        ge=0,
        le=366,
        description="Overnights assigned to the father when no schedule exists",
    )


class CssdConfig(BaseSettings):
    """Root configuration for the CSSD guideline engine.

    Environment Variables:
        CSSD_ENV: Environment name (development, staging, production, test)
        CSSD_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        CSSD_NEGATIVE_INPUT_POLICY: clamp or reject
        CSSD_WORKSHEET_C_OVERFLOW: clamp or zero
        CSSD_TEMPLATE_DIR: Directory holding fillable worksheet PDFs
        CSSD_WORKSHEET_A_TEMPLATE: File name of the Worksheet A template

    Example:
        config = CssdConfig(
            negative_input_policy=NegativeInputPolicy.REJECT,
            schedule=ScheduleDefaults(mother_overnights=183, father_overnights=182),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="CSSD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production, test)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    negative_input_policy: NegativeInputPolicy = Field(
        default=NegativeInputPolicy.CLAMP,
        description="Clamp negative inputs to zero or reject them",
    )
    worksheet_c_overflow: BandOverflowPolicy = Field(
        default=BandOverflowPolicy.CLAMP,
        description="Worksheet C multiplier for income ratios above 1.00",
    )
    template_dir: Path = Field(
        default=Path("./templates"),
        description="Directory containing fillable worksheet templates",
    )
    worksheet_a_template: Optional[str] = Field(
        default="WorksheetA-template.pdf",
        description="Worksheet A template file name inside template_dir",
    )

    schedule: ScheduleDefaults = Field(default_factory=ScheduleDefaults)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    @property
    def worksheet_a_template_path(self) -> Optional[Path]:
        """Full path of the Worksheet A template, if one is configured."""
        if not self.worksheet_a_template:
            return None
        return self.template_dir / self.worksheet_a_template


def configure_logging(config: CssdConfig) -> None:
    """Apply the configured level and renderer to structlog.

    Events below ``log_level`` are dropped. Production renders JSON lines;
    other environments use the console renderer.
    """
    if config.is_production:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.log_level)
        ),
    )
