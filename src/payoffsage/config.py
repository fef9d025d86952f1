"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from .services.debts import PayoffSettings

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_number(name: str, default: float, cast: type = float):
    """Read a numeric environment variable, failing loudly on malformed values."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a valid {cast.__name__}, got {value!r}.") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "PayoffSage"
    LOG_FILENAME = "payoffsage.log"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("PAYOFFSAGE_DEV_MODE", default=True)
        self.MAX_MONTHS = _env_number("PAYOFFSAGE_MAX_MONTHS", 600, int)
        self.EXTRA_PAYMENT_CEILING = _env_number("PAYOFFSAGE_EXTRA_PAYMENT_CEILING", 10_000.0)
        self.SEARCH_TOLERANCE = _env_number("PAYOFFSAGE_SEARCH_TOLERANCE", 1.0)
        self.MATERIALITY_AMOUNT = _env_number("PAYOFFSAGE_MATERIALITY_AMOUNT", 50.0)
        self.MATERIALITY_RATIO = _env_number("PAYOFFSAGE_MATERIALITY_RATIO", 0.01)
        self.MOMENTUM_MONTHS = _env_number("PAYOFFSAGE_MOMENTUM_MONTHS", 2, int)
        self.LOG_MAX_BYTES = _env_number("PAYOFFSAGE_LOG_MAX_BYTES", 10 * 1024 * 1024, int)
        self.LOG_BACKUP_COUNT = _env_number("PAYOFFSAGE_LOG_BACKUP_COUNT", 5, int)
        if self.MAX_MONTHS < 1:
            raise ValueError("PAYOFFSAGE_MAX_MONTHS must be at least 1.")
        if self.SEARCH_TOLERANCE <= 0:
            raise ValueError("PAYOFFSAGE_SEARCH_TOLERANCE must be greater than zero.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where log files live."""

        data_root = os.getenv("PAYOFFSAGE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def payoff_settings(self) -> PayoffSettings:
        """Expose calculator tunables for the payoff services to consume."""

        return PayoffSettings(
            max_months=self.MAX_MONTHS,
            extra_payment_ceiling=self.EXTRA_PAYMENT_CEILING,
            search_tolerance=self.SEARCH_TOLERANCE,
            materiality_amount=self.MATERIALITY_AMOUNT,
            materiality_ratio=self.MATERIALITY_RATIO,
            momentum_months=self.MOMENTUM_MONTHS,
        )


class DevConfig(BaseConfig):
    """Development configuration with verbose console logging."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration used by the pytest suite."""

    DEBUG = False
    TESTING = True
