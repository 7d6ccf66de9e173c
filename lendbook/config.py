"""Configuration management for lendbook."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from lendbook.engine.status import DEFAULT_TOLERANCE
from lendbook.exceptions import ConfigurationError
from lendbook.models.enums import AccrualPolicy


@dataclass
class ReconciliationConfig:
    """Interest accrual and reconciliation settings shared by ledger, validation and sinks."""

    tolerance: Decimal = DEFAULT_TOLERANCE
    accrual_policy: AccrualPolicy = AccrualPolicy.AS_OF
    currency: str = "USD"
    days_per_year: int = 365

    def __post_init__(self) -> None:
        try:
            self.tolerance = Decimal(str(self.tolerance))
            self.accrual_policy = AccrualPolicy(self.accrual_policy)
        except (InvalidOperation, ValueError) as e:
            raise ConfigurationError(f"Invalid reconciliation settings: {e}") from e
        if not self.tolerance.is_finite() or self.tolerance < 0:
            raise ConfigurationError(f"Invalid tolerance: {self.tolerance}")
        if self.days_per_year not in (360, 365, 366):
            raise ConfigurationError(f"Unsupported day-count basis: {self.days_per_year}")


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "lendbook"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class OutputConfig:
    """Output configuration."""

    output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class LendbookConfig:
    """Main configuration for lendbook."""

    reconciliation: ReconciliationConfig = field(default_factory=ReconciliationConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    seed: int | None = None
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "LendbookConfig":
        """Create config from environment variables."""
        import os

        try:
            tolerance = Decimal(os.getenv("LENDBOOK_TOLERANCE", str(DEFAULT_TOLERANCE)))
        except InvalidOperation as e:
            raise ConfigurationError("LENDBOOK_TOLERANCE must be a decimal number") from e

        try:
            days_per_year = int(os.getenv("LENDBOOK_DAYS_PER_YEAR", "365"))
        except ValueError as e:
            raise ConfigurationError("LENDBOOK_DAYS_PER_YEAR must be an integer") from e

        policy_name = os.getenv("LENDBOOK_ACCRUAL_POLICY", AccrualPolicy.AS_OF.value).upper()
        try:
            policy = AccrualPolicy(policy_name)
        except ValueError as e:
            choices = ", ".join(p.value for p in AccrualPolicy)
            raise ConfigurationError(
                f"Unknown accrual policy {policy_name!r} (expected one of: {choices})"
            ) from e

        reconciliation = ReconciliationConfig(
            tolerance=tolerance,
            accrual_policy=policy,
            currency=os.getenv("LENDBOOK_CURRENCY", "USD").upper(),
            days_per_year=days_per_year,
        )

        try:
            port = int(os.getenv("POSTGRES_PORT", "5432"))
            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=port,
            database=os.getenv("POSTGRES_DB", "lendbook"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        output = OutputConfig(
            output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        return cls(
            reconciliation=reconciliation,
            postgres=postgres,
            output=output,
            seed=seed,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
