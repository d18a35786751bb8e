"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq and daily cycle locks)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Ledger
    default_currency: str = "USD"
    withdrawal_fee_percent: Decimal = Field(
        default=Decimal("10"),
        description="Fee withheld from withdrawal payouts (percent)",
    )
    minimum_withdrawal_amount: Decimal = Field(
        default=Decimal("1"),
        gt=0,
        description="Smallest gross amount a user may withdraw",
    )
    invite_code_prefix: str = Field(
        default="VX",
        min_length=1,
        max_length=8,
        description="Prefix for generated invite codes",
    )

    # Daily cycle (profit accrual followed by referral cascade)
    daily_cycle_hour: int = Field(default=1, ge=0, le=23)
    daily_cycle_minute: int = Field(default=0, ge=0, le=59)
    daily_cycle_lock_timeout: int = Field(
        default=3600,
        gt=0,
        description="Seconds the daily cycle lock is held at most",
    )

    # Payment gateway (NOWPayments-compatible)
    payment_gateway_url: str = "https://api.nowpayments.io/v1"
    payment_gateway_api_key: str | None = None
    payment_gateway_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Timeout for a single gateway HTTP call",
    )
    payment_callback_url: str | None = None
    supported_pay_currencies: str = "MATIC,USDTBSC,BNBBSC,USDTMATIC"

    # Emergency stop flags
    emergency_stop_roi: bool = Field(
        default=False,
        description="Emergency stop for daily profit accrual"
    )
    emergency_stop_withdrawals: bool = Field(
        default=False,
        description="Emergency stop for all withdrawals"
    )
    emergency_stop_deposits: bool = Field(
        default=False,
        description="Emergency stop for new gateway payments"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if not self.database_url.startswith(
                ('postgresql://', 'postgresql+asyncpg://')
            ):
                raise ValueError(
                    'DATABASE_URL must be a PostgreSQL URL in production'
                )
            if not self.payment_gateway_api_key:
                logger.warning(
                    'PAYMENT_GATEWAY_API_KEY is not set. '
                    'Gateway payments will be rejected.'
                )
        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        return v

    @field_validator('withdrawal_fee_percent')
    @classmethod
    def validate_fee_percent(cls, v: Decimal) -> Decimal:
        """Fee must be a percentage in [0, 100)."""
        if v < 0 or v >= 100:
            raise ValueError('WITHDRAWAL_FEE_PERCENT must be in [0, 100)')
        return v

    @field_validator('default_currency', 'invite_code_prefix')
    @classmethod
    def validate_upper(cls, v: str) -> str:
        """Normalize codes to upper case."""
        return v.strip().upper()

    def get_supported_pay_currencies(self) -> list[str]:
        """Parse supported gateway currencies from comma-separated string."""
        return [
            code.strip().upper()
            for code in self.supported_pay_currencies.split(",")
            if code.strip()
        ]


# Global settings instance
settings = Settings()
