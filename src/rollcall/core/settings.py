"""Application settings and configuration.

This module defines all configuration options for the Rollcall service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Every tolerance window used by the verification engine lives here so that
    deployments can tune them without touching code. All comparisons are made
    against server time.
    """

    # Application metadata
    app_name: str = Field(default="Rollcall", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Rotating salt and temporal code tolerance
    salt_rotation_ms: int = Field(default=600, ge=50, alias="SALT_ROTATION_MS")
    salt_accept_window_ms: int = Field(default=1000, ge=0, alias="SALT_ACCEPT_WINDOW_MS")
    code_time_tolerance_seconds: int = Field(
        default=1, ge=0, alias="CODE_TIME_TOLERANCE_SECONDS"
    )
    expose_expected_code: bool = Field(default=False, alias="EXPOSE_EXPECTED_CODE")

    # Challenge (QR nonce) flow
    challenge_ttl_ms: int = Field(default=3000, ge=1, alias="CHALLENGE_TTL_MS")
    challenge_max_length: int = Field(default=256, alias="CHALLENGE_MAX_LENGTH")

    # Verification tokens
    verification_ttl_seconds: int = Field(default=30, ge=1, alias="VERIFICATION_TTL_SECONDS")
    challenge_verification_ttl_seconds: int = Field(
        default=120, ge=1, alias="CHALLENGE_VERIFICATION_TTL_SECONDS"
    )

    # Anti-fraud: device locks and submission spacing
    device_lock_ttl_seconds: int = Field(default=300, ge=1, alias="DEVICE_LOCK_TTL_SECONDS")
    device_conflict_policy: Literal["reject", "warn"] = Field(
        default="reject", alias="DEVICE_CONFLICT_POLICY"
    )
    checkin_window_ms: int = Field(default=6000, ge=0, alias="CHECKIN_WINDOW_MS")
    trust_forwarded_for: bool = Field(default=False, alias="TRUST_FORWARDED_FOR")

    # Manual override
    teacher_secret: str | None = Field(default=None, alias="TEACHER_SECRET")
    manual_override_ttl_seconds: int = Field(
        default=30 * 60, ge=1, alias="MANUAL_OVERRIDE_TTL_SECONDS"
    )

    # Input validation
    identifier_pattern: str = Field(default=r"^[0-9]{6,12}$", alias="IDENTIFIER_PATTERN")
    session_pattern: str = Field(default=r"^[A-Za-z0-9\-_:]{3,80}$", alias="SESSION_PATTERN")
    phases: list[str] = Field(default=["start", "break", "end"], alias="PHASES")

    # Record sinks
    csv_dir: str = Field(default="./data", alias="CSV_DIR")
    anomaly_log_path: str | None = Field(default=None, alias="ANOMALY_LOG_PATH")
    manual_override_log_path: str = Field(
        default="./manual-overrides.log", alias="MANUAL_OVERRIDE_LOG_PATH"
    )

    # Flicker bit-sequence alternative
    flicker_bit_period_ms: int = Field(default=250, ge=1, alias="FLICKER_BIT_PERIOD_MS")
    flicker_window: int = Field(default=4, ge=1, alias="FLICKER_WINDOW")

    # CORS configuration for the capture UI
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def manual_override_enabled(self) -> bool:
        """Return True when a teacher secret is configured."""
        return bool(self.teacher_secret)

    @property
    def rotation_seconds(self) -> float:
        """Salt rotation period in seconds."""
        return self.salt_rotation_ms / 1000

    @property
    def accept_window_seconds(self) -> float:
        """Salt acceptance window in seconds."""
        return self.salt_accept_window_ms / 1000


settings = Settings()  # type: ignore[call-arg]
