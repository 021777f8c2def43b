from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing or invalid at startup."""


class ReminderSettings(BaseSettings):
    # Reminder timing
    OFFSET_MINUTES: int = Field(default=60, ge=1)

    # Scheduler target (the dispatcher function) and the role it runs as
    TARGET_LAMBDA_ARN: str
    SCHEDULER_ROLE_ARN: str
    SCHEDULE_GROUP_NAME: str = "default"

    # Dispatch-side collaborators
    USER_POOL_ID: str
    TABLE_NAME: str
    SNS_TOPIC_ARN: str
    CONTACT_ATTRIBUTE: str = "email"
    NOTIFICATION_SUBJECT: str = "Task Reminder"

    # AWS
    AWS_REGION: Optional[str] = None

    # Stream handling
    REPORT_BATCH_ITEM_FAILURES: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Metrics (pushed at the end of each invocation when a gateway is set)
    PUSHGATEWAY_URL: Optional[str] = None
    METRICS_JOB: str = "deadline-notification"

    model_config = SettingsConfigDict(
        env_prefix="REMINDER_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator(
        "TARGET_LAMBDA_ARN",
        "SCHEDULER_ROLE_ARN",
        "SCHEDULE_GROUP_NAME",
        "USER_POOL_ID",
        "TABLE_NAME",
        "SNS_TOPIC_ARN",
        "CONTACT_ATTRIBUTE",
        mode="before",
    )
    @classmethod
    def reject_blank(cls, v):
        # An empty env var counts as missing
        if v is None or (isinstance(v, str) and v.strip() == ""):
            raise ValueError("must not be blank")
        return v.strip() if isinstance(v, str) else v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        level = str(v or "INFO").strip().upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"unknown log level {v!r}")
        return level


def load_settings(**overrides) -> ReminderSettings:
    """
    Build settings from the environment (and .env), once per process.

    Any missing or invalid required option is fatal: the caller gets a
    ConfigurationError listing every offending field before any record is served.
    """
    try:
        return ReminderSettings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            "REMINDER_" + ".".join(str(p) for p in err["loc"]) for err in e.errors()
        )
        raise ConfigurationError(f"Invalid reminder configuration: {fields}") from e
