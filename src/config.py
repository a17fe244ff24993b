"""Configuration for the cost report generator."""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta, timezone
from typing import Optional

from errors import ConfigError

logger = logging.getLogger(__name__)

# Reporting periods are computed in a fixed UTC+9 zone regardless of the host's local time zone.
REPORT_TIMEZONE = timezone(timedelta(hours=9), "JST")

# Cost Explorer is served from us-east-1
DEFAULT_AWS_REGION = "us-east-1"

REQUIRED_ENV_VARS = ["AWS_ACCOUNT"]
DELIVERY_ENV_VARS = ["BOT_TOKEN", "CHANNEL_ID"]


@dataclass(frozen=True)
class ReportConfig:
    """
    Settings for one report run.

    Args:
        account_id: AWS account identifier shown in the report header
        bot_token: Discord bot token used to create the delivery webhook
        channel_id: Discord channel receiving the report
        aws_profile: AWS profile name (optional)
        aws_region: AWS region for the Cost Explorer client
    """

    account_id: str
    bot_token: str = field(default="", repr=False)
    channel_id: str = ""
    aws_profile: Optional[str] = None
    aws_region: str = DEFAULT_AWS_REGION

    @classmethod
    def from_env(cls, require_delivery: bool = True) -> "ReportConfig":
        """
        Build the configuration from environment variables.

        Call ``load_dotenv()`` first to pick up a ``.env`` file.

        Args:
            require_delivery: Also require the Discord settings (BOT_TOKEN, CHANNEL_ID)

        Raises:
            ConfigError: If any required variable is missing
        """
        required_vars = REQUIRED_ENV_VARS + (DELIVERY_ENV_VARS if require_delivery else [])
        missing_vars = [var for var in required_vars if not os.getenv(var)]
        if missing_vars:
            raise ConfigError(
                f"Missing required environment variables: {', '.join(missing_vars)}",
                missing=missing_vars,
            )

        config = cls(
            account_id=os.environ["AWS_ACCOUNT"],
            bot_token=os.getenv("BOT_TOKEN", ""),
            channel_id=os.getenv("CHANNEL_ID", ""),
            aws_profile=os.getenv("AWS_PROFILE") or None,
            aws_region=os.getenv("AWS_REGION") or DEFAULT_AWS_REGION,
        )
        logger.debug(f"Loaded configuration for account {config.account_id}")
        return config
