"""config.py: environment variables and static constants."""
from __future__ import annotations

import logging
import os

logger = logging.getLogger()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid integer for {name}: '{raw}'. Using default {default}.")
        return default


def _env_log_level(name: str, default: str) -> str:
    raw = os.environ.get(name, default).strip().upper()
    if not isinstance(logging.getLevelName(raw), int):
        logger.warning(f"Ignoring unknown log level for {name}: '{raw}'. Using default {default}.")
        return default
    return raw


# --- GLOBAL STATIC CONFIGURATION VARIABLES ---
AWS_REGION = os.environ.get("AWS_REGION", "us-west-2")
LOG_LEVEL = _env_log_level("LOG_LEVEL", "INFO")

TAG_NAME = os.environ.get("ROUTE53_TAG_NAME", "Route53")   # Auto Scaling group tag holding the zone entries
PREFIX_MARKER = "#"                                         # trailing marker replaced by the zone name
RECORD_TYPES = ("A", "CNAME")
DEFAULT_RECORD_TYPE = "CNAME"
DEFAULT_TTL = _env_int("DEFAULT_TTL", 1)
DNS_WEIGHT = _env_int("DNS_WEIGHT", 10)                    # same weight for every instance record
IGNORED_TAG_VALUES = ("", "none")

MAX_ZONE_WORKERS = max(1, _env_int("MAX_ZONE_WORKERS", 5))

LAUNCH_EVENT = "autoscaling:EC2_INSTANCE_LAUNCH"
TERMINATE_EVENT = "autoscaling:EC2_INSTANCE_TERMINATE"

CHANGE_COMMENT = "Updated by Lambda upon Auto Scaling lifecycle event"
# --- END GLOBAL STATIC CONFIGURATION VARIABLES ---
