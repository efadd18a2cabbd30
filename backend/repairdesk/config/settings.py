"""Environment-driven application settings.

``create_app`` starts from these values and applies caller overrides on top.
"""
import os
from typing import Any, Dict

TRUTHY = ('1', 'true', 'yes', 'on')


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUTHY


def load_settings() -> Dict[str, Any]:
    return {
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
        'JOB_NUMBER_PREFIX': os.getenv('JOB_NUMBER_PREFIX', 'RJ'),
        # Forward-only workshop flow instead of the permissive table
        'JOB_STATUS_STRICT': env_flag('JOB_STATUS_STRICT'),
        'LOW_STOCK_ALERT_EMAIL': os.getenv('LOW_STOCK_ALERT_EMAIL') or None,
        'MAIL_FROM': os.getenv('MAIL_FROM', 'no-reply@repairdesk.local'),
    }
