"""Test package initialization."""

import os

# Defaults for hvac_crm.core.config.Settings under test
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENFORCE_STATUS_TRANSITIONS", "false")
os.environ.setdefault("SMS_ON_ASSIGNMENT", "false")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "")
