# clinic_api/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

# JWT
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Scheduling policy
# IANA zone used for offset-less input and day ranges; empty = server local zone
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "")
# Reject date/time strings that carry no UTC offset
REQUIRE_TZ_OFFSET = _flag("REQUIRE_TZ_OFFSET", "false")
# Create/update fail with 409 when the interval overlaps another appointment
ENFORCE_NO_DOUBLE_BOOKING = _flag("ENFORCE_NO_DOUBLE_BOOKING", "true")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
