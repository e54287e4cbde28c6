import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./carwash.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Slot grid and capacity
# Hours are civil hours in BUSINESS_TIMEZONE; the window is [OPENING_HOUR, CLOSING_HOUR)
SLOT_CAPACITY = int(os.getenv("SLOT_CAPACITY", "3"))
OPENING_HOUR = int(os.getenv("OPENING_HOUR", "8"))
CLOSING_HOUR = int(os.getenv("CLOSING_HOUR", "18"))
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "UTC")

# Booking numbers look like TC-<location>-<DDMMYYYY><seq>
BOOKING_NUMBER_PREFIX = os.getenv("BOOKING_NUMBER_PREFIX", "TC")

# Off by default: any known status may be set on any booking
STRICT_STATUS_TRANSITIONS = os.getenv("STRICT_STATUS_TRANSITIONS", "false").lower() == "true"

# Rate limiting for booking creation (per client IP)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "20"))
BOOKING_RATE_WINDOW = int(os.getenv("BOOKING_RATE_WINDOW", "60"))

# Frontend base URL, used for CORS defaults
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
