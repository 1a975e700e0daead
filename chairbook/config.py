import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./chairbook.db")

# Timezone used for naive timestamps, calendar-day boundaries and rules
# of appointments that carry no timezone of their own
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "America/Argentina/Buenos_Aires")

# Occurrences that started longer ago than this can only be completed, not cancelled
CANCELLATION_WINDOW_HOURS = int(os.getenv("CANCELLATION_WINDOW_HOURS", "24"))

# Default discount applied to cash payments when no custom discount is given
CASH_DISCOUNT_PERCENT = float(os.getenv("CASH_DISCOUNT_PERCENT", "10"))

# Clients without a visit for this many days are reported as at risk
AT_RISK_DAYS = int(os.getenv("AT_RISK_DAYS", "30"))

# Frontend base URL, always allowed by CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
