import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Dime.Scheduler API Configuration
DIMESCHEDULER_BASE_URL = os.getenv("DIMESCHEDULER_BASE_URL")
DIMESCHEDULER_API_KEY = os.getenv("DIMESCHEDULER_API_KEY")
DIMESCHEDULER_TIMEOUT_MS = int(os.getenv("DIMESCHEDULER_TIMEOUT_MS", "30000"))
# Optional IANA zone (e.g. "Europe/Amsterdam") that appointment dates are converted to
# before being sent. Unset keeps the wall-clock fields of the parsed input.
DIMESCHEDULER_TIMEZONE = os.getenv("DIMESCHEDULER_TIMEZONE")

# Bulk appointment update ("Drager") workflow
DRAGER_JOB_PREFIX = os.getenv("DRAGER_JOB_PREFIX", "PB")
DRAGER_CATEGORY = os.getenv("DRAGER_CATEGORY", "GEREED")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "noreply@example.com")
FROM_NAME = os.getenv("FROM_NAME", "Dime.Scheduler Webhook API")

# Recipient for Dime.Scheduler appointment notifications posted to /mailer
APPOINTMENT_RECIPIENT_EMAIL = os.getenv("APPOINTMENT_RECIPIENT_EMAIL") or os.getenv(
    "DEFAULT_RECIPIENT_EMAIL"
)
LOGO_URL = os.getenv(
    "LOGO_URL",
    "https://s3-eu-west-1.amazonaws.com/tpd/logos/5d1230ebbad7ae0001197d19/0x0.png",
)

# In-memory webhook store is bounded, oldest entries are dropped first
WEBHOOK_STORE_MAX_ENTRIES = int(os.getenv("WEBHOOK_STORE_MAX_ENTRIES", "1000"))

# Listener
HOST = os.getenv("HOST", "0.0.0.0")  # noqa: S104 - container listener
PORT = int(os.getenv("PORT", "3000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
