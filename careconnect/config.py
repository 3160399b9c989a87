import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./careconnect.db")

# Managed auth service (Supabase-compatible GoTrue API)
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
# When set, access tokens are verified locally (HS256) instead of calling the auth service
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
SUPABASE_JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")
AUTH_HTTP_TIMEOUT = float(os.getenv("AUTH_HTTP_TIMEOUT", "10"))

# CORS - the front end and the API gateway call from arbitrary origins
ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "INR")
DEFAULT_CURRENCY_SYMBOL = os.getenv("DEFAULT_CURRENCY_SYMBOL", "₹")

# Pending-status view re-fetches verification state at this interval
VERIFICATION_POLL_SECONDS = int(os.getenv("VERIFICATION_POLL_SECONDS", "30"))
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "10"))
# Wrong guesses allowed before the code is discarded
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))

# Checkout widget credentials (key id is public, secret signs order|payment ids)
PAYMENT_KEY_ID = os.getenv("PAYMENT_KEY_ID")
PAYMENT_KEY_SECRET = os.getenv("PAYMENT_KEY_SECRET")
