"""
Centralized config for the hotline backend.
Loads API keys, file paths and routing defaults from environment; no secrets in code.
"""
import os

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

# Twilio (voice webhooks + SMS follow-up)
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

# Gradium TTS
GRADIUM_API_KEY = os.getenv("GRADIUM_API_KEY")

# MongoDB (finished call records)
MONGODB_URI = os.getenv("MONGODB_URI")

# Contact directory, loaded once at startup
CONTACTS_PATH = os.getenv(
    "CONTACTS_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "contacts.json"),
)

# All hour strings in the directory are Pacific civil time.
HOTLINE_TIMEZONE = os.getenv("HOTLINE_TIMEZONE", "America/Los_Angeles")

MAX_RESULTS = int(os.getenv("MAX_RESULTS", "3"))
MAX_HISTORY_LENGTH = int(os.getenv("MAX_HISTORY_LENGTH", "10"))  # 5 exchanges
