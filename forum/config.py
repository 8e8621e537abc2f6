import os

from dotenv import load_dotenv

load_dotenv()

# Store configuration ("sqlite://" keeps everything in memory)
DATABASE_URL = os.getenv("FORUM_DATABASE_URL", "sqlite://")
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "true").lower() in ("true", "1", "yes")
RANDOM_SEED = int(os.getenv("RANDOM_SEED", "1337"))

# Simulated network latency for every service call
SIMULATED_LATENCY_MS = int(os.getenv("SIMULATED_LATENCY_MS", "500"))

# Admin policy
ROOT_ADMIN_ID = os.getenv("ROOT_ADMIN_ID", "1")
ENFORCE_ADMIN_AUTH = os.getenv("ENFORCE_ADMIN_AUTH", "false").lower() in ("true", "1", "yes")

# Activity summary (Gemini generateContent)
GEMINI_API_KEY = os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_API_URL = os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta")
SUMMARY_TIMEOUT_SECONDS = float(os.getenv("SUMMARY_TIMEOUT_SECONDS", "30"))

# Retry configuration for the summary call
SUMMARY_RETRY_ATTEMPTS = int(os.getenv("SUMMARY_RETRY_ATTEMPTS", "3"))
SUMMARY_RETRY_MIN_WAIT = int(os.getenv("SUMMARY_RETRY_MIN_WAIT", "1"))
SUMMARY_RETRY_MAX_WAIT = int(os.getenv("SUMMARY_RETRY_MAX_WAIT", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
