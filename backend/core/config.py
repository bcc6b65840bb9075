"""
config.py — Environment-driven settings.

Values come from the process environment, optionally seeded from a `.env`
file next to the working directory.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


PASS_THRESHOLD = float(os.getenv("PASS_THRESHOLD", "70"))

# "mongo" for a live MongoDB deployment, "memory" for local runs without one.
STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo").strip().lower()
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "school")
GRADES_COLLECTION = os.getenv("GRADES_COLLECTION", "grades")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

SEED_SAMPLE_DATA = _env_flag("SEED_SAMPLE_DATA", "true")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]
