"""
Configuration management - loads and validates environment variables
"""
import os
import sys
from pathlib import Path
from typing import Set
from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# ============================================
# Bot Configuration
# ============================================

BOT_TOKEN = os.getenv("BOT_TOKEN", "")
if not BOT_TOKEN:
    print("❌ Error: BOT_TOKEN is required in .env file!")
    sys.exit(1)

SUPERADMINS_STR = os.getenv("SUPERADMINS", "")
SUPERADMINS: Set[int] = set()

if SUPERADMINS_STR:
    try:
        SUPERADMINS = {int(x.strip()) for x in SUPERADMINS_STR.split(",") if x.strip()}
    except ValueError:
        print("❌ Error: SUPERADMINS must be comma-separated integers!")
        sys.exit(1)

if not SUPERADMINS:
    print("❌ Error: At least one SUPERADMIN is required!")
    sys.exit(1)

# ============================================
# Attestation API
# ============================================

API_BASE_URL = os.getenv("API_BASE_URL", "").strip().rstrip("/")
if not API_BASE_URL:
    print("❌ Error: API_BASE_URL is required in .env file!")
    sys.exit(1)

API_TOKEN = os.getenv("API_TOKEN", "").strip()
API_EMAIL = os.getenv("API_EMAIL", "").strip()
API_PASSWORD = os.getenv("API_PASSWORD", "")

if not API_TOKEN and not (API_EMAIL and API_PASSWORD):
    print("❌ Error: Either API_TOKEN or API_EMAIL + API_PASSWORD is required!")
    sys.exit(1)

try:
    API_TIMEOUT_SECONDS = int(os.getenv("API_TIMEOUT_SECONDS", "15"))
except ValueError:
    print("❌ Error: API_TIMEOUT_SECONDS must be an integer!")
    sys.exit(1)

# ============================================
# Dashboard Configuration
# ============================================

try:
    REFRESH_INTERVAL_SECONDS = int(os.getenv("REFRESH_INTERVAL_SECONDS", "60"))
    RECORDS_PAGE_SIZE = int(os.getenv("RECORDS_PAGE_SIZE", "10"))
except ValueError:
    print("❌ Error: Dashboard values must be integers!")
    sys.exit(1)

if REFRESH_INTERVAL_SECONDS < 5:
    print(f"⚠️  Warning: Invalid REFRESH_INTERVAL_SECONDS ({REFRESH_INTERVAL_SECONDS}), using 60")
    REFRESH_INTERVAL_SECONDS = 60

if RECORDS_PAGE_SIZE < 1:
    print(f"⚠️  Warning: Invalid RECORDS_PAGE_SIZE ({RECORDS_PAGE_SIZE}), using 10")
    RECORDS_PAGE_SIZE = 10

# ============================================
# Database Configuration
# ============================================

DATABASE_PATH = os.getenv("DATABASE_PATH", "data.db")

# ============================================
# Timezone
# ============================================

TIMEZONE = os.getenv("TIMEZONE", "UTC")

# ============================================
# Export all settings
# ============================================

__all__ = [
    'BOT_TOKEN',
    'SUPERADMINS',
    'API_BASE_URL',
    'API_TOKEN',
    'API_EMAIL',
    'API_PASSWORD',
    'API_TIMEOUT_SECONDS',
    'REFRESH_INTERVAL_SECONDS',
    'RECORDS_PAGE_SIZE',
    'DATABASE_PATH',
    'TIMEZONE'
]
