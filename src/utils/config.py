# runtime settings, read from the environment once at import
import os

DB_PATH = os.getenv("FLASHSTORE_DB", "data/flashstore.sqlite")
EXPORT_DIR = os.getenv("FLASHSTORE_EXPORT_DIR", "exports")
LOG_FILE = os.getenv("FLASHSTORE_LOG_FILE") or None
DEBUG = bool(os.getenv("DEBUG"))

# token of this client's buyer identity, kept next to the database by default
CLIENT_FILE = os.getenv(
    "FLASHSTORE_CLIENT_FILE",
    os.path.join(os.path.dirname(DB_PATH) or ".", "client.token"),
)

# minimum interval between two purchases of the same identity
RATE_LIMIT_SECONDS = int(os.getenv("FLASHSTORE_RATE_LIMIT_SECONDS", "60"))

# optional admin bootstrap, skipped unless both are set
ADMIN_EMAIL = (os.getenv("FLASHSTORE_ADMIN_EMAIL") or "").strip()
ADMIN_PASSWORD = (os.getenv("FLASHSTORE_ADMIN_PASSWORD") or "").strip()

CURRENCY = "EGP"
PLACEHOLDER_IMAGE = "placeholder.jpg"
