from pathlib import Path
from dotenv import load_dotenv
import logging
import os

logger = logging.getLogger(__name__)


# Locations where the deployment may mount the secret .env file
possible_paths = [
    Path(__file__).parent / '.env',      # app root folder (likely)
    Path('/etc/secrets/.env'),           # secret files folder (possible alternative)
]

env_path = None
for path in possible_paths:
    if path.exists():
        env_path = path
        break

if env_path:
    load_dotenv(dotenv_path=env_path)
    logger.debug("Loaded .env from: %s", env_path)
else:
    logger.debug("No .env file found in expected secret file locations.")


def _as_bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def build_database_url() -> str:
    """
    Resolve the SQLAlchemy URL.

    DATABASE_URL wins when set. Otherwise the URL is assembled from the
    DB_* parts, all of which must be present.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    parts = {
        "DB_USERNAME": os.getenv("DB_USERNAME"),
        "DB_PASSWORD": os.getenv("DB_PASSWORD"),
        "DB_HOST": os.getenv("DB_HOST"),
        "DB_PORT": os.getenv("DB_PORT"),
        "DB_NAME": os.getenv("DB_NAME"),
    }
    sslmode = os.getenv("DB_SSLMODE", "prefer")

    logger.debug("DB_USERNAME=%s", parts["DB_USERNAME"])
    logger.debug("DB_PASSWORD=%s", '*' * len(parts["DB_PASSWORD"]) if parts["DB_PASSWORD"] else None)
    logger.debug("DB_HOST=%s DB_PORT=%s DB_NAME=%s DB_SSLMODE=%s",
                 parts["DB_HOST"], parts["DB_PORT"], parts["DB_NAME"], sslmode)

    missing_vars = [var for var, val in parts.items() if not val]
    if missing_vars:
        raise ValueError(f"Missing required environment variables: {missing_vars}")

    return (
        f"postgresql://{parts['DB_USERNAME']}:{parts['DB_PASSWORD']}"
        f"@{parts['DB_HOST']}:{parts['DB_PORT']}/{parts['DB_NAME']}?sslmode={sslmode}"
    )


DB_ECHO = _as_bool(os.getenv("DB_ECHO"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Client side
MARKETPLACE_API_URL = os.getenv("MARKETPLACE_API_URL", "http://localhost:8000")
MARKETPLACE_API_TIMEOUT = float(os.getenv("MARKETPLACE_API_TIMEOUT", "10"))
PENDING_STORE_PATH = os.getenv("PENDING_STORE_PATH", ".pending_submissions.json")
