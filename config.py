import os
import sys
import logging
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Where the client finds the backend
API_URL = os.getenv("ASKQL_API_URL", "http://localhost:8080").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("ASKQL_REQUEST_TIMEOUT", "30"))

# Bundled CSV used by "use sample file"
SAMPLE_CSV_PATH = os.getenv(
    "ASKQL_SAMPLE_CSV", os.path.join(BASE_DIR, "sample_data", "test.csv")
)

# Token users type to mean "my table"
TABLE_ALIAS = "data"
HISTORY_LIMIT = 10
PREVIEW_ROW_LIMIT = 100

# Reference backend
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))
QUERY_CACHE_TTL_SECONDS = int(os.getenv("QUERY_CACHE_TTL_SECONDS", "3600"))

GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def table_name_for(session_id: str) -> str:
    return f"{TABLE_ALIAS}_{session_id}"


def configure_logging() -> None:
    """Install a single stdout handler on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.setLevel(LOG_LEVEL.upper())
    root_logger.addHandler(handler)

    # Reduce noise from HTTP internals
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
