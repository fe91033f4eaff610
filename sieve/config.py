import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


ENTITIES_FILE = Path(os.getenv("ENTITIES_FILE", str(Path(__file__).with_name("entities.yaml"))))
GLOBAL_MAX_PAGE_SIZE = int(os.getenv("GLOBAL_MAX_PAGE_SIZE", "1000"))
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "15"))
SQL_PARAMSTYLE = os.getenv("SQL_PARAMSTYLE", "pyformat")
QUOTE_IDENTIFIERS = _flag("QUOTE_IDENTIFIERS")
USE_ILIKE = _flag("USE_ILIKE")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "")
CORS_ALLOW_ORIGINS = [o.strip() for o in origins_raw.split(",") if o.strip()]
