import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tryout.db")
SQL_ECHO = _as_bool(os.getenv("SQL_ECHO", "false"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
