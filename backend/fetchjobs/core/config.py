import os

APP_DATA_DIR = os.environ.get("APP_DATA_DIR", os.path.join(os.getcwd(), "data"))
LOG_DIR = os.environ.get("LOG_DIR", os.path.join(APP_DATA_DIR, "logs"))
DB_PATH = os.environ.get("FETCHJOBS_DB_PATH", os.path.join(APP_DATA_DIR, "fetchjobs.db"))

BACKEND_HOST = os.environ.get("BACKEND_HOST", "127.0.0.1")
BACKEND_PORT = int(os.environ.get("BACKEND_PORT", "3000"))

FETCH_WORKERS = int(os.environ.get("FETCH_WORKERS", "2"))
FETCH_TIMEOUT_SEC = float(os.environ.get("FETCH_TIMEOUT_SEC", "30"))
FETCH_CONNECT_TIMEOUT_SEC = float(os.environ.get("FETCH_CONNECT_TIMEOUT_SEC", "10"))
FETCH_USER_AGENT = os.environ.get("FETCH_USER_AGENT", "fetchjobs/0.1")


def ensure_dirs() -> None:
    os.makedirs(APP_DATA_DIR, exist_ok=True)
    os.makedirs(LOG_DIR, exist_ok=True)
