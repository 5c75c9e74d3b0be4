import os
from dotenv import load_dotenv

load_dotenv()

# Connection settings for the events database; the store itself never
# reads these, only the factory in eventrepo.build_event_store does.
EVENTS_DB_HOST = os.getenv("EVENTS_DB_HOST", "localhost")
EVENTS_DB_PORT = os.getenv("EVENTS_DB_PORT", "5432")
EVENTS_DB_NAME = os.getenv("EVENTS_DB_NAME", "events")
EVENTS_DB_USER = os.getenv("EVENTS_DB_USER")
EVENTS_DB_PASSWORD = os.getenv("EVENTS_DB_PASSWORD")
EVENTS_DB_SSLMODE = os.getenv("EVENTS_DB_SSLMODE", "disable")

POSTGRES_CONN_STRING = os.getenv("EVENTS_DB_URL") or (
    f"postgresql://{EVENTS_DB_USER}:{EVENTS_DB_PASSWORD}@"
    f"{EVENTS_DB_HOST}:{EVENTS_DB_PORT}/{EVENTS_DB_NAME}"
    f"?sslmode={EVENTS_DB_SSLMODE}"
)

LOG_LEVEL = os.getenv("EVENTS_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("EVENTS_LOG_JSON", "false").lower() in ("1", "true", "yes")
