import psycopg

from eventrepo.config.settings import POSTGRES_CONN_STRING

INIT_SQL = """
CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    payload TEXT,
    "parentId" TEXT,
    properties JSONB NOT NULL DEFAULT '{}'::jsonb,
    "createdAt" TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    "updatedAt" TIMESTAMPTZ
);

CREATE INDEX IF NOT EXISTS idx_events_type
ON events (type);

CREATE INDEX IF NOT EXISTS idx_events_created_at
ON events ("createdAt" DESC, id DESC);
"""

def init_db():
    with psycopg.connect(POSTGRES_CONN_STRING, autocommit=True) as conn:
        with conn.cursor() as cur:
            cur.execute(INIT_SQL)
            print("event store schema initialized / updated successfully")

if __name__ == "__main__":
    init_db()
