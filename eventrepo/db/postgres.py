from typing import Any, List, Optional, Tuple

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Json

from eventrepo.config.settings import POSTGRES_CONN_STRING
from eventrepo.db.backend import EventBackend
from eventrepo.db.queries import PROPERTY_PREFIX, EventCriteria
from eventrepo.db.records import EventRecord


def get_app_db():
    return psycopg.connect(
        POSTGRES_CONN_STRING,
        row_factory=dict_row,
        autocommit=True,
    )


# record field -> SQL column reference
COLUMNS = {
    "id": "id",
    "type": "type",
    "payload": "payload",
    "parentId": '"parentId"',
    "properties": "properties",
    "createdAt": '"createdAt"',
    "updatedAt": '"updatedAt"',
}

INSERT_SQL = """
    INSERT INTO events (
        id,
        type,
        payload,
        "parentId",
        properties,
        "createdAt",
        "updatedAt"
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s)
"""

SAVE_SQL = INSERT_SQL + """
    ON CONFLICT (id) DO UPDATE SET
        type = EXCLUDED.type,
        payload = EXCLUDED.payload,
        "parentId" = EXCLUDED."parentId",
        properties = EXCLUDED.properties,
        "createdAt" = EXCLUDED."createdAt",
        "updatedAt" = EXCLUDED."updatedAt"
"""

ORDER_BY_SQL = 'ORDER BY "createdAt" DESC, id DESC'


def _match(ref: str, ref_params: List[Any], value: Any) -> Tuple[str, List[Any]]:
    if value is None:
        return f"{ref} IS NULL", list(ref_params)
    if not isinstance(value, tuple):
        return f"{ref} = %s", ref_params + [value]

    present = [v for v in value if v is not None]
    clause, params = f"{ref} = ANY(%s)", ref_params + [present]
    if len(present) < len(value):
        # NULL never equals anything inside ANY()
        clause = f"({clause} OR {ref} IS NULL)"
        params = params + ref_params
    return clause, params


def _equals_clause(field: str, value: Any) -> Tuple[str, List[Any]]:
    if field.startswith(PROPERTY_PREFIX):
        key = field[len(PROPERTY_PREFIX):]
        return _match("properties ->> %s", [key], value)
    return _match(COLUMNS[field], [], value)


def render_where(criteria: EventCriteria) -> Tuple[str, List[Any]]:
    """
    Render the selection part of criteria as a WHERE clause and its
    parameters. Paging is not included.
    """
    clauses: List[str] = []
    params: List[Any] = []

    if criteria.types is not None:
        if not criteria.types:
            clauses.append("FALSE")
        else:
            clauses.append("type = ANY(%s)")
            params.append(sorted(criteria.types))

    for field, value in criteria.equals:
        clause, values = _equals_clause(field, value)
        clauses.append(clause)
        params.extend(values)

    if criteria.created_from is not None:
        clauses.append('"createdAt" >= %s')
        params.append(criteria.created_from)

    if criteria.created_to is not None:
        clauses.append('"createdAt" <= %s')
        params.append(criteria.created_to)

    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


class PostgresEventBackend(EventBackend):
    """
    Every statement runs in its own conn.transaction() block, so each
    call commits on its own when the connection has no transaction open.
    """

    def __init__(self, conn: psycopg.Connection):
        self.conn = conn

    def _row_params(self, record: EventRecord) -> tuple:
        return (
            record.id,
            record.type,
            record.payload,
            record.parent_id,
            Json(record.properties),
            record.created_at,
            record.updated_at,
        )

    def _write(self, sql: str, record: EventRecord) -> EventRecord:
        with self.conn.transaction():
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sql + " RETURNING *", self._row_params(record))
                return EventRecord.model_validate(cur.fetchone())

    def find_one(self, event_id: str) -> Optional[EventRecord]:
        with self.conn.transaction():
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT *
                    FROM events
                    WHERE id = %s
                    """,
                    (event_id,),
                )
                row = cur.fetchone()

        return EventRecord.model_validate(row) if row else None

    def insert(self, record: EventRecord) -> EventRecord:
        return self._write(INSERT_SQL, record)

    def save(self, record: EventRecord) -> EventRecord:
        return self._write(SAVE_SQL, record)

    def delete(self, event_id: str) -> None:
        with self.conn.transaction():
            with self.conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM events WHERE id = %s",
                    (event_id,),
                )

    def find(self, criteria: EventCriteria) -> List[EventRecord]:
        if criteria.out_of_range:
            return []

        where, params = render_where(criteria)
        sql = f"SELECT * FROM events {where} {ORDER_BY_SQL}"
        if criteria.paginated:
            sql += " LIMIT %s OFFSET %s"
            params = params + [criteria.size, criteria.offset]

        with self.conn.transaction():
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()

        return [EventRecord.model_validate(row) for row in rows]

    def count(self, criteria: EventCriteria) -> int:
        where, params = render_where(criteria)

        with self.conn.transaction():
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"SELECT COUNT(*) AS total FROM events {where}", params)
                return cur.fetchone()["total"]
