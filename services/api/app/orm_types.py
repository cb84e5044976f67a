# app/orm_types.py
from datetime import datetime, timezone
from sqlalchemy.types import TypeDecorator, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC timestamp.

    - PostgreSQL: TIMESTAMP WITH TIME ZONE
    - SQLite: stored as naive UTC text (SQLite has no offsets), re-tagged as UTC on load

    Everything bound is converted to UTC first so string comparison in SQLite
    orders the same way as timestamptz comparison in PostgreSQL.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = as_utc(value)
        return value if dialect.name == "postgresql" else value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        return as_utc(value)


# JSON documents: JSONB on PostgreSQL, plain JSON elsewhere (tests run on SQLite).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")
