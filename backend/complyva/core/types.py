"""Custom SQLAlchemy types and small shared helpers"""
from datetime import datetime, timezone
from sqlalchemy import TypeDecorator, String, Enum as SQLEnum
import uuid


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


def EnumType(enum_cls):
    """
    String-backed enum column.

    Stored as VARCHAR rather than a native database enum so that SQLite and
    PostgreSQL share the same DDL and new status values need no ALTER TYPE.
    """
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=40,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )
