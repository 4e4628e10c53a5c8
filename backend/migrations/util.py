"""Dialect helpers shared by the migration scripts."""
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from alembic import op


def _dialect_name() -> str:
    bind = op.get_bind()
    return bind.dialect.name if bind else 'postgresql'


def get_uuid_type():
    """UUID column type matching ``backend.models.base.AdaptiveUUID``.

    PostgreSQL gets the native UUID type; everything else stores the 32
    character hex form in a String(36).

    Example usage in a migration:
        from backend.migrations.util import get_uuid_type

        def upgrade() -> None:
            uuid = get_uuid_type()
            op.create_table(
                'my_table',
                sa.Column('id', uuid, nullable=False),
                ...
            )
    """
    if _dialect_name() == 'postgresql':
        return postgresql.UUID(as_uuid=True)
    return sa.String(length=36)


def get_json_type():
    """JSONB on PostgreSQL, the generic JSON type elsewhere."""
    if _dialect_name() == 'postgresql':
        return postgresql.JSONB(astext_type=sa.Text())
    return sa.JSON()


def get_timestamp_default():
    """Server default for UTC creation timestamps."""
    if _dialect_name() == 'postgresql':
        return sa.text("timezone('utc', now())")
    return sa.text('CURRENT_TIMESTAMP')
