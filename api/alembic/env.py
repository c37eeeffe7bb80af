from alembic import context
from sqlmodel import SQLModel
from francopath.core.config import settings
from francopath.core.database import engine, normalize_database_url

# Import all models here so Alembic can detect them
from francopath.models.models import (  # noqa: F401
    User,
    Word,
    UserCard,
    CardReview,
    DeckPlanRecord,
    StudySession,
)

# this is the Alembic Config object
config = context.config

# Set the sqlalchemy.url from our settings
config.set_main_option("sqlalchemy.url", normalize_database_url(settings.database_url))

# Import metadata for autogenerate
target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
