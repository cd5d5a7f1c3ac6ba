import os
import sys
from logging.config import fileConfig

from alembic import context

# Ensure the project root is importable when alembic is run directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from extensions import db as _db
import alert_database  # noqa: F401 registers the models on the metadata

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Flask-Migrate passes migrations/alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = _db.metadata

# Create the Flask app instance once
app = create_app()


def run_migrations_offline():
    """Run migrations in 'offline' mode, emitting SQL for the configured database URL."""
    url = app.config['SQLALCHEMY_DATABASE_URI']
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode against the Flask app's engine."""
    with app.app_context():
        connectable = _db.engine

        with connectable.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                render_as_batch=connection.dialect.name == 'sqlite',
            )

            with context.begin_transaction():
                context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
