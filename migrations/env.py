# migrations/env.py
from __future__ import annotations

import logging
from logging.config import fileConfig

from alembic import context
from flask import current_app
from sqlalchemy import engine_from_config, pool

from timeclock_api.extensions import db

config = context.config

# alembic.ini carries the logger sections; run via `flask db ...` they are present
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)
log = logging.getLogger("alembic.env")

# `flask db` pushes the app context; the URL always comes from the app
config.set_main_option(
    "sqlalchemy.url",
    current_app.config["SQLALCHEMY_DATABASE_URI"].replace("%", "%%"),
)
target_metadata = db.metadata

# sqlite has no ALTER CONSTRAINT; batch mode rebuilds the table instead
render_as_batch = config.get_main_option("sqlalchemy.url", "").startswith("sqlite")


def _configure(**kw) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=render_as_batch,
        **kw,
    )


def run_migrations_offline() -> None:
    _configure(url=config.get_main_option("sqlalchemy.url"), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
    log.info("migrations applied to %s", connectable.url.render_as_string(hide_password=True))


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
