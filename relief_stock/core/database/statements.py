"""Dialect-specific statements the ORM does not build on its own."""

from typing import Any

from sqlalchemy import Insert, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def insert_ignoring_conflict(
    session: AsyncSession,
    model: type,
    values: dict[str, Any],
    index_elements: list[str],
) -> Insert:
    """INSERT that silently skips the row when index_elements already exist.

    Lets two transactions race on a first insert without either one failing
    (and without poisoning the surrounding transaction). Dialects without
    ON CONFLICT get a plain INSERT.
    """
    dialect = session.bind.dialect.name if session.bind is not None else ""
    if dialect == "postgresql":
        return pg_insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
    if dialect == "sqlite":
        return sqlite_insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
    return insert(model).values(**values)
