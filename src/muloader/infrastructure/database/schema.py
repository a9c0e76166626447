"""SQLAlchemy Core table definitions for the option store."""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, PrimaryKeyConstraint, Table, Text

metadata = MetaData()

# Single-node and cluster-wide options share one table, keyed by scope.
options = Table(
    "options",
    metadata,
    Column("scope", Text, nullable=False),  # site | network
    Column("name", Text, nullable=False),
    Column("value", Text, nullable=False),  # JSON
    Column("modified", Text, nullable=False),
    PrimaryKeyConstraint("scope", "name"),
)

# Spent single-use tokens. The primary key makes a second spend fail.
used_tokens = Table(
    "used_tokens",
    metadata,
    Column("nonce", Text, primary_key=True),
    Column("action", Text, nullable=False),
    Column("expires", Integer, nullable=False),
)
