"""Additive schema migrator for record-spine.

Manifesto:
    Tables should follow the records that describe them.  The migrator
    creates missing tables and adds missing columns, one statement at a
    time, and never drops, renames or retypes anything on its own.

Modules
-------
migrator    Model / DBInfo protocols, MigrationResult, Migrator

Tags:
    record-spine, migrations, schema, DDL, additive

Doc-Types:
    package-overview
"""

from recordspine.migrations.migrator import (
    INITIALIZE,
    DBInfo,
    MigrationResult,
    Migrator,
    Model,
)

__all__ = [
    "INITIALIZE",
    "DBInfo",
    "MigrationResult",
    "Migrator",
    "Model",
]
