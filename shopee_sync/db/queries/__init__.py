"""
SQL statements used by the storage layer.
"""

from .upserts import (
    ITEM_COLUMNS,
    MODEL_COLUMNS,
    build_unnest_upsert,
    items_upsert_sql,
    models_upsert_sql,
)

__all__ = [
    "ITEM_COLUMNS",
    "MODEL_COLUMNS",
    "build_unnest_upsert",
    "items_upsert_sql",
    "models_upsert_sql",
]
