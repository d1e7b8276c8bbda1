"""
Bulk upsert statements for the marketplace catalog tables.

Each column travels as one array parameter and ``UNNEST`` expands the arrays
into rows server-side, so a batch is a single round-trip. Conflicts on the
identity key overwrite every mutable column except ``create_time`` (kept when
the incoming value is null) and ``update_time`` (never moves backwards).
"""

import re
from typing import List, Sequence, Tuple

# (column, postgres array element type)
ITEM_COLUMNS: List[Tuple[str, str]] = [
    ("shop_id", "bigint"),
    ("item_id", "bigint"),
    ("item_status", "text"),
    ("item_name", "text"),
    ("item_sku", "text"),
    ("gtin_code", "text"),
    ("has_model", "boolean"),
    ("has_promotion", "boolean"),
    ("promotion_id", "bigint"),
    ("create_time", "timestamptz"),
    ("update_time", "timestamptz"),
    ("raw", "jsonb"),
    ("last_synced_at", "timestamptz"),
]

MODEL_COLUMNS: List[Tuple[str, str]] = [
    ("shop_id", "bigint"),
    ("model_id", "bigint"),
    ("item_id", "bigint"),
    ("model_status", "text"),
    ("model_sku", "text"),
    ("gtin_code", "text"),
    ("has_promotion", "boolean"),
    ("promotion_id", "bigint"),
    ("current_price", "numeric"),
    ("original_price", "numeric"),
    ("local_price", "numeric"),
    ("local_promotion_price", "numeric"),
    ("total_available_stock", "int"),
    ("total_reserved_stock", "int"),
    ("raw", "jsonb"),
    ("last_synced_at", "timestamptz"),
]

ITEM_CONFLICT_KEY = ("shop_id", "item_id")
MODEL_CONFLICT_KEY = ("shop_id", "model_id")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def _assignment(table: str, column: str) -> str:
    if column == "create_time":
        return f"create_time = COALESCE(EXCLUDED.create_time, {table}.create_time)"
    if column == "update_time":
        return (
            f"update_time = GREATEST(COALESCE(EXCLUDED.update_time, {table}.update_time), {table}.update_time)"
        )
    return f"{column} = EXCLUDED.{column}"


def build_unnest_upsert(
    schema: str, table: str, columns: Sequence[Tuple[str, str]], conflict_key: Sequence[str]
) -> str:
    """
    Build an ``INSERT ... SELECT FROM UNNEST(...) ON CONFLICT DO UPDATE`` statement.

    Bind parameters are named after the columns (``:item_id``, ``:raw``...)
    and each must be a list of the same length.

    ``GREATEST`` ignores nulls in PostgreSQL, so a null incoming
    ``update_time`` keeps the stored one.
    """
    schema = _check_identifier(schema)
    table = _check_identifier(table)
    names = [_check_identifier(name) for name, _ in columns]

    column_list = ", ".join(names)
    arrays = ",\n  ".join(f"CAST(:{name} AS {pg_type}[])" for name, pg_type in columns)
    selected = ", ".join(f"t.{name}" for name in names)
    updates = ",\n  ".join(_assignment(table, name) for name in names if name not in conflict_key)

    return (
        f"INSERT INTO {schema}.{table} ({column_list})\n"
        f"SELECT {selected}\n"
        f"FROM UNNEST(\n  {arrays}\n) AS t({column_list})\n"
        f"ON CONFLICT ({', '.join(conflict_key)}) DO UPDATE SET\n  {updates}"
    )


def items_upsert_sql(schema: str = "shopee") -> str:
    return build_unnest_upsert(schema, "items", ITEM_COLUMNS, ITEM_CONFLICT_KEY)


def models_upsert_sql(schema: str = "shopee") -> str:
    return build_unnest_upsert(schema, "models", MODEL_COLUMNS, MODEL_CONFLICT_KEY)
