"""Database access for previously stored address texts."""

from __future__ import annotations

import logging
from typing import Iterable

from ..config import settings
from ..db.supabase import execute_query, require_client

logger = logging.getLogger(__name__)


def fetch_existing_addresses(table: str | None = None, column: str | None = None) -> list[str]:
    """Return the distinct non-empty address texts stored in ``table``.

    Raises:
        StorageUnavailableError: if the database is not configured or the query fails.
    """
    table = table or settings.addresses_table
    column = column or settings.address_column
    client = require_client()

    response = execute_query(client.table(table).select(column), f"load addresses from '{table}'")
    seen: dict[str, None] = {}
    for row in response.data or []:
        value = row.get(column)
        if not isinstance(value, str):
            continue
        text = value.strip()
        if text:
            seen.setdefault(text, None)
    return list(seen)


def merge_addresses(
    primary_address: str,
    duplicate_addresses: Iterable[str],
    table: str | None = None,
    column: str | None = None,
) -> int:
    """Rewrite every row holding one of ``duplicate_addresses`` to ``primary_address``.

    Returns the number of rows updated.
    """
    table = table or settings.addresses_table
    column = column or settings.address_column
    client = require_client()

    merged = 0
    for duplicate in duplicate_addresses:
        if duplicate == primary_address:
            continue
        response = execute_query(
            client.table(table).update({column: primary_address}).eq(column, duplicate),
            f"merge address '{duplicate}' into '{primary_address}'",
        )
        merged += len(response.data or [])
    logger.info(f"Merged {merged} row(s) in '{table}' into address '{primary_address}'")
    return merged


def fetch_address_ids(
    addresses: Iterable[str],
    table: str | None = None,
    column: str | None = None,
) -> dict[str, list[int]]:
    """Map each of ``addresses`` that is stored in ``table`` to its row ids, lowest first."""
    table = table or settings.addresses_table
    column = column or settings.address_column
    texts = sorted(set(addresses))
    if not texts:
        return {}
    client = require_client()

    response = execute_query(
        client.table(table).select(f"id,{column}").in_(column, texts),
        f"resolve {len(texts)} address(es) in '{table}'",
    )
    ids: dict[str, list[int]] = {}
    for row in response.data or []:
        ids.setdefault(row[column], []).append(int(row["id"]))
    return {text: sorted(row_ids) for text, row_ids in ids.items()}
