"""Detection of the zip code and house number columns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from pdok_geoencoder.common.constants import HOUSE_NUMBER_CANDIDATES, ZIP_CANDIDATES
from pdok_geoencoder.common.errors import UnresolvableFieldError
from pdok_geoencoder.common.models import Row


@dataclass(frozen=True)
class ResolvedFields:
    zip_field: str
    house_number_field: str


def _lookup_first(columns: Sequence[str], candidates: Sequence[str]) -> str | None:
    aliases = {candidate.strip().lower() for candidate in candidates}
    for column in columns:
        if column.strip().lower() in aliases:
            return column
    return None


def resolve_fields(
    row: Row,
    zip_field: str | None = None,
    house_number_field: str | None = None,
    *,
    zip_candidates: Sequence[str] = ZIP_CANDIDATES,
    house_number_candidates: Sequence[str] = HOUSE_NUMBER_CANDIDATES,
) -> ResolvedFields:
    """Pick the address columns from the first row's header.

    Explicit names win and are not checked against the row; a column that
    does not exist simply yields empty values later on.
    """
    columns = row.columns
    house_number = house_number_field or _lookup_first(columns, house_number_candidates)
    if not house_number:
        raise UnresolvableFieldError(
            f"Unable to determine the house number field from available fields: {', '.join(columns)}"
        )
    zip_code = zip_field or _lookup_first(columns, zip_candidates)
    if not zip_code:
        raise UnresolvableFieldError(
            f"Unable to determine the zip code field from available fields: {', '.join(columns)}"
        )
    return ResolvedFields(zip_field=zip_code, house_number_field=house_number)
