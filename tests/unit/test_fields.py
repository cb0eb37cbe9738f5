import pytest

from pdok_geoencoder.common.errors import UnresolvableFieldError
from pdok_geoencoder.common.models import Row
from pdok_geoencoder.pipeline.fields import resolve_fields


def _row(*columns: str) -> Row:
    return Row(line_number=1, data={column: "" for column in columns})


def test_resolve_fields_detects_aliases():
    resolved = resolve_fields(_row("postal", "house_number"))
    assert resolved.zip_field == "postal"
    assert resolved.house_number_field == "house_number"


def test_resolve_fields_fails_without_alias():
    with pytest.raises(UnresolvableFieldError):
        resolve_fields(_row("foo", "bar"))


def test_resolve_fields_reports_missing_zip_when_house_number_found():
    with pytest.raises(UnresolvableFieldError, match="zip code"):
        resolve_fields(_row("street", "hn"))


def test_resolve_fields_uses_first_matching_column_in_row_order():
    resolved = resolve_fields(_row("number", "pc6", "hn", "zip"))
    assert resolved.zip_field == "pc6"
    assert resolved.house_number_field == "number"


def test_resolve_fields_matches_case_insensitively():
    resolved = resolve_fields(_row("PC", " Huisnummer "))
    assert resolved.zip_field == "PC"
    assert resolved.house_number_field == " Huisnummer "


def test_resolve_fields_explicit_names_are_not_validated():
    resolved = resolve_fields(_row("foo", "bar"), zip_field="postcode", house_number_field="nr")
    assert resolved.zip_field == "postcode"
    assert resolved.house_number_field == "nr"


def test_resolve_fields_mixes_explicit_and_detected():
    resolved = resolve_fields(_row("pc", "huisnr"), house_number_field="huisnr")
    assert resolved.zip_field == "pc"
    assert resolved.house_number_field == "huisnr"


def test_resolve_fields_accepts_custom_candidates():
    resolved = resolve_fields(
        _row("postcode", "nr"),
        zip_candidates=["postcode"],
        house_number_candidates=["nr"],
    )
    assert resolved.zip_field == "postcode"
    assert resolved.house_number_field == "nr"
