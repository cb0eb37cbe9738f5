"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pdok_geoencoder.common.constants import (
    CANDIDATE_SOURCE,
    CANDIDATE_TYPE,
    DEFAULT_CHECKPOINT_EVERY,
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    HOUSE_NUMBER_CANDIDATES,
    PDOK_EXTENDED_ATTRIBUTES,
    PDOK_FREE_SEARCH_URL,
    ZIP_CANDIDATES,
)
from pdok_geoencoder.common.http import TimeoutConfig
from pdok_geoencoder.common.postcode import normalise_house_number, normalise_zip


@dataclass(frozen=True)
class Row:
    line_number: int
    data: dict[str, str]

    @property
    def columns(self) -> list[str]:
        return list(self.data)


@dataclass(frozen=True)
class AddressQuery:
    zip: str
    house_number: str

    @classmethod
    def from_row(cls, row: Row, zip_field: str, house_number_field: str) -> "AddressQuery | None":
        zip_code = normalise_zip(row.data.get(zip_field))
        house_number = normalise_house_number(row.data.get(house_number_field))
        if zip_code is None or house_number is None:
            return None
        return cls(zip=zip_code, house_number=house_number)

    @property
    def text(self) -> str:
        return f"{self.zip} {self.house_number}"


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float
    x: float
    y: float
    extended_attributes: dict[str, str] | None = None


@dataclass(frozen=True)
class ServiceConfig:
    url: str = PDOK_FREE_SEARCH_URL
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    rate_per_sec: float | None = None
    candidate_source: str = CANDIDATE_SOURCE
    candidate_type: str = CANDIDATE_TYPE
    ranking: str = "first"


@dataclass(frozen=True)
class PipelineOptions:
    input_path: Path
    zip_field: str | None = None
    house_number_field: str | None = None
    latitude: str = DEFAULT_LATITUDE
    longitude: str = DEFAULT_LONGITUDE
    to_csv: bool = False
    semicolon: bool = False
    merge: bool = False
    out_path: Path | None = None
    checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY
    zip_candidates: tuple[str, ...] = ZIP_CANDIDATES
    house_number_candidates: tuple[str, ...] = HOUSE_NUMBER_CANDIDATES
    extended_attributes: tuple[str, ...] = PDOK_EXTENDED_ATTRIBUTES
    service: ServiceConfig = field(default_factory=ServiceConfig)

    @property
    def delimiter(self) -> str:
        return ";" if self.semicolon else ","
