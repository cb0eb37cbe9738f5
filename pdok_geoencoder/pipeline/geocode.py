"""PDOK Locatieserver lookups for a single zip code and house number."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from pdok_geoencoder.common.constants import GEOGRAPHIC_POINT_FIELD, PROJECTED_POINT_FIELD
from pdok_geoencoder.common.errors import MalformedCoordinateError, NetworkError, NoMatchError
from pdok_geoencoder.common.http import HttpClient, HttpRequestError
from pdok_geoencoder.common.logging import LOGGER_NAME, log_event
from pdok_geoencoder.common.models import AddressQuery, Location, ServiceConfig
from pdok_geoencoder.common.postcode import normalise_zip

POINT_RE = re.compile(r"POINT\((-?[\d.]+) (-?[\d.]+)\)")


@dataclass(frozen=True)
class PdokDocument:
    bron: str | None
    type: str | None
    attributes: dict[str, Any]

    @classmethod
    def from_payload(cls, doc: dict[str, Any]) -> "PdokDocument":
        return cls(bron=doc.get("bron"), type=doc.get("type"), attributes=doc)


def _documents(payload: Any) -> list[PdokDocument]:
    if not isinstance(payload, dict):
        return []
    response = payload.get("response")
    if not isinstance(response, dict):
        return []
    docs = response.get("docs") or []
    if not isinstance(docs, list):
        return []
    return [PdokDocument.from_payload(doc) for doc in docs if isinstance(doc, dict)]


def parse_point(value: Any) -> tuple[float, float] | None:
    """Return the two numbers of a ``POINT(a b)`` text, in written order."""
    if not isinstance(value, str):
        return None
    match = POINT_RE.search(value)
    if not match:
        return None
    try:
        return float(match.group(1)), float(match.group(2))
    except ValueError:
        return None


def _safe_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ",".join(_as_text(item) for item in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class PdokLocationClient:
    def __init__(
        self,
        service: ServiceConfig | None = None,
        *,
        http_client: HttpClient | None = None,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.service = service or ServiceConfig()
        self.owns_client = http_client is None
        self.http = http_client or HttpClient(timeout=self.service.timeout, rate_per_sec=self.service.rate_per_sec)
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.run_id = run_id

    def close(self) -> None:
        if self.owns_client:
            self.http.close()

    def __enter__(self) -> "PdokLocationClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _eligible(self, documents: list[PdokDocument]) -> list[PdokDocument]:
        return [
            doc
            for doc in documents
            if doc.bron == self.service.candidate_source and doc.type == self.service.candidate_type
        ]

    def best_candidate(self, payload: Any) -> PdokDocument | None:
        found = self._eligible(_documents(payload))
        if not found:
            return None
        if self.service.ranking == "score":
            # max() keeps the first of equal scores, so service order breaks ties.
            return max(found, key=lambda doc: _safe_float(doc.attributes.get("score")) or float("-inf"))
        return found[0]

    def to_location(self, doc: PdokDocument, include_extended_attributes: bool) -> Location:
        geographic = parse_point(doc.attributes.get(GEOGRAPHIC_POINT_FIELD))
        projected = parse_point(doc.attributes.get(PROJECTED_POINT_FIELD))
        if geographic is None or projected is None:
            raise MalformedCoordinateError(
                f"Unparseable centroids: {doc.attributes.get(GEOGRAPHIC_POINT_FIELD)!r}, "
                f"{doc.attributes.get(PROJECTED_POINT_FIELD)!r}"
            )
        lon, lat = geographic
        x, y = projected

        extended = None
        if include_extended_attributes:
            extended = {
                key: _as_text(value)
                for key, value in doc.attributes.items()
                if key not in (GEOGRAPHIC_POINT_FIELD, PROJECTED_POINT_FIELD)
            }
        return Location(lat=lat, lon=lon, x=x, y=y, extended_attributes=extended)

    def lookup(
        self,
        zip_code: str,
        house_number: str,
        include_extended_attributes: bool = False,
        line_number: int = 0,
    ) -> Location:
        """Resolve one address; raises a ``RowSkipped`` subclass on failure."""
        query = AddressQuery(zip=normalise_zip(zip_code) or "", house_number=house_number)
        zip_code = query.zip
        started = time.monotonic()
        log_event(
            self.logger,
            f"{line_number}. PDOK resolving {zip_code}, {house_number}",
            run_id=self.run_id,
            stage="lookup",
            event="LOOKUP_ATTEMPT",
            line_number=line_number,
            zip=zip_code,
            house_number=house_number,
        )
        try:
            payload = self.http.get_json(self.service.url, params={"q": query.text})
            doc = self.best_candidate(payload)
            if doc is None:
                raise NoMatchError(f"No {self.service.candidate_source} address found for {zip_code} {house_number}")
            return self.to_location(doc, include_extended_attributes)
        except HttpRequestError as exc:
            failure = NetworkError(str(exc))
            self._log_failure(failure, zip_code, house_number, line_number, started)
            raise failure from exc
        except (NoMatchError, MalformedCoordinateError) as exc:
            self._log_failure(exc, zip_code, house_number, line_number, started)
            raise

    def _log_failure(self, exc, zip_code: str, house_number: str, line_number: int, started: float) -> None:
        log_event(
            self.logger,
            f"Error resolving {zip_code}, {house_number}: {exc}",
            run_id=self.run_id,
            level=logging.ERROR,
            stage="lookup",
            event="LOOKUP_FAIL",
            status="error",
            line_number=line_number,
            zip=zip_code,
            house_number=house_number,
            error_code=exc.error_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
