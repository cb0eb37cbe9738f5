"""Output accumulators for the CSV and GeoJSON encodings."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from pdok_geoencoder.common.models import Location, PipelineOptions, Row
from pdok_geoencoder.pipeline.headers import make_unique


def format_number(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class OutputSink(ABC):
    """Collects enriched records and renders the complete output on demand."""

    def __init__(self, options: PipelineOptions) -> None:
        self.options = options
        self.extended_attributes = list(options.extended_attributes)

    @abstractmethod
    def append(self, row: Row, location: Location) -> None:
        """Add the record for one successfully resolved row."""

    @abstractmethod
    def render(self) -> Any:
        """Return the output for everything appended so far."""

    @abstractmethod
    def serialize(self) -> str:
        """Return ``render()`` as file contents."""


class CsvSink(OutputSink):
    def __init__(self, options: PipelineOptions) -> None:
        super().__init__(options)
        self.delimiter = options.delimiter
        self.lines: list[str] = []
        self.columns: list[str] | None = None
        self.extended_columns: list[str] = []

    def _init_header(self, row: Row) -> None:
        self.columns = row.columns
        location_columns = make_unique(self.columns, [self.options.latitude, self.options.longitude, "x", "y"])
        headers = [*self.columns, *location_columns]
        if self.options.merge:
            # Full attribute list so every line keeps the same column positions.
            self.extended_columns = make_unique(headers, self.extended_attributes)
            headers.extend(self.extended_columns)
        self.lines.append(self.delimiter.join(headers))

    def append(self, row: Row, location: Location) -> None:
        if self.columns is None:
            self._init_header(row)
        values = [row.data.get(column, "") for column in self.columns]
        values.extend(format_number(v) for v in (location.lat, location.lon, location.x, location.y))
        if self.options.merge:
            attributes = location.extended_attributes or {}
            values.extend(attributes.get(name) or "" for name in self.extended_attributes)
        self.lines.append(self.delimiter.join(values))

    def render(self) -> str:
        return "\n".join(self.lines)

    def serialize(self) -> str:
        return self.render()


class GeoJsonSink(OutputSink):
    def __init__(self, options: PipelineOptions) -> None:
        super().__init__(options)
        self.features: list[dict[str, Any]] = []

    def append(self, row: Row, location: Location) -> None:
        properties: dict[str, Any] = dict(row.data)
        x_key, y_key = make_unique(list(properties), ["x", "y"])
        properties[x_key] = location.x
        properties[y_key] = location.y
        if self.options.merge:
            attributes = location.extended_attributes or {}
            unique_keys = make_unique(list(properties), self.extended_attributes)
            for key, original in zip(unique_keys, self.extended_attributes):
                properties[key] = attributes.get(original) or ""
        self.features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [location.lon, location.lat]},
                "properties": properties,
            }
        )

    def render(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": self.features}

    def serialize(self) -> str:
        return json.dumps(self.render(), ensure_ascii=False)


def create_sink(options: PipelineOptions) -> OutputSink:
    if options.to_csv:
        return CsvSink(options)
    return GeoJsonSink(options)
