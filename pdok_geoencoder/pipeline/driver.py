"""Row-by-row enrichment of an address table."""

from __future__ import annotations

import csv
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from pdok_geoencoder.common.errors import (
    InputDecodeError,
    InputNotFoundError,
    InputReadError,
    MissingFieldError,
    OutputWriteError,
    RowSkipped,
)
from pdok_geoencoder.common.fs import write_text
from pdok_geoencoder.common.logging import LOGGER_NAME, log_event
from pdok_geoencoder.common.models import AddressQuery, PipelineOptions, Row
from pdok_geoencoder.pipeline.fields import ResolvedFields, resolve_fields
from pdok_geoencoder.pipeline.geocode import PdokLocationClient
from pdok_geoencoder.pipeline.reader import iter_rows
from pdok_geoencoder.pipeline.sink import OutputSink, create_sink


def derive_output_path(input_path: Path, to_csv: bool) -> Path:
    if to_csv:
        return input_path.with_name(f"{input_path.stem}_out{input_path.suffix}")
    return input_path.with_suffix(".json")


@dataclass
class PipelineResult:
    output_path: Path
    rows_in: int = 0
    rows_out: int = 0
    checkpoints: int = 0
    skipped: Counter = field(default_factory=Counter)

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())


class GeoencodePipeline:
    """One enrichment run; all per-run state lives on the instance."""

    def __init__(
        self,
        options: PipelineOptions,
        *,
        geocoder: PdokLocationClient | None = None,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.options = options
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.run_id = run_id
        self.owns_geocoder = geocoder is None
        self.geocoder = geocoder or PdokLocationClient(options.service, logger=self.logger, run_id=run_id)
        self.sink: OutputSink = create_sink(options)
        self.fields: ResolvedFields | None = None
        self.output_path = options.out_path or derive_output_path(options.input_path, options.to_csv)
        self.result = PipelineResult(output_path=self.output_path)

    def _log(self, message: str, level: int = logging.INFO, **fields) -> None:
        log_event(self.logger, message, level=level, run_id=self.run_id, **fields)

    def _resolve(self, row: Row) -> ResolvedFields:
        resolved = resolve_fields(
            row,
            self.options.zip_field,
            self.options.house_number_field,
            zip_candidates=self.options.zip_candidates,
            house_number_candidates=self.options.house_number_candidates,
        )
        self._log(
            f"Using {resolved.house_number_field} for the house number "
            f"and {resolved.zip_field} as the zip code field.",
            stage="resolve",
            event="FIELDS_RESOLVED",
            status="ok",
        )
        return resolved

    def process_row(self, row: Row) -> None:
        if self.fields is None:
            self.fields = self._resolve(row)
        query = AddressQuery.from_row(row, self.fields.zip_field, self.fields.house_number_field)
        if query is None:
            raise MissingFieldError(f"Cannot find zip code or house number for: {row.data}")
        location = self.geocoder.lookup(
            query.zip,
            query.house_number,
            include_extended_attributes=self.options.merge,
            line_number=row.line_number,
        )
        self.sink.append(row, location)
        self.result.rows_out += 1

    def flush(self, event: str = "CHECKPOINT") -> None:
        try:
            write_text(self.output_path, self.sink.serialize())
        except OSError as exc:
            raise OutputWriteError(f"Unable to write {self.output_path}: {exc}") from exc
        if event == "CHECKPOINT":
            self.result.checkpoints += 1
        self._log(
            f"Wrote {self.result.rows_out} records to {self.output_path}",
            stage="write",
            event=event,
            status="ok",
            rows_in=self.result.rows_in,
            rows_out=self.result.rows_out,
            output_path=self.output_path,
        )

    def _consume(self, handle) -> None:
        for row in iter_rows(handle):
            try:
                self.process_row(row)
            except RowSkipped as exc:
                self.result.skipped[exc.error_code] += 1
                self._log(
                    f"Skipping line {row.line_number}: {exc}",
                    level=logging.WARNING,
                    stage="lookup",
                    event="ROW_SKIPPED",
                    status="skipped",
                    line_number=row.line_number,
                    error_code=exc.error_code,
                )
            self.result.rows_in += 1
            if self.result.rows_in % self.options.checkpoint_every == 0:
                self.flush("CHECKPOINT")

    def run(self) -> PipelineResult:
        input_path = self.options.input_path
        started = time.monotonic()
        try:
            if not input_path.exists():
                raise InputNotFoundError(f"Filename {input_path} does not exist!")
            self._log(f"Geoencoding {input_path}", stage="run", event="RUN_START", status="ok")
            try:
                with input_path.open("r", encoding="utf-8-sig", newline="") as handle:
                    self._consume(handle)
            except UnicodeDecodeError as exc:
                raise InputDecodeError(f"{input_path} is not valid UTF-8: {exc}") from exc
            except csv.Error as exc:
                raise InputDecodeError(f"Unable to parse {input_path} as CSV: {exc}") from exc
            except OSError as exc:
                raise InputReadError(f"Unable to read {input_path}: {exc}") from exc
            self.flush("FINAL")
        finally:
            if self.owns_geocoder:
                self.geocoder.close()

        self._log(
            f"Finished {input_path}: {self.result.rows_out} written, {self.result.skipped_total} skipped",
            stage="run",
            event="RUN_END",
            status="partial" if self.result.skipped_total else "ok",
            rows_in=self.result.rows_in,
            rows_out=self.result.rows_out,
            duration_ms=int((time.monotonic() - started) * 1000),
            output_path=self.output_path,
        )
        return self.result


def run_pipeline(
    options: PipelineOptions,
    *,
    geocoder: PdokLocationClient | None = None,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> PipelineResult:
    return GeoencodePipeline(options, geocoder=geocoder, logger=logger, run_id=run_id).run()
