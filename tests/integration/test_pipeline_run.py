from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from pdok_geoencoder.common.errors import (
    InputDecodeError,
    InputNotFoundError,
    InputReadError,
    MalformedCoordinateError,
    NetworkError,
    NoMatchError,
    OutputWriteError,
    UnresolvableFieldError,
)
from pdok_geoencoder.common.models import Location, PipelineOptions
from pdok_geoencoder.pipeline.driver import GeoencodePipeline, run_pipeline


class FakeGeocoder:
    """Resolves every address to coordinates derived from the house number."""

    def __init__(self, failures: dict[str, Exception] | None = None):
        self.failures = failures or {}
        self.calls: list[tuple[str, str, bool, int]] = []
        self.closed = False
        self.on_lookup = None

    def lookup(self, zip_code, house_number, include_extended_attributes=False, line_number=0):
        self.calls.append((zip_code, house_number, include_extended_attributes, line_number))
        if self.on_lookup is not None:
            self.on_lookup(line_number)
        failure = self.failures.get(f"{zip_code} {house_number}")
        if failure is not None:
            raise failure
        number = float(house_number)
        extended = {"straatnaam": "Dorpsstraat", "postcode": zip_code} if include_extended_attributes else None
        return Location(lat=float(f"52.{int(number):02d}"), lon=5.0, x=1000.0 * number, y=400000.0, extended_attributes=extended)

    def close(self):
        self.closed = True


def _write_csv(path: Path, lines: list[str]) -> Path:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.mark.integration
def test_csv_run_preserves_order_and_skips_failures(tmp_path: Path):
    source = _write_csv(
        tmp_path / "adressen.csv",
        [
            "id,postcode_nl,hn",
            "a,1234 AB,1",
            "b,1234AB,",
            "c,,3",
            "d,1234AB,4",
            "e,1234AB,5",
            "f,1234AB,6",
            "g,1234AB,7",
        ],
    )
    geocoder = FakeGeocoder(
        failures={
            "1234AB 5": NoMatchError("no match"),
            "1234AB 6": NetworkError("HTTP status: 500"),
            "1234AB 7": MalformedCoordinateError("bad point"),
        }
    )
    options = PipelineOptions(input_path=source, zip_field="postcode_nl", to_csv=True)

    result = run_pipeline(options, geocoder=geocoder)

    assert result.output_path == tmp_path / "adressen_out.csv"
    assert result.rows_in == 7
    assert result.rows_out == 2
    assert dict(result.skipped) == {
        "MISSING_FIELD": 2,
        "NO_MATCH": 1,
        "NETWORK_ERROR": 1,
        "MALFORMED_COORDINATE": 1,
    }
    assert [call[3] for call in geocoder.calls] == [1, 4, 5, 6, 7]
    assert geocoder.closed is False

    lines = result.output_path.read_text(encoding="utf-8").split("\n")
    assert lines == [
        "id,postcode_nl,hn,lat,lon,x,y",
        "a,1234 AB,1,52.01,5,1000,400000",
        "d,1234AB,4,52.04,5,4000,400000",
    ]


@pytest.mark.integration
def test_geojson_run_writes_feature_collection(tmp_path: Path):
    source = _write_csv(tmp_path / "adressen.csv", ["pc;hn;naam", "1234AB;12;thuis", "2345BC;3;werk"])

    result = run_pipeline(PipelineOptions(input_path=source, merge=True), geocoder=FakeGeocoder())

    assert result.output_path == tmp_path / "adressen.json"
    collection = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert collection["type"] == "FeatureCollection"
    assert [feature["properties"]["naam"] for feature in collection["features"]] == ["thuis", "werk"]
    first = collection["features"][0]
    assert first["geometry"]["coordinates"] == [5.0, 52.12]
    assert first["properties"]["x"] == 12000.0
    assert first["properties"]["straatnaam"] == "Dorpsstraat"
    assert first["properties"]["postcode"] == "1234AB"
    assert first["properties"]["woonplaatsnaam"] == ""


@pytest.mark.integration
def test_explicit_output_path_is_used(tmp_path: Path):
    source = _write_csv(tmp_path / "in.csv", ["zip,number", "1234AB,1"])
    out = tmp_path / "results" / "geo.json"

    result = run_pipeline(PipelineOptions(input_path=source, out_path=out), geocoder=FakeGeocoder())

    assert result.output_path == out
    assert out.exists()
    assert not (tmp_path / "in.json").exists()


@pytest.mark.integration
def test_missing_input_fails_before_reading(tmp_path: Path):
    geocoder = FakeGeocoder()
    with pytest.raises(InputNotFoundError):
        run_pipeline(PipelineOptions(input_path=tmp_path / "missing.csv"), geocoder=geocoder)
    assert geocoder.calls == []


@pytest.mark.integration
def test_byte_order_mark_is_not_part_of_first_header(tmp_path: Path, caplog):
    source = tmp_path / "bom.csv"
    source.write_bytes("\ufeffpc,hn\n1234AB,1\n".encode("utf-8"))

    with caplog.at_level(logging.INFO, logger="pdok_geoencoder"):
        result = run_pipeline(PipelineOptions(input_path=source, to_csv=True), geocoder=FakeGeocoder())

    assert result.rows_out == 1
    resolved = [record for record in caplog.records if getattr(record, "event", None) == "FIELDS_RESOLVED"]
    assert resolved[0].getMessage() == "Using hn for the house number and pc as the zip code field."
    assert result.output_path.read_text(encoding="utf-8").split("\n")[0] == "pc,hn,lat,lon,x,y"


@pytest.mark.integration
@pytest.mark.parametrize("delimiter", ["\t", "|"])
def test_tab_and_pipe_separated_input_is_detected(tmp_path: Path, delimiter: str):
    source = _write_csv(tmp_path / "in.txt", [delimiter.join(["pc", "hn"]), delimiter.join(["1234AB", "7"])])

    result = run_pipeline(PipelineOptions(input_path=source, to_csv=True), geocoder=FakeGeocoder())

    assert result.rows_out == 1
    assert result.output_path.read_text(encoding="utf-8").split("\n") == [
        "pc,hn,lat,lon,x,y",
        "1234AB,7,52.07,5,7000,400000",
    ]


@pytest.mark.integration
def test_undecodable_input_raises_input_error(tmp_path: Path):
    source = tmp_path / "latin.csv"
    source.write_bytes(b"pc,hn\n1234AB,1\n\xff\xfe,2\n")
    geocoder = FakeGeocoder()

    with pytest.raises(InputDecodeError) as excinfo:
        run_pipeline(PipelineOptions(input_path=source, to_csv=True), geocoder=geocoder)
    assert excinfo.value.error_code == "INPUT_DECODE_ERROR"
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


@pytest.mark.integration
def test_directory_as_input_is_read_error(tmp_path: Path):
    with pytest.raises(InputReadError) as excinfo:
        run_pipeline(PipelineOptions(input_path=tmp_path), geocoder=FakeGeocoder())
    assert excinfo.value.error_code == "INPUT_READ_ERROR"


@pytest.mark.integration
def test_unwritable_output_is_write_error(tmp_path: Path):
    source = _write_csv(tmp_path / "in.csv", ["pc,hn", "1234AB,1"])
    occupied = tmp_path / "occupied"
    occupied.mkdir()

    with pytest.raises(OutputWriteError) as excinfo:
        run_pipeline(PipelineOptions(input_path=source, out_path=occupied), geocoder=FakeGeocoder())
    assert excinfo.value.error_code == "WRITE_ERROR"


@pytest.mark.integration
def test_unresolvable_fields_abort_run(tmp_path: Path):
    source = _write_csv(tmp_path / "in.csv", ["foo,bar", "1234AB,1"])
    geocoder = FakeGeocoder()

    with pytest.raises(UnresolvableFieldError):
        run_pipeline(PipelineOptions(input_path=source), geocoder=geocoder)
    assert geocoder.calls == []
    assert not (tmp_path / "in.json").exists()


@pytest.mark.integration
def test_field_resolution_happens_once(tmp_path: Path, monkeypatch):
    from pdok_geoencoder.pipeline import driver

    calls = []
    original = driver.resolve_fields

    def counting_resolve(*args, **kwargs):
        calls.append(args[0].line_number)
        return original(*args, **kwargs)

    monkeypatch.setattr(driver, "resolve_fields", counting_resolve)
    source = _write_csv(tmp_path / "in.csv", ["pc,hn", "1234AB,1", "1234AB,2", "1234AB,3"])

    run_pipeline(PipelineOptions(input_path=source), geocoder=FakeGeocoder())

    assert calls == [1]


@pytest.mark.integration
def test_checkpoint_after_1000_rows_matches_render(tmp_path: Path):
    lines = ["pc,hn"] + [f"1234AB,{i if i % 10 else ''}" for i in range(1, 1006)]
    source = _write_csv(tmp_path / "big.csv", lines)
    options = PipelineOptions(input_path=source, to_csv=True)
    geocoder = FakeGeocoder()
    pipeline = GeoencodePipeline(options, geocoder=geocoder)
    snapshots = {}

    def snapshot(line_number):
        if line_number == 1001:
            snapshots["disk"] = pipeline.output_path.read_text(encoding="utf-8")
            snapshots["render"] = pipeline.sink.render()
            snapshots["checkpoints"] = pipeline.result.checkpoints

    geocoder.on_lookup = snapshot
    result = pipeline.run()

    assert snapshots["checkpoints"] == 1
    assert snapshots["disk"] == snapshots["render"]
    # 1000 rows processed, every tenth had no house number.
    assert len(snapshots["disk"].split("\n")) == 1 + 900
    assert result.rows_in == 1005
    assert result.checkpoints == 1
    assert len(result.output_path.read_text(encoding="utf-8").split("\n")) == 1 + 905


@pytest.mark.integration
def test_checkpoint_interval_is_configurable(tmp_path: Path, caplog):
    source = _write_csv(tmp_path / "in.csv", ["pc,hn"] + [f"1234AB,{i}" for i in range(1, 6)])

    with caplog.at_level(logging.INFO, logger="pdok_geoencoder"):
        result = run_pipeline(
            PipelineOptions(input_path=source, checkpoint_every=2),
            geocoder=FakeGeocoder(),
        )

    assert result.checkpoints == 2
    events = [getattr(record, "event", None) for record in caplog.records]
    assert events.count("CHECKPOINT") == 2
    assert events.count("FINAL") == 1
    assert events[-1] == "RUN_END"


@pytest.mark.integration
def test_skips_are_logged_as_warnings(tmp_path: Path, caplog):
    source = _write_csv(tmp_path / "in.csv", ["pc,hn", "1234AB,", "1234AB,2"])

    with caplog.at_level(logging.INFO, logger="pdok_geoencoder"):
        run_pipeline(PipelineOptions(input_path=source), geocoder=FakeGeocoder(), run_id="run-x")

    skipped = [record for record in caplog.records if getattr(record, "event", None) == "ROW_SKIPPED"]
    assert len(skipped) == 1
    assert skipped[0].levelno == logging.WARNING
    assert skipped[0].error_code == "MISSING_FIELD"
    assert skipped[0].line_number == 1
    assert skipped[0].run_id == "run-x"


@pytest.mark.integration
def test_runs_are_independent(tmp_path: Path):
    first = _write_csv(tmp_path / "first.csv", ["pc,hn,a", "1234AB,1,x"])
    second = _write_csv(tmp_path / "second.csv", ["zip,number", "2345BC,2"])

    run_pipeline(PipelineOptions(input_path=first, to_csv=True), geocoder=FakeGeocoder())
    run_pipeline(PipelineOptions(input_path=second, to_csv=True), geocoder=FakeGeocoder())

    assert (tmp_path / "first_out.csv").read_text(encoding="utf-8").split("\n")[0] == "pc,hn,a,lat,lon,x,y"
    assert (tmp_path / "second_out.csv").read_text(encoding="utf-8").split("\n")[0] == "zip,number,lat,lon,x,y"
