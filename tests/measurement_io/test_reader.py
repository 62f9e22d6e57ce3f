"""Unit tests for src.measurement_io.reader."""

import logging

import numpy as np
import pandas as pd
import pytest

from src.measurement_io.reader import (
    DuplicateIdentifierError,
    check_unique_identifiers,
    frame_to_records,
    read_measurement_csv,
    records_to_frame,
)
from src.measurement_io.schema import MeasurementRecord

# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def echo_csv(tmp_path):
    """CSV with leading-zero identifiers, padding and a non-numeric cell."""
    path = tmp_path / "echo.csv"
    path.write_text(
        "case_id,edv,esv,comment\n"
        "007, 120.5,50,ok\n"
        "008,80,n.d.,\n"
        "009,95,40,repeat\n"
        ",70,30,no id\n"
    )
    return path


# ─────────────────────────────────────────────────────────────────────────────
# Tests for read_measurement_csv
# ─────────────────────────────────────────────────────────────────────────────


class TestReadMeasurementCsv:
    def test_identifiers_kept_as_strings(self, echo_csv):
        df = read_measurement_csv(echo_csv, "case_id", ["edv", "esv"])
        assert df["case_id"].iloc[0] == "007"

    def test_values_coerced_to_float(self, echo_csv):
        df = read_measurement_csv(echo_csv, "case_id", ["edv", "esv"])
        assert df["edv"].dtype == np.float64
        assert df["edv"].iloc[0] == 120.5

    def test_non_numeric_becomes_missing_with_warning(self, echo_csv, caplog):
        with caplog.at_level(logging.WARNING):
            df = read_measurement_csv(echo_csv, "case_id", ["edv", "esv"])
        assert np.isnan(df["esv"].iloc[1])
        assert "1 non-numeric value(s) in 'esv'" in caplog.text

    def test_na_values_are_missing(self, echo_csv):
        df = read_measurement_csv(echo_csv, "case_id", ["esv"], na_values=["n.d."])
        assert np.isnan(df["esv"].iloc[1])

    def test_selects_requested_columns(self, echo_csv):
        df = read_measurement_csv(echo_csv, "case_id", ["edv"])
        assert list(df.columns) == ["case_id", "edv"]

    def test_empty_identifier_is_missing(self, echo_csv):
        df = read_measurement_csv(echo_csv, "case_id", ["edv"])
        assert pd.isna(df["case_id"].iloc[3])

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_measurement_csv(tmp_path / "missing.csv", "case_id")

    def test_missing_id_column_raises(self, echo_csv):
        with pytest.raises(KeyError, match="subject"):
            read_measurement_csv(echo_csv, "subject")

    def test_missing_value_column_raises(self, echo_csv):
        with pytest.raises(KeyError, match="lvm"):
            read_measurement_csv(echo_csv, "case_id", ["edv", "lvm"])

    def test_text_column_is_coerced_with_warning(self, echo_csv, caplog):
        with caplog.at_level(logging.WARNING):
            df = read_measurement_csv(echo_csv, "case_id")
        assert df["comment"].isna().all()
        assert "non-numeric" in caplog.text


# ─────────────────────────────────────────────────────────────────────────────
# Tests for check_unique_identifiers
# ─────────────────────────────────────────────────────────────────────────────


class TestCheckUniqueIdentifiers:
    def test_unique_passes(self):
        check_unique_identifiers(pd.DataFrame({"id": ["a", "b"]}), "id")

    def test_duplicates_raise_with_ids(self):
        df = pd.DataFrame({"id": ["a", "b", "a", "c", "c"]})
        with pytest.raises(DuplicateIdentifierError) as exc_info:
            check_unique_identifiers(df, "id")
        assert exc_info.value.duplicates == ["a", "c"]
        assert exc_info.value.id_col == "id"

    def test_missing_identifiers_are_not_duplicates(self):
        check_unique_identifiers(pd.DataFrame({"id": ["a", None, None]}), "id")

    def test_is_value_error(self):
        assert issubclass(DuplicateIdentifierError, ValueError)


# ─────────────────────────────────────────────────────────────────────────────
# Tests for record conversions
# ─────────────────────────────────────────────────────────────────────────────


class TestRecordConversions:
    def test_records_to_frame(self):
        df = records_to_frame(
            [MeasurementRecord(subject_id="p1", value=1.5), {"subject_id": "p2", "value": None}],
            id_col="case_id",
            value_col="edv",
        )
        assert list(df.columns) == ["case_id", "edv"]
        assert df["edv"].iloc[0] == 1.5
        assert np.isnan(df["edv"].iloc[1])

    def test_records_to_frame_empty(self):
        df = records_to_frame([])
        assert df.empty
        assert list(df.columns) == ["subject_id", "value"]

    def test_frame_to_records_skips_missing_ids(self):
        df = pd.DataFrame({"subject_id": ["p1", None, "p3"], "value": [1.0, 2.0, np.nan]})
        records = frame_to_records(df)
        assert records == [
            MeasurementRecord(subject_id="p1", value=1.0),
            MeasurementRecord(subject_id="p3", value=None),
        ]
