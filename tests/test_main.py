"""Unit tests for main.py utility functions and CLI parsing."""

import json

import pytest

import main as cli
from main import main


@pytest.fixture
def measurement_csvs(tmp_path):
    table_a = tmp_path / "echo.csv"
    table_a.write_text("patient_id,edv,esv\np1,120,50\np2,80,35\np3,101,40\n")
    table_b = tmp_path / "mri.csv"
    table_b.write_text("patient_id,edv,esv\np1,110,48\np2,90,\n")
    return table_a, table_b


class TestMainCli:
    """Tests for CLI argument parsing."""

    def test_no_command_prints_help(self, capsys):
        main([])
        captured = capsys.readouterr()
        assert "Agreement Checker" in captured.out

    def test_compare_requires_inputs_without_config(self):
        with pytest.raises(SystemExit, match="--table-a"):
            main(["compare", "--quantity", "edv"])

    def test_compare_missing_file_exits(self, tmp_path):
        with pytest.raises(SystemExit, match="Could not read measurements"):
            main(
                [
                    "compare",
                    "--table-a",
                    str(tmp_path / "nope.csv"),
                    "--table-b",
                    str(tmp_path / "nope.csv"),
                    "--id-col",
                    "patient_id",
                    "--quantity",
                    "edv",
                ]
            )

    def test_compare_writes_report(self, measurement_csvs, tmp_path):
        table_a, table_b = measurement_csvs
        report_path = tmp_path / "reports" / "agreement.md"

        main(
            [
                "compare",
                "--table-a",
                str(table_a),
                "--table-b",
                str(table_b),
                "--id-col",
                "patient_id",
                "--quantity",
                "edv",
                "--quantity",
                "esv",
                "--method-a",
                "Echo",
                "--method-b",
                "MRI",
                "--report",
                str(report_path),
                "--report-plots",
            ]
        )

        content = report_path.read_text()
        assert "| edv | Echo vs MRI | 2 | 0.0000" in content
        assert "| esv | Echo vs MRI | 1 |" in content
        assert (tmp_path / "reports" / "figures" / "edv_bland_altman.png").exists()

    def test_compare_duplicate_identifiers_exits(self, measurement_csvs, tmp_path):
        table_a, _ = measurement_csvs
        dup = tmp_path / "dup.csv"
        dup.write_text("patient_id,edv\np1,110\np1,111\np2,90\n")

        with pytest.raises(SystemExit, match="--allow-duplicates"):
            main(
                [
                    "compare",
                    "--table-a",
                    str(table_a),
                    "--table-b",
                    str(dup),
                    "--id-col",
                    "patient_id",
                    "--quantity",
                    "edv",
                ]
            )

    def test_compare_with_config_and_save(self, measurement_csvs, tmp_path, monkeypatch):
        table_a, table_b = measurement_csvs
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {
                    "table_a": str(table_a),
                    "table_b": str(table_b),
                    "id_col": "patient_id",
                    "quantities": ["edv"],
                    "multiplier": 2.0,
                }
            )
        )

        saved = []
        monkeypatch.setattr(cli, "init_db", lambda: None)
        monkeypatch.setattr(
            cli, "add_run_from_result", lambda result: saved.append(result) or _FakeRun()
        )

        main(["compare", "--config", str(config_path), "--save"])

        assert len(saved) == 1
        assert saved[0].summary.multiplier == 2.0

    def test_invalid_config_exits(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"table_a": "a.csv"}))

        with pytest.raises(SystemExit, match="Invalid config"):
            main(["compare", "--config", str(config_path)])

    def test_malformed_json_config_exits(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("{not json")

        with pytest.raises(SystemExit, match="Invalid config"):
            main(["compare", "--config", str(config_path)])

    @pytest.mark.parametrize("raw", ["-1", "0", "nan"])
    def test_non_positive_multiplier_from_environment_exits(
        self, raw, measurement_csvs, monkeypatch
    ):
        table_a, table_b = measurement_csvs
        monkeypatch.setenv("AGREEMENT_CHECKER_LOA_MULTIPLIER", raw)

        with pytest.raises(SystemExit, match="must be positive"):
            main(
                [
                    "compare",
                    "--table-a",
                    str(table_a),
                    "--table-b",
                    str(table_b),
                    "--id-col",
                    "patient_id",
                    "--quantity",
                    "edv",
                ]
            )

    def test_multiplier_from_environment(self, monkeypatch):
        monkeypatch.setenv("AGREEMENT_CHECKER_LOA_MULTIPLIER", "2.576")
        assert cli.get_default_multiplier() == 2.576

        monkeypatch.setenv("AGREEMENT_CHECKER_LOA_MULTIPLIER", "wide")
        with pytest.raises(SystemExit, match="Invalid"):
            cli.get_default_multiplier()

    def test_list_prints_runs(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "init_db", lambda: None)
        monkeypatch.setattr(cli, "get_all_runs", lambda status=None, quantity=None: [])

        main(["list", "--status", "success"])
        assert "No agreement runs found" in capsys.readouterr().out


class _FakeRun:
    id = 1
