"""Tests for loading CSV exports, run_report and the jewel-report CLI."""

import json
from pathlib import Path

import pandas as pd
import pytest

from jewel_core.cli import main, parse_args
from jewel_core.config import DataPaths
from jewel_core.exceptions import ConfigError
from jewel_core.reports import REPORTS, run_report
from jewel_core.tables import load_tables


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """A store export: three items, two customers, two invoices."""
    root = tmp_path / "data"
    root.mkdir()
    pd.DataFrame(
        {
            "id": ["007", "008", "009"],
            "name": ["Bangle", "Anklet", "Solitaire"],
            "sku": ["G-01", "S-01", "D-01"],
            "metal_type": ["Gold", "Silver", "Diamond"],
            "net_weight": [10.0, 50.0, 2.0],
            "making_charge": [500.0, 20.0, 1500.0],
            "quantity": [2, 3, 1],
        }
    ).to_csv(root / "items.csv", index=False)
    pd.DataFrame(
        {
            "id": ["c1", "c2"],
            "name": ["Asha", "Bilal"],
            "phone": ["09800000001", "09800000002"],
            "created_at": ["2024-01-01T06:00:00Z", "2024-06-01T06:00:00Z"],
        }
    ).to_csv(root / "customers.csv", index=False)
    pd.DataFrame(
        {
            "id": ["1", "2"],
            "invoice_number": ["INV-001", "INV-002"],
            "customer_id": ["c1", "c2"],
            "created_at": ["2024-06-10T06:00:00Z", "2024-06-11T06:00:00Z"],
            "gold_value": [60000.0, 3000.0],
            "making_charges": [5000.0, 1000.0],
            "gst_amount": [1950.0, 120.0],
            "total_amount": [66950.0, 4120.0],
        }
    ).to_csv(root / "invoices.csv", index=False)
    pd.DataFrame(
        {
            "invoice_id": ["1", "2"],
            "item_id": ["007", "008"],
            "quantity": [1, 1],
            "price": [65000.0, 4000.0],
        }
    ).to_csv(root / "invoice_items.csv", index=False)
    (root / "settings.json").write_text(json.dumps({"gst_rate": 3, "store_name": "Shree"}))
    return root


class TestLoadTables:
    def test_ids_stay_text(self, data_root: Path) -> None:
        tables = load_tables(DataPaths.from_root(data_root))
        assert list(tables.items["id"]) == ["007", "008", "009"]
        assert tables.customers["phone"].iloc[0] == "09800000001"
        assert tables.settings.store_name == "Shree"

    def test_missing_table_is_empty(self, data_root: Path) -> None:
        (data_root / "customers.csv").unlink()
        tables = load_tables(DataPaths.from_root(data_root))
        assert tables.customers.empty
        assert len(tables.invoices) == 2

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_tables(DataPaths.from_root(tmp_path / "nope"))

    def test_bad_settings(self, data_root: Path) -> None:
        (data_root / "settings.json").write_text("{not json")
        with pytest.raises(ConfigError):
            load_tables(DataPaths.from_root(data_root))


class TestRunReport:
    def test_every_report_runs(self, data_root: Path) -> None:
        tables = load_tables(DataPaths.from_root(data_root))
        for name in REPORTS:
            options = {"customer_id": "c1"} if name == "history" else {}
            df = run_report(name, tables, as_of="2024-06-30T12:00:00Z", **options)
            assert isinstance(df, pd.DataFrame), name

    def test_unknown_report(self, data_root: Path) -> None:
        tables = load_tables(DataPaths.from_root(data_root))
        with pytest.raises(ValueError, match="Invalid report"):
            run_report("weekly", tables)

    def test_history_needs_customer(self, data_root: Path) -> None:
        tables = load_tables(DataPaths.from_root(data_root))
        with pytest.raises(ValueError, match="customer_id"):
            run_report("history", tables)

    def test_none_options_use_defaults(self, data_root: Path) -> None:
        tables = load_tables(DataPaths.from_root(data_root))
        df = run_report("top-selling", tables, limit=None)
        assert list(df["item_id"]) == ["007", "008"]


class TestCli:
    def test_parse_args(self) -> None:
        args = parse_args(["top-selling", "--limit", "5", "--data-root", "store"])
        assert args.command == "top-selling"
        assert args.limit == 5
        assert args.data_root == Path("store")
        assert args.out is None

    def test_invalid_date_exits(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["daily", "--start", "2024-13-01"])

    def test_unknown_command_exits(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["weekly"])

    def test_daily_to_csv(self, data_root: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "daily.csv"
        code = main(["daily", "--data-root", str(data_root), "--out", str(out), "--quiet"])

        assert code == 0
        df = pd.read_csv(out, encoding="utf-8-sig")
        assert list(df["date"]) == ["2024-06-11", "2024-06-10"]
        assert list(df["total_revenue"]) == [4120.0, 66950.0]

    def test_stock_prints(self, data_root: Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["stock", "--data-root", str(data_root), "--quiet"]) == 0
        assert "total_items" in capsys.readouterr().out

    def test_qa_clean(self, data_root: Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["qa", "--data-root", str(data_root), "--quiet"]) == 0
        assert "total_invoices: 2" in capsys.readouterr().out

    def test_qa_with_issues(self, data_root: Path) -> None:
        invoices = pd.read_csv(data_root / "invoices.csv", dtype={"id": str})
        invoices.loc[0, "total_amount"] = 70000.0
        invoices.to_csv(data_root / "invoices.csv", index=False)
        assert main(["qa", "--data-root", str(data_root), "--quiet"]) == 1

    def test_missing_data_root(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit, match="ERROR"):
            main(["daily", "--data-root", str(tmp_path / "nope"), "--quiet"])

    def test_history_without_customer(self, data_root: Path) -> None:
        with pytest.raises(SystemExit, match="customer_id"):
            main(["history", "--data-root", str(data_root), "--quiet"])

    def test_metal_type_choices(self) -> None:
        assert parse_args(["sold", "--metal-type", "Silver"]).metal_type == "Silver"
        with pytest.raises(SystemExit):
            parse_args(["sold", "--metal-type", "Platinum"])

    def test_ctrl_c_exits_130(self, data_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """The console script gets the exit status from main itself."""

        def interrupted(paths):
            raise KeyboardInterrupt

        monkeypatch.setattr("jewel_core.cli.load_tables", interrupted)
        assert main(["daily", "--data-root", str(data_root), "--quiet"]) == 130
