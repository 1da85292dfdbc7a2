"""Tests for stock valuation, movement analysis and the stock summary."""

import pandas as pd
import pytest

from jewel_core.exceptions import InvalidInputError
from jewel_core.reports import (
    InventoryAnalytics,
    inventory_analytics,
    stock_summary,
    stock_value,
    turnover_rate,
)

AS_OF = "2024-06-30T12:00:00Z"


@pytest.fixture
def items() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id": ["G1", "G2", "S1", "D1", "N1", "N2"],
            "name": ["Bangle", "Chain", "Anklet", "Solitaire", "Nose pin", "Toe ring"],
            "sku": ["G-01", "G-02", "S-01", "D-01", "G-03", "S-02"],
            "metal_type": ["Gold", "Gold", "Silver", "Diamond", "Gold", "Silver"],
            "purity": ["22K", "18K", "925", "18K", "22K", "925"],
            "net_weight": [10.0, 5.0, 50.0, 2.0, 1.0, 4.0],
            "making_charge": [500.0, 300.0, 20.0, 1500.0, 100.0, 10.0],
            "quantity": [2, 1, 3, 1, 10, 4],
        }
    )


@pytest.fixture
def invoices() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id": [1, 2, 3, 4, 5, 6],
            "created_at": [
                "2024-06-25T06:00:00Z",  # 5 days before AS_OF
                "2024-06-20T06:00:00Z",  # 10 days
                "2024-06-10T06:00:00Z",  # 20 days
                "2024-04-15T06:00:00Z",  # 76 days
                "2024-04-25T06:00:00Z",  # 66 days
                "2024-01-10T06:00:00Z",  # outside the 90 day window
            ],
            "total_amount": [1.0] * 6,
        }
    )


@pytest.fixture
def lines() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "invoice_id": [1, 2, 3, 3, 4, 5, 6, 1],
            "item_id": ["G1", "G1", "G1", "S1", "D1", "G2", "N1", "GONE"],
            "quantity": [1, 1, 1, 12, 1, 1, 5, 1],
            "price": [1.0] * 8,
        }
    )


class TestStockValue:
    def test_per_metal_heuristics(self, items: pd.DataFrame) -> None:
        value = stock_value(items, gold_rate=6000)

        gold = (10 * 6000 + 500) * 2 + (5 * 6000 + 300) * 1 + (1 * 6000 + 100) * 10
        silver = (50 * 60 + 20) * 3 + (4 * 60 + 10) * 4
        diamond = 1500 * 10 * 1

        assert value.by_metal_type["Gold"] == pytest.approx(gold)
        assert value.by_metal_type["Silver"] == pytest.approx(silver)
        assert value.by_metal_type["Diamond"] == pytest.approx(diamond)
        assert value.total == pytest.approx(gold + silver + diamond)

    def test_zero_gold_rate(self, items: pd.DataFrame) -> None:
        """Without a rate, gold falls back to ten times its making charge."""
        value = stock_value(items, gold_rate=0)
        assert value.by_metal_type["Gold"] == pytest.approx((500 * 2 + 300 + 100 * 10) * 10)
        assert value.by_metal_type["Silver"] == pytest.approx(20 * 3 + 10 * 4)

    def test_single_gold_piece_without_rate(self) -> None:
        items = [{"id": "g", "metal_type": "Gold", "net_weight": 10, "making_charge": 500, "quantity": 1}]
        assert stock_value(items, gold_rate=0).total == pytest.approx(5000.0)

    def test_negative_rate_rejected(self, items: pd.DataFrame) -> None:
        with pytest.raises(InvalidInputError):
            stock_value(items, gold_rate=-1)

    def test_empty(self) -> None:
        value = stock_value([], gold_rate=6000)
        assert value.total == 0
        assert value.by_metal_type == {}


@pytest.mark.parametrize(
    "sold,in_stock,expected",
    [(0, 0, 0.0), (25, 75, 25.0), (10, 0, 100.0), (0, 40, 0.0)],
)
def test_turnover_rate(sold: int, in_stock: int, expected: float) -> None:
    assert turnover_rate(sold, in_stock) == pytest.approx(expected)


class TestInventoryAnalytics:
    @pytest.fixture
    def result(
        self, items: pd.DataFrame, lines: pd.DataFrame, invoices: pd.DataFrame
    ) -> InventoryAnalytics:
        return inventory_analytics(items, lines, invoices, gold_rate=6000, as_of=AS_OF)

    def test_movement(self, result: InventoryAnalytics) -> None:
        movement = result.movement.set_index("item_id")

        assert movement.loc["G1", "quantity_sold"] == 3
        assert movement.loc["G1", "times_sold"] == 3
        assert movement.loc["G1", "days_since_last_sale"] == 5
        assert movement.loc["S1", "quantity_sold"] == 12
        assert movement.loc["S1", "times_sold"] == 1
        assert movement.loc["D1", "days_since_last_sale"] == 76
        # sold only outside the window
        assert movement.loc["N1", "times_sold"] == 0
        assert pd.isna(movement.loc["N1", "last_sold_date"])
        assert "GONE" not in movement.index

    def test_fast_moving(self, result: InventoryAnalytics) -> None:
        """Sold 3+ times or 10+ pieces, most pieces first."""
        assert list(result.fast_moving_items["item_id"]) == ["S1", "G1"]

    def test_slow_moving_never_sold_last(self, result: InventoryAnalytics) -> None:
        slow = result.slow_moving_items
        assert list(slow["item_id"]) == ["D1", "G2", "N1", "N2"]

        sold_part = slow[slow["times_sold"] > 0]
        never_part = slow[slow["times_sold"] == 0]
        assert sold_part.index.max() < never_part.index.min()
        assert (never_part["times_sold"] == 0).all()

    def test_totals_and_turnover(self, result: InventoryAnalytics) -> None:
        assert result.total_items_sold == 3 + 12 + 1 + 1
        assert result.total_items_in_stock == 2 + 1 + 3 + 1 + 10 + 4
        assert result.turnover_rate == pytest.approx(17 / (21 + 17) * 100)
        assert result.analysis_period_days == 90

    def test_window_length(
        self, items: pd.DataFrame, lines: pd.DataFrame, invoices: pd.DataFrame
    ) -> None:
        short = inventory_analytics(items, lines, invoices, days=30, as_of=AS_OF)
        movement = short.movement.set_index("item_id")
        assert movement.loc["D1", "times_sold"] == 0
        assert short.total_items_sold == 15
        assert short.analysis_period_days == 30

    def test_to_dict(self, result: InventoryAnalytics) -> None:
        data = result.to_dict()
        assert data["analysis_period_days"] == 90
        assert data["fast_moving_items"][0]["item_id"] == "S1"
        assert set(data["stock_value"]) == {"total", "by_metal_type"}

    def test_no_sales(self, items: pd.DataFrame) -> None:
        result = inventory_analytics(items, [], [], as_of=AS_OF)
        assert result.total_items_sold == 0
        assert result.turnover_rate == 0
        assert result.fast_moving_items.empty
        assert len(result.slow_moving_items) == len(items)

    def test_empty(self) -> None:
        result = inventory_analytics([], [], [], as_of=AS_OF)
        assert result.turnover_rate == 0
        assert result.stock_value.total == 0
        assert result.movement.empty


def test_slow_moving_list_is_capped_at_ten() -> None:
    items = pd.DataFrame(
        {"id": [f"I{i}" for i in range(15)], "metal_type": ["Gold"] * 15, "quantity": [1] * 15}
    )
    result = inventory_analytics(items, [], [], as_of=AS_OF)
    assert len(result.slow_moving_items) == 10
    assert list(result.slow_moving_items["item_id"]) == [f"I{i}" for i in range(10)]


def test_stock_summary(items: pd.DataFrame) -> None:
    summary = stock_summary(items)
    assert summary == {
        "total_items": 6,
        "total_quantity": 21,
        "total_gold_items": 3,
        "total_silver_items": 2,
        "total_diamond_items": 1,
        "low_stock_items": 5,
    }
    assert stock_summary(items, low_stock_threshold=2)["low_stock_items"] == 2


def test_stock_summary_owner_scope(items: pd.DataFrame) -> None:
    scoped = items.assign(owner_id=["o1", "o1", "o1", "o2", "o2", "o2"])
    summary = stock_summary(scoped, owner_id="o1")
    assert summary["total_items"] == 3
    assert summary["total_diamond_items"] == 0


def test_stock_summary_empty() -> None:
    assert stock_summary([])["total_items"] == 0


def test_sales_after_as_of_are_ignored(
    items: pd.DataFrame, lines: pd.DataFrame, invoices: pd.DataFrame
) -> None:
    """The window ends at as_of: later sales neither count nor give negative ages."""
    result = inventory_analytics(items, lines, invoices, as_of="2024-05-01T12:00:00Z")
    movement = result.movement.set_index("item_id")

    assert movement.loc["G1", "times_sold"] == 0
    assert pd.isna(movement.loc["G1", "days_since_last_sale"])
    assert movement.loc["S1", "quantity_sold"] == 0
    assert movement.loc["D1", "days_since_last_sale"] == 16
    assert movement.loc["G2", "days_since_last_sale"] == 6
    assert (movement["days_since_last_sale"].dropna() >= 0).all()
    assert result.total_items_sold == 2
