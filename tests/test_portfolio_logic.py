# tests/test_portfolio_logic.py
import pytest

from investment_tracker.backend.services.asset_aggregator import calculate_asset_summary
from investment_tracker.backend.services.models import Operation
from investment_tracker.backend.services.portfolio_aggregator import calculate_portfolio_summary


def test_rows_from_storage_through_both_aggregators():
    # decimal columns come back as strings, timestamps as ISO text
    rows = [
        {"id": "1", "user_id": "u", "asset_name": "HGLG11", "asset_type": "fii", "operation_type": "compra",
         "operation_date": "2024-01-10", "quantity": "10.000000", "unit_price": "160.00", "fees": "0.00",
         "created_at": "2024-01-10T12:00:00Z"},
        {"id": "2", "user_id": "u", "asset_name": "hglg11", "asset_type": "fii", "operation_type": "rendimento",
         "operation_date": "2024-02-15", "quantity": "10.000000", "unit_price": "1.10", "fees": None,
         "created_at": "2024-02-15T12:00:00Z"},
        {"id": "3", "user_id": "u", "asset_name": "PETR4", "asset_type": "acao", "operation_type": "compra",
         "operation_date": "2024-02-20", "quantity": "100.000000", "unit_price": "38.00", "fees": "4.90",
         "created_at": "2024-02-20T12:00:00Z"},
        {"id": "4", "user_id": "u", "asset_name": "PETR4", "asset_type": "acao", "operation_type": "venda",
         "operation_date": "2024-04-02", "quantity": "50.000000", "unit_price": "40.00", "fees": "4.90",
         "created_at": "2024-04-02T12:00:00Z"},
    ]
    operations = [Operation.from_row(r) for r in rows]

    assets = {a.asset_name: a for a in calculate_asset_summary(operations)}

    assert assets["HGLG11"].total_shares == 10
    assert assets["HGLG11"].total_invested == pytest.approx(1600 - 11)
    assert assets["HGLG11"].average_price == pytest.approx(160.0)

    assert assets["PETR4"].total_shares == 50
    assert assets["PETR4"].total_invested == pytest.approx(3804.90 / 2)
    assert assets["PETR4"].average_price == pytest.approx((3804.90 - (2000 - 4.90)) / 50)
    assert str(assets["PETR4"].last_operation) == "2024-04-02"

    summary = calculate_portfolio_summary(operations)

    assert summary.total_invested == pytest.approx(1600 + 3804.90 - 2004.90)
    assert summary.total_assets == 2
    assert summary.total_operations == 4
    assert summary.assets_by_type == {"fii": 1, "acao": 1}
    assert [m.month for m in summary.monthly_evolution] == ["2024-01", "2024-02", "2024-04"]
    assert [m.accumulated_income for m in summary.monthly_evolution] == pytest.approx([0.0, 11.0, 11.0])
    assert summary.monthly_evolution[-1].total_patrimony == pytest.approx(summary.total_invested)
