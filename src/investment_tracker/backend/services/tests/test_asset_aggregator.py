# src/investment_tracker/backend/services/tests/test_asset_aggregator.py

from datetime import date, datetime, timedelta, timezone

import pytest

from investment_tracker.backend.services.asset_aggregator import (
    calculate_asset_summary,
    find_oversell,
    group_operations_by_asset,
)
from investment_tracker.backend.services.models import Operation

_T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _ops(*rows):
    """
    (asset_name, operation_type, "YYYY-MM-DD", quantity, unit_price, fees)
    created_at follows the tuple order.
    """
    return [
        Operation(
            asset_name=name,
            asset_type="acao",
            operation_type=op_type,
            operation_date=date.fromisoformat(d),
            quantity=qty,
            unit_price=price,
            fees=fees,
            created_at=_T0 + timedelta(minutes=i),
            id=f"op-{i}",
        )
        for i, (name, op_type, d, qty, price, fees) in enumerate(rows)
    ]


def test_single_buy_with_fee():
    """
    10 units @ 10 with a fee of 5
    -> cost basis 105, average price 10.5
    """
    result = calculate_asset_summary(_ops(("PETR4", "compra", "2024-01-10", 10, 10.0, 5.0)))

    assert len(result) == 1
    asset = result[0]
    assert asset.total_shares == 10
    assert asset.total_invested == pytest.approx(105.0)
    assert asset.average_price == pytest.approx(10.5)
    assert asset.oversold is False


def test_partial_sell_reduces_cost_proportionally():
    """
    [scenario]
    - buy 10 @ 10
    - sell 4 @ 12

    expected:
    - shares: 6
    - cost basis: 100 - (100 / 10) * 4 = 60
    - average: (100 - 48) / 6
    """
    result = calculate_asset_summary(_ops(
        ("PETR4", "compra", "2024-01-10", 10, 10.0, 0.0),
        ("PETR4", "venda", "2024-02-10", 4, 12.0, 0.0),
    ))

    asset = result[0]
    assert asset.total_shares == 6
    assert asset.total_invested == pytest.approx(60.0)
    assert asset.average_price == pytest.approx(52 / 6)


def test_sell_fees_reduce_proceeds_in_average():
    result = calculate_asset_summary(_ops(
        ("VALE3", "compra", "2024-01-10", 10, 10.0, 0.0),
        ("VALE3", "venda", "2024-02-10", 5, 10.0, 2.0),
    ))

    # ledger: 100 - (50 - 2) = 52
    assert result[0].average_price == pytest.approx(52 / 5)
    assert result[0].total_invested == pytest.approx(50.0)


def test_income_only_asset_is_excluded():
    result = calculate_asset_summary(_ops(("MXRF11", "rendimento", "2024-01-15", 1, 50.0, 0.0)))

    assert result == []


def test_income_reduces_cost_basis_but_not_shares():
    result = calculate_asset_summary(_ops(
        ("HGLG11", "compra", "2024-01-10", 10, 10.0, 0.0),
        ("HGLG11", "rendimento", "2024-02-15", 1, 20.0, 0.0),
    ))

    asset = result[0]
    assert asset.total_shares == 10
    assert asset.total_invested == pytest.approx(80.0)
    # the value ledger ignores income
    assert asset.average_price == pytest.approx(10.0)


def test_cost_basis_is_floored_at_zero():
    result = calculate_asset_summary(_ops(
        ("HGLG11", "compra", "2024-01-10", 1, 10.0, 0.0),
        ("HGLG11", "rendimento", "2024-02-15", 1, 50.0, 0.0),
    ))

    assert result[0].total_invested == 0.0
    assert result[0].total_shares == 1


def test_fully_sold_asset_is_excluded():
    result = calculate_asset_summary(_ops(
        ("ITSA4", "compra", "2024-01-10", 10, 10.0, 0.0),
        ("ITSA4", "venda", "2024-02-10", 10, 11.0, 0.0),
        ("BBAS3", "compra", "2024-01-11", 3, 30.0, 0.0),
    ))

    assert [a.asset_name for a in result] == ["BBAS3"]


def test_fractional_position_sold_in_full_is_excluded():
    """
    0.1 + 0.2 != 0.3 in floats: the leftover must not count as a holding
    """
    result = calculate_asset_summary(_ops(
        ("BTC", "compra", "2024-01-10", 0.1, 300000.0, 0.0),
        ("BTC", "compra", "2024-01-11", 0.2, 300000.0, 0.0),
        ("BTC", "venda", "2024-01-12", 0.3, 300000.0, 0.0),
    ))

    assert result == []


def test_rebuy_after_fractional_close_starts_from_zero():
    result = calculate_asset_summary(_ops(
        ("BTC", "compra", "2024-01-10", 0.1, 300000.0, 0.0),
        ("BTC", "compra", "2024-01-11", 0.2, 300000.0, 0.0),
        ("BTC", "venda", "2024-01-12", 0.3, 300000.0, 0.0),
        ("BTC", "compra", "2024-02-01", 0.5, 100.0, 0.0),
    ))

    asset = result[0]
    assert asset.total_shares == 0.5
    assert asset.total_invested == pytest.approx(50.0)
    assert asset.oversold is False


def test_asset_names_grouped_case_insensitively():
    result = calculate_asset_summary(_ops(
        ("petr4", "compra", "2024-01-10", 10, 10.0, 0.0),
        ("PETR4", "compra", "2024-02-10", 5, 12.0, 0.0),
        ("Petr4", "rendimento", "2024-03-10", 1, 5.0, 0.0),
    ))

    assert len(result) == 1
    asset = result[0]
    assert asset.asset_name == "PETR4"
    assert asset.total_shares == 15
    assert len(asset.operations) == 3
    assert [op.operation_type for op in asset.operations] == ["compra", "compra", "rendimento"]


def test_input_order_is_folded_as_given_by_default():
    """
    Sell recorded before the buy (creation order), even though its date is later.
    - default: the sell hits an empty position -> flagged, no proportional reduction
    - order_by_date: the buy comes first -> regular partial sell
    """
    ops = _ops(
        ("WEGE3", "venda", "2024-02-10", 5, 10.0, 0.0),
        ("WEGE3", "compra", "2024-01-10", 10, 10.0, 0.0),
    )

    as_given = calculate_asset_summary(ops)[0]
    assert as_given.total_shares == 5
    assert as_given.total_invested == pytest.approx(100.0)
    assert as_given.average_price == pytest.approx(10.0)
    assert as_given.oversold is True

    by_date = calculate_asset_summary(ops, order_by_date=True)[0]
    assert by_date.total_shares == 5
    assert by_date.total_invested == pytest.approx(50.0)
    assert by_date.average_price == pytest.approx(10.0)
    assert by_date.oversold is False


def test_oversell_never_produces_non_finite_numbers():
    ops = _ops(
        ("BTC", "compra", "2024-01-10", 1, 100.0, 0.0),
        ("BTC", "venda", "2024-01-11", 1, 100.0, 0.0),
        ("BTC", "venda", "2024-01-12", 1, 100.0, 0.0),
        ("BTC", "compra", "2024-01-13", 3, 100.0, 0.0),
    )

    asset = calculate_asset_summary(ops)[0]
    assert asset.oversold is True
    assert asset.total_shares == 2
    assert asset.total_invested == pytest.approx(300.0)
    assert asset.average_price == pytest.approx(100.0)


def test_last_operation_uses_latest_created_record():
    ops = _ops(
        ("KNRI11", "compra", "2024-03-10", 1, 100.0, 0.0),
        ("KNRI11", "compra", "2024-01-05", 1, 100.0, 0.0),
    )

    assert calculate_asset_summary(ops)[0].last_operation == date(2024, 1, 5)


def test_asset_type_comes_from_first_operation():
    first = Operation("ABC", "fii", "compra", date(2024, 1, 1), 1, 10.0)
    second = Operation("abc", "acao", "compra", date(2024, 1, 2), 1, 10.0)

    assert calculate_asset_summary([first, second])[0].asset_type == "fii"


def test_input_is_not_mutated_and_result_is_idempotent():
    ops = _ops(
        ("PETR4", "compra", "2024-01-10", 10, 10.0, 1.0),
        ("VALE3", "compra", "2024-01-11", 5, 60.0, 0.0),
        ("PETR4", "venda", "2024-02-10", 4, 12.0, 0.5),
    )
    snapshot = list(ops)

    first = calculate_asset_summary(ops)
    second = calculate_asset_summary(ops)

    assert ops == snapshot
    assert first == second


def test_empty_input():
    assert calculate_asset_summary([]) == []


def test_group_operations_keeps_first_appearance_order():
    groups = group_operations_by_asset(_ops(
        ("b", "compra", "2024-01-01", 1, 1.0, 0.0),
        ("a", "compra", "2024-01-01", 1, 1.0, 0.0),
        ("B", "compra", "2024-01-01", 1, 1.0, 0.0),
    ))

    assert list(groups.keys()) == ["B", "A"]
    assert [op.id for op in groups["B"]] == ["op-0", "op-2"]


def test_find_oversell_walks_by_date():
    ops = _ops(
        ("PETR4", "compra", "2024-02-01", 10, 10.0, 0.0),
        ("PETR4", "venda", "2024-01-15", 5, 10.0, 0.0),
    )

    offending = find_oversell(ops, "petr4")
    assert offending is not None
    assert offending.operation_date == date(2024, 1, 15)


def test_find_oversell_accepts_selling_whole_position():
    ops = _ops(
        ("PETR4", "compra", "2024-01-01", 10, 10.0, 0.0),
        ("PETR4", "venda", "2024-01-02", 4, 10.0, 0.0),
        ("PETR4", "venda", "2024-01-03", 6, 10.0, 0.0),
    )

    assert find_oversell(ops, "PETR4") is None
