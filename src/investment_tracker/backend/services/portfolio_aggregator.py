"""
portfolio_aggregator.py

[Role]
- Fold every operation into portfolio-wide totals
- Build the monthly evolution series (cumulative invested capital / income)
- Knows nothing about Supabase, Streamlit or HTTP (pure calculation layer)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from investment_tracker.backend.services.models import (
    BUY,
    INCOME,
    SELL,
    MonthlySnapshot,
    Operation,
    PortfolioSummary,
)

logger = logging.getLogger(__name__)


def calculate_total_invested(operations: Sequence[Operation]) -> float:
    """
    Net invested capital, folded in input order.
    - buy adds quantity*price + fees, sell subtracts the same amount
    - income does not count as invested capital
    """
    total = 0.0
    for op in operations:
        if op.operation_type == BUY:
            total += op.operation_value
        elif op.operation_type == SELL:
            total -= op.operation_value
    return max(0.0, total)


def count_buys_by_asset_type(operations: Sequence[Operation]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for op in operations:
        if op.operation_type == BUY:
            counts[op.asset_type] = counts.get(op.asset_type, 0) + 1
    return counts


def calculate_monthly_evolution(operations: Sequence[Operation]) -> List[MonthlySnapshot]:
    """
    Cumulative month-by-month series.

    Returns
    -------
    List[MonthlySnapshot]
        [
            {
                "month": "2025-01",
                "total_invested": 1000.0,      # cumulative, floored at 0
                "total_patrimony": 1000.0,     # = total_invested (no market prices)
                "accumulated_income": 50.0,    # cumulative, not floored
                "operations_count": 3,         # this month only
            },
            ...
        ]
    """
    if not operations:
        return []

    # =========================
    # DataFrame conversion
    # =========================
    df = pd.DataFrame(
        {
            "operation_date": [op.operation_date for op in operations],
            "operation_type": [op.operation_type for op in operations],
            "operation_value": [op.operation_value for op in operations],
        }
    )

    # chronological order (stable: same-day operations keep input order)
    df["operation_date"] = pd.to_datetime(df["operation_date"])
    df = df.sort_values("operation_date", kind="mergesort").reset_index(drop=True)
    df["month"] = df["operation_date"].dt.strftime("%Y-%m")

    # =========================
    # Per-operation contributions
    # =========================
    is_buy = df["operation_type"] == BUY
    is_sell = df["operation_type"] == SELL
    is_income = df["operation_type"] == INCOME

    df["invested_delta"] = np.where(
        is_buy,
        df["operation_value"],
        np.where(is_sell, -df["operation_value"], 0.0),
    )
    df["income"] = np.where(is_income, df["operation_value"], 0.0)

    # =========================
    # Month buckets (ascending keys, empty months never appear)
    # =========================
    monthly = (
        df.groupby("month", sort=True)
        .agg(
            invested_delta=("invested_delta", "sum"),
            income=("income", "sum"),
            operations_count=("operation_type", "size"),
        )
        .reset_index()
    )

    # =========================
    # Running totals carried across months
    # =========================
    monthly["cumulative_invested"] = monthly["invested_delta"].cumsum()
    monthly["cumulative_income"] = monthly["income"].cumsum()
    monthly["total_invested"] = monthly["cumulative_invested"].clip(lower=0.0)

    logger.debug("Monthly evolution: %d months from %d operations", len(monthly), len(df))

    return [
        MonthlySnapshot(
            month=str(row.month),
            total_invested=float(row.total_invested),
            # no live quotes: patrimony is approximated by invested capital
            total_patrimony=float(row.total_invested),
            accumulated_income=float(row.cumulative_income),
            operations_count=int(row.operations_count),
        )
        for row in monthly.itertuples(index=False)
    ]


def find_latest_operation(operations: Sequence[Operation]) -> Optional[Operation]:
    """Most recently recorded operation (by created_at); first one wins on ties."""
    if not operations:
        return None
    return max(operations, key=lambda op: op.created_sort_key)


def calculate_portfolio_summary(operations: Sequence[Operation]) -> PortfolioSummary:
    """
    Portfolio-wide totals and monthly evolution.
    Empty input gives a zeroed summary with no months.
    """
    operations = list(operations)

    return PortfolioSummary(
        total_invested=calculate_total_invested(operations),
        total_assets=len({op.asset_key for op in operations}),
        total_operations=len(operations),
        assets_by_type=count_buys_by_asset_type(operations),
        monthly_evolution=calculate_monthly_evolution(operations),
    )
