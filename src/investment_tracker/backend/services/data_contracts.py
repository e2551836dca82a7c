from __future__ import annotations

from dataclasses import asdict
from typing import Iterable, List, Optional

import pandas as pd

from investment_tracker.backend.services.models import (
    AssetSummary,
    MonthlySnapshot,
    Operation,
)


OPERATION_COLUMNS = [
    "id",
    "operation_date",
    "asset_name",
    "asset_type",
    "operation_type",
    "quantity",
    "unit_price",
    "fees",
    "total_value",
    "brokerage",
    "notes",
    "created_at",
]

ASSET_SUMMARY_COLUMNS = [
    "asset_name",
    "asset_type",
    "total_shares",
    "average_price",
    "total_invested",
    "last_operation",
    "operations_count",
    "oversold",
]

MONTHLY_EVOLUTION_COLUMNS = [
    "month",
    "total_invested",
    "total_patrimony",
    "accumulated_income",
    "operations_count",
]


def _ensure_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    for col in columns:
        if col not in df.columns:
            df[col] = pd.NA
    return df


def _ensure_unique_columns(df: pd.DataFrame) -> pd.DataFrame:
    if df.columns.duplicated().any():
        df = df.loc[:, ~df.columns.duplicated()].copy()
    return df


def _to_date_series(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series, errors="coerce").dt.date


def normalize_operations_df(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize a DataFrame of `operations` rows.
    - operation_date becomes a date
    - quantity/unit_price/fees become float (fees missing -> 0)
    - total_value = quantity * unit_price + fees
    - only the contract columns, in contract order
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=OPERATION_COLUMNS)

    out = _ensure_unique_columns(df.copy())
    out = _ensure_columns(out, OPERATION_COLUMNS)

    out["operation_date"] = _to_date_series(out["operation_date"])
    out["created_at"] = pd.to_datetime(out["created_at"], errors="coerce", utc=True)
    out["quantity"] = pd.to_numeric(out["quantity"], errors="coerce")
    out["unit_price"] = pd.to_numeric(out["unit_price"], errors="coerce")
    out["fees"] = pd.to_numeric(out["fees"], errors="coerce").fillna(0.0)
    out["total_value"] = out["quantity"] * out["unit_price"] + out["fees"]
    out["asset_type"] = out["asset_type"].astype("string").str.strip()
    out["operation_type"] = out["operation_type"].astype("string").str.strip()

    return out[OPERATION_COLUMNS]


def operations_to_df(operations: List[Operation]) -> pd.DataFrame:
    if not operations:
        return pd.DataFrame(columns=OPERATION_COLUMNS)
    return normalize_operations_df(pd.DataFrame([op.to_row() for op in operations]))


def asset_summaries_to_df(summaries: List[AssetSummary]) -> pd.DataFrame:
    """Positions table; one row per asset, operations collapsed to a count."""
    if not summaries:
        return pd.DataFrame(columns=ASSET_SUMMARY_COLUMNS)

    rows = [
        {
            "asset_name": s.asset_name,
            "asset_type": s.asset_type,
            "total_shares": s.total_shares,
            "average_price": s.average_price,
            "total_invested": s.total_invested,
            "last_operation": s.last_operation,
            "operations_count": len(s.operations),
            "oversold": s.oversold,
        }
        for s in summaries
    ]
    return pd.DataFrame(rows, columns=ASSET_SUMMARY_COLUMNS)


def monthly_evolution_to_df(evolution: List[MonthlySnapshot]) -> pd.DataFrame:
    """
    Monthly series for charts.
    - month stays the "YYYY-MM" key, month_start is added as a Timestamp for time axes
    """
    if not evolution:
        return pd.DataFrame(columns=MONTHLY_EVOLUTION_COLUMNS + ["month_start"])

    out = pd.DataFrame([asdict(m) for m in evolution], columns=MONTHLY_EVOLUTION_COLUMNS)
    out["month_start"] = pd.to_datetime(out["month"], format="%Y-%m")
    return out


def filter_operations_df(
    df: pd.DataFrame,
    search: str = "",
    asset_type: Optional[str] = None,
) -> pd.DataFrame:
    """
    Operations table filters.
    - search: case-insensitive substring of asset_name (blank -> no filter)
    - asset_type: exact type code (None -> all types)
    """
    out = df
    term = (search or "").strip()
    if term:
        out = out[out["asset_name"].astype("string").str.contains(term, case=False, regex=False, na=False)]
    if asset_type:
        out = out[out["asset_type"] == asset_type]
    return out
