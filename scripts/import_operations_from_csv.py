from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from investment_tracker.backend.infra.logging_config import configure_logging
from investment_tracker.backend.infra.supabase_client import get_default_user_id
from investment_tracker.backend.services.errors import InvalidOperationError
from investment_tracker.backend.services.models import BUY
from investment_tracker.backend.services.operation_service import (
    CreateOperationRequest,
    OperationService,
)

logger = logging.getLogger("import_operations")

# spreadsheet headers (pt-BR) -> internal column names
COLUMN_MAP = {
    "ativo": "asset_name",
    "tipo_ativo": "asset_type",
    "operacao": "operation_type",
    "data": "operation_date",
    "quantidade": "quantity",
    "preco": "unit_price",
    "taxas": "fees",
    "corretora": "brokerage",
    "observacoes": "notes",
}


def load_requests(csv_path: str) -> list:
    df = pd.read_csv(csv_path)
    df = df.rename(columns={c: COLUMN_MAP.get(c.strip().lower(), c) for c in df.columns})

    for c in ["quantity", "unit_price", "fees"]:
        if c in df.columns:
            df[c] = pd.to_numeric(df[c], errors="coerce")
    if "fees" not in df.columns:
        df["fees"] = 0.0
    df["fees"] = df["fees"].fillna(0.0)
    df["operation_date"] = pd.to_datetime(df["operation_date"], errors="coerce")

    # buys before sells on the same day so sells find their position
    df["_not_buy"] = df["operation_type"].astype(str).str.strip().str.lower() != BUY
    df = df.sort_values(["operation_date", "_not_buy"], kind="mergesort")
    df["operation_date"] = df["operation_date"].dt.date

    requests = []
    for _, r in df.iterrows():
        requests.append(
            CreateOperationRequest(
                asset_name=str(r["asset_name"]).strip(),
                asset_type=str(r["asset_type"]).strip().lower(),
                operation_type=str(r["operation_type"]).strip().lower(),
                operation_date=r["operation_date"] if pd.notna(r["operation_date"]) else None,
                quantity=float(r["quantity"]) if pd.notna(r["quantity"]) else None,
                unit_price=float(r["unit_price"]) if pd.notna(r["unit_price"]) else None,
                fees=float(r["fees"]),
                brokerage=(r.get("brokerage") if pd.notna(r.get("brokerage")) else None),
                notes=(r.get("notes") if pd.notna(r.get("notes")) else None),
            )
        )
    return requests


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import operations from a CSV file")
    parser.add_argument("csv_path")
    parser.add_argument("--user-id", default=get_default_user_id())
    args = parser.parse_args(argv)

    if not args.user_id:
        parser.error("--user-id is required (or set PORTFOLIO_USER_ID)")

    requests = load_requests(args.csv_path)
    logger.info("[IMPORT] rows read: %d", len(requests))

    created = 0
    rejected = 0
    for i, req in enumerate(requests, start=1):
        try:
            OperationService.create_operation(args.user_id, req)
            created += 1
        except InvalidOperationError as e:
            rejected += 1
            logger.warning("[REJECTED] row=%d asset=%s reason=%s %s", i, req.asset_name, e, e.errors)

    logger.info("[IMPORT] done. created=%d, rejected=%d", created, rejected)


if __name__ == "__main__":
    configure_logging()
    main()
