"""
models.py

[Role]
- Records exchanged between storage, the aggregators and the dashboard
- Operation: one logged transaction (buy / sell / income), immutable
- AssetSummary / MonthlySnapshot / PortfolioSummary: derived, never persisted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional


ASSET_TYPES = ("acao", "fii", "fundo", "renda-fixa", "cripto")

BUY = "compra"
SELL = "venda"
INCOME = "rendimento"
OPERATION_TYPES = (BUY, SELL, INCOME)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def to_date(v) -> date:
    """
    Normalize a date / datetime / ISO string coming from storage into a date.
    - Comparing dates as strings is unreliable, so always convert.
    """
    if isinstance(v, date) and not isinstance(v, datetime):
        return v
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str):
        s = v.strip().replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(s).date()
        except ValueError:
            # 'YYYY-MM-DD ...' : parse the first 10 chars only
            return datetime.fromisoformat(s[:10]).date()
    raise TypeError(f"Unsupported date type: {type(v)}")


def _to_datetime(v) -> Optional[datetime]:
    """Timestamps are kept timezone-aware (UTC when storage sends naive values)."""
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        dt = v
    elif isinstance(v, date):
        dt = datetime(v.year, v.month, v.day)
    elif isinstance(v, str):
        dt = datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(v)}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _to_float(v, default: float = 0.0) -> float:
    # decimal columns arrive as strings from PostgREST
    if v is None or v == "":
        return default
    return float(v)


@dataclass(frozen=True)
class Operation:
    asset_name: str
    asset_type: str
    operation_type: str
    operation_date: date
    quantity: float
    unit_price: float
    fees: float = 0.0
    created_at: Optional[datetime] = None
    id: Optional[str] = None
    user_id: Optional[str] = None
    brokerage: Optional[str] = None
    notes: Optional[str] = None

    @property
    def asset_key(self) -> str:
        """Grouping key: asset names are case-insensitive."""
        return self.asset_name.upper()

    @property
    def operation_value(self) -> float:
        """quantity * unit_price + fees"""
        return self.quantity * self.unit_price + self.fees

    @property
    def sale_proceeds(self) -> float:
        """quantity * unit_price - fees (fees reduce what a sale returns)"""
        return self.quantity * self.unit_price - self.fees

    @property
    def created_sort_key(self) -> datetime:
        return self.created_at or _EPOCH

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Operation":
        """Build an Operation from an `operations` table row."""
        return cls(
            asset_name=str(row["asset_name"]),
            asset_type=str(row["asset_type"]),
            operation_type=str(row["operation_type"]),
            operation_date=to_date(row["operation_date"]),
            quantity=_to_float(row.get("quantity")),
            unit_price=_to_float(row.get("unit_price")),
            fees=_to_float(row.get("fees")),
            created_at=_to_datetime(row.get("created_at")),
            id=row.get("id"),
            user_id=row.get("user_id"),
            brokerage=row.get("brokerage"),
            notes=row.get("notes"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "asset_name": self.asset_name,
            "asset_type": self.asset_type,
            "operation_type": self.operation_type,
            "operation_date": self.operation_date.isoformat(),
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "fees": self.fees,
            "brokerage": self.brokerage,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class AssetSummary:
    asset_name: str
    asset_type: str
    total_shares: float
    total_invested: float
    average_price: float
    last_operation: date
    operations: List[Operation] = field(default_factory=list)
    # a sell exceeded the shares held at that point of the fold
    oversold: bool = False


@dataclass(frozen=True)
class MonthlySnapshot:
    month: str
    total_invested: float
    total_patrimony: float
    accumulated_income: float
    operations_count: int


@dataclass(frozen=True)
class PortfolioSummary:
    total_invested: float
    total_assets: int
    total_operations: int
    assets_by_type: Dict[str, int] = field(default_factory=dict)
    monthly_evolution: List[MonthlySnapshot] = field(default_factory=list)
