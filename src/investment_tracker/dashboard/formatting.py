"""
Display helpers: labels, colors and pt-BR number formatting.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

ASSET_TYPE_LABELS = {
    "acao": "Ação",
    "fii": "FII",
    "fundo": "Fundo",
    "renda-fixa": "Renda Fixa",
    "cripto": "Cripto",
}

OPERATION_TYPE_LABELS = {
    "compra": "Compra",
    "venda": "Venda",
    "rendimento": "Rendimento",
}

ASSET_TYPE_COLORS = {
    "acao": "#3b82f6",
    "fii": "#22c55e",
    "fundo": "#a855f7",
    "renda-fixa": "#eab308",
    "cripto": "#f97316",
}

OPERATION_TYPE_COLORS = {
    "compra": "#16a34a",
    "venda": "#dc2626",
    "rendimento": "#2563eb",
}

NEUTRAL_COLOR = "#6b7280"


def asset_type_label(asset_type: Optional[str]) -> str:
    return ASSET_TYPE_LABELS.get(asset_type or "", asset_type or "")


def operation_type_label(operation_type: Optional[str]) -> str:
    return OPERATION_TYPE_LABELS.get(operation_type or "", operation_type or "")


def _pt_br_number(value: float, decimals: int = 2) -> str:
    # 1,234.56 -> 1.234,56
    s = f"{value:,.{decimals}f}"
    return s.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value: Optional[float]) -> str:
    """R$ 1.234,56 / -R$ 1.234,56"""
    if value is None:
        value = 0.0
    value = float(value)
    sign = "-" if value < 0 else ""
    return f"{sign}R$ {_pt_br_number(abs(value))}"


def format_percentage(value: Optional[float]) -> str:
    """Input is already in percent units: 12.345 -> '12,35%'."""
    if value is None:
        value = 0.0
    return f"{_pt_br_number(float(value))}%"


def format_quantity(value: Optional[float]) -> str:
    """Up to 6 decimals (fractional crypto units), trailing zeros dropped."""
    if value is None:
        return "0"
    s = _pt_br_number(float(value), decimals=6)
    return s.rstrip("0").rstrip(",")


def format_date(value: Union[date, datetime, str, None]) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value[:10]).date()
    return value.strftime("%d/%m/%Y")
