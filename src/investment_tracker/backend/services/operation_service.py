from __future__ import annotations

import logging
import math
from dataclasses import dataclass, asdict
from datetime import date, datetime, timezone
from typing import Optional, Dict, Any, List

from investment_tracker.backend.infra import query
from investment_tracker.backend.services.asset_aggregator import find_oversell
from investment_tracker.backend.services.errors import (
    InvalidOperationError,
    OperationNotFoundError,
    OversellError,
)
from investment_tracker.backend.services.models import (
    ASSET_TYPES,
    OPERATION_TYPES,
    SELL,
    Operation,
    to_date,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "asset_name",
    "asset_type",
    "operation_type",
    "operation_date",
    "quantity",
    "unit_price",
    "fees",
    "brokerage",
    "notes",
}

REQUIRED_FIELDS = ("asset_name", "asset_type", "operation_type", "operation_date", "quantity", "unit_price")


@dataclass(frozen=True)
class CreateOperationRequest:
    asset_name: str
    asset_type: str
    operation_type: str
    operation_date: date
    quantity: float
    unit_price: float
    fees: float = 0.0
    brokerage: Optional[str] = None
    notes: Optional[str] = None


def _as_number(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _field_errors(data: Dict[str, Any]) -> Dict[str, str]:
    """
    Checks only the fields present in `data`.
    Messages are shown as-is in the dashboard (pt-BR).
    """
    errors: Dict[str, str] = {}

    if "asset_name" in data and not str(data["asset_name"] or "").strip():
        errors["asset_name"] = "Nome do ativo é obrigatório"

    if "asset_type" in data and data["asset_type"] not in ASSET_TYPES:
        errors["asset_type"] = "Tipo de ativo inválido"

    if "operation_type" in data and data["operation_type"] not in OPERATION_TYPES:
        errors["operation_type"] = "Tipo de operação inválido"

    if "operation_date" in data:
        try:
            if not data["operation_date"]:
                raise ValueError
            to_date(data["operation_date"])
        except (TypeError, ValueError):
            errors["operation_date"] = "Data da operação é obrigatória"

    if "quantity" in data:
        qty = _as_number(data["quantity"])
        if qty is None or qty <= 0:
            errors["quantity"] = "Quantidade deve ser maior que zero"

    if "unit_price" in data:
        price = _as_number(data["unit_price"])
        if price is None or price <= 0:
            errors["unit_price"] = "Preço unitário deve ser maior que zero"

    if "fees" in data and data["fees"] is not None:
        fees = _as_number(data["fees"])
        if fees is None or fees < 0:
            errors["fees"] = "Taxas não podem ser negativas"

    return errors


def _normalize_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validated values -> storage representation."""
    payload = dict(data)
    if "asset_name" in payload:
        payload["asset_name"] = str(payload["asset_name"]).strip()
    if "operation_date" in payload:
        payload["operation_date"] = to_date(payload["operation_date"]).isoformat()
    for col in ("quantity", "unit_price"):
        if col in payload:
            payload[col] = float(payload[col])
    if "fees" in payload:
        payload["fees"] = float(payload["fees"] or 0)
    for col in ("brokerage", "notes"):
        if col in payload and not payload[col]:
            payload[col] = None
    return payload


class OperationService:
    """
    Storage collaborator for operations.
    Every call is scoped by the owning user_id.
    """

    @staticmethod
    def validate_request(req: CreateOperationRequest) -> None:
        data = asdict(req)
        errors = {
            col: "Campo obrigatório" for col in REQUIRED_FIELDS if data.get(col) is None
        }
        errors.update(_field_errors({k: v for k, v in data.items() if v is not None}))
        if errors:
            raise InvalidOperationError("Validation error", errors)

    @staticmethod
    def validate_changes(changes: Dict[str, Any]) -> None:
        unknown = set(changes) - EDITABLE_FIELDS
        errors = {col: "Campo não editável" for col in sorted(unknown)}
        errors.update(_field_errors(changes))
        if errors:
            raise InvalidOperationError("Validation error", errors)

    @staticmethod
    def _ensure_no_oversell(operations: List[Operation], asset_names: List[str]) -> None:
        for asset_name in asset_names:
            offending = find_oversell(operations, asset_name)
            if offending is not None:
                logger.warning(
                    "Rejected oversell: asset=%s, date=%s, quantity=%s",
                    offending.asset_key, offending.operation_date, offending.quantity,
                )
                raise OversellError(
                    "oversell",
                    {"quantity": f"Quantidade vendida maior que a posição em {offending.asset_key}"},
                )

    @staticmethod
    def list_operations(user_id: str) -> List[Operation]:
        """All operations of the user in creation order."""
        rows = query.fetch_operations(user_id)
        return [Operation.from_row(r) for r in rows]

    @staticmethod
    def get_operation(operation_id: str, user_id: str) -> Operation:
        row = query.fetch_operation(operation_id, user_id)
        if row is None:
            raise OperationNotFoundError(operation_id)
        return Operation.from_row(row)

    @staticmethod
    def create_operation(user_id: str, req: CreateOperationRequest) -> Operation:
        """
        1) validate fields
        2) sells may not exceed the position held at their date
        3) insert
        """
        OperationService.validate_request(req)
        payload = _normalize_payload(asdict(req))

        if req.operation_type == SELL:
            existing = OperationService.list_operations(user_id)
            candidate = Operation.from_row({
                **payload,
                "user_id": user_id,
                "created_at": datetime.now(timezone.utc),
            })
            OperationService._ensure_no_oversell(existing + [candidate], [candidate.asset_name])

        row = query.insert_operation({**payload, "user_id": user_id})
        created = Operation.from_row(row)
        logger.info("Created operation %s (%s %s)", created.id, created.operation_type, created.asset_key)
        return created

    @staticmethod
    def update_operation(operation_id: str, user_id: str, changes: Dict[str, Any]) -> Operation:
        """Partial update; unknown or foreign ids raise OperationNotFoundError."""
        OperationService.validate_changes(changes)
        payload = _normalize_payload(changes)

        existing = OperationService.list_operations(user_id)
        current = next((op for op in existing if op.id == operation_id), None)
        if current is None:
            raise OperationNotFoundError(operation_id)

        updated = Operation.from_row({**current.to_row(), **payload})
        others = [op for op in existing if op.id != operation_id]
        OperationService._ensure_no_oversell(
            others + [updated],
            sorted({current.asset_name.upper(), updated.asset_name.upper()}),
        )

        row = query.update_operation(operation_id, user_id, payload)
        if row is None:
            raise OperationNotFoundError(operation_id)
        logger.info("Updated operation %s (%s)", operation_id, ", ".join(sorted(payload)))
        return Operation.from_row(row)

    @staticmethod
    def delete_operation(operation_id: str, user_id: str) -> None:
        if not query.delete_operation(operation_id, user_id):
            raise OperationNotFoundError(operation_id)
        logger.info("Deleted operation %s", operation_id)
