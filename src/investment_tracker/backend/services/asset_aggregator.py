"""
asset_aggregator.py

[Role]
- Fold the operations of each asset into its current position
  (shares held, cost basis, average price)
- Knows nothing about Supabase, Streamlit or HTTP (pure calculation layer)

[Policy]
- Same input -> same output, input list is never mutated
- Assets whose net share count is not strictly positive are left out
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from investment_tracker.backend.services.models import (
    BUY,
    INCOME,
    SELL,
    AssetSummary,
    Operation,
)

logger = logging.getLogger(__name__)

# float noise when quantities with many decimals are summed
_SHARE_TOLERANCE = 1e-9


def group_operations_by_asset(operations: Iterable[Operation]) -> Dict[str, List[Operation]]:
    """
    Group by uppercase asset name.
    Insertion order of the groups and of the members follows the input.
    """
    groups: Dict[str, List[Operation]] = {}
    for op in operations:
        groups.setdefault(op.asset_key, []).append(op)
    return groups


def _fold_asset(asset_name: str, asset_operations: List[Operation]) -> Dict:
    """
    Apply the operations of one asset in the given order.

    Three running values:
    - shares      : net units held
    - cost_basis  : invested capital attributed to the position
    - value_ledger: only used for the average price
    """
    shares = 0.0
    cost_basis = 0.0
    value_ledger = 0.0
    oversold = False

    for op in asset_operations:
        # -------------------------
        # Buy
        # -------------------------
        if op.operation_type == BUY:
            value = op.operation_value
            shares += op.quantity
            cost_basis += value
            value_ledger += value

        # -------------------------
        # Sell (partial sells included)
        # -------------------------
        elif op.operation_type == SELL:
            shares_before = shares

            if shares_before > _SHARE_TOLERANCE:
                # cost basis shrinks proportionally to the units sold
                cost_basis -= (cost_basis / shares_before) * op.quantity
                if op.quantity > shares_before + _SHARE_TOLERANCE:
                    oversold = True
            else:
                # nothing held: no proportional reduction possible
                oversold = True

            shares -= op.quantity
            value_ledger -= op.sale_proceeds

            # position closed: drop float residue
            if abs(shares) <= _SHARE_TOLERANCE:
                shares = 0.0
                cost_basis = 0.0

        # -------------------------
        # Income (dividends, yields)
        # -------------------------
        elif op.operation_type == INCOME:
            # return of capital: reduces cost basis, shares unchanged
            cost_basis -= op.operation_value

    if oversold:
        logger.warning(
            "Oversell while folding %s: sell quantity exceeded shares held", asset_name
        )

    return {
        "shares": shares,
        "cost_basis": cost_basis,
        "value_ledger": value_ledger,
        "oversold": oversold,
    }


def calculate_asset_summary(
    operations: Iterable[Operation],
    *,
    order_by_date: bool = False,
) -> List[AssetSummary]:
    """
    Current position of every asset with a positive net share count.

    Parameters
    ----------
    operations : Iterable[Operation]
        Operations in the order storage returned them (creation order).
    order_by_date : bool
        False (default): fold each asset in input order.
        True: fold each asset sorted by (operation_date, created_at).

    Returns
    -------
    List[AssetSummary]
        One entry per asset, in order of first appearance.
    """
    groups = group_operations_by_asset(operations)
    logger.debug("Aggregating %d asset groups", len(groups))

    result: List[AssetSummary] = []

    for asset_name, asset_operations in groups.items():
        fold_order = asset_operations
        if order_by_date:
            fold_order = sorted(
                asset_operations,
                key=lambda op: (op.operation_date, op.created_sort_key),
            )

        state = _fold_asset(asset_name, fold_order)
        shares = state["shares"]

        # only assets currently held are reported
        if shares <= _SHARE_TOLERANCE:
            continue

        average_price = state["value_ledger"] / shares

        # most recently created member; first one wins on ties
        latest = max(asset_operations, key=lambda op: op.created_sort_key)

        result.append(
            AssetSummary(
                asset_name=asset_name,
                asset_type=asset_operations[0].asset_type,
                total_shares=shares,
                total_invested=max(0.0, state["cost_basis"]),
                average_price=average_price,
                last_operation=latest.operation_date,
                operations=list(asset_operations),
                oversold=state["oversold"],
            )
        )

    return result


def find_oversell(operations: Iterable[Operation], asset_name: str) -> Optional[Operation]:
    """
    First sell of `asset_name` that exceeds the shares held right before it,
    walking the asset's operations by (operation_date, created_at).
    Returns None when the position never goes short.
    """
    key = asset_name.upper()
    asset_operations = sorted(
        (op for op in operations if op.asset_key == key),
        key=lambda op: (op.operation_date, op.created_sort_key),
    )

    shares = 0.0
    for op in asset_operations:
        if op.operation_type == BUY:
            shares += op.quantity
        elif op.operation_type == SELL:
            if op.quantity > shares + _SHARE_TOLERANCE:
                return op
            shares -= op.quantity
    return None
