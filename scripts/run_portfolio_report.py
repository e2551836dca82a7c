from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# make src importable when launched directly (cron / Task Scheduler)
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from investment_tracker.backend.infra.logging_config import configure_logging
from investment_tracker.backend.infra.supabase_client import get_default_user_id
from investment_tracker.backend.services.asset_aggregator import calculate_asset_summary
from investment_tracker.backend.services.operation_service import OperationService
from investment_tracker.backend.services.portfolio_aggregator import calculate_portfolio_summary
from investment_tracker.dashboard.formatting import format_currency, format_quantity

logger = logging.getLogger("portfolio_report")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Log the portfolio summary of a user")
    parser.add_argument("--user-id", default=get_default_user_id())
    parser.add_argument(
        "--order-by-date",
        action="store_true",
        help="fold each asset by operation date instead of creation order",
    )
    args = parser.parse_args(argv)

    if not args.user_id:
        parser.error("--user-id is required (or set PORTFOLIO_USER_ID)")

    operations = OperationService.list_operations(args.user_id)
    logger.info("[REPORT] operations loaded: %d", len(operations))

    # =========================
    # 1) Portfolio totals
    # =========================
    summary = calculate_portfolio_summary(operations)
    logger.info(
        "[REPORT] invested=%s, assets=%d, operations=%d, buys by type=%s",
        format_currency(summary.total_invested),
        summary.total_assets,
        summary.total_operations,
        summary.assets_by_type,
    )
    for month in summary.monthly_evolution:
        logger.info(
            "[MONTH] %s invested=%s income=%s operations=%d",
            month.month,
            format_currency(month.total_invested),
            format_currency(month.accumulated_income),
            month.operations_count,
        )

    # =========================
    # 2) Positions
    # =========================
    for asset in calculate_asset_summary(operations, order_by_date=args.order_by_date):
        logger.info(
            "[ASSET] %s (%s) shares=%s avg=%s invested=%s%s",
            asset.asset_name,
            asset.asset_type,
            format_quantity(asset.total_shares),
            format_currency(asset.average_price),
            format_currency(asset.total_invested),
            " OVERSOLD" if asset.oversold else "",
        )


if __name__ == "__main__":
    configure_logging()
    try:
        main()
    except Exception:
        logger.exception("[FATAL] report failed")
        raise
