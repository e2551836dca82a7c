# src/investment_tracker/dashboard/app.py
import streamlit as st

from investment_tracker.backend.infra.logging_config import configure_logging
from investment_tracker.backend.services.asset_aggregator import calculate_asset_summary
from investment_tracker.backend.services.portfolio_aggregator import calculate_portfolio_summary
from investment_tracker.dashboard.data import load_operations
from investment_tracker.dashboard.operation_editor import render_operation_editor
from investment_tracker.dashboard.render import (
    render_assets_by_type_section,
    render_evolution_section,
    render_operations_table,
    render_positions_section,
    render_stats_cards,
    render_user_selector,
)

configure_logging()

st.set_page_config(
    page_title="Carteira de Investimentos",
    layout="wide"
)

page = st.sidebar.radio(
    "Tela",
    ["Dashboard", "Operações"],
    index=0,
)

user_id = render_user_selector()
if not user_id:
    st.stop()

if page == "Operações":
    render_operation_editor(user_id)
    st.stop()

# =========================
# Dashboard
# =========================
st.title("📊 Carteira de Investimentos")

# fetched once, handed unchanged to both aggregators
operations = load_operations(user_id)
portfolio_summary = calculate_portfolio_summary(operations)
asset_summaries = calculate_asset_summary(operations)

render_stats_cards(portfolio_summary, operations)
st.divider()

tab1, tab2 = st.tabs(["Carteira", "Operações"])

with tab1:
    render_evolution_section(portfolio_summary)
    st.divider()
    render_positions_section(asset_summaries)
    st.divider()
    render_assets_by_type_section(portfolio_summary)

with tab2:
    render_operations_table(operations)
