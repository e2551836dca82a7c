from typing import List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from investment_tracker.backend.infra.supabase_client import get_default_user_id
from investment_tracker.backend.services.data_contracts import (
    asset_summaries_to_df,
    filter_operations_df,
    monthly_evolution_to_df,
    operations_to_df,
)
from investment_tracker.backend.services.models import ASSET_TYPES, AssetSummary, Operation, PortfolioSummary
from investment_tracker.backend.services.portfolio_aggregator import find_latest_operation
from investment_tracker.dashboard.formatting import (
    ASSET_TYPE_COLORS,
    asset_type_label,
    format_currency,
    format_date,
    format_quantity,
    operation_type_label,
)


def render_user_selector() -> Optional[str]:
    user_id = st.sidebar.text_input("Usuário (user_id)", value=get_default_user_id() or "")
    user_id = user_id.strip()
    if not user_id:
        st.info("Informe o usuário na barra lateral.")
        return None
    return user_id


def render_stats_cards(summary: PortfolioSummary, operations: List[Operation]) -> None:
    accumulated_income = (
        summary.monthly_evolution[-1].accumulated_income if summary.monthly_evolution else 0.0
    )
    latest = find_latest_operation(operations)

    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Total investido", format_currency(summary.total_invested))
    c2.metric("Ativos", f"{summary.total_assets}")
    c3.metric("Operações", f"{summary.total_operations}")
    if latest is None:
        c4.metric("Última operação", "-")
    else:
        c4.metric("Última operação", format_date(latest.created_at or latest.operation_date))
        c4.caption(f"{latest.asset_key} · {operation_type_label(latest.operation_type)}")
    c5.metric("Rendimentos acumulados", format_currency(accumulated_income))


def render_positions_section(summaries: List[AssetSummary]) -> None:
    st.subheader("📦 Posição atual")

    df = asset_summaries_to_df(summaries)
    if df.empty:
        st.info("Nenhum ativo em carteira.")
        return

    if df["oversold"].any():
        flagged = ", ".join(df.loc[df["oversold"], "asset_name"].tolist())
        st.warning(f"Vendas acima da posição detectadas em: {flagged}")

    view = pd.DataFrame({
        "Ativo": df["asset_name"],
        "Tipo": df["asset_type"].map(asset_type_label),
        "Quantidade": df["total_shares"].map(format_quantity),
        "Preço médio": df["average_price"].map(format_currency),
        "Total investido": df["total_invested"].map(format_currency),
        "Última operação": df["last_operation"].map(format_date),
        "Operações": df["operations_count"],
    })
    st.dataframe(view, hide_index=True, width="stretch")


def render_evolution_section(summary: PortfolioSummary) -> None:
    st.subheader("📈 Evolução mensal")

    df = monthly_evolution_to_df(summary.monthly_evolution)
    if df.empty:
        st.info("Sem operações registradas.")
        return

    # =========================
    # long format: one line per series
    # =========================
    df_plot = df.melt(
        id_vars=["month", "month_start"],
        value_vars=["total_patrimony", "accumulated_income"],
        var_name="series",
        value_name="amount",
    )
    df_plot["series"] = df_plot["series"].map({
        "total_patrimony": "Patrimônio (investido)",
        "accumulated_income": "Rendimentos acumulados",
    })

    chart = (
        alt.Chart(df_plot)
        .mark_line(point=True)
        .encode(
            x=alt.X("month_start:T", title="Mês", axis=alt.Axis(format="%m/%Y")),
            y=alt.Y("amount:Q", title="R$"),
            color=alt.Color("series:N", title=""),
            tooltip=[
                alt.Tooltip("month:N", title="Mês"),
                alt.Tooltip("series:N", title="Série"),
                alt.Tooltip("amount:Q", title="Valor", format=",.2f"),
            ],
        )
        .properties(height=350)
    )
    st.altair_chart(chart, width="stretch")

    st.caption("※ Patrimônio aproximado pelo capital investido (sem cotações de mercado)")

    with st.expander("📄 Dados mensais"):
        st.dataframe(df[["month", "total_invested", "accumulated_income", "operations_count"]], hide_index=True)


def render_assets_by_type_section(summary: PortfolioSummary) -> None:
    st.subheader("🧩 Compras por tipo de ativo")

    if not summary.assets_by_type:
        st.info("Nenhuma compra registrada.")
        return

    df = pd.DataFrame(
        [{"asset_type": k, "buys": v} for k, v in summary.assets_by_type.items()]
    )
    df["label"] = df["asset_type"].map(asset_type_label)

    domain = df["label"].tolist()
    colors = [ASSET_TYPE_COLORS.get(t, "#6b7280") for t in df["asset_type"]]

    chart = (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("buys:Q"),
            color=alt.Color("label:N", title="Tipo", scale=alt.Scale(domain=domain, range=colors)),
            tooltip=[alt.Tooltip("label:N", title="Tipo"), alt.Tooltip("buys:Q", title="Compras")],
        )
        .properties(height=300)
    )
    st.altair_chart(chart, width="stretch")


def render_operations_table(operations: List[Operation]) -> None:
    st.subheader("🧾 Operações")

    df = operations_to_df(operations)
    if df.empty:
        st.info("Nenhuma operação registrada.")
        return

    c1, c2 = st.columns([2, 1])
    search = c1.text_input("Buscar ativo", key="operations_search")
    asset_type = c2.selectbox(
        "Tipo de ativo",
        [None, *ASSET_TYPES],
        format_func=lambda t: "Todos" if t is None else asset_type_label(t),
        key="operations_asset_type",
    )

    df = filter_operations_df(df, search=search, asset_type=asset_type)
    if df.empty:
        st.info("Nenhuma operação encontrada com os filtros atuais.")
        return

    # most recent first for reading
    df = df.sort_values(["operation_date", "created_at"], ascending=False, kind="mergesort")

    view = pd.DataFrame({
        "Data": df["operation_date"].map(format_date),
        "Ativo": df["asset_name"],
        "Tipo": df["asset_type"].map(asset_type_label),
        "Operação": df["operation_type"].map(operation_type_label),
        "Quantidade": df["quantity"].map(format_quantity),
        "Preço unitário": df["unit_price"].map(format_currency),
        "Taxas": df["fees"].map(format_currency),
        "Total": df["total_value"].map(format_currency),
        "Corretora": df["brokerage"].fillna(""),
    })
    st.dataframe(view, hide_index=True, width="stretch")
