from datetime import date
from typing import List

import streamlit as st

from investment_tracker.backend.services.errors import InvalidOperationError, OperationNotFoundError
from investment_tracker.backend.services.models import ASSET_TYPES, OPERATION_TYPES, Operation
from investment_tracker.backend.services.operation_service import (
    CreateOperationRequest,
    OperationService,
)
from investment_tracker.dashboard.data import clear_operations_cache, load_operations
from investment_tracker.dashboard.formatting import (
    asset_type_label,
    format_currency,
    format_date,
    operation_type_label,
)


def _show_error(e: Exception) -> None:
    st.error(str(e))
    for field, message in getattr(e, "errors", {}).items():
        st.caption(f"• {field}: {message}")


def _operation_label(op: Operation) -> str:
    return (
        f"{format_date(op.operation_date)} | {operation_type_label(op.operation_type)} | "
        f"{op.asset_key} | {op.quantity:g} x {format_currency(op.unit_price)}"
    )


def render_create_form(user_id: str) -> None:
    st.subheader("➕ Nova operação")

    with st.form("create_operation", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        asset_name = c1.text_input("Ativo (ticker ou nome)")
        asset_type = c2.selectbox("Tipo de ativo", ASSET_TYPES, format_func=asset_type_label)
        operation_type = c3.selectbox("Operação", OPERATION_TYPES, format_func=operation_type_label)

        c4, c5, c6, c7 = st.columns(4)
        operation_date = c4.date_input("Data", value=date.today())
        quantity = c5.number_input("Quantidade", min_value=0.0, value=0.0, step=1.0, format="%.6f")
        unit_price = c6.number_input("Preço unitário", min_value=0.0, value=0.0, step=0.01, format="%.2f")
        fees = c7.number_input("Taxas", min_value=0.0, value=0.0, step=0.01, format="%.2f")

        brokerage = st.text_input("Corretora")
        notes = st.text_area("Observações")

        submitted = st.form_submit_button("Salvar")

    if not submitted:
        return

    req = CreateOperationRequest(
        asset_name=asset_name,
        asset_type=asset_type,
        operation_type=operation_type,
        operation_date=operation_date,
        quantity=quantity,
        unit_price=unit_price,
        fees=fees,
        brokerage=brokerage or None,
        notes=notes or None,
    )
    try:
        created = OperationService.create_operation(user_id, req)
    except InvalidOperationError as e:
        _show_error(e)
        return

    clear_operations_cache()
    st.success(f"Operação registrada: {_operation_label(created)}")


def render_edit_section(user_id: str, operations: List[Operation]) -> None:
    st.subheader("✏️ Editar / excluir")

    if not operations:
        st.info("Nenhuma operação registrada.")
        return

    # newest first
    selected = st.selectbox("Operação", list(reversed(operations)), format_func=_operation_label)

    with st.form(f"edit_operation_{selected.id}"):
        c1, c2, c3 = st.columns(3)
        asset_name = c1.text_input("Ativo", value=selected.asset_name)
        asset_type = c2.selectbox(
            "Tipo de ativo", ASSET_TYPES,
            index=ASSET_TYPES.index(selected.asset_type) if selected.asset_type in ASSET_TYPES else 0,
            format_func=asset_type_label,
        )
        operation_type = c3.selectbox(
            "Operação", OPERATION_TYPES,
            index=OPERATION_TYPES.index(selected.operation_type) if selected.operation_type in OPERATION_TYPES else 0,
            format_func=operation_type_label,
        )

        c4, c5, c6, c7 = st.columns(4)
        operation_date = c4.date_input("Data", value=selected.operation_date)
        quantity = c5.number_input("Quantidade", min_value=0.0, value=float(selected.quantity), format="%.6f")
        unit_price = c6.number_input("Preço unitário", min_value=0.0, value=float(selected.unit_price), format="%.2f")
        fees = c7.number_input("Taxas", min_value=0.0, value=float(selected.fees), format="%.2f")

        brokerage = st.text_input("Corretora", value=selected.brokerage or "")
        notes = st.text_area("Observações", value=selected.notes or "")

        save = st.form_submit_button("Salvar alterações")

    if save:
        changes = {
            "asset_name": asset_name,
            "asset_type": asset_type,
            "operation_type": operation_type,
            "operation_date": operation_date,
            "quantity": quantity,
            "unit_price": unit_price,
            "fees": fees,
            "brokerage": brokerage,
            "notes": notes,
        }
        try:
            OperationService.update_operation(selected.id, user_id, changes)
        except (InvalidOperationError, OperationNotFoundError) as e:
            _show_error(e)
        else:
            clear_operations_cache()
            st.success("Operação atualizada.")
            st.rerun()

    # deletion needs an explicit confirmation
    confirm = st.checkbox("Confirmo a exclusão desta operação", key=f"confirm_delete_{selected.id}")
    if st.button("Excluir", disabled=not confirm, type="primary"):
        try:
            OperationService.delete_operation(selected.id, user_id)
        except OperationNotFoundError as e:
            _show_error(e)
        else:
            clear_operations_cache()
            st.success("Operação excluída.")
            st.rerun()


def render_operation_editor(user_id: str) -> None:
    st.title("🧾 Operações")
    render_create_form(user_id)
    st.divider()
    render_edit_section(user_id, load_operations(user_id))
