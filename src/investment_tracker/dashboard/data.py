from typing import List

import streamlit as st

from investment_tracker.backend.services.models import Operation
from investment_tracker.backend.services.operation_service import OperationService


@st.cache_data(ttl=600)
def load_operations(user_id: str) -> List[Operation]:
    """
    Operations of the user in creation order.
    Cached per user; call clear_operations_cache() after any write.
    """
    return OperationService.list_operations(user_id)


def clear_operations_cache() -> None:
    load_operations.clear()
