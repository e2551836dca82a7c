from typing import Optional, List, Any, Dict
from investment_tracker.backend.infra.supabase_client import get_supabase_client, OPERATIONS_TABLE


def fetch_all_pagination(query_builder: Any, batch_size: int = 1000) -> List[dict]:
    """
    Pagination helper working around Supabase's 1000-row response limit.
    query_builder must already have its .select() applied.
    """
    all_rows = []
    start = 0
    while True:
        # .range(start, end) is inclusive
        end = start + batch_size - 1
        response = query_builder.range(start, end).execute()
        rows = response.data or []

        all_rows.extend(rows)

        if len(rows) < batch_size:
            break

        start += batch_size

    return all_rows


def fetch_operations(user_id: str) -> List[dict]:
    """All operations of a user, oldest record first (created_at)."""
    supabase = get_supabase_client()
    q = (
        supabase.table(OPERATIONS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at")
    )
    return fetch_all_pagination(q)


def fetch_operation(operation_id: str, user_id: str) -> Optional[dict]:
    supabase = get_supabase_client()
    response = (
        supabase.table(OPERATIONS_TABLE)
        .select("*")
        .eq("id", operation_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    if response.data:
        return response.data[0]
    return None


def insert_operation(payload: Dict[str, Any]) -> dict:
    supabase = get_supabase_client()
    resp = supabase.table(OPERATIONS_TABLE).insert(payload).execute()
    rows = resp.data or []
    if not rows:
        raise RuntimeError("Insert failed: no rows returned")
    return rows[0]


def update_operation(operation_id: str, user_id: str, changes: Dict[str, Any]) -> Optional[dict]:
    """
    Update only when the row belongs to user_id.
    Returns the updated row, or None when nothing matched.
    """
    supabase = get_supabase_client()
    resp = (
        supabase.table(OPERATIONS_TABLE)
        .update(changes)
        .eq("id", operation_id)
        .eq("user_id", user_id)
        .execute()
    )
    rows = resp.data or []
    return rows[0] if rows else None


def delete_operation(operation_id: str, user_id: str) -> bool:
    supabase = get_supabase_client()
    resp = (
        supabase.table(OPERATIONS_TABLE)
        .delete()
        .eq("id", operation_id)
        .eq("user_id", user_id)
        .execute()
    )
    return bool(resp.data)
