# backend/infra/supabase_client.py
import os
from supabase import create_client
from dotenv import load_dotenv

# -------------------------------------------------------------------
# Supabase connection settings (.env or process environment)
# -------------------------------------------------------------------
load_dotenv()

OPERATIONS_TABLE = os.environ.get("OPERATIONS_TABLE", "operations")


def get_supabase_client():
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise RuntimeError("Supabase env not set")
    return create_client(url, key)


def get_default_user_id():
    """Owner used by the dashboard and scripts when none is given."""
    return os.environ.get("PORTFOLIO_USER_ID")
