"""
Database access layer for the Smart Advisor backend.

All database operations MUST:
- Respect Row Level Security (RLS): user_id = auth.uid()
- Never bypass RLS

DO NOT define table schemas, migrations, or RLS policies here.
"""

from .client import get_supabase_client

__all__ = ["get_supabase_client"]
