"""Adapters - I/O implementations of ports."""

from .supabase_client import StoreError, SupabaseClient
from .supabase_store import (
    SupabaseEventRepository,
    SupabaseHabitRepository,
    SupabasePlaceRepository,
    SupabaseReminderRepository,
    SupabaseSchemaRepository,
    SupabaseTaskRepository,
)

__all__ = [
    "StoreError",
    "SupabaseClient",
    "SupabaseEventRepository",
    "SupabaseTaskRepository",
    "SupabaseSchemaRepository",
    "SupabaseReminderRepository",
    "SupabaseHabitRepository",
    "SupabasePlaceRepository",
]
