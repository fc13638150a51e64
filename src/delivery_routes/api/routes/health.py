"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Report which backends serve orders and active routes."""
    from ...db.supabase import get_supabase_client
    from ...services.routing.active_store import get_active_route_store

    supabase = get_supabase_client()
    store = get_active_route_store()
    if not supabase:
        return {
            "configured": False,
            "orders_source": str(settings.orders_file),
            "active_route_store": type(store).__name__,
            "message": "Supabase not configured. Set DRS_SUPABASE_URL and DRS_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table(settings.orders_table).select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "orders_source": settings.orders_table,
            "active_route_store": type(store).__name__,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
