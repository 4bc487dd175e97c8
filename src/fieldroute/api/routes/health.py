"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_directions_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.directions_client import check_health as directions_health_check
    return directions_health_check


@router.get("/health/directions", status_code=status.HTTP_200_OK)
async def health_directions() -> dict:
    """Check the directions provider with a single short request."""
    try:
        directions_health_check = _get_directions_health_check()
        status_flag = await directions_health_check()
        return {"service": "directions", "healthy": status_flag}
    except Exception as e:
        return {"service": "directions", "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and saved route storage."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Saved routes are stored as files. "
            "Set FIELDROUTE_SUPABASE_URL and FIELDROUTE_SUPABASE_KEY to use the database.",
        }

    try:
        response = supabase.table("saved_routes").select("route_date", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "saved_routes_count": response.count or 0,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
