"""
Health check endpoints for monitoring the store.
"""

from datetime import datetime
from typing import Dict, Any

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from forum.db import ForumStore

router = APIRouter(prefix="/health", tags=["health"])


def check_store_health(store: ForumStore) -> Dict[str, str]:
    """
    Check that the store answers queries.

    Returns:
        Dict with status and optional error details
    """
    try:
        with store.session() as db:
            result = db.execute(text("SELECT 1")).scalar()
            if result == 1:
                return {"status": "ok"}
            else:
                return {"status": "down", "error": "Unexpected query result"}
    except SQLAlchemyError as e:
        return {"status": "down", "error": f"Store error: {str(e)}"}


@router.get("/")
async def health_check(request: Request) -> Dict[str, Any]:
    """
    Store status, record counts and simulated latency.

    Returns:
        Dict containing:
        - status: "ok" | "down"
        - store: store health status
        - tables: row counts when the store is up
        - latency_ms: simulated latency applied to every call
        - timestamp: current UTC timestamp
    """
    service = request.app.state.service
    store_health = check_store_health(service.store)

    response: Dict[str, Any] = {
        "status": store_health["status"],
        "store": store_health,
        "latency_ms": int(service.latency * 1000),
        "version": "1.0.0",
        "timestamp": datetime.utcnow().isoformat(),
    }
    if store_health["status"] == "ok":
        response["tables"] = service.store.table_counts()
    return response
