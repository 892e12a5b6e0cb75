"""Health and readiness endpoints for container orchestration.

Provides two top-level routes:

- ``GET /health`` -- Liveness check.  Returns 200 if the process is alive.
- ``GET /ready``  -- Readiness check.  Returns 200 only when the service
  database answers **and** the lead service is wired.  Returns 503 with
  per-check details otherwise.  A missing research provider is reported
  but does not fail readiness, since leads still resolve to default records.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


def _ping(conn: sqlite3.Connection, lock: threading.Lock | None) -> None:
    if lock is None:
        conn.execute("SELECT 1")
        return
    with lock:
        conn.execute("SELECT 1")


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*."""

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness check -- always returns 200 if the process is running."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness check -- checks the database and the lead service."""
        services: dict[str, Any] = request.app.state.services
        checks: dict[str, str] = {}

        db_conn = services.get("db_conn")
        if db_conn is not None:
            try:
                await asyncio.to_thread(_ping, db_conn, services.get("db_lock"))
                checks["database"] = "ok"
            except Exception:
                checks["database"] = "fail"
        else:
            checks["database"] = "fail"

        checks["lead_service"] = "ok" if services.get("lead_service") is not None else "fail"

        all_ok = all(v == "ok" for v in checks.values())
        checks["research_provider"] = (
            "ok" if services.get("researcher") is not None else "disabled"
        )
        status = "ready" if all_ok else "not_ready"
        code = 200 if all_ok else 503

        return JSONResponse(content={"status": status, "checks": checks}, status_code=code)
