# =============================================================================
# application/controllers/counter.py - Session Counter
# =============================================================================
# Counts visits per browser. Needs SESSION_REDIS_URL and SESSION_SECRET;
# without them every visit is the first one.
# =============================================================================

from fastapi import Request

from lungo import Controller


def register(controller: Controller) -> None:

    @controller.get("/")
    async def visit(request: Request):
        session = request.scope.get("session")
        if session is None:
            return {"visits": 1, "sessions": False}

        session["visits"] = session.get("visits", 0) + 1
        return {"visits": session["visits"], "sessions": True}

    @controller.delete("/")
    async def reset(request: Request):
        """Forget the visit count (deletes the session)."""
        session = request.scope.get("session")
        if session is not None:
            session.clear()
        return {"visits": 0}
