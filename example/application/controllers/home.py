# =============================================================================
# application/controllers/home.py - Landing Page
# =============================================================================

from fastapi import Request

from lungo import Controller

from application.models.greeting import greeting_for


def register(controller: Controller) -> None:

    @controller.get("/")
    async def index(request: Request):
        """Render the landing page."""
        return controller.render(request, "index", {"greeting": greeting_for(None)})

    @controller.get("/hello/{name}")
    async def hello(name: str):
        return {"message": greeting_for(name)}
