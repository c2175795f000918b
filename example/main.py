# =============================================================================
# example/main.py - Example Application Entrypoint
# =============================================================================
# Boots a small application following the folder layout:
#
#   example/application/public        static files (style.css)
#   example/application/views         Jinja2 templates
#   example/application/controllers   route registration
#
# Usage:
#   PORT=8000 python example/main.py
#   PORT=8000 SESSION_REDIS_URL=redis://localhost:6379/0 SESSION_SECRET=... \
#       ENVIRONMENT=production python example/main.py
# =============================================================================

import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from lungo import Lungo, get_settings

from application.controllers import counter, home

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def main() -> None:
    lungo = Lungo(settings, title="Lungo Example")

    await lungo.configure({
        "listen_port": settings.PORT if settings.PORT is not None else 8000,
        "application_root": Path(__file__).parent,
        "view_engine": "jinja2",
        "session_redis_url": settings.SESSION_REDIS_URL,
        "session_secret": settings.SESSION_SECRET,
        "redirect_secure": True,
    })

    lungo.add_route("/", home.register)
    lungo.add_route("/counter", counter.register)
    lungo.add_default_handlers()

    await lungo.start()


if __name__ == "__main__":
    asyncio.run(main())
