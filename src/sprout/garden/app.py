"""Garden application factory.

Run:
    SPROUT_SECRET_KEY=... sprout run sprout.garden.app:app
"""

import logging
import secrets

from sprout.app import App
from sprout.config import AppConfig
from sprout.garden.concepts import Concepts
from sprout.garden.routes import register_routes
from sprout.middleware.sessions import SessionConfig, SessionMiddleware

logger = logging.getLogger("sprout.garden")


def create_app(concepts: Concepts | None = None, config: AppConfig | None = None) -> App:
    """Build the garden app over *concepts* (fresh in-memory ones by default)."""
    config = config or AppConfig.from_env()
    if not config.secret_key:
        # Sessions will not survive a restart
        logger.warning("SPROUT_SECRET_KEY is not set; using a random session key")
        secret_key = secrets.token_urlsafe(32)
    else:
        secret_key = config.secret_key

    if concepts is None:
        concepts = Concepts.in_memory()

    app = App(config=config)
    session_config = SessionConfig(secret_key=secret_key, secure=not config.debug)
    app.add_middleware(SessionMiddleware(session_config))
    app.provide(Concepts, lambda: concepts)
    register_routes(app)
    return app


app = create_app()
