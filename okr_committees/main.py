# okr_committees/main.py
from fastapi import FastAPI

from okr_committees.api.routes import health, meetings
from okr_committees.core.config import get_settings
from okr_committees.core.logging_config import setup_logging
from okr_committees.db.session import init_db_for_startup


def create_app() -> FastAPI:
    """
    Application factory for the OKR Committees service.
    """
    setup_logging()
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Backend service for committee meeting scheduling: creates one-off and\n"
            "recurring (weekly, biweekly, monthly) meeting series and deletes single\n"
            "occurrences or whole series."
        ),
        version="0.1.0",
    )

    # Routers
    app.include_router(health.router)
    app.include_router(meetings.router)

    @app.on_event("startup")
    async def on_startup() -> None:  # pragma: no cover
        await init_db_for_startup()

    return app


app = create_app()
