from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from dreamseeker.core.config import settings as app_settings
from dreamseeker.core.logging import setup_logging
from dreamseeker.db.base import Base
from dreamseeker.db.session import engine
from .api import router as reminders_router
from .config import settings


def create_app() -> FastAPI:
    setup_logging()
    if app_settings.uses_sqlite:
        # No migrations for the local SQLite database
        Base.metadata.create_all(bind=engine)

    app = FastAPI(title="DreamSeeker Reminder Service", version=app_settings.VERSION)
    app.include_router(reminders_router, prefix=f"{app_settings.API_V1_STR}/reminders", tags=["reminders"])

    @app.get("/health")
    def health():
        return {"status": "ok"}

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.SERVICE_HOST, port=settings.SERVICE_PORT)
