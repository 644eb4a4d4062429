import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import Settings, load_settings
from core.db import Database
from core.errors import register_exception_handlers
from dishes import router as dishes_router
from ratings import router as ratings_router
from restaurants import router as restaurants_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Blocks until the database answers; no request is served before that.
    await app.state.db.connect()
    try:
        yield
    finally:
        await app.state.db.close()


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FastAPI(title="Restaurants API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database or Database(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(restaurants_router.router, tags=["restaurants"])
    app.include_router(dishes_router.router, tags=["dishes"])
    app.include_router(ratings_router.router, tags=["ratings"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    settings = app.state.settings
    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
