from __future__ import annotations

from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI  # noqa: E402
from dapi_backend.api.deps import close_deployer  # noqa: E402
from dapi_backend.api.routes_chains import router as chains_router  # noqa: E402
from dapi_backend.api.routes_dapis import router as dapis_router  # noqa: E402
from dapi_backend.api.routes_events import router as events_router  # noqa: E402
from dapi_backend.api.routes_health import router as health_router  # noqa: E402
from dapi_backend.api.routes_users import router as users_router  # noqa: E402
from dapi_backend.core.config import settings  # noqa: E402
from dapi_backend.core.logging import configure_logging  # noqa: E402
from dapi_backend.db.session import init_models  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    yield
    await close_deployer()


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="dapi backend", version="0.1.0", lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(chains_router)
    app.include_router(dapis_router)
    app.include_router(users_router)
    app.include_router(events_router)
    return app


app = create_app()
