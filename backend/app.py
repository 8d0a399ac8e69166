from fastapi import FastAPI

from anigame.catalog import Catalog
from anigame.config import Settings
from anigame.storage import Storage
from backend import sessions
from backend.routes import router


def create_app(settings: Settings | None = None, catalog: Catalog | None = None) -> FastAPI:
    resolved = settings or Settings.from_env()
    sessions.init_sessions(
        catalog or sessions.build_catalog(resolved),
        Storage(resolved.data_dir),
    )

    app = FastAPI(title="AniGame")
    app.state.settings = resolved
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (configured from the environment)
app = create_app()
