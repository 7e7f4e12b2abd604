from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.core.config import settings
from backend.api.routers import bulk_router, listas_router, search_router
from backend.api.routers.listas import _init_listas

from pupitre.material_lists import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    # Startup
    try:
        _init_listas()
    except Exception as e:
        print(f"Warning: Failed to initialize material lists: {e}")

    yield  # Application runs here


app = FastAPI(title="Pupitre Material Lists", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Search and bulk routes share the /api/listas prefix and must win over /api/listas/{curso_id}
app.include_router(search_router)
app.include_router(bulk_router)
app.include_router(listas_router)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "version": __version__}
