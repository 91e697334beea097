import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .database import init_db
from .errors import FamilyGraphError
from .routers import family_trees, people, relationships
from .settings.config import settings

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Family Graph API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------
# Route Includes
# ----------------------
app.include_router(family_trees.router)
app.include_router(people.router)
app.include_router(relationships.router)


# -----------------------------------------------------
# Service errors -> HTTP
# NotFound 404, InvalidArgument 400, Conflict 409,
# PersistenceFailure 400
# -----------------------------------------------------
@app.exception_handler(FamilyGraphError)
async def _family_graph_error_handler(request: Request, exc: FamilyGraphError):
    logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
async def on_startup():
    await init_db()


@app.get("/healthz")
async def healthz():
    return {"ok": True}
