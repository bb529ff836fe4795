import logging
import time

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from .config import DEFAULT_TOKEN_SECRET, Settings
from .deps import get_settings
from .responses import ApiError, envelope
from .routers import auth, challenges, plans, user_plans, users

logger = logging.getLogger("fittrack")


def configure_logging(cfg: Settings) -> None:
    level = logging.getLevelName(cfg.log_level.upper())
    known = isinstance(level, int)
    logging.basicConfig(
        level=level if known else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not known:
        logger.warning("Unknown LOG_LEVEL %r, using INFO", cfg.log_level)
    if cfg.token_secret == DEFAULT_TOKEN_SECRET:
        logger.warning("TOKEN_SECRET is not set, tokens are signed with the built-in default secret")


settings = get_settings()
configure_logging(settings)

app = FastAPI(title="Fitness Tracking API", version="0.1.0")

# CORS (any origin, as for the mobile and admin clients)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s %d %.1fms",
        request.method, request.url.path, response.status_code, (time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(ApiError)
def api_error(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status, content=envelope(exc.status, exc.message))


@app.exception_handler(RequestValidationError)
def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=envelope(400, "Validation failed", errors=exc.errors()))


@app.exception_handler(PyMongoError)
def database_error(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=envelope(500, "Database error"))


@app.exception_handler(Exception)
def server_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=envelope(500, "Internal server error"))


api = APIRouter(prefix="/api/v1")


@api.get("/health")
def health():
    return envelope(200, "Service is healthy")


for module in (auth, users, plans, user_plans, challenges):
    api.include_router(module.router)
app.include_router(api)

app.mount("/files", StaticFiles(directory=settings.upload_dir, check_dir=False), name="files")
