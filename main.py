import argparse
import logging
import sqlite3
import time
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db
from config import load_config, CONFIG_DIR
from routes import (
    auth_router,
    calendar_router,
    conversations_router,
    courses_router,
    dashboard_router,
    forum_router,
    messages_router,
    resources_router,
    study_groups_router,
    uploads_router,
    users_router,
)

logger = logging.getLogger("campuscove")


def configure_logging(config: dict) -> None:
    logging.basicConfig(
        level=getattr(logging, config["logging"]["level"], logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()  # Ensures config exists
    configure_logging(config)
    init_db()
    yield


app = FastAPI(title="Campus Cove", description="Campus collaboration API", lifespan=lifespan)

app.mount("/static", StaticFiles(directory=str(base_dir / "static")), name="static")

# Include routers
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(users_router, prefix="/api/users", tags=["users"])
app.include_router(courses_router, prefix="/api/courses", tags=["courses"])
app.include_router(resources_router, prefix="/api/resources", tags=["resources"])
app.include_router(forum_router, prefix="/api/forum", tags=["forum"])
app.include_router(study_groups_router, prefix="/api/study-groups", tags=["study-groups"])
app.include_router(conversations_router, prefix="/api/conversations", tags=["conversations"])
app.include_router(messages_router, prefix="/api/messages", tags=["messages"])
app.include_router(calendar_router, prefix="/api/calendar/events", tags=["calendar"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(uploads_router, prefix="/uploads", tags=["uploads"])


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    if not request.url.path.startswith("/api"):
        return await call_next(request)
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s %s in %.0fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse({"message": "Invalid request"}, status_code=400)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse({"message": message}, status_code=400)


@app.exception_handler(sqlite3.IntegrityError)
async def integrity_error(request: Request, exc: sqlite3.IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"message": str(exc)}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": str(exc) or "Internal Server Error"}, status_code=500)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Campus Cove API")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    args = parser.parse_args()
    config = load_config()  # Ensures config is copied if missing
    configure_logging(config)
    if args.init:
        init_db()
        print(f"DB initialized and config copied to {CONFIG_DIR}/")
        sys.exit(0)
    # Run server
    server_cfg = config["server"]
    uvicorn.run(
        "main:app",
        host=server_cfg["host"],
        port=server_cfg["port"],
        reload=args.dev,
        log_level=config["logging"]["level"].lower(),
    )
