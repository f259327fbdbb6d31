import os
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

import models  # noqa: F401
from config import CORS_ORIGINS
from database import Base, engine
from routers import (
    auth_router,
    reactives_router,
    doses_router,
    notifications_router,
    data_router,
    jobs_router,
)
from services.firebase_app import init_firebase
from services.notifications import init_notification_handler
from services.store import StorageError

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

logs_path = os.path.join(os.path.dirname(__file__), "logs")
os.makedirs(logs_path, exist_ok=True)
error_log_file = os.path.join(logs_path, "errors.log")
error_logger = logging.getLogger("maywa.errors")
if not error_logger.handlers:
    error_logger.setLevel(logging.ERROR)
    fh = logging.FileHandler(error_log_file, encoding="utf-8")
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    error_logger.addHandler(fh)
    error_logger.propagate = False

firebase_mode = init_firebase()

# Create all tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Maywa API",
    description="Medication reminders: reactives, dose history and local notifications",
    version="1.0.0",
)
app.state.notification_handler = init_notification_handler()
app.state.firebase_mode = firebase_mode

cors_origins = [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
allow_any_origin = "*" in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_any_origin else cors_origins,
    # Browsers reject wildcard+credentials; keep credentials off for bearer-token API calls.
    allow_credentials=not allow_any_origin,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router)
app.include_router(reactives_router)
app.include_router(doses_router)
app.include_router(notifications_router)
app.include_router(data_router)
app.include_router(jobs_router)


@app.exception_handler(StorageError)
async def _storage_error(request: Request, exc: StorageError):
    error_logger.error("Storage write failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Could not save data"})


@app.middleware("http")
async def _capture_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:  # pragma: no cover
        error_logger.exception("Unhandled server error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/", tags=["Health"])
def health_check():
    return {
        "status": "ok",
        "service": "Maywa API",
        "version": "1.0.0",
        "firebase": app.state.firebase_mode,
    }
