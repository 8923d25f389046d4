from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Ensure root path for imports when running directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api.analytics_routes import router as analytics_router  # noqa: E402
from api.billing_routes import router as billing_router  # noqa: E402
from api.routes import router  # noqa: E402
from db.session import init_db  # noqa: E402
from utils.exceptions import AnalyticoError, NotFoundError  # noqa: E402
from utils.logging_config import configure_logging  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(title="Analytico API", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/api")
app.include_router(analytics_router, prefix="/api")
app.include_router(billing_router, prefix="/api")


@app.exception_handler(AnalyticoError)
async def analytico_error_handler(request: Request, exc: AnalyticoError):
    status = 404 if isinstance(exc, NotFoundError) else 400
    logger.info("%s %s -> %d: %s", request.method, request.url.path, status, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.info("%s %s -> 400: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.get("/")
def index():
    return {"message": "Analytico API", "docs": "/docs"}

# To run: uvicorn api.server:app --reload
