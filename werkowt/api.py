# -*- coding: utf-8 -*-
"""
Werkowt API

Workout logging, body weight, food tracking, macro goals, AI meal plans and
shopping lists behind one authenticated FastAPI application.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .app_db import init_app_db
from .auth.api import router as auth_router
from .auth.security import get_current_user_from_request
from .config import settings
from .exercises.api import router as exercises_router
from .food.api import router as food_router
from .macros.api import router as macros_router
from .mealplans.api import router as mealplans_router
from .shopping.api import router as shopping_router
from .weight.api import router as weight_router
from .workouts.api import router as workouts_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Werkowt",
    description="Workout, nutrition and AI meal-plan tracking",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup_init_db() -> None:
    init_app_db(settings.app_db_path)
    logger.info("app database ready at %s", settings.app_db_path)


# Ensure the app DB exists even when lifespan events are not triggered (e.g. some test clients).
init_app_db(settings.app_db_path)


_AUTH_EXEMPT_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/session",
    "/api/docs",
    "/api/redoc",
    "/api/openapi.json",
)


@app.middleware("http")
async def _auth_gate(request: Request, call_next):
    path = request.url.path
    if path.startswith("/api") and path != "/api/health" and not any(path.startswith(p) for p in _AUTH_EXEMPT_PREFIXES):
        try:
            user = get_current_user_from_request(request)
            request.state.user = user
        except HTTPException as exc:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    return await call_next(request)


app.include_router(auth_router)
app.include_router(macros_router)
app.include_router(mealplans_router)
app.include_router(shopping_router)
app.include_router(food_router)
app.include_router(workouts_router)
app.include_router(exercises_router)
app.include_router(weight_router)


@app.get("/api/health")
def health():
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("WERKOWT_HOST") or os.environ.get("HOST") or "127.0.0.1"
    port_raw = os.environ.get("WERKOWT_PORT") or os.environ.get("PORT") or "8000"
    try:
        port = int(port_raw)
    except ValueError:
        port = 8000

    uvicorn.run("werkowt.api:app", host=host, port=port, reload=False)
