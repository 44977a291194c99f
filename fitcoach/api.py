# -*- coding: utf-8 -*-
"""FastAPI application: token proxy, plan generation, nutrition and exercise endpoints."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .exercises.api import router as exercises_router
from .fitness_auth.api import router as fitness_auth_router
from .nutrition.api import router as nutrition_router
from .plans.api import router as plans_router

app = FastAPI(
    title="fitcoach",
    description="OAuth token proxy, plan generation, nutrition and exercise tools for the coaching app.",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(fitness_auth_router)
app.include_router(plans_router)
app.include_router(nutrition_router)
app.include_router(exercises_router)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok", "version": __version__}
