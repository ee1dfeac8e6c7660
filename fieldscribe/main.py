"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fieldscribe.api.router import api_router
from fieldscribe.db.engine import create_all, engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_all()
    yield
    await engine.dispose()


app = FastAPI(
    title="Fieldscribe",
    description="Transcribe field-assessment recordings and fill form templates with AI-extracted answers.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
