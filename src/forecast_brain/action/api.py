"""FastAPI application exposing the variance analytics engine."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from forecast_brain.action.routers.variance import router as variance_router

app = FastAPI(title=settings.app_name, version=settings.app_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(variance_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": settings.app_version}
