"""API routes."""

from fastapi import APIRouter

from survey_api.routes import data, upload

api_router = APIRouter()

# Spreadsheet upload (replaces all survey data)
api_router.include_router(upload.router, prefix="/upload", tags=["upload"])

# Raw rows and analysis report
api_router.include_router(data.router, prefix="/api", tags=["data"])
