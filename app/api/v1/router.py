"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    activation,
    answer_keys,
    audit,
    auth,
    dashboard,
    omr,
    portal,
    results,
    settings,
    students,
)

api_router = APIRouter()

# Admin authentication
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

# Students and their results
api_router.include_router(
    students.router,
    prefix="/students",
    tags=["Students"],
)

# Bulk results
api_router.include_router(
    results.router,
    prefix="/results",
    tags=["Results"],
)

# OMR sheets
api_router.include_router(
    omr.router,
    prefix="/omr",
    tags=["OMR Sheets"],
)

# Answer keys
api_router.include_router(
    answer_keys.router,
    prefix="/answer-keys",
    tags=["Answer Keys"],
)

# Visibility settings
api_router.include_router(
    settings.router,
    prefix="/settings",
    tags=["Settings"],
)

# Dashboard
api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["Dashboard"],
)

# Daily activation
api_router.include_router(
    activation.router,
    prefix="/activation",
    tags=["Activation"],
)

# Audit Logs
api_router.include_router(
    audit.router,
    prefix="/audit-logs",
    tags=["Audit Logs"],
)

# Student portal (no admin token)
api_router.include_router(
    portal.router,
    prefix="/portal",
    tags=["Student Portal"],
)
