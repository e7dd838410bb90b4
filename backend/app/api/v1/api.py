from fastapi import APIRouter

from app.api.v1.endpoints import cases, health

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(cases.router, tags=["cases"])
