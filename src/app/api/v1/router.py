from fastapi import APIRouter

from src.app.api.v1 import applications, channel, projects

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(projects.router)
api_router.include_router(applications.router)
api_router.include_router(channel.router)
