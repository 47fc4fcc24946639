from fastapi import APIRouter

from joblands.api.v1 import health, resumes

api_v1_router = APIRouter()
api_v1_router.include_router(health.router)
api_v1_router.include_router(resumes.router)
