from fastapi import APIRouter
from . import auth, movies

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(movies.router)
api_router.include_router(movies.admin_router)

__all__ = ["api_router"]
