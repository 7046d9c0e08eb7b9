from fastapi import APIRouter

from app.routers.shared import shared_router

main_router = APIRouter()
main_router.include_router(shared_router)
