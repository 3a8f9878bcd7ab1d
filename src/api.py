from fastapi import APIRouter

from src.registration.router import router as registration_router


api_router = APIRouter()

# / (attendance registration, the only endpoint)
api_router.include_router(
    registration_router,
    tags=["Registration"]
)
