from fastapi import APIRouter

from app.api.v1.endpoints import health, students, subscriptions, users

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(students.router, prefix="/student", tags=["Student"])
api_router.include_router(
    subscriptions.router, prefix="/student/subscription", tags=["Subscriptions"]
)
