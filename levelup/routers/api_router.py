from fastapi import APIRouter
from levelup.routers import (
    candidates, reviews, confirmation, scores, bonus_penalty, settings, jobs, employees, notifications
)

# Centralized API router hub; main.py only imports this.
api_router = APIRouter()

api_router.include_router(candidates.router)
api_router.include_router(reviews.router)
api_router.include_router(confirmation.router)
api_router.include_router(scores.router)
api_router.include_router(bonus_penalty.router)
api_router.include_router(settings.router)
api_router.include_router(jobs.router)
api_router.include_router(employees.router)
api_router.include_router(notifications.router)
