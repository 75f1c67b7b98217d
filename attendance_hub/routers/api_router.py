from fastapi import APIRouter
from attendance_hub.routers import (
    auth, users, attendance, leave, leave_balance, admin
)

# Centralized API router hub: main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(attendance.router, tags=["Attendance"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(leave_balance.router, tags=["Leave Balances"])
api_router.include_router(admin.router, tags=["Administration"])
