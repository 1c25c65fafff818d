"""Exam Portal - API v1 Router."""
from fastapi import APIRouter

from exam_portal.api.v1.auth import router as auth_router
from exam_portal.api.v1.tests import router as tests_router
from exam_portal.api.v1.students import router as students_router
from exam_portal.api.v1.admin import router as admin_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(tests_router)
api_router.include_router(students_router)
api_router.include_router(admin_router)
