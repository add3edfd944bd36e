"""Route handlers for the Web API."""

from uniport.web.routes.admin import router as admin_router
from uniport.web.routes.auth import router as auth_router
from uniport.web.routes.cbt import router as cbt_router
from uniport.web.routes.courses import router as courses_router
from uniport.web.routes.gpa import router as gpa_router
from uniport.web.routes.health import router as health_router
from uniport.web.routes.results import router as results_router
from uniport.web.routes.student_courses import router as student_courses_router

__all__ = [
    "admin_router",
    "auth_router",
    "cbt_router",
    "courses_router",
    "gpa_router",
    "health_router",
    "results_router",
    "student_courses_router",
]
