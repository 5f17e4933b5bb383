# Main Router - classroom/api/v1/routes/router.py
from fastapi import APIRouter
from classroom.api.v1.routes.auth.auth import router as auth_router
from classroom.api.v1.routes.users.users import router as users_router
from classroom.api.v1.routes.subjects.subjects import router as subjects_router
from classroom.api.v1.routes.lessons.lessons import router as lessons_router
from classroom.api.v1.routes.exercises.exercises import router as exercises_router
from classroom.api.v1.routes.attempts.attempts import router as attempts_router
from classroom.api.v1.routes.submissions.submissions import router as submissions_router
from classroom.api.v1.routes.grades.grades import router as grades_router
from classroom.api.v1.routes.dashboard.dashboard import router as dashboard_router

router = APIRouter()

# Public/Auth routes
router.include_router(auth_router)

# Authoring
router.include_router(users_router)
router.include_router(subjects_router)
router.include_router(lessons_router)
router.include_router(exercises_router)

# Attempts, review and grading
router.include_router(attempts_router)
router.include_router(submissions_router)
router.include_router(grades_router)

# Home page
router.include_router(dashboard_router)
