"""API Routes."""

from fastapi import APIRouter

from .admin_import import router as admin_import_router
from .admin_users import router as admin_users_router
from .articles import router as articles_router
from .auth import router as auth_router
from .categories import router as categories_router
from .contact import router as contact_router
from .faqs import router as faqs_router
from .health import router as health_router
from .issues import router as issues_router
from .profile import router as profile_router
from .tags import router as tags_router
from .user import router as user_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(articles_router)
api_router.include_router(categories_router)
api_router.include_router(tags_router)
api_router.include_router(faqs_router)
api_router.include_router(issues_router)
api_router.include_router(profile_router)
api_router.include_router(user_router)
api_router.include_router(contact_router)
api_router.include_router(admin_users_router)
api_router.include_router(admin_import_router)
