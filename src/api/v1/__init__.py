"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.ai import router as ai_router
from api.v1.routes.invitations import invitations_router, workspace_invitations_router
from api.v1.routes.notifications import router as notifications_router
from api.v1.routes.permissions import router as permissions_router
from api.v1.routes.projects import router as projects_router
from api.v1.routes.projects import workspace_projects_router
from api.v1.routes.realtime import router as realtime_router
from api.v1.routes.tasks import project_tasks_router
from api.v1.routes.tasks import router as tasks_router
from api.v1.routes.workspaces import router as workspaces_router

router = APIRouter()
router.include_router(permissions_router)
router.include_router(workspaces_router)
router.include_router(workspace_invitations_router)
router.include_router(invitations_router)
router.include_router(workspace_projects_router)
router.include_router(projects_router)
router.include_router(project_tasks_router)
router.include_router(tasks_router)
router.include_router(notifications_router)
router.include_router(ai_router)
router.include_router(realtime_router)
