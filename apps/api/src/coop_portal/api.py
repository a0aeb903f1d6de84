from fastapi import APIRouter

from coop_portal.modules.amendments.router import router as amendments_router
from coop_portal.modules.auditors.router import router as auditors_router
from coop_portal.modules.auth.router import router as auth_router
from coop_portal.modules.complaints.router import router as complaints_router
from coop_portal.modules.compliance.router import router as compliance_router
from coop_portal.modules.cooperatives.router import router as cooperatives_router
from coop_portal.modules.counties.router import router as counties_router
from coop_portal.modules.documents.register_router import router as document_register_router
from coop_portal.modules.documents.router import router as documents_router
from coop_portal.modules.integrations.router import router as integrations_router
from coop_portal.modules.members.router import router as members_router
from coop_portal.modules.notifications.router import router as notifications_router
from coop_portal.modules.registrations.admin_router import router as admin_applications_router
from coop_portal.modules.registrations.router import router as registrations_router
from coop_portal.modules.searches.router import router as searches_router
from coop_portal.modules.trainers.router import router as trainers_router
from coop_portal.modules.users.router import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(users_router, prefix="/admin/users", tags=["Admin - Users"])

api_router.include_router(counties_router, prefix="/counties", tags=["Counties"])

api_router.include_router(cooperatives_router, prefix="/cooperatives", tags=["Cooperatives"])

api_router.include_router(
    members_router,
    prefix="/cooperatives/{cooperative_id}/members",
    tags=["Members"],
)

api_router.include_router(
    document_register_router, prefix="/documents/register", tags=["Document Register"]
)

api_router.include_router(documents_router, prefix="/documents", tags=["Documents"])

api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])

api_router.include_router(
    registrations_router, prefix="/registrations", tags=["Registration Applications"]
)

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)

api_router.include_router(amendments_router, prefix="/amendments", tags=["Amendments"])

api_router.include_router(complaints_router, prefix="/complaints", tags=["Complaints"])

api_router.include_router(trainers_router, prefix="/trainers", tags=["Trainers"])

api_router.include_router(auditors_router, prefix="/auditors", tags=["Auditors"])

api_router.include_router(compliance_router, prefix="/compliance", tags=["Compliance"])

api_router.include_router(searches_router, prefix="/searches", tags=["Official Searches"])

api_router.include_router(integrations_router, prefix="/integrations", tags=["Integrations"])
