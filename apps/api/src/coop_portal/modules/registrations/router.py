"""
Registration Applications Router (applicant)

Endpoints:
- GET /registrations/draft - Load the caller's draft
- PUT /registrations/draft - Autosave the draft (creates it on first call)
- POST /registrations/validate-step - Validate one wizard step
- GET /registrations/name-availability - Check a proposed name
- POST /registrations/submit - Submit the draft
- GET /registrations/mine - The caller's applications
- GET /registrations/{id} - Application details
- GET /registrations/{id}/documents - Signed links for the uploaded documents
- POST /registrations/{id}/resubmit - Resubmit after an info request
- POST /registrations/{id}/withdraw - Withdraw
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user
from coop_portal.core.database import get_db
from coop_portal.core.storage import StorageService, get_storage
from coop_portal.modules.documents import service as document_service
from coop_portal.modules.registrations import service
from coop_portal.modules.registrations.schemas import (
    ApplicationResponse,
    ApplicationSummary,
    DocumentLink,
    NameAvailabilityResponse,
    RegistrationFormData,
    SaveDraftRequest,
    StepValidationRequest,
    StepValidationResponse,
)
from coop_portal.modules.registrations.validation import NAME_TAKEN_MESSAGE, REQUIRED_DOCUMENTS
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()


def _form(data: RegistrationFormData) -> dict:
    return data.model_dump(include=set(RegistrationFormData.model_fields), exclude_unset=True)


@router.get(
    "/draft",
    response_model=ApplicationResponse | None,
    summary="Load Draft",
)
async def load_draft(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse | Response:
    draft = await service.load_draft(db, user.id)
    if draft is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return ApplicationResponse.model_validate(draft)


@router.put("/draft", response_model=ApplicationResponse, summary="Save Draft")
async def save_draft(
    data: SaveDraftRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    """Autosave. Creates the draft and allocates its number on the first call."""
    try:
        draft = await service.save_draft(db, user.id, _form(data), data.current_step)
        return ApplicationResponse.model_validate(draft)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "saving draft")


@router.post("/validate-step", response_model=StepValidationResponse, summary="Validate Step")
async def validate_step(
    data: StepValidationRequest,
    _user: CurrentUser = Depends(get_current_user),
) -> StepValidationResponse:
    errors = service.validate_step(data.step, _form(data))
    return StepValidationResponse(step=data.step, valid=not errors, errors=errors)


@router.get(
    "/name-availability",
    response_model=NameAvailabilityResponse,
    summary="Check Name Availability",
)
async def name_availability(
    name: str = Query(..., min_length=1, max_length=200),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> NameAvailabilityResponse:
    available = await service.check_name_availability(db, name, user.id)
    return NameAvailabilityResponse(
        name=name,
        available=available,
        message=None if available else NAME_TAKEN_MESSAGE,
    )


@router.post("/submit", response_model=ApplicationResponse, summary="Submit Application")
async def submit(
    data: RegistrationFormData,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    """
    Submit the draft. Returns 422 with a ``fields`` map when steps 1-2 are
    incomplete, documents are missing or the name is taken.
    """
    try:
        application = await service.submit(db, user.id, _form(data))
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting application")


@router.get("/mine", response_model=list[ApplicationSummary], summary="My Applications")
async def my_applications(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ApplicationSummary]:
    applications = await service.list_my_applications(db, user.id)
    return [ApplicationSummary.model_validate(a) for a in applications]


@router.get("/{application_id}", response_model=ApplicationResponse, summary="Get Application")
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        return ApplicationResponse.model_validate(
            await service.get_application(db, application_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.get(
    "/{application_id}/documents",
    response_model=list[DocumentLink],
    summary="Application Documents",
)
async def application_documents(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
) -> list[DocumentLink]:
    try:
        application = await service.get_application(db, application_id, user)
        links = []
        for field, label in REQUIRED_DOCUMENTS.items():
            path = getattr(application, field)
            links.append(
                DocumentLink(
                    field=field,
                    label=label,
                    path=path,
                    url=await document_service.resolve(storage, path),
                )
            )
        return links
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{application_id}/resubmit",
    response_model=ApplicationResponse,
    summary="Resubmit Application",
)
async def resubmit(
    application_id: UUID,
    data: RegistrationFormData,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.resubmit(db, user.id, application_id, _form(data))
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{application_id}/withdraw",
    response_model=ApplicationResponse,
    summary="Withdraw Application",
)
async def withdraw(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        return ApplicationResponse.model_validate(
            await service.withdraw(db, user.id, application_id)
        )
    except ServiceError as e:
        raise_http_error(e)
