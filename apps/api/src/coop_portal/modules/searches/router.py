"""
Official Searches Router

Endpoints:
- POST /searches - Request a search certificate (opens an eCitizen bill)
- GET /searches - Search history
- GET /searches/{id} - Search request details
- POST /searches/{id}/confirm-payment - Settle the bill
- GET /searches/{id}/certificate - Download the certificate PDF

Searching the register itself is ``GET /cooperatives/registry``; these
endpoints cover the paid certificate only. Requests may be made without
signing in.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, get_optional_user
from coop_portal.core.database import get_db
from coop_portal.modules.integrations.models import PaymentStatus
from coop_portal.modules.searches import service
from coop_portal.modules.searches.schemas import (
    CertificateRequestCreate,
    SearchRequestListResponse,
    SearchRequestResponse,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=SearchRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request Search Certificate",
)
async def request_certificate(
    data: CertificateRequestCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> SearchRequestResponse:
    try:
        return SearchRequestResponse.model_validate(
            await service.request_certificate(db, data, user)
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "requesting search certificate")


@router.get("", response_model=SearchRequestListResponse, summary="Search History")
async def list_searches(
    payment_status: PaymentStatus | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SearchRequestListResponse:
    try:
        result = await service.list_searches(
            db, user, payment_status=payment_status, search=search, page=page, page_size=page_size
        )
        return SearchRequestListResponse(
            items=[SearchRequestResponse.model_validate(s) for s in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing search requests")


@router.get("/{search_id}", response_model=SearchRequestResponse, summary="Get Search Request")
async def get_request(
    search_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> SearchRequestResponse:
    try:
        return SearchRequestResponse.model_validate(await service.get_request(db, search_id, user))
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{search_id}/confirm-payment",
    response_model=SearchRequestResponse,
    summary="Confirm Search Payment",
)
async def confirm_payment(
    search_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> SearchRequestResponse:
    try:
        return SearchRequestResponse.model_validate(
            await service.confirm_payment(db, search_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "confirming search payment")


@router.get("/{search_id}/certificate", summary="Download Search Certificate")
async def download_certificate(
    search_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> Response:
    try:
        _, content, filename = await service.generate_certificate(db, search_id, user)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "generating search certificate")

    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
