"""
Integrations Router

Endpoints:
- POST /integrations/iprs/verify - Verify a national ID (staff)
- POST /integrations/kra/verify - Verify a KRA PIN (staff)
- GET /integrations/sasra/{cooperative_id} - SASRA license check (staff)
- GET /integrations/verifications - Verification audit log (staff)
- GET /integrations/payments/fees - eCitizen service fees
- POST /integrations/payments - Open a bill
- POST /integrations/payments/{bill_reference}/process - Settle a pending bill
- GET /integrations/payments/{bill_reference} - Payment status
- GET /integrations/payments/{bill_reference}/receipt - PDF receipt (completed only)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_run_verifications
from coop_portal.core.rate_limit import RATE_LIMIT_VERIFICATION, enforce_user_rate_limit
from coop_portal.modules.integrations import ecitizen, iprs, kra, receipts, repository, sasra
from coop_portal.modules.integrations.schemas import (
    IprsRecordResponse,
    KraPinVerifyRequest,
    KraRecordResponse,
    NationalIdVerifyRequest,
    PaymentInitiateRequest,
    PaymentResponse,
    SasraComplianceResponse,
    ServiceFeeResponse,
    VerificationLogResponse,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

require_verifier = require_capability(can_run_verifications)


@router.post("/iprs/verify", response_model=IprsRecordResponse, summary="Verify National ID")
async def verify_national_id(
    body: NationalIdVerifyRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_verifier),
) -> IprsRecordResponse:
    await enforce_user_rate_limit(user, "iprs_verify", RATE_LIMIT_VERIFICATION)
    try:
        record = await iprs.verify_national_id(db, body.id_number, verified_by=user.id)
        return IprsRecordResponse.model_validate(record)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "verifying national ID")


@router.post("/kra/verify", response_model=KraRecordResponse, summary="Verify KRA PIN")
async def verify_kra_pin(
    body: KraPinVerifyRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_verifier),
) -> KraRecordResponse:
    await enforce_user_rate_limit(user, "kra_verify", RATE_LIMIT_VERIFICATION)
    try:
        result = await kra.verify_pin(db, body.kra_pin, verified_by=user.id)
        response = KraRecordResponse.model_validate(result.record)
        response.compliance_certificate_number = result.compliance_certificate_number
        return response
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "verifying KRA PIN")


@router.get(
    "/sasra/{cooperative_id}", response_model=SasraComplianceResponse, summary="SASRA License Check"
)
async def check_sasra_license(
    cooperative_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_verifier),
) -> SasraComplianceResponse:
    await enforce_user_rate_limit(user, "sasra_check", RATE_LIMIT_VERIFICATION)
    try:
        record = await sasra.check_license(db, cooperative_id, verified_by=user.id)
        return SasraComplianceResponse.model_validate(record)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "checking SASRA license")


@router.get(
    "/verifications", response_model=list[VerificationLogResponse], summary="Verification Log"
)
async def list_verifications(
    subject: str | None = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_verifier),
) -> list[VerificationLogResponse]:
    rows = await repository.list_verifications(db, subject=subject, limit=limit)
    return [VerificationLogResponse.model_validate(r) for r in rows]


# ============================================================================
# eCitizen payments
# ============================================================================


@router.get("/payments/fees", response_model=list[ServiceFeeResponse], summary="Service Fees")
async def list_service_fees() -> list[ServiceFeeResponse]:
    return [
        ServiceFeeResponse(service_type=service_type, amount=amount)
        for service_type, amount in ecitizen.SERVICE_FEES.items()
    ]


@router.post(
    "/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Initiate Payment",
)
async def initiate_payment(
    body: PaymentInitiateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        payment = await ecitizen.initiate_payment(
            db,
            body.service_type,
            body.payment_method,
            payer_name=body.payer_name,
            payer_phone=body.payer_phone,
            payer_email=body.payer_email,
            mpesa_number=body.mpesa_number,
            card_last_four=body.card_last_four,
            payer_user_id=user.id,
        )
        return PaymentResponse.model_validate(payment)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "initiating payment")


@router.post(
    "/payments/{bill_reference}/process", response_model=PaymentResponse, summary="Process Payment"
)
async def process_payment(
    bill_reference: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        return PaymentResponse.model_validate(await ecitizen.process_payment(db, bill_reference))
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "processing payment")


@router.get("/payments/{bill_reference}", response_model=PaymentResponse, summary="Payment Status")
async def get_payment_status(
    bill_reference: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        return PaymentResponse.model_validate(await ecitizen.get_payment_status(db, bill_reference))
    except ServiceError as e:
        raise_http_error(e)


@router.get("/payments/{bill_reference}/receipt", summary="Download Payment Receipt")
async def download_receipt(
    bill_reference: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        payment = await ecitizen.get_payment_status(db, bill_reference)
        content = receipts.render_receipt(payment)
    except ServiceError as e:
        raise_http_error(e)

    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{receipts.receipt_filename(payment)}"'
        },
    )
