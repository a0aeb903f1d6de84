"""
Official Searches Service

A certificate request opens an eCitizen bill for the OFFICIAL_SEARCH fee and
records the search against it. Confirming payment settles the bill and copies
its outcome onto the search; only a COMPLETED search yields a certificate.
The certificate number is assigned on first download and reused afterwards.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.permissions import Role, is_county_role, is_unscoped_role
from coop_portal.modules.cooperatives import repository as cooperative_repository
from coop_portal.modules.cooperatives.models import Cooperative, CooperativeStatus
from coop_portal.modules.counties import repository as county_repository
from coop_portal.modules.integrations import ecitizen
from coop_portal.modules.integrations.ecitizen import PaymentNotPendingError
from coop_portal.modules.integrations.models import PaymentStatus, ServiceType
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice, notify_safely
from coop_portal.modules.searches import certificates, repository
from coop_portal.modules.searches.certificates import CertificateContext
from coop_portal.modules.searches.models import SearchRequest
from coop_portal.modules.searches.repository import SEARCH_REQUEST_SCOPE
from coop_portal.modules.searches.schemas import CertificateRequestCreate
from coop_portal.modules.shared.errors import ConflictError, NotFoundError, ServiceError
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query

logger = logging.getLogger(__name__)


class CertificateUnavailableError(ConflictError):
    def __init__(self, search_number: str):
        super().__init__(
            message=f"No certificate is available for {search_number}: payment has not completed.",
            error_code="CERTIFICATE_UNAVAILABLE",
        )


def _is_staff(user: CurrentUser | None) -> bool:
    return user is not None and (is_county_role(user.role) or is_unscoped_role(user.role))


async def _searchable_cooperative(db: AsyncSession, cooperative_id: UUID) -> Cooperative:
    cooperative = await cooperative_repository.get_by_id(db, cooperative_id)
    if (
        cooperative is None
        or not cooperative.is_active
        or cooperative.status == CooperativeStatus.DEREGISTERED
    ):
        raise NotFoundError("Cooperative", cooperative_id)
    return cooperative


async def get_request(
    db: AsyncSession,
    search_id: UUID,
    user: CurrentUser | None,
) -> SearchRequest:
    """
    Signed-in requesters see their own searches; county staff see searches on
    cooperatives in their county and national roles see all. Searches made
    without an account are reachable by id alone.
    """
    search = await repository.get_by_id(db, search_id)
    if search is None:
        raise NotFoundError("Search request", search_id)

    if search.user_id is None or (user is not None and search.user_id == user.id):
        return search
    if user is not None and is_unscoped_role(user.role):
        return search
    if user is not None and is_county_role(user.role):
        cooperative = await cooperative_repository.get_by_id(db, search.cooperative_id)
        if cooperative is not None and cooperative.tenant_id == user.tenant_id:
            return search

    raise NotFoundError("Search request", search_id)


async def list_searches(
    db: AsyncSession,
    user: CurrentUser,
    *,
    payment_status: PaymentStatus | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """Search history: the caller's own searches, or every search in scope for staff."""
    filters = ListFilters(
        equals={"payment_status": payment_status}, search=search, page=page, page_size=page_size
    )
    if _is_staff(user):
        scope = ListScope.for_user(user)
    else:
        scope = ListScope(role=Role.CITIZEN, user_id=user.id)

    items, total = await scoped_query(db, SEARCH_REQUEST_SCOPE, scope, filters)
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def request_certificate(
    db: AsyncSession,
    data: CertificateRequestCreate,
    user: CurrentUser | None,
) -> SearchRequest:
    """
    Open the bill for an official search and record the request.

    Raises:
        NotFoundError: If the cooperative is unknown, inactive or deregistered
        ValidationFailedError: If the payment method's details are missing
    """
    cooperative = await _searchable_cooperative(db, data.cooperative_id)

    payment = await ecitizen.initiate_payment(
        db,
        ServiceType.OFFICIAL_SEARCH,
        data.payment_method,
        payer_name=data.requester_name,
        payer_phone=data.requester_phone,
        payer_email=data.requester_email,
        mpesa_number=data.mpesa_number,
        card_last_four=data.card_last_four,
        payer_user_id=user.id if user else None,
    )

    search = await repository.create_request(
        db,
        user_id=user.id if user else None,
        cooperative_id=cooperative.id,
        requester_name=data.requester_name,
        requester_id_number=data.requester_id_number,
        requester_email=data.requester_email,
        requester_phone=data.requester_phone,
        purpose=data.purpose,
        payment_reference=payment.bill_reference,
        payment_amount=payment.amount,
        payment_status=payment.payment_status,
        payment_method=data.payment_method,
    )
    await db.commit()
    await db.refresh(search)

    logger.info(
        f"Search {search.search_number} on {cooperative.registration_number} "
        f"opened with bill {payment.bill_reference}"
    )
    return search


async def confirm_payment(
    db: AsyncSession,
    search_id: UUID,
    user: CurrentUser | None,
) -> SearchRequest:
    """
    Settle the search's bill and copy the outcome onto the search.

    A bill that was already settled is not an error here: its current status
    is copied instead, so confirming twice is harmless.
    """
    search = await get_request(db, search_id, user)
    if not search.payment_reference:
        raise NotFoundError("Payment for search", search.search_number)

    try:
        payment = await ecitizen.process_payment(db, search.payment_reference)
    except PaymentNotPendingError:
        payment = await ecitizen.get_payment_status(db, search.payment_reference)

    if payment.payment_status != search.payment_status:
        await repository.set_payment_status(db, search.id, payment.payment_status)
        await db.commit()
        search.payment_status = payment.payment_status
        logger.info(f"Search {search.search_number} payment {payment.payment_status.value}")

        if payment.payment_status == PaymentStatus.COMPLETED and search.user_id:
            await notify_safely(
                db,
                Notice(
                    user_id=search.user_id,
                    title="Official Search Paid",
                    message=(
                        f"Payment for search {search.search_number} was received. "
                        "Your search certificate is ready to download."
                    ),
                    type=NotificationType.SUCCESS,
                    link="/searches",
                ),
            )

    return search


async def generate_certificate(
    db: AsyncSession,
    search_id: UUID,
    user: CurrentUser | None,
) -> tuple[SearchRequest, bytes, str]:
    """
    Render the search certificate, numbering it on first use.

    Returns:
        Tuple of (search, PDF bytes, download filename)

    Raises:
        CertificateUnavailableError: If the search is not paid
        NumberingConflictError: If no unique certificate number could be drawn
    """
    search = await get_request(db, search_id, user)
    if search.payment_status != PaymentStatus.COMPLETED:
        raise CertificateUnavailableError(search.search_number)

    cooperative = await cooperative_repository.get_by_id(db, search.cooperative_id)
    if cooperative is None:
        raise NotFoundError("Cooperative", search.cooperative_id)

    if search.certificate_number is None:
        try:
            number = await repository.assign_certificate_number(db, search.id)
            await db.commit()
        except ServiceError:
            await db.rollback()
            raise
        await db.refresh(search)
        if number:
            logger.info(f"Certificate {number} issued for search {search.search_number}")

    cooperative_type = (
        await cooperative_repository.get_type(db, cooperative.type_id) if cooperative.type_id else None
    )
    county = await county_repository.get_by_id(db, cooperative.tenant_id)

    content = certificates.render_certificate(
        search,
        CertificateContext(
            cooperative=cooperative,
            type_name=cooperative_type.name if cooperative_type else None,
            county_name=county.name if county else None,
            issued_at=search.certificate_generated_at,
        ),
    )
    return search, content, certificates.certificate_filename(search, cooperative)
