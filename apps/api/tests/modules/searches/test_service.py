"""
Unit tests for official search requests and certificates.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from coop_portal.modules.cooperatives.models import Cooperative, CooperativeStatus
from coop_portal.modules.integrations.ecitizen import PaymentNotPendingError
from coop_portal.modules.integrations.models import PaymentMethod, PaymentStatus, ServiceType
from coop_portal.modules.searches import service
from coop_portal.modules.searches.models import SearchRequest
from coop_portal.modules.searches.schemas import CertificateRequestCreate
from coop_portal.modules.shared.errors import NotFoundError
from coop_portal.modules.shared.numbering import NumberingConflictError


def _cooperative(tenant_id=None, is_active=True, status=CooperativeStatus.ACTIVE):
    cooperative = MagicMock(spec=Cooperative)
    cooperative.id = uuid4()
    cooperative.registration_number = "COOP-2024-00012"
    cooperative.tenant_id = tenant_id or uuid4()
    cooperative.type_id = None
    cooperative.is_active = is_active
    cooperative.status = status
    return cooperative


def _search(user_id=None, payment_status=PaymentStatus.PENDING, certificate_number=None):
    search = MagicMock(spec=SearchRequest)
    search.id = uuid4()
    search.search_number = "SRCH-2025-00001"
    search.user_id = user_id
    search.cooperative_id = uuid4()
    search.payment_reference = "BILL-2025-482913"
    search.payment_status = payment_status
    search.certificate_number = certificate_number
    search.certificate_generated_at = None
    return search


def _payment(status=PaymentStatus.PENDING):
    payment = MagicMock()
    payment.bill_reference = "BILL-2025-482913"
    payment.amount = Decimal("500")
    payment.payment_status = status
    return payment


@pytest.fixture
def certificate_request():
    return CertificateRequestCreate(
        cooperative_id=uuid4(),
        requester_name="Jane Wanjiku",
        requester_id_number="12345678",
        requester_email="jane@example.com",
        requester_phone="0712345678",
        purpose="Due diligence before a loan",
        payment_method=PaymentMethod.MPESA,
        mpesa_number="0712345678",
    )


# ============================================================================
# request_certificate
# ============================================================================


class TestRequestCertificate:
    @pytest.mark.asyncio
    async def test_opens_official_search_bill(self, mock_db, citizen, certificate_request):
        cooperative = _cooperative()
        created = _search(citizen.id)

        with (
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
            patch("coop_portal.modules.searches.service.ecitizen") as mock_ecitizen,
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
        ):
            mock_coops.get_by_id = AsyncMock(return_value=cooperative)
            mock_ecitizen.initiate_payment = AsyncMock(return_value=_payment())
            mock_repo.create_request = AsyncMock(return_value=created)

            result = await service.request_certificate(mock_db, certificate_request, citizen)

        assert result is created
        args = mock_ecitizen.initiate_payment.call_args
        assert args.args[1] == ServiceType.OFFICIAL_SEARCH
        assert args.kwargs["payer_user_id"] == citizen.id

        fields = mock_repo.create_request.call_args.kwargs
        assert fields["payment_reference"] == "BILL-2025-482913"
        assert fields["payment_amount"] == Decimal("500")
        assert fields["cooperative_id"] == cooperative.id
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_anonymous_request_has_no_owner(self, mock_db, certificate_request):
        with (
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
            patch("coop_portal.modules.searches.service.ecitizen") as mock_ecitizen,
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
        ):
            mock_coops.get_by_id = AsyncMock(return_value=_cooperative())
            mock_ecitizen.initiate_payment = AsyncMock(return_value=_payment())
            mock_repo.create_request = AsyncMock(return_value=_search())

            await service.request_certificate(mock_db, certificate_request, None)

        assert mock_repo.create_request.call_args.kwargs["user_id"] is None
        assert mock_ecitizen.initiate_payment.call_args.kwargs["payer_user_id"] is None

    @pytest.mark.asyncio
    async def test_deregistered_cooperative_cannot_be_searched(
        self, mock_db, citizen, certificate_request
    ):
        with (
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
            patch("coop_portal.modules.searches.service.ecitizen") as mock_ecitizen,
        ):
            mock_coops.get_by_id = AsyncMock(
                return_value=_cooperative(status=CooperativeStatus.DEREGISTERED)
            )
            mock_ecitizen.initiate_payment = AsyncMock()

            with pytest.raises(NotFoundError):
                await service.request_certificate(mock_db, certificate_request, citizen)

        mock_ecitizen.initiate_payment.assert_not_called()


# ============================================================================
# get_request
# ============================================================================


class TestGetRequest:
    @pytest.mark.asyncio
    async def test_anonymous_search_reachable_by_id(self, mock_db):
        search = _search(user_id=None)

        with patch("coop_portal.modules.searches.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=search)

            assert await service.get_request(mock_db, search.id, None) is search

    @pytest.mark.asyncio
    async def test_other_citizens_search_is_hidden(self, mock_db, citizen):
        search = _search(user_id=uuid4())

        with patch("coop_portal.modules.searches.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=search)

            with pytest.raises(NotFoundError):
                await service.get_request(mock_db, search.id, citizen)

    @pytest.mark.asyncio
    async def test_county_officer_sees_searches_in_their_county(
        self, mock_db, county_officer, county_id
    ):
        search = _search(user_id=uuid4())

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_coops.get_by_id = AsyncMock(return_value=_cooperative(tenant_id=county_id))

            assert await service.get_request(mock_db, search.id, county_officer) is search

    @pytest.mark.asyncio
    async def test_county_officer_cannot_see_other_county(self, mock_db, county_officer):
        search = _search(user_id=uuid4())

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_coops.get_by_id = AsyncMock(return_value=_cooperative(tenant_id=uuid4()))

            with pytest.raises(NotFoundError):
                await service.get_request(mock_db, search.id, county_officer)


# ============================================================================
# confirm_payment
# ============================================================================


class TestConfirmPayment:
    @pytest.mark.asyncio
    async def test_completed_payment_is_copied_to_search(self, mock_db, citizen):
        search = _search(citizen.id)

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.ecitizen") as mock_ecitizen,
            patch("coop_portal.modules.searches.service.notify_safely", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.set_payment_status = AsyncMock()
            mock_ecitizen.process_payment = AsyncMock(
                return_value=_payment(PaymentStatus.COMPLETED)
            )

            result = await service.confirm_payment(mock_db, search.id, citizen)

        assert result.payment_status == PaymentStatus.COMPLETED
        mock_repo.set_payment_status.assert_awaited_once_with(
            mock_db, search.id, PaymentStatus.COMPLETED
        )
        mock_db.commit.assert_awaited_once()
        mock_notify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_payment_is_recorded_without_notice(self, mock_db, citizen):
        search = _search(citizen.id)

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.ecitizen") as mock_ecitizen,
            patch("coop_portal.modules.searches.service.notify_safely", new_callable=AsyncMock) as mock_notify,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.set_payment_status = AsyncMock()
            mock_ecitizen.process_payment = AsyncMock(return_value=_payment(PaymentStatus.FAILED))

            result = await service.confirm_payment(mock_db, search.id, citizen)

        assert result.payment_status == PaymentStatus.FAILED
        mock_notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_already_settled_bill_is_synced(self, mock_db, citizen):
        search = _search(citizen.id)

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.ecitizen") as mock_ecitizen,
            patch("coop_portal.modules.searches.service.notify_safely", new_callable=AsyncMock),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.set_payment_status = AsyncMock()
            mock_ecitizen.process_payment = AsyncMock(
                side_effect=PaymentNotPendingError(search.payment_reference, PaymentStatus.COMPLETED)
            )
            mock_ecitizen.get_payment_status = AsyncMock(
                return_value=_payment(PaymentStatus.COMPLETED)
            )

            result = await service.confirm_payment(mock_db, search.id, citizen)

        assert result.payment_status == PaymentStatus.COMPLETED
        mock_ecitizen.get_payment_status.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unchanged_status_does_not_write(self, mock_db, citizen):
        search = _search(citizen.id, payment_status=PaymentStatus.COMPLETED)

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.ecitizen") as mock_ecitizen,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.set_payment_status = AsyncMock()
            mock_ecitizen.process_payment = AsyncMock(
                side_effect=PaymentNotPendingError(search.payment_reference, PaymentStatus.COMPLETED)
            )
            mock_ecitizen.get_payment_status = AsyncMock(
                return_value=_payment(PaymentStatus.COMPLETED)
            )

            await service.confirm_payment(mock_db, search.id, citizen)

        mock_repo.set_payment_status.assert_not_called()
        mock_db.commit.assert_not_called()


# ============================================================================
# generate_certificate
# ============================================================================


class TestGenerateCertificate:
    @pytest.mark.asyncio
    async def test_unpaid_search_has_no_certificate(self, mock_db, citizen):
        search = _search(citizen.id, payment_status=PaymentStatus.PENDING)

        with patch("coop_portal.modules.searches.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.assign_certificate_number = AsyncMock()

            with pytest.raises(service.CertificateUnavailableError):
                await service.generate_certificate(mock_db, search.id, citizen)

        mock_repo.assign_certificate_number.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_download_numbers_certificate(self, mock_db, citizen):
        search = _search(citizen.id, payment_status=PaymentStatus.COMPLETED)
        county = MagicMock()
        county.name = "Nairobi"

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
            patch("coop_portal.modules.searches.service.county_repository") as mock_counties,
            patch("coop_portal.modules.searches.service.certificates") as mock_certificates,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.assign_certificate_number = AsyncMock(return_value="CERT-2025-0001")
            mock_coops.get_by_id = AsyncMock(return_value=_cooperative())
            mock_counties.get_by_id = AsyncMock(return_value=county)
            mock_certificates.render_certificate.return_value = b"%PDF-1.4"
            mock_certificates.certificate_filename.return_value = "Certificate.pdf"

            _, content, filename = await service.generate_certificate(mock_db, search.id, citizen)

        assert content == b"%PDF-1.4"
        assert filename == "Certificate.pdf"
        mock_repo.assign_certificate_number.assert_awaited_once_with(mock_db, search.id)
        mock_db.commit.assert_awaited_once()
        context = mock_certificates.render_certificate.call_args.args[1]
        assert context.county_name == "Nairobi"

    @pytest.mark.asyncio
    async def test_numbered_certificate_is_reused(self, mock_db, citizen):
        search = _search(
            citizen.id, payment_status=PaymentStatus.COMPLETED, certificate_number="CERT-2025-0007"
        )

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
            patch("coop_portal.modules.searches.service.county_repository") as mock_counties,
            patch("coop_portal.modules.searches.service.certificates"),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.assign_certificate_number = AsyncMock()
            mock_coops.get_by_id = AsyncMock(return_value=_cooperative())
            mock_counties.get_by_id = AsyncMock(return_value=None)

            await service.generate_certificate(mock_db, search.id, citizen)

        mock_repo.assign_certificate_number.assert_not_called()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_numbering_conflict_rolls_back(self, mock_db, citizen):
        search = _search(citizen.id, payment_status=PaymentStatus.COMPLETED)

        with (
            patch("coop_portal.modules.searches.service.repository") as mock_repo,
            patch("coop_portal.modules.searches.service.cooperative_repository") as mock_coops,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=search)
            mock_repo.assign_certificate_number = AsyncMock(
                side_effect=NumberingConflictError("CERT")
            )
            mock_coops.get_by_id = AsyncMock(return_value=_cooperative())

            with pytest.raises(NumberingConflictError):
                await service.generate_certificate(mock_db, search.id, citizen)

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_called()


# ============================================================================
# list_searches
# ============================================================================


@pytest.mark.asyncio
async def test_citizen_history_is_own_searches(mock_db, citizen):
    with patch(
        "coop_portal.modules.searches.service.scoped_query",
        new_callable=AsyncMock,
        return_value=([], 0),
    ) as mock_query:
        await service.list_searches(mock_db, citizen)

    scope = mock_query.call_args.args[2]
    assert scope.user_id == citizen.id
    assert scope.tenant_id is None


@pytest.mark.asyncio
async def test_county_admin_history_is_county_scoped(mock_db, county_admin, county_id):
    with patch(
        "coop_portal.modules.searches.service.scoped_query",
        new_callable=AsyncMock,
        return_value=([], 0),
    ) as mock_query:
        await service.list_searches(mock_db, county_admin, payment_status=PaymentStatus.COMPLETED)

    scope = mock_query.call_args.args[2]
    filters = mock_query.call_args.args[3]
    assert scope.tenant_id == county_id
    assert filters.equals["payment_status"] == PaymentStatus.COMPLETED
