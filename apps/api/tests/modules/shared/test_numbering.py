"""
Unit tests for reference number generation.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from coop_portal.modules.amendments.models import AmendmentRequest
from coop_portal.modules.shared.numbering import (
    NumberingConflictError,
    format_number,
    generate_number,
    insert_with_number,
    parse_sequence,
)


class TestFormatting:
    """Tests for number formatting and parsing."""

    def test_format_pads_sequence(self):
        assert format_number("REG", 2025, 7, 4) == "REG-2025-0007"
        assert format_number("COOP", 2025, 42, 5) == "COOP-2025-00042"

    def test_format_overflows_padding(self):
        assert format_number("REG", 2025, 12345, 4) == "REG-2025-12345"

    def test_parse_sequence(self):
        assert parse_sequence("CPL-2025-000031") == 31
        assert parse_sequence("CR-2024/2025-0003") == 3

    @pytest.mark.parametrize("value", [None, "", "REG-2025-abc"])
    def test_parse_sequence_invalid(self, value):
        assert parse_sequence(value) is None


# ============================================================================
# generate_number
# ============================================================================


@pytest.mark.asyncio
async def test_first_number_of_year(mock_db):
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    mock_db.execute = AsyncMock(return_value=result)

    number = await generate_number(mock_db, AmendmentRequest.request_number, "AMD", 2025, 4)

    assert number == "AMD-2025-0001"


@pytest.mark.asyncio
async def test_next_number_follows_highest(mock_db):
    result = MagicMock()
    result.scalar_one_or_none.return_value = "AMD-2025-0041"
    mock_db.execute = AsyncMock(return_value=result)

    number = await generate_number(mock_db, AmendmentRequest.request_number, "AMD", 2025, 4)

    assert number == "AMD-2025-0042"


# ============================================================================
# insert_with_number
# ============================================================================


@pytest.mark.asyncio
async def test_insert_retries_after_collision(mock_db):
    mock_db.flush = AsyncMock(
        side_effect=[IntegrityError("INSERT", {}, Exception("duplicate key")), None]
    )
    numbers = iter(["AMD-2025-0001", "AMD-2025-0002"])

    async def next_number():
        return next(numbers)

    record = await insert_with_number(
        mock_db, lambda n: {"number": n}, next_number, prefix="AMD", retries=3
    )

    assert record == {"number": "AMD-2025-0002"}
    assert mock_db.begin_nested.call_count == 2


@pytest.mark.asyncio
async def test_insert_gives_up_after_retries(mock_db):
    mock_db.flush = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("duplicate key")))

    async def next_number():
        return "AMD-2025-0001"

    with pytest.raises(NumberingConflictError) as exc_info:
        await insert_with_number(mock_db, lambda n: {"number": n}, next_number, prefix="AMD", retries=2)

    assert exc_info.value.status_code == 409
    assert mock_db.flush.await_count == 2


@pytest.mark.asyncio
async def test_sequential_numbers_strictly_increase(mock_db):
    latest = None

    async def execute(_stmt):
        result = MagicMock()
        result.scalar_one_or_none.return_value = latest
        return result

    mock_db.execute = AsyncMock(side_effect=execute)

    issued = []
    for _ in range(12):
        latest = await generate_number(mock_db, AmendmentRequest.request_number, "AMD", 2025, 4)
        issued.append(latest)

    sequences = [parse_sequence(number) for number in issued]
    assert sequences == list(range(1, 13))
    assert len(set(issued)) == len(issued)
    assert issued[-1] == "AMD-2025-0012"
