"""
Tests for profile updates and how store constraint errors surface.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from lscs_core.core.rbac import ALL_EDITABLE_FIELDS
from lscs_core.services import member as member_service
from lscs_core.services.member import update_member_profile
from tests.conftest import make_member


def _rbac(fields=ALL_EDITABLE_FIELDS):
    rbac = MagicMock()
    rbac.get_editable_fields = AsyncMock(return_value=set(fields))
    return rbac


def _integrity_error(message):
    return IntegrityError("UPDATE members SET ...", {}, Exception(message))


class TestUpdateMemberProfile:
    @pytest.mark.asyncio
    async def test_applies_editable_fields(self, mock_db):
        member = make_member(4, "mem.ext@dlsu.edu.ph", "MEM", "EXT")
        with patch.object(member_service, "member_repository") as repo:
            repo.update_fields = AsyncMock(return_value=member)
            result = await update_member_profile(mock_db, _rbac(), 1, member, {"nickname": "Em"})

        assert result is member
        repo.update_fields.assert_awaited_once_with(mock_db, member, {"nickname": "Em"})

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, mock_db):
        member = make_member(4, "mem.ext@dlsu.edu.ph", "MEM", "EXT")
        error = _integrity_error("UNIQUE constraint failed: members.email")
        with patch.object(member_service, "member_repository") as repo:
            repo.update_fields = AsyncMock(side_effect=error)
            with pytest.raises(HTTPException) as exc_info:
                await update_member_profile(mock_db, _rbac(), 1, member, {"email": "taken@dlsu.edu.ph"})

        assert exc_info.value.status_code == 409
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_postgres_unique_violation_is_conflict(self, mock_db):
        member = make_member(4, "mem.ext@dlsu.edu.ph", "MEM", "EXT")
        error = _integrity_error('duplicate key value violates unique constraint "ix_members_email"')
        with patch.object(member_service, "member_repository") as repo:
            repo.update_fields = AsyncMock(side_effect=error)
            with pytest.raises(HTTPException) as exc_info:
                await update_member_profile(mock_db, _rbac(), 1, member, {"email": "taken@dlsu.edu.ph"})

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_other_constraint_errors_propagate(self, mock_db):
        member = make_member(4, "mem.ext@dlsu.edu.ph", "MEM", "EXT")
        error = _integrity_error("NOT NULL constraint failed: members.full_name")
        with patch.object(member_service, "member_repository") as repo:
            repo.update_fields = AsyncMock(side_effect=error)
            with pytest.raises(IntegrityError):
                await update_member_profile(mock_db, _rbac(), 1, member, {"full_name": None})

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_null_email_not_reported_as_duplicate(self, mock_db):
        member = make_member(4, "mem.ext@dlsu.edu.ph", "MEM", "EXT")
        error = _integrity_error("NOT NULL constraint failed: members.email")
        with patch.object(member_service, "member_repository") as repo:
            repo.update_fields = AsyncMock(side_effect=error)
            with pytest.raises(IntegrityError):
                await update_member_profile(mock_db, _rbac(), 1, member, {"email": None})

    @pytest.mark.asyncio
    async def test_forbidden_fields_rejected_before_store(self, mock_db):
        member = make_member(4, "mem.ext@dlsu.edu.ph", "MEM", "EXT")
        with patch.object(member_service, "member_repository") as repo:
            repo.update_fields = AsyncMock()
            with pytest.raises(HTTPException) as exc_info:
                await update_member_profile(mock_db, _rbac(set()), 4, member, {"position_id": "PRES"})

        assert exc_info.value.status_code == 403
        repo.update_fields.assert_not_called()
