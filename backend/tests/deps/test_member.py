from typing import Any, Optional

import pytest
from app.deps import get_current_member, get_current_member_id, require_admin
from app.models import Member, MemberRole
from fastapi import HTTPException


class DummySession:
    def __init__(self, member: Optional[Member]) -> None:
        self.member = member
        self.committed = False

    async def get(self, *args: Any, **kwargs: Any) -> Optional[Member]:
        return self.member

    async def commit(self) -> None:
        self.committed = True


@pytest.mark.asyncio
async def test_member_id_read_from_header() -> None:
    assert await get_current_member_id(x_member_id="12") == 12


@pytest.mark.asyncio
async def test_missing_header_is_unauthorized() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_current_member_id(x_member_id=None)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_non_numeric_header_is_bad_request() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_current_member_id(x_member_id="mia")
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_known_member_is_loaded_and_read_transaction_closed() -> None:
    mia = Member(id=1, name="mia", email="mia@email.com", role=MemberRole.MEMBER)
    session = DummySession(mia)
    assert await get_current_member(member_id=1, session=session) is mia  # type: ignore[arg-type]
    assert session.committed is True


@pytest.mark.asyncio
async def test_unknown_member_is_unauthorized() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_current_member(member_id=99, session=DummySession(None))  # type: ignore[arg-type]
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_require_admin_rejects_regular_member() -> None:
    mia = Member(id=1, name="mia", email="mia@email.com", role=MemberRole.MEMBER)
    with pytest.raises(HTTPException) as excinfo:
        await require_admin(member=mia)
    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_require_admin_passes_admin_through() -> None:
    admin = Member(id=4, name="admin", email="admin@email.com", role=MemberRole.ADMIN)
    assert await require_admin(member=admin) is admin
