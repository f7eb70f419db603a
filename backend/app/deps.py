from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .database import async_session
from .models import Member, MemberRole


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


async def get_current_member_id(x_member_id: str | None = Header(default=None)) -> int:
    if x_member_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-Member-Id header required")
    try:
        return int(x_member_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid X-Member-Id") from exc


async def get_current_member(
    member_id: int = Depends(get_current_member_id),
    session: AsyncSession = Depends(get_session),
) -> Member:
    member = await session.get(Member, member_id)
    # End the implicit read transaction so routes can open their own.
    await session.commit()
    if member is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unknown member")
    return member


async def require_admin(member: Member = Depends(get_current_member)) -> Member:
    if member.role != MemberRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin only")
    return member
