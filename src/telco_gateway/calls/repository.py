"""
Repositories for call sessions and user telephony identity.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from telco_gateway.calls.models import AssignedNumber, CallSession, CallStage, User


class TelephonyIdentityRepository:
    """Repository for users and their assigned numbers."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_user(self, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_primary_number(self, user_id: int) -> AssignedNumber | None:
        """Earliest assigned number of `user_id` (lowest id), if any."""
        stmt = (
            select(AssignedNumber)
            .where(AssignedNumber.user_id == user_id)
            .order_by(AssignedNumber.id.asc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_number(self, e164: str) -> AssignedNumber | None:
        stmt = select(AssignedNumber).where(AssignedNumber.e164 == e164)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


class CallSessionRepository:
    """Repository for call session database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        call_sid: str,
        user_id: int,
        from_number: str,
        to_number: str,
        user_forwarding_number: str,
        stage: CallStage = CallStage.LEG_A_DIALING,
    ) -> CallSession:
        call_session = CallSession(
            call_sid=call_sid,
            user_id=user_id,
            from_number=from_number,
            to_number=to_number,
            user_forwarding_number=user_forwarding_number,
            stage=stage.value,
        )
        self._session.add(call_session)
        await self._session.flush()
        await self._session.refresh(call_session)
        return call_session

    async def get_by_call_sid(self, call_sid: str) -> CallSession | None:
        stmt = select(CallSession).where(CallSession.call_sid == call_sid)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
