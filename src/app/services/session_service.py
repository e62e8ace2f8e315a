"""
Session Service

Issues, rotates and revokes device sessions, and detects stolen refresh
token reuse.
"""

import logging
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.dtos import (
    AuthTokens,
    SessionGrant,
    SessionInfo,
    SessionPolicy,
    SessionStats,
)
from src.app.services.hash_service import IHashService
from src.app.services.token_issuer import ITokenIssuer
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import AuditAction, AuditEvent, Session

logger = logging.getLogger(__name__)

INVALID_OR_EXPIRED = "INVALID_OR_EXPIRED"
REUSE_DETECTED = "REUSE_DETECTED"


def _chunks(items: List[UUID], size: int) -> Iterator[List[UUID]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class SessionService:
    """
    Session lifecycle and refresh token rotation.

    Business Rules:
    - Only the bcrypt hash of a refresh token is stored; the raw token is
      returned to the client once
    - A refresh token is valid for exactly one rotation
    - Rotation is a conditional write on the previous hash, so two concurrent
      refreshes with the same token cannot both succeed
    - Presenting a token that does not match the current hash is treated as
      theft: every active session of the owner is revoked
    - Expired sessions may still rotate within the grace period
    - revoked_at is terminal
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hash_service: IHashService,
        token_issuer: ITokenIssuer,
        policy: SessionPolicy,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.hash_service = hash_service
        self.token_issuer = token_issuer
        self.policy = policy
        self.clock = clock

    async def create_session(
        self,
        user_id: str,
        device_info: Optional[Dict[str, Any]],
        device_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[SessionGrant]:
        """
        Create a session for an already authenticated user.

        Args:
            user_id: Owning principal
            device_info: Client metadata, stored as-is
            device_id: Client installation identifier
            ip_address: Request IP, for forensics
            user_agent: Request user agent, for forensics

        Returns:
            Result with SessionGrant holding the raw refresh token, or Error

        Store failures are raised to the caller.
        """
        if not user_id or not device_id:
            return Return.err(
                Error("INVALID_INPUT", "user_id and device_id are required")
            )

        now = self.clock()
        refresh_token = self.token_issuer.generate_refresh_secret()
        refresh_token_hash = await self.hash_service.hash(refresh_token)

        async with self.uow:
            session = Session(
                user_id=user_id,
                refresh_token_hash=refresh_token_hash,
                device_id=device_id,
                device_info=device_info,
                ip_address=ip_address,
                user_agent=user_agent,
                created_at=now,
                last_used_at=now,
                expires_at=now + self.policy.refresh_ttl,
            )
            session = await self.uow.sessions.create(session)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user_id,
                    session_id=session.id,
                    action=AuditAction.session_created.value,
                    event_metadata={
                        "device_id": device_id,
                        "ip_address": ip_address,
                    },
                )
            )

            await self.uow.commit()

        logger.info(
            f"Session created: session_id={session.id} user_id={user_id} device_id={device_id}"
        )
        return Return.ok(self._grant(session, refresh_token))

    async def verify_and_rotate(
        self,
        session_id: UUID,
        refresh_token: str,
        device_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[SessionGrant]:
        """
        Verify a refresh token and rotate it.

        Args:
            session_id: Session the token belongs to
            refresh_token: Raw refresh token presented by the client
            device_id: When given, must match the session's device
            ip_address: Recorded on success when given
            user_agent: Recorded on success when given

        Returns:
            Result with SessionGrant holding the new refresh token, or Error
            - INVALID_OR_EXPIRED: unknown, revoked, expired past grace,
              device mismatch, or a concurrent refresh won the rotation
            - REUSE_DETECTED: token did not match; all user sessions revoked
        """
        now = self.clock()

        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)

            if session is None:
                logger.warning(f"Refresh rejected, session not found: session_id={session_id}")
                return self._invalid()

            if session.revoked_at is not None:
                logger.warning(f"Refresh rejected, session revoked: session_id={session_id}")
                return self._invalid()

            if not self._within_grace(session, now):
                logger.warning(
                    f"Refresh rejected, session expired at {session.expires_at.isoformat()}: "
                    f"session_id={session_id}"
                )
                return self._invalid()

            if device_id and session.device_id != device_id:
                logger.warning(f"Refresh rejected, device mismatch: session_id={session_id}")
                return self._invalid()

            expected_hash = session.refresh_token_hash
            user_id = session.user_id

            if not await self.hash_service.verify(refresh_token, expected_hash):
                logger.error(
                    f"Refresh token reuse detected: session_id={session_id} user_id={user_id}, "
                    "revoking all user sessions"
                )
                await self._revoke_after_reuse(user_id, session_id, now)
                return Return.err(
                    Error(
                        REUSE_DETECTED,
                        "Refresh token reuse detected, all sessions have been revoked",
                    )
                )

            new_refresh_token = self.token_issuer.generate_refresh_secret()
            new_refresh_token_hash = await self.hash_service.hash(new_refresh_token)

            updated = await self.uow.sessions.rotate_refresh_token(
                session_id,
                expected_hash=expected_hash,
                new_hash=new_refresh_token_hash,
                expires_at=now + self.policy.refresh_ttl,
                last_used_at=now,
                ip_address=ip_address,
                user_agent=user_agent,
            )

            if updated is None:
                # Another request rotated this token first
                logger.warning(f"Refresh rejected, lost rotation race: session_id={session_id}")
                await self.uow.rollback()
                return self._invalid()

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=user_id,
                    session_id=session_id,
                    action=AuditAction.session_rotated.value,
                    event_metadata={"ip_address": ip_address},
                )
            )

            await self.uow.commit()

        logger.info(f"Session rotated: session_id={session_id} user_id={user_id}")
        return Return.ok(self._grant(updated, new_refresh_token))

    async def revoke_session(self, session_id: UUID) -> Result[bool]:
        """
        Revoke one session.

        Returns:
            Result with True if the session was active and is now revoked,
            False if it does not exist or was already revoked
        """
        now = self.clock()

        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            if session is None or session.revoked_at is not None:
                return Return.ok(False)

            if not await self.uow.sessions.revoke_by_id(session_id, now):
                return Return.ok(False)

            await self.uow.audit_events.create(
                AuditEvent(
                    user_id=session.user_id,
                    session_id=session_id,
                    action=AuditAction.session_revoked.value,
                )
            )

            await self.uow.commit()

        logger.info(f"Session revoked: session_id={session_id} user_id={session.user_id}")
        return Return.ok(True)

    async def revoke_all_user_sessions(
        self, user_id: str, except_session_id: Optional[UUID] = None
    ) -> Result[int]:
        """
        Revoke every active session of a user.

        Args:
            user_id: Owner of the sessions
            except_session_id: Session to leave active (log out other devices)

        Returns:
            Result with count of revoked sessions (0 when none were active),
            or REVOKE_FAILED if the store failed part way
        """
        now = self.clock()
        count = 0
        failed = False

        async with self.uow:
            try:
                async for revoked in self._revoke_user_sessions(
                    user_id, now, except_session_id
                ):
                    count += revoked
            except Exception:
                logger.exception(
                    f"Revoking sessions failed after {count} revocation(s): user_id={user_id}"
                )
                await self.uow.rollback()
                failed = True

            # Committed batches are audited even when a later batch failed
            if count:
                metadata = {"revoked_count": count}
                if except_session_id is not None:
                    metadata["kept_session_id"] = str(except_session_id)
                if failed:
                    metadata["revoke_failed"] = True
                if not await self._record(
                    AuditEvent(
                        user_id=user_id,
                        action=AuditAction.sessions_revoked_all.value,
                        event_metadata=metadata,
                    )
                ):
                    failed = True

        if failed:
            return Return.err(Error("REVOKE_FAILED", "Failed to revoke sessions"))

        logger.info(f"Revoked {count} session(s): user_id={user_id}")
        return Return.ok(count)

    async def cleanup_expired_sessions(self) -> Result[int]:
        """
        Revoke sessions past expires_at that were never revoked.

        Each page of up to revoke_batch_size sessions is committed on its own.

        Returns:
            Result with count of revoked sessions, or CLEANUP_FAILED
        """
        now = self.clock()
        batch_size = self.policy.revoke_batch_size
        total = 0

        async with self.uow:
            try:
                while True:
                    expired = await self.uow.sessions.get_expired_unrevoked(now, batch_size)
                    if not expired:
                        break

                    revoked = await self.uow.sessions.revoke_by_ids(
                        [s.id for s in expired], now
                    )
                    await self.uow.commit()
                    total += revoked

                    if len(expired) < batch_size or revoked == 0:
                        break

                if total:
                    await self.uow.audit_events.create(
                        AuditEvent(
                            action=AuditAction.expired_sessions_cleaned.value,
                            event_metadata={"revoked_count": total},
                        )
                    )
                    await self.uow.commit()
            except Exception:
                logger.exception(f"Expired session cleanup failed after {total} revocation(s)")
                await self.uow.rollback()
                return Return.err(Error("CLEANUP_FAILED", "Expired session cleanup failed"))

        logger.info(f"Expired session cleanup revoked {total} session(s)")
        return Return.ok(total)

    async def get_session(self, session_id: UUID) -> Optional[Session]:
        async with self.uow:
            return await self.uow.sessions.get_by_id(session_id)

    async def find_active_sessions(self, user_id: str) -> Result[List[SessionInfo]]:
        """Active, unexpired sessions of a user"""
        now = self.clock()
        async with self.uow:
            sessions = await self.uow.sessions.get_active_by_user_id(user_id, now=now)
        return Return.ok([SessionInfo.from_entity(s) for s in sessions])

    async def get_session_stats(self, user_id: str) -> Result[SessionStats]:
        now = self.clock()
        async with self.uow:
            active = await self.uow.sessions.count_by_user_id(user_id, active_at=now)
            total = await self.uow.sessions.count_by_user_id(user_id)
        return Return.ok(SessionStats(active_sessions=active, total_sessions=total))

    async def _revoke_user_sessions(
        self, user_id: str, now: datetime, except_session_id: Optional[UUID] = None
    ) -> AsyncIterator[int]:
        """Revoke a user's sessions batch by batch, yielding each committed count"""
        sessions = await self.uow.sessions.get_active_by_user_id(user_id)
        session_ids = [s.id for s in sessions if s.id != except_session_id]

        for batch in _chunks(session_ids, self.policy.revoke_batch_size):
            revoked = await self.uow.sessions.revoke_by_ids(batch, now)
            await self.uow.commit()
            yield revoked

    async def _revoke_after_reuse(self, user_id: str, session_id: UUID, now: datetime):
        count = 0
        metadata = {}
        try:
            async for revoked in self._revoke_user_sessions(user_id, now):
                count += revoked
        except Exception:
            # The caller still gets REUSE_DETECTED and must re-authenticate
            logger.exception(
                f"Revoking sessions after reuse failed after {count} revocation(s): "
                f"user_id={user_id}"
            )
            await self.uow.rollback()
            metadata["revoke_failed"] = True

        metadata["revoked_count"] = count
        await self._record(
            AuditEvent(
                user_id=user_id,
                session_id=session_id,
                action=AuditAction.refresh_token_reuse_detected.value,
                event_metadata=metadata,
            )
        )

    async def _record(self, event: AuditEvent) -> bool:
        """Write and commit one audit event on its own; False if the store failed"""
        try:
            await self.uow.audit_events.create(event)
            await self.uow.commit()
        except Exception:
            logger.exception(f"Recording audit event failed: action={event.action}")
            await self.uow.rollback()
            return False
        return True

    def _within_grace(self, session: Session, now: datetime) -> bool:
        expired = now >= session.expires_at
        over_grace = (now - session.expires_at) > self.policy.grace_period
        return not (expired and over_grace)

    def _grant(self, session: Session, refresh_token: str) -> SessionGrant:
        access_token = self.token_issuer.create_access_token(session.user_id, session.id)
        return SessionGrant(
            session=session,
            tokens=AuthTokens(
                access_token=access_token,
                access_token_expires_at=self.token_issuer.get_expiry(access_token),
                refresh_token=refresh_token,
                refresh_token_expires_at=session.expires_at,
                session_id=str(session.id),
            ),
        )

    @staticmethod
    def _invalid() -> Result:
        return Return.err(Error(INVALID_OR_EXPIRED, "Invalid or expired refresh token"))
