"""
Append-only activation audit log.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from boundlic.common.models import ActivationLogInfo, AuditAction
from boundlic.server.database import ActivationLog, utcnow

if TYPE_CHECKING:
    from boundlic.server.database import Database


class ActivationAuditLog:
    """Records every activation, verification and reset attempt.

    Each entry is written in its own short transaction so that a failed audit
    write can never roll back or block the operation being audited.
    """

    def __init__(
        self,
        database: Database,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.database = database
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def record(
        self,
        license_key: str,
        machine_id: str | None,
        ip_address: str | None,
        action: AuditAction,
        success: bool,  # noqa: FBT001
        message: str,
    ) -> None:
        """Append one entry. Failures are logged, never raised."""
        entry = ActivationLog(
            license_key=license_key,
            machine_id=machine_id,
            ip_address=ip_address,
            action=action.value,
            success=success,
            message=message,
            created_at=self.clock(),
        )
        try:
            with self.database.session() as session:
                session.add(entry)
        except SQLAlchemyError:
            self.logger.exception(
                "Could not write %s audit entry for %s", action.value, license_key
            )

    def list_entries(
        self, license_key: str | None = None, limit: int | None = None
    ) -> list[ActivationLogInfo]:
        """Return entries, newest first, optionally for one key."""
        stmt = select(ActivationLog).order_by(
            ActivationLog.created_at.desc(), ActivationLog.id.desc()
        )
        if license_key:
            stmt = stmt.where(ActivationLog.license_key == license_key)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.database.session() as session:
            rows = session.scalars(stmt).all()
            return [ActivationLogInfo.model_validate(row) for row in rows]

    def purge(self, older_than_days: int) -> int:
        """Delete entries older than ``older_than_days``; return how many."""
        if older_than_days < 0:
            msg = "older_than_days must be >= 0"
            raise ValueError(msg)
        cutoff = self.clock() - timedelta(days=older_than_days)
        with self.database.session() as session:
            result = session.execute(
                delete(ActivationLog).where(ActivationLog.created_at < cutoff)
            )
            removed = result.rowcount or 0
        self.logger.info(
            "Purged %d audit entries older than %d days", removed, older_than_days
        )
        return removed
