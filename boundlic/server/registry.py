"""
License registry: the license lifecycle and its validation rules.

Every operation is a read-evaluate-write cycle against the database; the
registry keeps no state between calls.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, NoReturn

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from boundlic.common.config import Config
from boundlic.common.exceptions import (
    ForbiddenError,
    InternalError,
    LicenseError,
    NotFoundError,
    ValidationError,
)
from boundlic.common.messages import Messages
from boundlic.common.models import (
    ActivationResult,
    AuditAction,
    LicenseInfo,
    VerifyResult,
)
from boundlic.server.database import License, utcnow
from boundlic.server.keygen import KeyGenerator, normalize_key

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from boundlic.common.interfaces import IAuditLog, IKeyGenerator
    from boundlic.server.database import Database


def parse_expiry(value: date | str) -> date:
    """Accept a date, a datetime or an ISO 8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text).date()


class LicenseRegistry:
    """Creates, activates, verifies, resets and lists licenses."""

    def __init__(  # noqa: PLR0913
        self,
        database: Database,
        audit_log: IAuditLog,
        key_generator: IKeyGenerator | None = None,
        messages: Messages | None = None,
        config: Config | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config or Config()
        self.database = database
        self.audit_log = audit_log
        self.key_generator = key_generator or KeyGenerator(self.config.KEY_PREFIX)
        self.messages = messages or Messages(self.config.LOCALE)
        self.clock = clock
        self.max_key_attempts = self.config.MAX_KEY_ATTEMPTS
        self.race_retries = self.config.ACTIVATION_RACE_RETRIES
        self.logger = logging.getLogger(__name__)

    def today(self) -> date:
        return self.clock().date()

    def days_remaining(self, expires_at: date) -> int:
        return (expires_at - self.today()).days

    @staticmethod
    def _find(session: Session, license_key: str) -> License | None:
        return session.scalar(select(License).where(License.license_key == license_key))

    def create(
        self,
        client_name: str | None,
        expires_at: date | str | None,
        client_email: str | None = None,
        notes: str | None = None,
    ) -> LicenseInfo:
        """Issue a new unbound license and return it, key included."""
        name = (client_name or "").strip()
        if not name or expires_at is None or expires_at == "":
            raise ValidationError(self.messages.get("create_fields_required"))
        try:
            expiry = parse_expiry(expires_at)
        except (TypeError, ValueError) as err:
            raise ValidationError(self.messages.get("invalid_expiry_date")) from err

        for attempt in range(1, self.max_key_attempts + 1):
            license_key = self.key_generator.generate()
            try:
                with self.database.session() as session:
                    record = License(
                        license_key=license_key,
                        client_name=name,
                        client_email=client_email or None,
                        machine_id=None,
                        activated_at=None,
                        expires_at=expiry,
                        is_active=True,
                        created_at=self.clock(),
                        notes=notes or None,
                    )
                    session.add(record)
                    session.flush()
                    created = LicenseInfo.model_validate(record)
            except IntegrityError:
                self.logger.warning(
                    "License key collision (attempt %d/%d)",
                    attempt,
                    self.max_key_attempts,
                )
                continue
            self.logger.info(
                "Created license %s for %s, expires %s", license_key, name, expiry
            )
            return created

        self.logger.error(
            "Gave up creating a license after %d key collisions", self.max_key_attempts
        )
        raise InternalError(self.messages.get("create_server_error"))

    def _activation_failure(
        self, record: License | None, machine_id: str
    ) -> tuple[LicenseError, str] | None:
        """First failing activation rule as (error, audit message), else None."""
        if record is None:
            return NotFoundError(self.messages.get("invalid_key")), self.messages.get(
                "log_invalid_key"
            )
        if not record.is_active:
            return (
                ForbiddenError(self.messages.get("license_deactivated")),
                self.messages.get("log_deactivated"),
            )
        if self.today() > record.expires_at:
            expired_on = self.messages.format_date(record.expires_at)
            return (
                ForbiddenError(self.messages.get("license_expired", date=expired_on)),
                self.messages.get("log_expired"),
            )
        if record.machine_id is not None and record.machine_id != machine_id:
            return (
                ForbiddenError(self.messages.get("other_machine")),
                self.messages.get("log_other_machine"),
            )
        return None

    def _bind_if_unbound(self, session: Session, license_key: str, machine_id: str) -> bool:
        """Bind atomically; False when another machine got there first."""
        result = session.execute(
            update(License)
            .where(License.license_key == license_key, License.machine_id.is_(None))
            .values(machine_id=machine_id, activated_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _refuse_activation(
        self,
        key: str,
        machine_id: str,
        source_address: str | None,
        failure: tuple[LicenseError, str],
    ) -> NoReturn:
        error, audit_message = failure
        self.logger.info(
            "Activation refused for %s on %s: %s", key, machine_id, audit_message
        )
        self.audit_log.record(
            key,
            machine_id,
            source_address,
            AuditAction.ACTIVATE,
            False,  # noqa: FBT003
            audit_message,
        )
        raise error

    def activate(
        self, license_key: str, machine_id: str, source_address: str | None
    ) -> ActivationResult:
        """Bind the license to ``machine_id`` or confirm an existing binding."""
        key = normalize_key(license_key)
        if not self.key_generator.is_well_formed(key):
            # Cannot exist; answered like an unknown key without a lookup
            self._refuse_activation(
                key, machine_id, source_address, self._activation_failure(None, machine_id)
            )

        for _ in range(self.race_retries + 1):
            result = None
            with self.database.session() as session:
                record = self._find(session, key)
                failure = self._activation_failure(record, machine_id)
                if failure is None:
                    if record.machine_id is None and not self._bind_if_unbound(
                        session, key, machine_id
                    ):
                        self.logger.info(
                            "Lost first-activation race on %s, re-evaluating", key
                        )
                        continue
                    result = ActivationResult(
                        client_name=record.client_name,
                        expires_at=record.expires_at,
                        days_remaining=self.days_remaining(record.expires_at),
                    )

            if failure is not None:
                self._refuse_activation(key, machine_id, source_address, failure)

            self.logger.info("License %s activated on %s", key, machine_id)
            self.audit_log.record(
                key,
                machine_id,
                source_address,
                AuditAction.ACTIVATE,
                True,  # noqa: FBT003
                self.messages.get("log_activated"),
            )
            return result

        self.logger.error("Activation of %s kept losing races, giving up", key)
        raise InternalError(self.messages.get("activation_server_error"))

    def verify(
        self, license_key: str, machine_id: str, source_address: str | None = None
    ) -> VerifyResult:
        """Report validity of the license bound to ``machine_id``.

        A license bound to another machine is reported exactly like an unknown
        key.
        """
        key = normalize_key(license_key)
        with self.database.session() as session:
            record = session.scalar(
                select(License).where(
                    License.license_key == key, License.machine_id == machine_id
                )
            )
            result = None
            if record is not None:
                result = VerifyResult(
                    valid=record.is_active and self.today() <= record.expires_at,
                    client_name=record.client_name,
                    expires_at=record.expires_at,
                    days_remaining=self.days_remaining(record.expires_at),
                    is_active=record.is_active,
                )

        if result is None:
            self.audit_log.record(
                key,
                machine_id,
                source_address,
                AuditAction.VERIFY,
                False,  # noqa: FBT003
                self.messages.get("log_verify_not_found"),
            )
            raise NotFoundError(self.messages.get("verify_not_found"))

        self.audit_log.record(
            key,
            machine_id,
            source_address,
            AuditAction.VERIFY,
            result.valid,
            self.messages.get("log_verified" if result.valid else "log_verify_invalid"),
        )
        return result

    def reset_machine(self, license_key: str) -> LicenseInfo:
        """Unbind the license so it can be activated on another machine."""
        key = normalize_key(license_key)
        with self.database.session() as session:
            record = self._find(session, key)
            if record is None:
                raise NotFoundError(self.messages.get("license_not_found"))
            previous_machine = record.machine_id
            record.machine_id = None
            session.flush()
            reset = LicenseInfo.model_validate(record)

        self.logger.info("License %s unbound from %s", key, previous_machine)
        self.audit_log.record(
            key,
            previous_machine,
            None,
            AuditAction.RESET,
            True,  # noqa: FBT003
            self.messages.get("log_reset"),
        )
        return reset

    def list_licenses(
        self, limit: int | None = None, offset: int = 0
    ) -> list[LicenseInfo]:
        """All licenses, newest first."""
        stmt = (
            select(License)
            .order_by(License.created_at.desc(), License.id.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.database.session() as session:
            return [LicenseInfo.model_validate(row) for row in session.scalars(stmt)]
