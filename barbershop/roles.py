# barbershop/roles.py
"""
Guards on barber records: the minimum age, the single active chief and the
rule that the chief cannot be deleted.

The chief is always looked up in the store, never remembered between calls.
Guard writes run under one process-wide lock, because two promotions of
different barbers racing each other is the one case that crosses barbers.
The store's partial unique index on the chief role backs this up.
"""

import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlmodel import Session, select

from .config import Settings, settings as default_settings
from .core import full_years
from .db import store_errors
from .errors import (
    AgeRestrictionError,
    ConflictError,
    NotFoundError,
    ProtectedEntityError,
    RoleConflictError,
)
from .locks import CHIEF_ROLE_KEY, KeyedLock, role_locks
from .models import Barber, BarberAvailability, BarberService
from .schemas import BarberRole

logger = logging.getLogger(__name__)

MIN_BARBER_AGE = 21

UPDATABLE_FIELDS = ("full_name", "phone", "email", "birth_date", "hire_date", "active")


def validate_age(birth_date: date, as_of: date, minimum: int = MIN_BARBER_AGE) -> bool:
    """Return True if the barber is at least ``minimum`` full years old on ``as_of``."""
    age = full_years(birth_date, as_of)
    if age < minimum:
        raise AgeRestrictionError(
            f"Barber must be at least {minimum} years old (is {age} on {as_of.isoformat()})"
        )
    return True


class RoleGuard:
    def __init__(
        self,
        session: Session,
        locks: KeyedLock = role_locks,
        settings: Settings = default_settings,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.session = session
        self.locks = locks
        self.settings = settings
        self.today = today

    def current_chief(self) -> Optional[Barber]:
        return self.session.exec(
            select(Barber)
            .where(Barber.role == BarberRole.chief.value)
            .where(Barber.active == True)  # noqa: E712
        ).first()

    def get_barber(self, barber_id: int) -> Barber:
        barber = self.session.get(Barber, barber_id)
        if barber is None:
            raise NotFoundError(f"Barber {barber_id} not found")
        return barber

    def list_barbers(self, include_inactive: bool = True) -> List[Barber]:
        stmt = select(Barber)
        if not include_inactive:
            stmt = stmt.where(Barber.active == True)  # noqa: E712
        return list(self.session.exec(stmt.order_by(Barber.full_name)).all())

    def create_barber(
        self,
        full_name: str,
        birth_date: date,
        hire_date: date,
        role: BarberRole = BarberRole.junior,
        phone: str = "",
        email: str = "",
        active: bool = True,
    ) -> Barber:
        role = BarberRole(role)
        validate_age(birth_date, self.today(), self.settings.min_barber_age)

        with self.locks.hold(CHIEF_ROLE_KEY, self.settings.lock_timeout_seconds):
            if role is BarberRole.chief:
                self._ensure_no_other_chief(None)

            barber = Barber(
                full_name=full_name,
                birth_date=birth_date,
                hire_date=hire_date,
                role=role.value,
                phone=phone,
                email=email,
                active=active,
            )
            self._save(barber)

        logger.info("Created barber %s (%s, %s)", barber.id, full_name, role.value)
        return barber

    def update_barber(self, barber_id: int, **changes) -> Barber:
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update barber field(s): {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in changes.items() if value is not None}

        if "birth_date" in changes:
            validate_age(changes["birth_date"], self.today(), self.settings.min_barber_age)

        with self.locks.hold(CHIEF_ROLE_KEY, self.settings.lock_timeout_seconds):
            barber = self.get_barber(barber_id)
            self.session.refresh(barber)
            reactivating = changes.get("active") is True and not barber.active
            if reactivating and barber.role == BarberRole.chief.value:
                self._ensure_no_other_chief(barber_id)

            for key, value in changes.items():
                setattr(barber, key, value)
            self._save(barber)

        logger.info("Updated barber %s: %s", barber_id, ", ".join(sorted(changes)) or "no changes")
        return barber

    def assign_role(self, barber_id: int, role: BarberRole) -> Barber:
        """
        Give a barber a new role.

        Promoting to chief while another active barber is chief fails; the
        current chief has to be reassigned first.
        """
        role = BarberRole(role)
        with self.locks.hold(CHIEF_ROLE_KEY, self.settings.lock_timeout_seconds):
            barber = self.get_barber(barber_id)
            self.session.refresh(barber)
            if role is BarberRole.chief:
                self._ensure_no_other_chief(barber_id)

            previous = barber.role
            barber.role = role.value
            self._save(barber)

        logger.info("Barber %s role changed: %s -> %s", barber_id, previous, role.value)
        return barber

    def delete_barber(self, barber_id: int) -> None:
        """
        Delete a barber with their service offers and availability windows.

        The chief is protected until someone else is made chief. Barbers that
        still have appointments or reviews cannot be deleted either;
        deactivate them instead.
        """
        with self.locks.hold(CHIEF_ROLE_KEY, self.settings.lock_timeout_seconds):
            barber = self.get_barber(barber_id)
            self.session.refresh(barber)
            if barber.role == BarberRole.chief.value:
                raise ProtectedEntityError(
                    f"Barber {barber_id} is the chief; assign the chief role to someone else first"
                )

            try:
                with store_errors(
                    foreign_key=ConflictError,
                    message=f"Barber {barber_id} still has appointments or reviews",
                ):
                    for owned in (BarberService, BarberAvailability):
                        rows = self.session.exec(
                            select(owned).where(owned.barber_id == barber_id)
                        ).all()
                        for row in rows:
                            self.session.delete(row)
                    self.session.flush()
                    self.session.delete(barber)
                    self.session.flush()
                    self.session.commit()
            except Exception:
                self.session.rollback()
                raise

        logger.info("Deleted barber %s", barber_id)

    def _ensure_no_other_chief(self, barber_id: Optional[int]) -> None:
        chief = self.current_chief()
        if chief is not None and chief.id != barber_id:
            logger.info(
                "Rejected chief role for barber %s: barber %s is chief", barber_id, chief.id
            )
            raise RoleConflictError(
                f"Barber {chief.id} ({chief.full_name}) is already the chief"
            )

    def _save(self, barber: Barber) -> None:
        barber.updated_at = datetime.now()
        try:
            with store_errors(
                unique=RoleConflictError, message="Another active barber is already the chief"
            ):
                self.session.add(barber)
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(barber)
