"""Tests for the chief-role, age and deletion guards."""

from datetime import date

import pytest
from sqlmodel import select

from barbershop import catalog
from barbershop.db import store_errors
from barbershop.errors import (
    AgeRestrictionError,
    ConflictError,
    NotFoundError,
    ProtectedEntityError,
    RoleConflictError,
)
from barbershop.locks import KeyedLock
from barbershop.models import Barber, BarberAvailability, BarberService
from barbershop.roles import RoleGuard
from barbershop.schemas import BarberRole
from tests.conftest import TODAY, at, make_settings


class TestSingleChief:
    def test_second_chief_rejected(self, guard, shop):
        with pytest.raises(RoleConflictError):
            guard.assign_role(shop.alex.id, BarberRole.chief)
        assert guard.get_barber(shop.alex.id).role == "senior"
        assert guard.current_chief().id == shop.john.id

    def test_new_chief_barber_rejected(self, guard, shop):
        with pytest.raises(RoleConflictError):
            guard.create_barber("Paul Young", date(1992, 1, 1), date(2024, 1, 1), BarberRole.chief)

    def test_inactive_new_chief_still_rejected(self, guard, shop):
        with pytest.raises(RoleConflictError):
            guard.create_barber(
                "Paul Young", date(1992, 1, 1), date(2024, 1, 1), BarberRole.chief, active=False
            )

    def test_handover(self, guard, shop):
        guard.assign_role(shop.john.id, BarberRole.senior)
        assert guard.current_chief() is None
        guard.assign_role(shop.alex.id, BarberRole.chief)
        assert guard.current_chief().id == shop.alex.id

    def test_reassigning_current_chief_is_noop(self, guard, shop):
        barber = guard.assign_role(shop.john.id, "chief")
        assert barber.role == "chief"

    def test_reactivating_chief_while_another_is_chief(self, guard, shop):
        guard.update_barber(shop.john.id, active=False)
        assert guard.current_chief() is None
        guard.assign_role(shop.alex.id, BarberRole.chief)
        with pytest.raises(RoleConflictError):
            guard.update_barber(shop.john.id, active=True)
        assert guard.get_barber(shop.john.id).active is False

    def test_store_backs_up_the_rule(self, session, shop):
        # Bypass the guard: the partial unique index still refuses a second chief.
        session.add(
            Barber(
                full_name="Rogue Chief",
                birth_date=date(1980, 1, 1),
                hire_date=date(2010, 1, 1),
                role="chief",
            )
        )
        with pytest.raises(RoleConflictError):
            with store_errors(unique=RoleConflictError):
                session.commit()
        session.rollback()

    def test_unknown_barber(self, guard, shop):
        with pytest.raises(NotFoundError):
            guard.assign_role(999, BarberRole.junior)


class TestAge:
    def test_too_young_on_create(self, session):
        guard = RoleGuard(session, KeyedLock("t"), make_settings(), today=lambda: date(2025, 3, 5))
        with pytest.raises(AgeRestrictionError):
            guard.create_barber("Young One", date(2005, 3, 5), date(2025, 1, 1))
        assert guard.list_barbers() == []

    def test_day_before_birthday_rejected(self, session):
        guard = RoleGuard(session, KeyedLock("t"), make_settings(), today=lambda: date(2025, 3, 4))
        with pytest.raises(AgeRestrictionError):
            guard.create_barber("Young One", date(2005, 3, 5), date(2025, 1, 1))

    def test_exactly_twenty_one(self, session):
        guard = RoleGuard(session, KeyedLock("t"), make_settings(), today=lambda: date(2026, 3, 5))
        barber = guard.create_barber("Young One", date(2005, 3, 5), date(2025, 1, 1))
        assert barber.id is not None
        assert barber.role == "junior"

    def test_configured_minimum(self, session):
        guard = RoleGuard(
            session, KeyedLock("t"), make_settings(min_barber_age=18), today=lambda: date(2025, 3, 5)
        )
        assert guard.create_barber("Young One", date(2005, 3, 5), date(2025, 1, 1)).id

    def test_update_rechecks_birth_date(self, guard, shop):
        with pytest.raises(AgeRestrictionError):
            guard.update_barber(shop.mark.id, birth_date=date(2010, 1, 1))
        assert guard.get_barber(shop.mark.id).birth_date == date(1998, 9, 21)


class TestUpdate:
    def test_update_fields(self, guard, shop):
        barber = guard.update_barber(shop.mark.id, phone="+380930000000", full_name="Mark D.")
        assert (barber.full_name, barber.phone) == ("Mark D.", "+380930000000")
        assert barber.updated_at >= barber.created_at

    def test_role_not_updatable_directly(self, guard, shop):
        with pytest.raises(ValueError):
            guard.update_barber(shop.mark.id, role="chief")

    def test_none_values_are_ignored(self, guard, shop):
        barber = guard.update_barber(shop.mark.id, email=None)
        assert barber.email == "mark@example.com"

    def test_list_active_only(self, guard, shop):
        guard.update_barber(shop.mark.id, active=False)
        names = [b.full_name for b in guard.list_barbers(include_inactive=False)]
        assert names == ["Alex Johnson", "John Smith"]


class TestDelete:
    def test_chief_protected_until_reassigned(self, guard, shop):
        with pytest.raises(ProtectedEntityError):
            guard.delete_barber(shop.john.id)
        assert guard.get_barber(shop.john.id).role == "chief"

        guard.assign_role(shop.john.id, BarberRole.senior)
        guard.assign_role(shop.alex.id, BarberRole.chief)
        guard.delete_barber(shop.john.id)
        with pytest.raises(NotFoundError):
            guard.get_barber(shop.john.id)

    def test_inactive_chief_still_protected(self, guard, shop):
        guard.update_barber(shop.john.id, active=False)
        with pytest.raises(ProtectedEntityError):
            guard.delete_barber(shop.john.id)

    def test_delete_removes_offers_and_windows(self, session, guard, shop):
        catalog.add_availability_window(session, shop.mark.id, at(9), at(17))
        guard.delete_barber(shop.mark.id)
        for owned in (BarberService, BarberAvailability):
            assert session.exec(select(owned).where(owned.barber_id == shop.mark.id)).all() == []
        assert session.get(Barber, shop.mark.id) is None

    def test_barber_with_appointments_is_kept(self, guard, booking, shop):
        booking.book_appointment(shop.mark.id, shop.nick.id, [shop.fade.id], at(10))
        with pytest.raises(ConflictError):
            guard.delete_barber(shop.mark.id)
        assert guard.get_barber(shop.mark.id).full_name == "Mark Davis"

    def test_unknown_barber(self, guard):
        with pytest.raises(NotFoundError):
            guard.delete_barber(42)


def test_today_is_fixed_for_tests(guard):
    assert guard.today() == TODAY
