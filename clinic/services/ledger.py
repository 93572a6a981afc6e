"""
Test-allocation ledger.

The functions in this module are the only writers of the ``QuotaHolder``
counters.  Each transfer locks both rows with ``select_for_update`` and
writes them inside one transaction, so a failed precondition or a crash
leaves both sides untouched and concurrent transfers cannot lose updates.

The two transfer paths move the grantor's ``tests_allocated`` in opposite
directions (super admin -> hospital admin adds, hospital admin -> doctor
subtracts).  That is how the clinic network has always booked them; the
rules are kept side by side in :data:`TRANSFER_RULES` until product
decides on a single convention.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Iterable

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from clinic.exceptions import InsufficientQuota
from clinic.models import Doctor, HospitalAdmin, QuotaHolder, SuperAdmin
from clinic.services.audit import log_action
from clinic.services.events import broadcast_ledger_update

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferRule:
    name: str
    # +1 or -1: direction of the grantor's tests_allocated for a positive count
    grantor_allocated_sign: int
    # grantee counter credited next to tests_remaining
    grantee_credit_field: str
    allow_negative: bool
    clamp_at_zero: bool


SUPER_TO_HOSPITAL = TransferRule(
    name='super_admin->hospital_admin',
    grantor_allocated_sign=+1,
    grantee_credit_field='total_tests',
    allow_negative=True,
    clamp_at_zero=True,
)

HOSPITAL_TO_DOCTOR = TransferRule(
    name='hospital_admin->doctor',
    grantor_allocated_sign=-1,
    grantee_credit_field='tests_allocated',
    allow_negative=False,
    clamp_at_zero=False,
)

TRANSFER_RULES = {rule.name: rule for rule in (SUPER_TO_HOSPITAL, HOSPITAL_TO_DOCTOR)}


def clamp_at_zero(holder: QuotaHolder, fields: Iterable[str] = QuotaHolder.LEDGER_FIELDS) -> None:
    """Floor the given counters at zero."""
    for field in fields:
        if getattr(holder, field) < 0:
            setattr(holder, field, 0)


@dataclass
class Transfer:
    rule: TransferRule
    grantor: QuotaHolder
    grantee: QuotaHolder
    count: int


def _locked(holder: QuotaHolder) -> QuotaHolder:
    return type(holder).objects.select_for_update().get(pk=holder.pk)


def _sync(target: QuotaHolder, source: QuotaHolder) -> None:
    for field in QuotaHolder.LEDGER_FIELDS:
        setattr(target, field, getattr(source, field))


def _check_count(rule: TransferRule, count) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValidationError({'count': 'count must be an integer'})
    if count == 0 or (count < 0 and not rule.allow_negative):
        raise ValidationError({'count': 'invalid test count'})
    return count


def _check_preconditions(rule: TransferRule, grantor: QuotaHolder, grantee: QuotaHolder, count: int) -> None:
    if count > 0 and grantor.tests_remaining < count:
        raise InsufficientQuota(f'Not enough tests remaining to allocate {count} (available: {grantor.tests_remaining})')
    if count < 0 and (grantee.tests_remaining < -count or grantee.total_tests < -count):
        raise InsufficientQuota(f'Cannot de-allocate {-count} tests; grantee holds {grantee.tests_remaining}')


def _apply(rule: TransferRule, grantor: QuotaHolder, grantee: QuotaHolder, count: int) -> None:
    grantor.tests_allocated += rule.grantor_allocated_sign * count
    grantor.tests_remaining -= count
    setattr(grantee, rule.grantee_credit_field, getattr(grantee, rule.grantee_credit_field) + count)
    grantee.tests_remaining += count
    if rule.clamp_at_zero:
        clamp_at_zero(grantor)
        clamp_at_zero(grantee)


def _after_commit(rule: TransferRule, grantor: QuotaHolder, grantee: QuotaHolder, count: int, actor) -> None:
    log_action(person=actor, action='allocate_tests', object_type=type(grantee).__name__, object_id=grantee.pk,
               detail={'rule': rule.name, 'count': count,
                       'grantor': grantor.test_metrics(), 'grantee': grantee.test_metrics()})
    broadcast_ledger_update(rule.name, grantor, grantee)


def transfer(rule: TransferRule, grantor: QuotaHolder, grantee: QuotaHolder, count, *, actor=None) -> Transfer:
    """Move ``count`` tests from ``grantor`` to ``grantee`` under ``rule``.

    The passed instances are refreshed with the committed values.
    """
    count = _check_count(rule, count)
    with transaction.atomic():
        locked_grantor = _locked(grantor)
        locked_grantee = _locked(grantee)
        _check_preconditions(rule, locked_grantor, locked_grantee, count)
        _apply(rule, locked_grantor, locked_grantee, count)
        locked_grantor.save(update_fields=list(QuotaHolder.LEDGER_FIELDS))
        locked_grantee.save(update_fields=list(QuotaHolder.LEDGER_FIELDS))
        transaction.on_commit(
            partial(_after_commit, rule, locked_grantor, locked_grantee, count, actor), robust=True,
        )
    _sync(grantor, locked_grantor)
    _sync(grantee, locked_grantee)
    logger.info("%s: %d tests, grantor=%s grantee=%s", rule.name, count,
                grantor.test_metrics(), grantee.test_metrics())
    return Transfer(rule=rule, grantor=grantor, grantee=grantee, count=count)


def allocate_to_hospital_admin(super_admin: SuperAdmin, hospital_admin: HospitalAdmin, count, *, actor=None) -> Transfer:
    """Signed (re-)allocation between a super admin and one of its centres."""
    if hospital_admin.created_by_id != super_admin.pk:
        raise NotFound('Hospital admin not found for this super admin')
    return transfer(SUPER_TO_HOSPITAL, super_admin, hospital_admin, count, actor=actor)


def allocate_to_doctor(hospital_admin: HospitalAdmin, doctor: Doctor, count, *, actor=None) -> Transfer:
    """Positive allocation from a hospital admin to one of its doctors."""
    if doctor.hospital_admin_id != hospital_admin.pk:
        raise NotFound('Doctor not found for this hospital admin')
    return transfer(HOSPITAL_TO_DOCTOR, hospital_admin, doctor, count, actor=actor)


def ensure_can_seed(super_admin: SuperAdmin, total_tests: int) -> None:
    """Precondition for creating a hospital admin with ``total_tests``.

    Creation checks the pool but does not draw it down; only
    :func:`allocate_to_hospital_admin` moves the super admin counters.
    """
    if isinstance(total_tests, bool) or not isinstance(total_tests, int) or total_tests <= 0:
        raise ValidationError({'totalTests': 'total tests must be a positive integer'})
    if total_tests > super_admin.tests_remaining:
        raise InsufficientQuota('Requested tests exceed super admin tests remaining')


def record_test_completion(doctor: Doctor) -> Doctor:
    """Consume one test from a doctor's allocation.

    ``tests_remaining`` is not floored: running more tests than allocated
    drives it negative and the overdraft stays visible on the dashboard.
    """
    with transaction.atomic():
        locked = _locked(doctor)
        locked.tests_done += 1
        locked.tests_remaining -= 1
        locked.save(update_fields=['tests_done', 'tests_remaining'])
        transaction.on_commit(partial(broadcast_ledger_update, 'test_completed', locked), robust=True)
    _sync(doctor, locked)
    if doctor.tests_remaining < 0:
        logger.warning("doctor %s is %d tests over allocation", doctor.pk, -doctor.tests_remaining)
    return doctor
