"""
Ledger change notifications over the channel layer.

Every quota holder has its own group (``ledger.<tier>.<id>``).  A change
to a holder is sent to that holder's group and to the groups of the
tiers above it, so a dashboard only ever sees its own counters and
those of the holders it manages.
"""
import logging
from typing import Dict, List, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from clinic.models import Doctor, HospitalAdmin, Person, SuperAdmin

logger = logging.getLogger(__name__)

STAFF_ROLE_MODELS = {
    Person.ROLE_SUPER_ADMIN: SuperAdmin,
    Person.ROLE_HOSPITAL_ADMIN: HospitalAdmin,
    Person.ROLE_DOCTOR: Doctor,
}


def ledger_group(tier: str, holder_id) -> str:
    return f"ledger.{tier.lower()}.{holder_id}"


def holder_group(holder) -> str:
    return ledger_group(type(holder).__name__, holder.pk)


def audience_groups(holder) -> List[str]:
    """The holder's own group followed by those of its managers."""
    groups = [holder_group(holder)]
    if isinstance(holder, HospitalAdmin):
        groups.append(ledger_group('SuperAdmin', holder.created_by_id))
    elif isinstance(holder, Doctor):
        groups.append(ledger_group('HospitalAdmin', holder.hospital_admin_id))
        super_admin_id = (HospitalAdmin.objects.filter(pk=holder.hospital_admin_id)
                          .values_list('created_by_id', flat=True).first())
        if super_admin_id is not None:
            groups.append(ledger_group('SuperAdmin', super_admin_id))
    return groups


def group_for_person(person) -> Optional[str]:
    """Group a connected user listens on, or None when they may not listen."""
    if person is None or not getattr(person, 'is_authenticated', False):
        return None
    model = STAFF_ROLE_MODELS.get(getattr(person, 'role', None))
    if model is None:
        return None
    holder = model.objects.filter(person=person).first()
    return holder_group(holder) if holder is not None else None


def ledger_snapshot(holder) -> dict:
    return {
        "tier": type(holder).__name__,
        "id": holder.pk,
        "testMetrics": holder.test_metrics(),
    }


def broadcast_ledger_update(reason: str, *holders) -> None:
    """Push fresh ledger values to the dashboards allowed to see them.

    Best effort: a missing or failing channel layer never breaks the
    write that triggered the broadcast.
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    per_group: Dict[str, list] = {}
    for holder in holders:
        snapshot = ledger_snapshot(holder)
        for group in audience_groups(holder):
            per_group.setdefault(group, []).append(snapshot)
    for group, snapshots in per_group.items():
        event = {
            "type": "ledger.updated",
            "reason": reason,
            "holders": snapshots,
        }
        try:
            async_to_sync(channel_layer.group_send)(group, event)
        except Exception:
            logger.exception("ledger broadcast to %s failed (%s)", group, reason)
