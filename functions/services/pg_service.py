import logging
from typing import NamedTuple

from constants import FLOORS
from logic import occupancy_logic
from logic.collections_logic import collections_history, current_month_view, month_stats
from logic.export_logic import export_filename, generate_csv
from logic.rent_ledger import apply_rent_change, mark_current_month_paid, toggle_rent_paid
from services.db_service import Snapshot, save_month_statistics
from utils.date_utils import current_month_key

# Set up a module-level logger
log = logging.getLogger(__name__)


class MutationResult(NamedTuple):
    changed: bool
    snapshot: Snapshot


def run_mutation(repository, operation, description: str) -> MutationResult:
    """
    Loads the current snapshot, applies `operation(rooms, tenants) -> (rooms, tenants)`
    and writes the result back. When the operation hands back the very same
    collections nothing is written and `changed` is False.
    """
    snapshot = repository.load()
    rooms, tenants = operation(snapshot.rooms, snapshot.tenants)
    if rooms is snapshot.rooms and tenants is snapshot.tenants:
        log.warning(f"{description}: nothing changed, skipping write.")
        return MutationResult(False, snapshot)

    updated = Snapshot(rooms, tenants)
    repository.save(updated)
    log.info(f"{description}: saved.")
    return MutationResult(True, updated)


def _tenant_mutation(tenant_id: str, change):
    """Adapts a single-tenant rule `change(tenant) -> tenant` to a snapshot operation."""
    def operation(rooms, tenants):
        tenant = occupancy_logic.find_tenant(tenants, tenant_id)
        if tenant is None:
            log.warning(f"Tenant {tenant_id} not found.")
            return rooms, tenants
        return rooms, occupancy_logic.replace_tenant(tenants, change(tenant))
    return operation


def book_bed(repository, room_id: str, bed_id: str, tenant_data: dict) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.book_bed(rooms, tenants, room_id, bed_id, tenant_data),
        f"Book bed {bed_id}",
    )


def book_room(repository, room_id: str, tenant_data: dict) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.book_room(rooms, tenants, room_id, tenant_data),
        f"Book room {room_id}",
    )


def vacate_bed(repository, room_id: str, bed_id: str, vacate_date: str = None) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.vacate_bed(rooms, tenants, room_id, bed_id, vacate_date),
        f"Vacate bed {bed_id}",
    )


def vacate_room(repository, room_id: str, vacate_date: str = None) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.vacate_room(rooms, tenants, room_id, vacate_date),
        f"Vacate room {room_id}",
    )


def vacate_tenant(repository, tenant_id: str, vacate_date: str = None) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.vacate_tenant(rooms, tenants, tenant_id, vacate_date),
        f"Vacate tenant {tenant_id}",
    )


def clear_bed(repository, room_id: str, bed_id: str) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.clear_bed(rooms, tenants, room_id, bed_id),
        f"Clear bed {bed_id}",
    )


def clear_room(repository, room_id: str) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.clear_room(rooms, tenants, room_id),
        f"Clear room {room_id}",
    )


def clear_tenant(repository, tenant_id: str) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: occupancy_logic.clear_tenant(rooms, tenants, tenant_id),
        f"Clear tenant {tenant_id}",
    )


def update_tenant(repository, tenant_id: str, updates: dict) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: (rooms, occupancy_logic.update_tenant(tenants, tenant_id, updates)),
        f"Update tenant {tenant_id}",
    )


def change_rent(repository, tenant_id: str, amount, mode: str, month: str = None) -> MutationResult:
    return run_mutation(
        repository,
        _tenant_mutation(tenant_id, lambda tenant: apply_rent_change(tenant, amount, mode, month)),
        f"Change rent for tenant {tenant_id}",
    )


def toggle_rent(repository, tenant_id: str, month: str = None) -> MutationResult:
    month = month or current_month_key()
    return run_mutation(
        repository,
        _tenant_mutation(tenant_id, lambda tenant: toggle_rent_paid(tenant, month)),
        f"Toggle rent {month} for tenant {tenant_id}",
    )


def mark_rent_paid(repository, tenant_id: str) -> MutationResult:
    """Marks the current month paid. Already paid is a no-op."""
    return run_mutation(
        repository,
        _tenant_mutation(tenant_id, mark_current_month_paid),
        f"Mark current month paid for tenant {tenant_id}",
    )


def set_default_rent(repository, room_id: str, bed_id: str, amount) -> MutationResult:
    return run_mutation(
        repository,
        lambda rooms, tenants: (occupancy_logic.set_bed_default_rent(rooms, room_id, bed_id, amount), tenants),
        f"Set default rent for bed {bed_id}",
    )


def collections_report(repository, month: str = None) -> dict:
    tenants = repository.load().tenants
    month = month or current_month_key()
    return {
        'stats': month_stats(month, tenants),
        'view': current_month_view(tenants, month),
        'history': collections_history(tenants),
    }


def build_export(repository) -> tuple:
    """Returns (filename, csv_text) for the full register."""
    snapshot = repository.load()
    return export_filename(), generate_csv(snapshot.rooms, snapshot.tenants)


def record_collections_snapshot(repository, month: str = None) -> dict:
    month = month or current_month_key()
    stats = month_stats(month, repository.load().tenants)
    save_month_statistics(month, stats)
    return stats


def occupancy_overview(repository) -> dict:
    """Bed totals plus every room grouped by floor with its empty/partial/full status."""
    rooms = repository.load().rooms
    return {
        'stats': occupancy_logic.occupancy_stats(rooms),
        'floors': {
            floor: [{**room, 'status': occupancy_logic.room_status(room)} for room in floor_rooms]
            for floor, floor_rooms in occupancy_logic.rooms_by_floor(rooms, FLOORS).items()
        },
    }
