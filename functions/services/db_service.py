# functions/services/db_service.py

import firebase_admin.db as db
import logging
from typing import Callable, NamedTuple

from constants import DATABASE_ROOT, ROOMS_KEY, ROOMS_PATH, TENANTS_KEY, TENANTS_PATH, STATISTICS_PATH
from logic.models import initial_rooms

log = logging.getLogger(__name__)


class Snapshot(NamedTuple):
    rooms: list
    tenants: list


def _as_list(value) -> list:
    """
    The Realtime Database hands arrays back as lists, as keyed objects when
    indices are sparse, and drops them entirely when empty.
    """
    if not value:
        return []
    if isinstance(value, dict):
        return [item for item in value.values() if item]
    return [item for item in value if item]


def normalize_room(room: dict) -> dict:
    beds = []
    for bed in _as_list(room.get('beds')):
        beds.append({
            **bed,
            'occupied': bool(bed.get('occupied', False)),
            'tenantId': bed.get('tenantId'),
            'defaultRent': bed.get('defaultRent'),
        })
    return {
        **room,
        'bookableAsRoom': bool(room.get('bookableAsRoom', False)),
        'totalBeds': room.get('totalBeds', len(beds)),
        'beds': beds,
    }


def normalize_tenant(tenant: dict) -> dict:
    return {
        **tenant,
        'active': bool(tenant.get('active', False)),
        'bedId': tenant.get('bedId'),
        'roomBooked': bool(tenant.get('roomBooked', False)),
        'rentHistory': dict(tenant.get('rentHistory') or {}),
        'rentChanges': _as_list(tenant.get('rentChanges')),
    }


def get_rooms() -> list:
    """
    Gets all rooms from the Firebase Realtime Database, seeding the fixed
    layout on first run.
    """
    ref = db.reference(ROOMS_PATH)
    rooms = ref.get()
    if not rooms:
        log.info(f"No rooms found at {ROOMS_PATH}. Seeding initial room layout.")
        rooms = initial_rooms()
        ref.set(rooms)
    return [normalize_room(room) for room in _as_list(rooms)]


def get_tenants() -> list:
    """
    Gets all tenants from the Firebase Realtime Database.
    """
    ref = db.reference(TENANTS_PATH)
    tenants = ref.get()
    return [normalize_tenant(tenant) for tenant in _as_list(tenants)]


def save_snapshot(rooms: list, tenants: list):
    """
    Writes rooms and tenants in one multi-path update so both land or neither does.
    """
    db.reference(DATABASE_ROOT).update({
        ROOMS_KEY: rooms,
        TENANTS_KEY: tenants,
    })


def save_month_statistics(month: str, stats: dict) -> bool:
    """
    Stores the collection summary for one month under the statistics node.
    """
    try:
        db.reference(f"{STATISTICS_PATH}/{month}").set(stats)
        log.info(f"Stored collection statistics for {month}")
        return True
    except Exception as e:
        log.error(f"Error storing collection statistics for {month}: {e}")
        return False


class FirebaseSnapshotRepository:
    """
    Whole-document persistence for rooms and tenants. Writes replace both
    collections, so concurrent writers resolve as last-writer-wins.
    """

    def load(self) -> Snapshot:
        return Snapshot(get_rooms(), get_tenants())

    def save(self, snapshot: Snapshot):
        save_snapshot(snapshot.rooms, snapshot.tenants)
        log.info(f"Saved snapshot with {len(snapshot.rooms)} rooms and {len(snapshot.tenants)} tenants")

    def subscribe(self, callback: Callable[[Snapshot], None]) -> list:
        """
        Calls `callback` with a freshly loaded snapshot whenever rooms or tenants
        change remotely. Returns the listener registrations; pass them to
        `unsubscribe` to stop listening.
        """
        def on_change(event):
            log.info(f"Change detected at {event.path} ({event.event_type}). Reloading snapshot.")
            callback(self.load())

        return [
            db.reference(ROOMS_PATH).listen(on_change),
            db.reference(TENANTS_PATH).listen(on_change),
        ]

    @staticmethod
    def unsubscribe(registrations: list):
        for registration in registrations:
            registration.close()
