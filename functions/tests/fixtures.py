from services.db_service import Snapshot


def make_bed(bed_id, occupied=False, tenant_id=None, default_rent=None):
    return {'id': bed_id, 'occupied': occupied, 'tenantId': tenant_id, 'defaultRent': default_rent}


def make_room(room_id, beds, bookable_as_room=False, floor='1st Floor'):
    return {'id': room_id, 'floor': floor, 'totalBeds': len(beds), 'bookableAsRoom': bookable_as_room, 'beds': beds}


def make_tenant(tenant_id, **overrides):
    tenant = {
        'id': tenant_id,
        'name': 'Test Tenant',
        'contact': '9999999999',
        'notes': '',
        'rent': 5000,
        'deposit': 10000,
        'cautionDeposit': 5000,
        'joiningDate': '2025-01-01',
        'rentHistory': {},
        'rentChanges': [{'from': '2025-01', 'amount': 5000}],
        'depositPaid': False,
        'cautionDepositPaid': False,
        'active': True,
        'roomId': '101',
        'bedId': '101-1',
        'roomBooked': False,
    }
    tenant.update(overrides)
    return tenant


TENANT_DATA = {
    'name': 'Alice',
    'contact': '9876543210',
    'rent': 6000,
    'deposit': 12000,
    'cautionDeposit': 6000,
    'joiningDate': '2025-03-15',
    'notes': 'Test note',
}


class InMemoryRepository:
    """Snapshot repository double that keeps everything in memory and counts writes."""

    def __init__(self, rooms=None, tenants=None):
        self.snapshot = Snapshot(rooms or [], tenants or [])
        self.save_count = 0
        self.subscribers = []

    def load(self) -> Snapshot:
        return self.snapshot

    def save(self, snapshot: Snapshot):
        self.snapshot = snapshot
        self.save_count += 1
        for callback in self.subscribers:
            callback(snapshot)

    def subscribe(self, callback):
        self.subscribers.append(callback)
        return [callback]
