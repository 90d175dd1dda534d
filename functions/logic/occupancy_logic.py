import logging
import random
import string
import time

from logic.models import PerBed, WholeRoom, tenancy_of
from logic.rent_ledger import coerce_amount
from utils.date_utils import current_month_key, month_key, today_iso

# Set up a module-level logger
log = logging.getLogger(__name__)

# All operations below take the full rooms/tenants lists and return new ones.
# Anything they do not touch is reused by reference, and a no-op returns the
# very same lists, so `result is rooms` tells the caller nothing changed.

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(number: int) -> str:
    digits = ''
    while number:
        number, remainder = divmod(number, 36)
        digits = _BASE36[remainder] + digits
    return digits or '0'


def generate_id() -> str:
    """Short time-ordered id: base36 milliseconds plus six random characters."""
    suffix = ''.join(random.choices(_BASE36, k=6))
    return _to_base36(int(time.time() * 1000)) + suffix


def find_room(rooms: list, room_id: str) -> dict | None:
    return next((room for room in rooms if room.get('id') == room_id), None)


def find_bed(room: dict | None, bed_id: str) -> dict | None:
    if room is None:
        return None
    return next((bed for bed in room.get('beds', []) if bed.get('id') == bed_id), None)


def find_tenant(tenants: list, tenant_id: str) -> dict | None:
    return next((tenant for tenant in tenants if tenant.get('id') == tenant_id), None)


def _update_room(rooms: list, room_id: str, update_bed) -> list:
    """
    Applies `update_bed(bed) -> bed` to every bed of one room. Returns the same
    list when no bed object changed.
    """
    updated_rooms = []
    changed = False
    for room in rooms:
        if room.get('id') != room_id:
            updated_rooms.append(room)
            continue
        beds = [update_bed(bed) for bed in room.get('beds', [])]
        if any(new is not old for new, old in zip(beds, room.get('beds', []))):
            room = {**room, 'beds': beds}
            changed = True
        updated_rooms.append(room)
    return updated_rooms if changed else rooms


def _free(bed: dict) -> dict:
    return {**bed, 'occupied': False, 'tenantId': None}


def _new_tenant(tenant_id: str, tenant_data: dict, room_id: str, bed_id: str | None) -> dict:
    joining_date = tenant_data.get('joiningDate') or today_iso()
    joining_month = month_key(joining_date)
    if joining_month is None:
        log.warning(f"Could not parse joining date '{joining_date}' for tenant {tenant_id}, seeding rent from current month")
        joining_month = current_month_key()
    rent = coerce_amount(tenant_data.get('rent'))

    return {
        'id': tenant_id,
        'name': (tenant_data.get('name') or '').strip(),
        'contact': tenant_data.get('contact') or '',
        'notes': tenant_data.get('notes') or '',
        'rent': rent,
        'deposit': coerce_amount(tenant_data.get('deposit')),
        'cautionDeposit': coerce_amount(tenant_data.get('cautionDeposit')),
        'depositPaid': bool(tenant_data.get('depositPaid', False)),
        'cautionDepositPaid': bool(tenant_data.get('cautionDepositPaid', False)),
        'joiningDate': joining_date,
        'active': True,
        'roomId': room_id,
        'bedId': bed_id,
        'roomBooked': bed_id is None,
        'rentHistory': {},
        'rentChanges': [{'from': joining_month, 'amount': rent}],
    }


def book_bed(rooms: list, tenants: list, room_id: str, bed_id: str, tenant_data: dict, tenant_id: str = None) -> tuple:
    """
    Creates a tenant for `tenant_data` and assigns it to one vacant bed.
    Unknown or already occupied beds leave both lists untouched.
    """
    bed = find_bed(find_room(rooms, room_id), bed_id)
    if bed is None:
        log.warning(f"Bed {bed_id} not found in room {room_id}. Booking skipped.")
        return rooms, tenants
    if bed.get('occupied') or bed.get('tenantId'):
        log.warning(f"Bed {bed_id} is already occupied by {bed.get('tenantId')}. Booking skipped.")
        return rooms, tenants

    tenant_id = tenant_id or generate_id()
    tenant = _new_tenant(tenant_id, tenant_data, room_id, bed_id)
    updated_rooms = _update_room(
        rooms, room_id,
        lambda b: {**b, 'occupied': True, 'tenantId': tenant_id} if b.get('id') == bed_id else b,
    )
    log.info(f"Booked bed {bed_id} for tenant {tenant_id} ({tenant['name']})")
    return updated_rooms, [*tenants, tenant]


def book_room(rooms: list, tenants: list, room_id: str, tenant_data: dict, tenant_id: str = None) -> tuple:
    """
    Leases every bed of a room to one new tenant. Only rooms flagged
    `bookableAsRoom` with no occupied bed can be booked this way.
    """
    room = find_room(rooms, room_id)
    if room is None:
        log.warning(f"Room {room_id} not found. Room booking skipped.")
        return rooms, tenants
    if not room.get('bookableAsRoom'):
        log.warning(f"Room {room_id} cannot be booked as a whole room. Room booking skipped.")
        return rooms, tenants
    if not room.get('beds') or any(bed.get('occupied') or bed.get('tenantId') for bed in room['beds']):
        log.warning(f"Room {room_id} has no beds or an occupied bed. Room booking skipped.")
        return rooms, tenants

    tenant_id = tenant_id or generate_id()
    tenant = _new_tenant(tenant_id, tenant_data, room_id, None)
    updated_rooms = _update_room(rooms, room_id, lambda b: {**b, 'occupied': True, 'tenantId': tenant_id})
    log.info(f"Booked room {room_id} for tenant {tenant_id} ({tenant['name']})")
    return updated_rooms, [*tenants, tenant]


def _deactivate(tenants: list, tenant_id: str, vacate_date: str | None) -> list:
    vacate_date = vacate_date or today_iso()
    return [
        {**tenant, 'active': False, 'vacateDate': vacate_date} if tenant.get('id') == tenant_id else tenant
        for tenant in tenants
    ]


def _remove(tenants: list, tenant_id: str) -> list:
    return [tenant for tenant in tenants if tenant.get('id') != tenant_id]


def _release_bed(rooms: list, tenants: list, room_id: str, bed_id: str, release) -> tuple:
    bed = find_bed(find_room(rooms, room_id), bed_id)
    if bed is None or not bed.get('tenantId'):
        log.warning(f"Bed {bed_id} in room {room_id} has no tenant. Nothing to release.")
        return rooms, tenants

    tenant_id = bed['tenantId']
    tenant = find_tenant(tenants, tenant_id)
    if tenant is not None and isinstance(tenancy_of(tenant), WholeRoom):
        # a whole-room tenant holds every bed, so they all go together
        log.info(f"Bed {bed_id} belongs to whole-room tenant {tenant_id}. Releasing room {room_id}.")
        return _release_room(rooms, tenants, room_id, release)

    updated_rooms = _update_room(rooms, room_id, lambda b: _free(b) if b.get('id') == bed_id else b)
    return updated_rooms, release(tenants, tenant_id)


def _release_room(rooms: list, tenants: list, room_id: str, release) -> tuple:
    """Frees every bed of the room and releases each distinct tenant that held one."""
    room = find_room(rooms, room_id)
    tenant_ids = []
    for bed in (room or {}).get('beds', []):
        if bed.get('tenantId') and bed['tenantId'] not in tenant_ids:
            tenant_ids.append(bed['tenantId'])
    if not tenant_ids:
        log.warning(f"Room {room_id} has no occupied beds. Nothing to release.")
        return rooms, tenants

    updated_rooms = _update_room(rooms, room_id, lambda b: _free(b) if b.get('tenantId') or b.get('occupied') else b)
    for tenant_id in tenant_ids:
        tenants = release(tenants, tenant_id)
    return updated_rooms, tenants


def vacate_bed(rooms: list, tenants: list, room_id: str, bed_id: str, vacate_date: str = None) -> tuple:
    """Frees a bed and deactivates its tenant, keeping the tenant record for history."""
    result = _release_bed(rooms, tenants, room_id, bed_id, lambda t, tid: _deactivate(t, tid, vacate_date))
    if result[0] is not rooms:
        log.info(f"Vacated bed {bed_id} in room {room_id}")
    return result


def vacate_room(rooms: list, tenants: list, room_id: str, vacate_date: str = None) -> tuple:
    """Frees every bed of a room and deactivates the tenant holding them."""
    result = _release_room(rooms, tenants, room_id, lambda t, tid: _deactivate(t, tid, vacate_date))
    if result[0] is not rooms:
        log.info(f"Vacated room {room_id}")
    return result


def clear_bed(rooms: list, tenants: list, room_id: str, bed_id: str) -> tuple:
    """Frees a bed and deletes its tenant record outright, undoing a wrong booking."""
    result = _release_bed(rooms, tenants, room_id, bed_id, _remove)
    if result[0] is not rooms:
        log.info(f"Cleared bed {bed_id} in room {room_id}")
    return result


def clear_room(rooms: list, tenants: list, room_id: str) -> tuple:
    result = _release_room(rooms, tenants, room_id, _remove)
    if result[0] is not rooms:
        log.info(f"Cleared room {room_id}")
    return result


def vacate_tenant(rooms: list, tenants: list, tenant_id: str, vacate_date: str = None) -> tuple:
    """Vacates whatever the tenant currently occupies, a single bed or a whole room."""
    return _release_tenancy(rooms, tenants, tenant_id, vacate_date, clear=False)


def clear_tenant(rooms: list, tenants: list, tenant_id: str) -> tuple:
    return _release_tenancy(rooms, tenants, tenant_id, None, clear=True)


def _release_tenancy(rooms: list, tenants: list, tenant_id: str, vacate_date: str | None, clear: bool) -> tuple:
    tenant = find_tenant(tenants, tenant_id)
    if tenant is None or not tenant.get('active'):
        log.warning(f"Tenant {tenant_id} not found or not active.")
        return rooms, tenants

    tenancy = tenancy_of(tenant)
    if isinstance(tenancy, WholeRoom):
        room = find_room(rooms, tenancy.room_id)
        if not any(bed.get('tenantId') == tenant_id for bed in (room or {}).get('beds', [])):
            log.warning(f"Room {tenancy.room_id} is not held by tenant {tenant_id}.")
            return rooms, tenants
        if clear:
            return clear_room(rooms, tenants, tenancy.room_id)
        return vacate_room(rooms, tenants, tenancy.room_id, vacate_date)

    if isinstance(tenancy, PerBed):
        bed = find_bed(find_room(rooms, tenancy.room_id), tenancy.bed_id)
        if bed is None or bed.get('tenantId') != tenant_id:
            log.warning(f"Bed {tenancy.bed_id} is not held by tenant {tenant_id}.")
            return rooms, tenants
        if clear:
            return clear_bed(rooms, tenants, tenancy.room_id, tenancy.bed_id)
        return vacate_bed(rooms, tenants, tenancy.room_id, tenancy.bed_id, vacate_date)

    log.warning(f"Tenant {tenant_id} has no room assignment.")
    return rooms, tenants


# Detail fields a tenant edit may touch. Identity, activity and room links are
# owned by the booking and release operations.
EDITABLE_TENANT_FIELDS = (
    'name', 'contact', 'notes', 'rent', 'deposit', 'cautionDeposit',
    'depositPaid', 'cautionDepositPaid', 'joiningDate',
)


def update_tenant(tenants: list, tenant_id: str, updates: dict) -> list:
    """
    Shallow-merges `updates` into one tenant. Returns the same list when the
    tenant is unknown or every update already matches.
    """
    tenant = find_tenant(tenants, tenant_id)
    if tenant is None:
        log.warning(f"Tenant {tenant_id} not found. Update skipped.")
        return tenants
    if all(key in tenant and tenant[key] == value for key, value in updates.items()):
        return tenants
    return replace_tenant(tenants, {**tenant, **updates})


def replace_tenant(tenants: list, updated: dict) -> list:
    """Swaps in a new version of a tenant by id. Same list back when it is the identical object."""
    replaced = [updated if tenant.get('id') == updated.get('id') else tenant for tenant in tenants]
    if all(new is old for new, old in zip(replaced, tenants)):
        return tenants
    return replaced


def set_bed_default_rent(rooms: list, room_id: str, bed_id: str, amount) -> list:
    """Sets the rent pre-filled for new bookings of a bed. None clears it."""
    default_rent = None if amount is None or amount == '' else coerce_amount(amount)
    bed = find_bed(find_room(rooms, room_id), bed_id)
    if bed is None:
        log.warning(f"Bed {bed_id} not found in room {room_id}. Default rent not set.")
        return rooms
    if bed.get('defaultRent') == default_rent:
        return rooms
    return _update_room(rooms, room_id, lambda b: {**b, 'defaultRent': default_rent} if b.get('id') == bed_id else b)


def room_status(room: dict) -> str:
    occupied = sum(1 for bed in room.get('beds', []) if bed.get('occupied'))
    if occupied == 0:
        return 'empty'
    if occupied >= room.get('totalBeds', len(room.get('beds', []))):
        return 'full'
    return 'partial'


def occupancy_stats(rooms: list) -> dict:
    total = sum(room.get('totalBeds', 0) for room in rooms)
    occupied = sum(1 for room in rooms for bed in room.get('beds', []) if bed.get('occupied'))
    return {'totalBeds': total, 'occupiedBeds': occupied, 'vacantBeds': total - occupied}


def rooms_by_floor(rooms: list, floors: list) -> dict:
    """Groups rooms under each floor label, in floor order, skipping empty floors."""
    grouped = {}
    for floor in floors:
        floor_rooms = [room for room in rooms if room.get('floor') == floor]
        if floor_rooms:
            grouped[floor] = floor_rooms
    return grouped
