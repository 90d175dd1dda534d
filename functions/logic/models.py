from dataclasses import dataclass

from constants import ROOM_LAYOUT


@dataclass(frozen=True)
class PerBed:
    """A tenancy on a single bed."""
    room_id: str
    bed_id: str


@dataclass(frozen=True)
class WholeRoom:
    """A tenancy covering every bed of a room."""
    room_id: str


def tenancy_of(tenant: dict) -> PerBed | WholeRoom | None:
    """
    Reads the booking mode out of a stored tenant record.
    Stored records keep the flat `roomBooked` / `bedId` fields so they round-trip
    through the database unchanged; this is the single place that interprets them.
    """
    room_id = tenant.get('roomId')
    if not room_id:
        return None
    if tenant.get('roomBooked'):
        return WholeRoom(room_id)
    if tenant.get('bedId'):
        return PerBed(room_id, tenant['bedId'])
    return None


def bed_number(bed_id: str) -> str:
    return str(bed_id).split('-')[-1]


def make_bed(room_id: str, index: int) -> dict:
    return {
        'id': f"{room_id}-{index}",
        'occupied': False,
        'tenantId': None,
        'defaultRent': None,
    }


def make_room(room_id: str, floor: str, total_beds: int, bookable_as_room: bool = False) -> dict:
    return {
        'id': room_id,
        'floor': floor,
        'totalBeds': total_beds,
        'bookableAsRoom': bookable_as_room,
        'beds': [make_bed(room_id, i + 1) for i in range(total_beds)],
    }


def initial_rooms() -> list:
    """The fixed room layout written on first run."""
    return [make_room(*entry) for entry in ROOM_LAYOUT]
