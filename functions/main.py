from firebase_functions import scheduler_fn, https_fn
from firebase_functions.options import set_global_options
from firebase_admin import initialize_app
import firebase_admin
import json
import logging
import math

from logic.occupancy_logic import EDITABLE_TENANT_FIELDS
from logic.rent_ledger import RENT_CHANGE_MODES
from services.db_service import FirebaseSnapshotRepository
from services import pg_service
from services.storage_service import UTF8_BOM, upload_export
from utils.date_utils import format_currency, format_month, month_key


# Set up a module-level logger
log = logging.getLogger(__name__)

try:
    firebase_admin.get_app()
except ValueError:
    initialize_app()
set_global_options(max_instances=1)


def get_repository():
    return FirebaseSnapshotRepository()


def _json_response(payload, status: int = 200) -> https_fn.Response:
    return https_fn.Response(json.dumps(payload), status=status, headers={"Content-Type": "application/json"})


def _missing_fields(data: dict, fields: tuple) -> list:
    return [field for field in fields if data.get(field) in (None, '')]


def _is_amount(value) -> bool:
    if isinstance(value, bool):
        return False
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(amount)


def _handle_mutation(req: https_fn.Request, required: tuple, run, not_found_message: str) -> https_fn.Response:
    """
    Shared request flow for every write: validate the JSON body, run the
    mutation against the repository and map "nothing changed" to 404.
    """
    data = req.get_json(silent=True)
    if not data:
        log.error("No data in request body.")
        return https_fn.Response("No data received", status=400)

    missing = _missing_fields(data, required)
    if missing:
        log.error(f"Missing required fields: {', '.join(missing)}")
        return https_fn.Response(f"Missing fields: {', '.join(missing)}", status=400)

    try:
        result = run(get_repository(), data)
    except Exception as e:
        log.error(f"An unexpected error occurred while handling request: {e}")
        return https_fn.Response("An error occurred.", status=500)

    if not result.changed:
        return https_fn.Response(not_found_message, status=404)
    return _json_response({'rooms': result.snapshot.rooms, 'tenants': result.snapshot.tenants})


@https_fn.on_request()
def book_bed(req: https_fn.Request) -> https_fn.Response:
    """
    Books a vacant bed for a new tenant.
    Body: {roomId, bedId, tenantData}
    """
    return _handle_mutation(
        req, ('roomId', 'bedId', 'tenantData'),
        lambda repo, data: pg_service.book_bed(repo, data['roomId'], data['bedId'], data['tenantData']),
        "Bed not found or already occupied.",
    )


@https_fn.on_request()
def book_room(req: https_fn.Request) -> https_fn.Response:
    """
    Books every bed of a room for one new tenant.
    Body: {roomId, tenantData}
    """
    return _handle_mutation(
        req, ('roomId', 'tenantData'),
        lambda repo, data: pg_service.book_room(repo, data['roomId'], data['tenantData']),
        "Room not found, not bookable as a whole, or partly occupied.",
    )


@https_fn.on_request()
def vacate_bed(req: https_fn.Request) -> https_fn.Response:
    return _handle_mutation(
        req, ('roomId', 'bedId'),
        lambda repo, data: pg_service.vacate_bed(repo, data['roomId'], data['bedId'], data.get('vacateDate')),
        "Bed not found or already vacant.",
    )


@https_fn.on_request()
def vacate_room(req: https_fn.Request) -> https_fn.Response:
    return _handle_mutation(
        req, ('roomId',),
        lambda repo, data: pg_service.vacate_room(repo, data['roomId'], data.get('vacateDate')),
        "Room not found or already vacant.",
    )


@https_fn.on_request()
def vacate_tenant(req: https_fn.Request) -> https_fn.Response:
    return _handle_mutation(
        req, ('tenantId',),
        lambda repo, data: pg_service.vacate_tenant(repo, data['tenantId'], data.get('vacateDate')),
        "Tenant not found or not active.",
    )


@https_fn.on_request()
def clear_bed(req: https_fn.Request) -> https_fn.Response:
    """
    Undoes a wrong booking: frees the bed and deletes the tenant record.
    """
    return _handle_mutation(
        req, ('roomId', 'bedId'),
        lambda repo, data: pg_service.clear_bed(repo, data['roomId'], data['bedId']),
        "Bed not found or already vacant.",
    )


@https_fn.on_request()
def clear_room(req: https_fn.Request) -> https_fn.Response:
    return _handle_mutation(
        req, ('roomId',),
        lambda repo, data: pg_service.clear_room(repo, data['roomId']),
        "Room not found or already vacant.",
    )


@https_fn.on_request()
def clear_tenant(req: https_fn.Request) -> https_fn.Response:
    """
    Deletes a tenant record booked by mistake and frees whatever it held.
    Body: {tenantId}
    """
    return _handle_mutation(
        req, ('tenantId',),
        lambda repo, data: pg_service.clear_tenant(repo, data['tenantId']),
        "Tenant not found or not active.",
    )


@https_fn.on_request()
def update_tenant(req: https_fn.Request) -> https_fn.Response:
    """
    Merges tenant detail edits. Only detail fields may change; rent amount edits
    go through change_rent so the rent history is kept.
    Body: {tenantId, updates}
    """
    data = req.get_json(silent=True) or {}
    updates = data.get('updates')
    if updates is not None:
        rejected = sorted(set(updates) - set(EDITABLE_TENANT_FIELDS)) if isinstance(updates, dict) else ['updates']
        if rejected:
            log.error(f"Rejected tenant update for {data.get('tenantId')}: fields not editable: {', '.join(rejected)}")
            return https_fn.Response(f"Invalid updates: {', '.join(rejected)}", status=400)

    return _handle_mutation(
        req, ('tenantId', 'updates'),
        lambda repo, data: pg_service.update_tenant(repo, data['tenantId'], data['updates']),
        "Tenant not found or nothing to update.",
    )


@https_fn.on_request()
def change_rent(req: https_fn.Request) -> https_fn.Response:
    """
    Changes a tenant's rent.
    Body: {tenantId, amount, mode} with mode "this_month_onwards" or "correction".
    """
    data = req.get_json(silent=True) or {}
    if data.get('mode') not in RENT_CHANGE_MODES:
        log.error(f"Invalid rent change mode '{data.get('mode')}' for tenant {data.get('tenantId')}.")
        return https_fn.Response(f"mode must be one of: {', '.join(RENT_CHANGE_MODES)}", status=400)
    if data.get('amount') not in (None, '') and not _is_amount(data['amount']):
        log.error(f"Invalid rent amount '{data['amount']}' for tenant {data.get('tenantId')}.")
        return https_fn.Response("amount must be a number.", status=400)

    return _handle_mutation(
        req, ('tenantId', 'amount', 'mode'),
        lambda repo, data: pg_service.change_rent(repo, data['tenantId'], data['amount'], data['mode']),
        "Tenant not found or rent unchanged.",
    )


@https_fn.on_request()
def toggle_rent(req: https_fn.Request) -> https_fn.Response:
    """
    Flips the paid flag of one month (defaults to the current month).
    Body: {tenantId, month?} with month as "YYYY-MM".
    """
    data = req.get_json(silent=True) or {}
    month = data.get('month')
    if month not in (None, '') and month_key(month) != month:
        log.error(f"Invalid month '{month}' for tenant {data.get('tenantId')}.")
        return https_fn.Response("month must be in YYYY-MM format.", status=400)

    return _handle_mutation(
        req, ('tenantId',),
        lambda repo, data: pg_service.toggle_rent(repo, data['tenantId'], data.get('month')),
        "Tenant not found.",
    )


@https_fn.on_request()
def mark_rent_paid(req: https_fn.Request) -> https_fn.Response:
    """
    Marks the current month paid.
    Body: {tenantId}
    """
    return _handle_mutation(
        req, ('tenantId',),
        lambda repo, data: pg_service.mark_rent_paid(repo, data['tenantId']),
        "Tenant not found or already paid this month.",
    )


@https_fn.on_request()
def set_default_rent(req: https_fn.Request) -> https_fn.Response:
    data = req.get_json(silent=True) or {}
    if data.get('amount') not in (None, '') and not _is_amount(data['amount']):
        log.error(f"Invalid default rent '{data['amount']}' for bed {data.get('bedId')}.")
        return https_fn.Response("amount must be a number.", status=400)

    return _handle_mutation(
        req, ('roomId', 'bedId'),
        lambda repo, data: pg_service.set_default_rent(repo, data['roomId'], data['bedId'], data.get('amount')),
        "Bed not found or default rent unchanged.",
    )


@https_fn.on_request()
def get_overview(req: https_fn.Request) -> https_fn.Response:
    """
    Total / occupied / vacant bed counts and every room grouped by floor.
    """
    try:
        return _json_response(pg_service.occupancy_overview(get_repository()))
    except Exception as e:
        log.error(f"Error building occupancy overview: {e}")
        return https_fn.Response("An error occurred.", status=500)


@https_fn.on_request()
def get_collections(req: https_fn.Request) -> https_fn.Response:
    """
    Collection summary for a month (?month=YYYY-MM, default current) plus the
    full month-by-month history.
    """
    try:
        report = pg_service.collections_report(get_repository(), req.args.get('month'))
        return _json_response(report)
    except Exception as e:
        log.error(f"Error building collections report: {e}")
        return https_fn.Response("An error occurred.", status=500)


@https_fn.on_request()
def export_csv(req: https_fn.Request) -> https_fn.Response:
    """
    Streams the full tenant register as a CSV download. With ?store=1 the file
    is uploaded to Cloud Storage instead and its path returned.
    """
    try:
        filename, csv_text = pg_service.build_export(get_repository())
    except Exception as e:
        log.error(f"Error generating CSV export: {e}")
        return https_fn.Response("An error occurred.", status=500)

    if req.args.get('store'):
        file_path = upload_export(csv_text, filename)
        if not file_path:
            return https_fn.Response("Failed to upload export.", status=500)
        return https_fn.Response(file_path, status=200)

    log.info(f"Streaming CSV export {filename} directly to client.")
    return https_fn.Response(
        UTF8_BOM + csv_text,
        status=200,
        headers={
            "Content-Type": "text/csv; charset=utf-8",
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )


@scheduler_fn.on_schedule(
    schedule="0 6 * * *",
    timezone=scheduler_fn.Timezone("Asia/Kolkata"),
)
def collections_snapshot(event: scheduler_fn.ScheduledEvent) -> None:
    """
    Stores the current month's collection summary for dashboards.
    """
    log.info("Starting scheduled collections snapshot.")
    stats = pg_service.record_collections_snapshot(get_repository())
    log.info(f"Collections for {format_month(stats['month'])}: {stats['paidCount']} of {stats['total']} paid, "
             f"{format_currency(stats['collected'])} of {format_currency(stats['expected'])} collected.")
