import csv
import io
import logging
from datetime import date

from constants import EXPORT_FILENAME_PREFIX, EXPORT_TITLE
from logic.models import PerBed, WholeRoom, bed_number, tenancy_of
from logic.rent_ledger import is_paid, paid_months, rent_for_month, total_collected, unpaid_months
from utils.date_utils import current_month_key, format_date, format_month, month_range, today_iso

# Set up a module-level logger
log = logging.getLogger(__name__)

REGISTER_HEADER = [
    'Name', 'Contact', 'Room', 'Bed', 'Status',
    'Joining Date', 'Vacate Date',
    'Current Rent (Rs/month)', 'Deposit (Rs)', 'Caution Deposit (Rs)',
    'Deposit Paid', 'Caution Deposit Paid',
    'Months Paid', 'Months Unpaid', 'Total Collected (Rs)',
    'Notes',
]
HISTORY_HEADER = ['Tenant', 'Room', 'Bed', 'Month', 'Amount (Rs)', 'Status']


def _bed_label(tenant: dict) -> str:
    tenancy = tenancy_of(tenant)
    if isinstance(tenancy, WholeRoom):
        return 'Entire Room'
    if isinstance(tenancy, PerBed):
        return f"Bed {bed_number(tenancy.bed_id)}"
    return '—'


def _yes_no(flag) -> str:
    return 'Yes' if flag else 'No'


def sort_for_export(tenants: list) -> list:
    """Active tenants by room then name, followed by vacated tenants, most recently vacated first."""
    active = sorted(
        (t for t in tenants if t.get('active')),
        key=lambda t: (t.get('roomId') or '', (t.get('name') or '').casefold()),
    )
    vacated = sorted(
        (t for t in tenants if not t.get('active')),
        key=lambda t: t.get('vacateDate') or '',
        reverse=True,
    )
    return active + vacated


def month_status(tenant: dict, month: str, this_month: str) -> str:
    paid = is_paid(tenant, month)
    if month > this_month:
        return 'Pre-paid' if paid else 'Upcoming'
    return 'Paid' if paid else 'Unpaid'


def generate_csv(rooms: list, tenants: list) -> str:
    """
    Renders the tenant register and the month-by-month rent history as one CSV
    document. Cells holding a comma, quote or newline are quoted with embedded
    quotes doubled.
    """
    this_month = current_month_key()
    ordered = sort_for_export(tenants)
    active_count = sum(1 for t in tenants if t.get('active'))

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')

    writer.writerow([EXPORT_TITLE])
    writer.writerow([f"Exported on: {format_date(today_iso())}"])
    writer.writerow([f"{len(tenants)} tenants total - {active_count} active  {len(tenants) - active_count} vacated"])
    writer.writerow([])

    writer.writerow(['TENANT REGISTER'])
    writer.writerow(REGISTER_HEADER)
    for tenant in ordered:
        writer.writerow([
            tenant.get('name') or '',
            tenant.get('contact') or '',
            tenant.get('roomId') or '',
            _bed_label(tenant),
            'Active' if tenant.get('active') else 'Vacated',
            format_date(tenant.get('joiningDate')),
            format_date(tenant['vacateDate']) if tenant.get('vacateDate') else '',
            rent_for_month(tenant, this_month),
            tenant.get('deposit') or 0,
            tenant.get('cautionDeposit') or 0,
            _yes_no(tenant.get('depositPaid')),
            _yes_no(tenant.get('cautionDepositPaid')),
            len(paid_months(tenant)),
            len(unpaid_months(tenant)),
            total_collected(tenant),
            tenant.get('notes') or '',
        ])

    writer.writerow([])
    writer.writerow([])

    writer.writerow(['RENT HISTORY (month-by-month)'])
    writer.writerow(HISTORY_HEADER)
    for tenant in ordered:
        bed_label = _bed_label(tenant)
        for month in month_range(tenant.get('joiningDate')):
            writer.writerow([
                tenant.get('name') or '',
                tenant.get('roomId') or '',
                bed_label,
                format_month(month),
                rent_for_month(tenant, month),
                month_status(tenant, month, this_month),
            ])

    log.info(f"Generated CSV export for {len(tenants)} tenants across {len(rooms)} rooms")
    return buffer.getvalue()


def export_filename(prefix: str = EXPORT_FILENAME_PREFIX, today: date = None) -> str:
    """Timestamped filename such as pg-manager-2026-02-21.csv."""
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}.csv"
