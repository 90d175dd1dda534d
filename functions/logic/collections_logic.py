from logic.models import PerBed, WholeRoom, bed_number, tenancy_of
from logic.rent_ledger import is_paid, rent_for_month
from utils.date_utils import current_month_key, month_key, month_range


def is_applicable(tenant: dict, month: str) -> bool:
    """
    A tenant owes rent for `month` when they had joined by then and had not
    vacated before it. Tenants with an unreadable joining date never apply.
    """
    joined = month_key(tenant.get('joiningDate'))
    if joined is None or joined > month:
        return False
    vacated = month_key(tenant.get('vacateDate'))
    return vacated is None or vacated >= month


def month_stats(month: str, tenants: list) -> dict:
    expected = collected = 0
    paid_count = total = 0
    for tenant in tenants:
        if not is_applicable(tenant, month):
            continue
        rent = rent_for_month(tenant, month)
        total += 1
        expected += rent
        if is_paid(tenant, month):
            collected += rent
            paid_count += 1
    return {
        'month': month,
        'expected': expected,
        'collected': collected,
        'paidCount': paid_count,
        'total': total,
    }


def history_months(tenants: list) -> list:
    """Months from the earliest joining date through the current month, most recent first."""
    joining_months = [m for m in (month_key(t.get('joiningDate')) for t in tenants) if m]
    if not joining_months:
        return []
    return list(reversed(month_range(min(joining_months), lookahead=0)))


def collections_history(tenants: list) -> list:
    return [month_stats(month, tenants) for month in history_months(tenants)]


def tenant_label(tenant: dict) -> str:
    tenancy = tenancy_of(tenant)
    if isinstance(tenancy, PerBed):
        return f"Room {tenancy.room_id} · Bed {bed_number(tenancy.bed_id)}"
    if isinstance(tenancy, WholeRoom):
        return f"Room {tenancy.room_id}"
    return '—'


def current_month_view(tenants: list, month: str = None) -> dict:
    """
    The collection sheet for one month over active tenants: paid rows first,
    then unpaid, with running totals.
    """
    month = month or current_month_key()
    paid_rows, unpaid_rows = [], []
    for tenant in tenants:
        if not tenant.get('active'):
            continue
        row = {
            'tenantId': tenant.get('id'),
            'name': tenant.get('name', ''),
            'label': tenant_label(tenant),
            'rent': rent_for_month(tenant, month),
            'paid': is_paid(tenant, month),
        }
        (paid_rows if row['paid'] else unpaid_rows).append(row)

    return {
        'month': month,
        'rows': paid_rows + unpaid_rows,
        'paidCount': len(paid_rows),
        'unpaidCount': len(unpaid_rows),
        'collected': sum(row['rent'] for row in paid_rows),
        'expected': sum(row['rent'] for row in paid_rows + unpaid_rows),
    }
