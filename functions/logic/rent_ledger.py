import logging

from utils.date_utils import current_month_key, month_key, month_range

# Set up a module-level logger
log = logging.getLogger(__name__)

RENT_CHANGE_THIS_MONTH_ONWARDS = 'this_month_onwards'
RENT_CHANGE_CORRECTION = 'correction'
RENT_CHANGE_MODES = (RENT_CHANGE_THIS_MONTH_ONWARDS, RENT_CHANGE_CORRECTION)


def coerce_amount(value) -> int | float:
    """Turns form input into a number; integral values come back as int, junk as 0."""
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        log.warning(f"Could not parse amount '{value}', using 0")
        return 0
    return int(amount) if amount == int(amount) else amount


def _applicable_change(changes: list, month: str) -> dict | None:
    """The change with the greatest `from` that is <= month, in whatever order they are stored."""
    best = None
    for change in changes:
        start = change.get('from')
        if not start or start > month:
            continue
        if best is None or start > best['from']:
            best = change
    return best


def rent_for_month(tenant: dict, month: str):
    """
    Returns the rent in effect for `month`: the latest rent change whose `from`
    month is on or before it. Falls back to the tenant's baseline rent when no
    change applies.
    """
    change = _applicable_change(tenant.get('rentChanges') or [], month)
    if change is None:
        return tenant.get('rent') or 0
    return change.get('amount') or 0


def _sorted_changes(changes: list) -> list:
    return sorted(changes, key=lambda change: change['from'])


def apply_rent_change(tenant: dict, new_amount, mode: str, month: str = None) -> dict:
    """
    Records a rent edit and returns the updated tenant. The tenant is returned
    as-is when the amount already matches the rent in effect.

    Modes:
      RENT_CHANGE_THIS_MONTH_ONWARDS -- new change point at `month` (default the
          current month), replacing any entry already starting that month.
      RENT_CHANGE_CORRECTION -- overwrite the amount of the change in effect at
          `month`, leaving every `from` key alone. With nothing to correct, an
          entry anchored at the joining month is created.
    """
    if mode not in RENT_CHANGE_MODES:
        raise ValueError(f"Unknown rent change mode: {mode}")

    month = month or current_month_key()
    amount = coerce_amount(new_amount)
    if amount == rent_for_month(tenant, month):
        return tenant

    changes = list(tenant.get('rentChanges') or [])

    if mode == RENT_CHANGE_THIS_MONTH_ONWARDS:
        changes = [change for change in changes if change.get('from') != month]
        changes.append({'from': month, 'amount': amount})
    else:
        current = _applicable_change(changes, month)
        if current is not None:
            changes = [
                {**change, 'amount': amount} if change is current else change
                for change in changes
            ]
        else:
            anchor = month_key(tenant.get('joiningDate')) or month
            changes = [change for change in changes if change.get('from') != anchor]
            changes.append({'from': anchor, 'amount': amount})

    log.info(f"Rent for tenant {tenant.get('id')} set to {amount} ({mode}, {month})")
    return {**tenant, 'rentChanges': _sorted_changes(changes)}


def is_paid(tenant: dict, month: str) -> bool:
    return bool((tenant.get('rentHistory') or {}).get(month))


def set_rent_paid(tenant: dict, month: str, paid: bool) -> dict:
    """Sets the paid flag for one month. Future months are allowed (advance payment)."""
    if is_paid(tenant, month) == bool(paid) and month in (tenant.get('rentHistory') or {}):
        return tenant
    rent_history = {**(tenant.get('rentHistory') or {}), month: bool(paid)}
    return {**tenant, 'rentHistory': rent_history}


def toggle_rent_paid(tenant: dict, month: str) -> dict:
    return set_rent_paid(tenant, month, not is_paid(tenant, month))


def mark_current_month_paid(tenant: dict) -> dict:
    return set_rent_paid(tenant, current_month_key(), True)


def paid_months(tenant: dict) -> list:
    """Months in the tenant's range (next month included) marked paid."""
    return [m for m in month_range(tenant.get('joiningDate')) if is_paid(tenant, m)]


def unpaid_months(tenant: dict) -> list:
    """Months up to and including the current one without payment. Future months are upcoming, not unpaid."""
    this_month = current_month_key()
    return [
        m for m in month_range(tenant.get('joiningDate'))
        if m <= this_month and not is_paid(tenant, m)
    ]


def total_collected(tenant: dict):
    return sum(rent_for_month(tenant, m) for m in paid_months(tenant))
