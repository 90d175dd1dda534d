# functions/constants.py

import os

# Realtime Database layout
DATABASE_ROOT = os.environ.get('PG_DATABASE_ROOT', '/PGManager')
ROOMS_KEY = 'rooms'
TENANTS_KEY = 'tenants'
ROOMS_PATH = f"{DATABASE_ROOT}/{ROOMS_KEY}"
TENANTS_PATH = f"{DATABASE_ROOT}/{TENANTS_KEY}"
STATISTICS_PATH = f"{DATABASE_ROOT}/statistics"

# Cloud Storage layout for generated exports
EXPORTS_STORAGE_PREFIX = os.environ.get('EXPORTS_STORAGE_PREFIX', 'Exports')

EXPORT_FILENAME_PREFIX = os.environ.get('EXPORT_FILENAME_PREFIX', 'pg-manager')
EXPORT_TITLE = os.environ.get('EXPORT_TITLE', 'PG MANAGER - DATA EXPORT')
CURRENCY_SYMBOL = os.environ.get('CURRENCY_SYMBOL', '₹')

# Months past the current one that stay open for advance payments
DEFAULT_LOOKAHEAD_MONTHS = 1

FLOORS = ['1st Floor', '2nd Floor', 'Backside']

# (room id, floor, total beds, bookable as a whole room)
ROOM_LAYOUT = [
    ('101', '1st Floor', 4, False),
    ('102', '1st Floor', 2, True),
    ('103', '1st Floor', 2, True),

    ('201', '2nd Floor', 1, False),
    ('202', '2nd Floor', 1, False),
    ('203', '2nd Floor', 1, False),
    ('204', '2nd Floor', 1, False),
    ('205', '2nd Floor', 1, False),
    ('206', '2nd Floor', 2, True),

    ('D1', 'Backside', 2, True),
    ('D2', 'Backside', 3, False),
    ('D3', 'Backside', 2, True),
]
