import logging
from firebase_admin import storage

from constants import EXPORTS_STORAGE_PREFIX

log = logging.getLogger(__name__)

# Excel needs the byte order mark to read the file as UTF-8
UTF8_BOM = '\ufeff'


def upload_export(csv_text: str, filename: str) -> str | None:
    """
    Uploads a CSV export to Firebase Storage.
    Returns the storage path if successful, None otherwise.
    """
    try:
        bucket = storage.bucket()

        # e.g. "Exports/pg-manager-2026-02-21.csv"
        file_path = f"{EXPORTS_STORAGE_PREFIX}/{filename}"
        blob = bucket.blob(file_path)

        blob.upload_from_string(
            (UTF8_BOM + csv_text).encode('utf-8'),
            content_type='text/csv; charset=utf-8'
        )

        log.info(f"Successfully uploaded export to {file_path}.")
        return file_path

    except Exception as e:
        log.error(f"Error uploading export to Firebase Storage: {e}")
        return None
