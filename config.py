import os
import math
import threading
from datetime import timedelta

from errors import ConfigurationError

# ─── API endpoint ────────────────────────────────────────────────────────────────
API_URL         = os.getenv('CRPT_API_URL', 'https://ismp.crpt.ru/api/v3/lk/documents/create')
CONNECT_TIMEOUT = float(os.getenv('CRPT_CONNECT_TIMEOUT', 30))   # seconds
REQUEST_TIMEOUT = float(os.getenv('CRPT_REQUEST_TIMEOUT', 30))   # seconds

# ─── Rate limit defaults ─────────────────────────────────────────────────────────
# Allow per-worker override via env-vars RL_MAX_CALLS and RL_WINDOW
DEFAULT_WINDOW    = os.getenv('RL_WINDOW', 'second')
DEFAULT_MAX_CALLS = int(os.getenv('RL_MAX_CALLS', 10))

TIME_UNITS = {
    'second': 1,
    'minute': 60,
    'hour':   3600,
    'day':    86400,
}

# ─── Paths ───────────────────────────────────────────────────────────────────────
LOG_PATH  = os.getenv('CRPT_LOG_DIR', 'assets/logs')
LOG_LEVEL = os.getenv('CRPT_LOG_LEVEL', 'INFO').upper()

# ─── Wire schema ─────────────────────────────────────────────────────────────────
# Python attribute → JSON key, in the order the API documents them
DESCRIPTION_FIELDS = {
    'participant_inn': 'participantInn',
}

DOCUMENT_FIELDS = {
    'description':     'description',
    'doc_id':          'doc_id',
    'doc_status':      'doc_status',
    'doc_type':        'doc_type',
    'import_request':  'importRequest',
    'owner_inn':       'owner_inn',
    'participant_inn': 'participant_inn',
    'producer_inn':    'producer_inn',
    'production_date': 'production_date',
    'production_type': 'production_type',
    'products':        'products',
    'reg_date':        'reg_date',
    'reg_number':      'reg_number',
}

PRODUCT_FIELDS = {
    'certificate_document':        'certificate_document',
    'certificate_document_date':   'certificate_document_date',
    'certificate_document_number': 'certificate_document_number',
    'owner_inn':                   'owner_inn',
    'producer_inn':                'producer_inn',
    'production_date':             'production_date',
    'tnved_code':                  'tnved_code',
    'uit_code':                    'uit_code',
    'uitu_code':                   'uitu_code',
}

# ─── Batch report schema ─────────────────────────────────────────────────────────
REPORT_COLUMNS = [
    "Index",
    "DocId",
    "StatusCode",
    "Success",
    "Error",
    "Body",
    "SubmittedAt",
]


def parse_window(value) -> float:
    """
    Turn a window setting into positive seconds.

    Accepts a unit name from TIME_UNITS ('minute', 'minutes' and 'MINUTE' all
    work), a timedelta, or a plain number of seconds.
    """
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, str):
        unit = value.strip().lower()
        if unit.endswith('s') and unit[:-1] in TIME_UNITS:
            unit = unit[:-1]
        if unit in TIME_UNITS:
            seconds = float(TIME_UNITS[unit])
        else:
            try:
                seconds = float(unit)
            except ValueError:
                raise ConfigurationError(f"Unknown time unit {value!r}") from None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            seconds = float(value)
        except OverflowError:
            raise ConfigurationError(f"Window is too large, got {value!r}") from None
    else:
        raise ConfigurationError(f"Window must be a unit name, timedelta or seconds, got {value!r}")

    if not seconds > 0:
        raise ConfigurationError(f"Window must be positive, got {value!r}")
    # Condition.wait cannot sleep for longer than TIMEOUT_MAX
    if not math.isfinite(seconds) or seconds > threading.TIMEOUT_MAX:
        raise ConfigurationError(f"Window must be finite and at most {threading.TIMEOUT_MAX:.0f}s, got {value!r}")
    return seconds
