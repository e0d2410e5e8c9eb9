# tests/conftest.py
import os
import tempfile

# keep test logs out of the working tree; must run before config is imported
os.environ.setdefault('CRPT_LOG_DIR', tempfile.mkdtemp(prefix='crpt-logs-'))
