#!/usr/bin/env python3
# logger.py

import os
import logging

from config import LOG_PATH, LOG_LEVEL

# ─── Paths ────────────────────────────────────────────────────────────────────────
LOG_FILE = os.path.join(LOG_PATH, 'crpt_submitter.log')
os.makedirs(LOG_PATH, exist_ok=True)

# ─── Logger Setup ─────────────────────────────────────────────────────────────────
log = logging.getLogger('CrptSubmitter')
log.setLevel(LOG_LEVEL)

# One file handler per process, even if this module is loaded twice
if not any(isinstance(h, logging.FileHandler) for h in log.handlers):
    fh = logging.FileHandler(LOG_FILE, encoding='utf-8')
    fh.setLevel(LOG_LEVEL)
    fh.setFormatter(logging.Formatter(
        fmt='%(asctime)s %(name)s %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    log.addHandler(fh)
