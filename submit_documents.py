#!/usr/bin/env python3
"""
submit_documents.py

Threaded batch submission of introduction documents under one shared rate limit.

Usage:
  python3 submit_documents.py \
    --input docs.json \
    [--signature-file sig.txt] \
    [--limit N] [--window minute] \
    [--threads T] \
    [--report results.csv] \
    [--url URL] \
    [--dry-run]

The input is a JSON list. Each item is either a wire-format document or
{"document": {...}, "signature": "..."}; items without their own signature
use the --signature-file content.
"""

import os
import sys
import json
import argparse
from datetime import datetime, timezone
from concurrent.futures import ThreadPoolExecutor, as_completed

import pandas as pd

from config import API_URL, DEFAULT_MAX_CALLS, DEFAULT_WINDOW, REPORT_COLUMNS
from errors import ConfigurationError, SerializationError, SubmitterError
from logger import log as LOG
from models import document_from_payload, document_to_json
from submitter import DocumentSubmitter

DEFAULT_REPORT = 'assets/data/submission_report.csv'
BODY_SNIPPET   = 500


def parse_args(argv=None):
    p = argparse.ArgumentParser(description='Submit documents to the CRPT API under a rate limit')
    p.add_argument('--input',          required=True,
                   help='JSON file with a list of documents')
    p.add_argument('--signature-file', default=None,
                   help='File holding the default detached signature')
    p.add_argument('--limit',          type=int, default=DEFAULT_MAX_CALLS,
                   help='Maximum requests per window')
    p.add_argument('--window',         default=DEFAULT_WINDOW,
                   help="Window: 'second', 'minute', 'hour', 'day' or seconds")
    p.add_argument('--threads',        type=int, default=4,
                   help='Number of submitting threads')
    p.add_argument('--report',         default=DEFAULT_REPORT,
                   help='CSV path for the per-document results')
    p.add_argument('--url',            default=API_URL,
                   help='Override the documents/create endpoint')
    p.add_argument('--dry-run',        action='store_true',
                   help='Print the payloads without making API calls')
    return p.parse_args(argv)


def load_jobs(path: str, default_signature):
    """
    Read the input file into [(document, signature)].
    Raises SerializationError for malformed items so nothing is half-sent.
    """
    with open(path, 'r', encoding='utf-8') as f:
        try:
            items = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializationError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(items, list):
        raise SerializationError(f"{path} must hold a JSON list of documents")

    jobs = []
    for i, item in enumerate(items):
        if isinstance(item, dict) and 'document' in item:
            doc_data  = item['document']
            signature = item.get('signature', default_signature)
        else:
            doc_data  = item
            signature = default_signature
        try:
            doc = document_from_payload(doc_data)
        except SerializationError as e:
            raise SerializationError(f"Item {i}: {e}") from e
        if signature is None:
            raise SerializationError(f"Item {i} has no signature and no --signature-file was given")
        jobs.append((doc, signature))
    return jobs


def submit_one(submitter: DocumentSubmitter, index: int, doc, signature: str) -> dict:
    """Submit one job and turn the outcome into a report row."""
    row = {
        'Index':       index,
        'DocId':       doc.doc_id or '',
        'StatusCode':  None,
        'Success':     False,
        'Error':       '',
        'Body':        '',
        'SubmittedAt': '',
    }
    try:
        resp = submitter.submit(doc, signature)
    except SubmitterError as e:
        LOG.error(f"[{index}] {type(e).__name__}: {e}")
        row['Error'] = f"{type(e).__name__}: {e}"
    else:
        row['StatusCode'] = resp.status_code
        row['Success']    = resp.is_success
        row['Body']       = resp.body[:BODY_SNIPPET]
    row['SubmittedAt'] = datetime.now(timezone.utc).isoformat()
    return row


def run_batch(jobs, submitter: DocumentSubmitter, threads: int) -> pd.DataFrame:
    rows = []
    total = len(jobs)
    with ThreadPoolExecutor(max_workers=max(1, threads)) as exe:
        future_to_idx = {
            exe.submit(submit_one, submitter, i, doc, sig): i
            for i, (doc, sig) in enumerate(jobs)
        }
        for done, fut in enumerate(as_completed(future_to_idx), start=1):
            rows.append(fut.result())
            print(f"▶️ {done}/{total} documents done")

    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    df.sort_values('Index', inplace=True)
    return df.reset_index(drop=True)


def write_report(df: pd.DataFrame, path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    df.to_csv(path, index=False)
    LOG.info(f"Wrote report ({len(df)} rows) to {path}")


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        default_signature = None
        if args.signature_file:
            with open(args.signature_file, 'r', encoding='utf-8') as f:
                default_signature = f.read().strip()
        jobs = load_jobs(args.input, default_signature)
    except (OSError, SerializationError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.dry_run:
        for i, (doc, _sig) in enumerate(jobs):
            try:
                print(f"➡️ Would submit [{i}] {document_to_json(doc)}")
            except SerializationError as e:
                print(f"❌ Item {i}: {e}", file=sys.stderr)
                return 1
        return 0

    try:
        submitter = DocumentSubmitter(args.limit, args.window, api_url=args.url)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    LOG.info(f"Submitting {len(jobs)} documents to {args.url} "
             f"({args.limit} per {submitter.limiter.window_s}s, {args.threads} threads)")
    with submitter:
        df = run_batch(jobs, submitter, args.threads)

    write_report(df, args.report)
    ok = int(df['Success'].sum())
    print(f"✅ Completed: {ok} succeeded, {len(df) - ok} failed")
    return 0 if ok == len(df) else 1


if __name__ == '__main__':
    sys.exit(main())
