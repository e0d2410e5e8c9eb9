#!/usr/bin/env python3
"""
submitter.py

Rate-limited client for the documents/create endpoint.

- Every submit() takes a limiter slot first, then serializes and POSTs
- Any HTTP status comes back as an ApiResponse; only transport failures,
  bad payloads and cancellation raise
- No retries: callers decide what to do with a failure
"""

import requests

from config import API_URL, CONNECT_TIMEOUT, REQUEST_TIMEOUT, DEFAULT_WINDOW
from errors import CancellationError, NetworkError, SerializationError
from logger import log as root_log
from models import ApiResponse, Document, document_to_json
from rate_limiter import CancelToken, SlidingWindowLimiter

log = root_log.getChild('submitter')


class DocumentSubmitter:
    def __init__(self, request_limit, window=DEFAULT_WINDOW, api_url=API_URL,
                 connect_timeout=CONNECT_TIMEOUT, request_timeout=REQUEST_TIMEOUT,
                 session: requests.Session = None):
        # limiter validates the config before any HTTP state exists
        self.limiter  = SlidingWindowLimiter(request_limit, window)
        self.api_url  = api_url
        self.timeout  = (connect_timeout, request_timeout)
        self._owns_session = session is None
        self.session  = session or requests.Session()

    def submit(self, document: Document, signature: str, cancel: CancelToken = None) -> ApiResponse:
        """
        POST one document with its detached signature.

        The limiter slot is taken before serialization, so a document that
        fails to encode still uses up capacity.
        """
        self.limiter.acquire(cancel)

        if document is None:
            raise SerializationError("Document is required")
        body = document_to_json(document)

        if cancel is not None:
            cancel.raise_if_cancelled("Submission was cancelled before sending")

        headers = {
            'Content-Type': 'application/json',
            'Signature':    signature,
        }
        try:
            resp = self.session.post(
                self.api_url,
                data=body.encode('utf-8'),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.InvalidHeader as e:
            # raised while building the request; nothing was sent
            raise SerializationError(f"Signature is not a valid HTTP header value: {e}") from e
        except requests.Timeout as e:
            raise NetworkError(f"Timed out posting to {self.api_url}: {e}", url=self.api_url) from e
        except requests.RequestException as e:
            raise NetworkError(f"Network error posting to {self.api_url}: {e}", url=self.api_url) from e

        if cancel is not None and cancel.cancelled:
            raise CancellationError(f"Submission was cancelled while in flight (HTTP {resp.status_code} discarded)")

        result = ApiResponse(resp.status_code, resp.text)
        if result.is_success:
            log.info(f"Submitted {document.doc_id or '<no doc_id>'} → HTTP {result.status_code}")
        else:
            snippet = result.body[:200].replace('\n', ' ')
            log.warning(f"API error {result.status_code} for {document.doc_id or '<no doc_id>'}: {snippet!r}")
        return result

    def close(self):
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
