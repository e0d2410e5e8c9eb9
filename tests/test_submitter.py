# tests/test_submitter.py
import json
import time

import pytest
import requests
import responses

import submitter as submitter_mod
from errors import CancellationError, ConfigurationError, NetworkError, SerializationError
from models import Description, Document, Product
from rate_limiter import CancelToken
from submitter import DocumentSubmitter

URL = 'https://api.test/api/v3/lk/documents/create'


def make_document():
    return Document(
        description=Description(participant_inn='7700000000'),
        doc_id='DOC-1',
        doc_type='LP_INTRODUCE_GOODS',
        products=[Product(uit_code='0104600439931256')],
    )


@responses.activate
def test_success_response():
    responses.add(responses.POST, URL, json={'value': 'ok'}, status=200)
    with DocumentSubmitter(5, 'second', api_url=URL) as sub:
        resp = sub.submit(make_document(), 'c2lnbmF0dXJl')

    assert resp.is_success
    assert resp.status_code == 200
    assert json.loads(resp.body) == {'value': 'ok'}

    sent = responses.calls[0].request
    assert sent.headers['Content-Type'] == 'application/json'
    assert sent.headers['Signature'] == 'c2lnbmF0dXJl'
    body = json.loads(sent.body)
    assert body['description'] == {'participantInn': '7700000000'}
    assert body['importRequest'] is False
    assert 'reg_number' not in body


@responses.activate
def test_client_error_is_returned_not_raised():
    responses.add(responses.POST, URL, body='{"error":"bad"}', status=400)
    sub = DocumentSubmitter(5, 'second', api_url=URL)
    resp = sub.submit(make_document(), 'sig')

    assert resp.status_code == 400
    assert not resp.is_success
    assert resp.body == '{"error":"bad"}'


def test_zero_limit_fails_before_any_http_state(monkeypatch):
    def no_session():
        raise AssertionError("session must not be created")

    monkeypatch.setattr(submitter_mod.requests, 'Session', no_session)
    with pytest.raises(ConfigurationError):
        DocumentSubmitter(0)


def test_bad_window_fails_construction():
    with pytest.raises(ConfigurationError):
        DocumentSubmitter(5, -1)


@responses.activate
def test_serialization_failure_still_consumes_a_slot():
    # acquire happens before serialization, so a doomed call uses capacity
    sub = DocumentSubmitter(2, 60, api_url=URL)

    with pytest.raises(SerializationError):
        sub.submit(None, 'sig')
    assert sub.limiter.remaining() == 1

    with pytest.raises(SerializationError) as info:
        sub.submit(Document(doc_id=object()), 'sig')
    assert isinstance(info.value.__cause__, TypeError)
    assert sub.limiter.remaining() == 0
    assert len(responses.calls) == 0


@responses.activate
def test_connection_failure_raises_network_error():
    responses.add(responses.POST, URL, body=requests.ConnectionError('refused'))
    sub = DocumentSubmitter(5, 'second', api_url=URL)

    with pytest.raises(NetworkError) as info:
        sub.submit(make_document(), 'sig')
    assert isinstance(info.value.__cause__, requests.ConnectionError)
    assert info.value.url == URL


@responses.activate
def test_timeout_raises_network_error():
    responses.add(responses.POST, URL, body=requests.Timeout('slow'))
    sub = DocumentSubmitter(5, 'second', api_url=URL)

    with pytest.raises(NetworkError) as info:
        sub.submit(make_document(), 'sig')
    assert isinstance(info.value.__cause__, requests.Timeout)


def test_timeouts_are_passed_to_requests(monkeypatch):
    seen = {}

    class FakeResponse:
        status_code = 201
        text = ''

    def fake_post(url, data=None, headers=None, timeout=None):
        seen['timeout'] = timeout
        return FakeResponse()

    sub = DocumentSubmitter(5, 'second', api_url=URL, connect_timeout=3, request_timeout=7)
    monkeypatch.setattr(sub.session, 'post', fake_post)
    assert sub.submit(make_document(), 'sig').is_success
    assert seen['timeout'] == (3, 7)


@responses.activate
def test_submissions_are_rate_limited():
    window = 0.3
    responses.add(responses.POST, URL, status=200)
    sub = DocumentSubmitter(1, window, api_url=URL)

    t0 = time.monotonic()
    sub.submit(make_document(), 'sig')
    sub.submit(make_document(), 'sig')
    assert time.monotonic() - t0 >= window - 0.02
    assert len(responses.calls) == 2


@responses.activate
def test_cancelled_wait_makes_no_request():
    responses.add(responses.POST, URL, status=200)
    sub = DocumentSubmitter(1, 60, api_url=URL)
    sub.submit(make_document(), 'sig')

    token = CancelToken()
    token.cancel()
    with pytest.raises(CancellationError):
        sub.submit(make_document(), 'sig', cancel=token)
    assert len(responses.calls) == 1
    assert sub.limiter.stats()['admitted'] == 1


@responses.activate
def test_cancel_during_request_raises_cancellation():
    token = CancelToken()

    def cancel_mid_flight(request):
        token.cancel()
        return (200, {}, '{}')

    responses.add_callback(responses.POST, URL, callback=cancel_mid_flight)
    sub = DocumentSubmitter(5, 'second', api_url=URL)

    with pytest.raises(CancellationError):
        sub.submit(make_document(), 'sig', cancel=token)
    assert len(responses.calls) == 1


@pytest.mark.parametrize('signature', ['sig\r\nX-Injected: 1', 'sig\nmore'])
@responses.activate
def test_unusable_signature_is_not_reported_as_network_error(signature):
    responses.add(responses.POST, URL, status=200)
    sub = DocumentSubmitter(5, 'second', api_url=URL)

    with pytest.raises(SerializationError) as info:
        sub.submit(make_document(), signature)
    assert isinstance(info.value.__cause__, requests.exceptions.InvalidHeader)
    assert len(responses.calls) == 0
