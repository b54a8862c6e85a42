from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests
from tenacity import wait_none

from jiraconnector.errors import TagApiError
from jiraconnector.models import UpsertTagRequest
from jiraconnector.tags.client import TagApiClient


def _response(status: int, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.text = text
    return response


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(TagApiClient.upsert_batch.retry, "wait", wait_none())
    c = TagApiClient("https://wisetime.test/connect/api/", "key")
    c.session = MagicMock()
    return c


def _request() -> UpsertTagRequest:
    return UpsertTagRequest(name="WT-1", description="Fix login", path="/Jira/",
                            additional_keywords=["WT-1"], external_id="1", metadata={"Project": "WT"})


def test_upsert_batch_posts_payload(client):
    client.session.post.return_value = _response(200)
    client.upsert_batch([_request()])

    url = client.session.post.call_args.args[0]
    payload = client.session.post.call_args.kwargs["json"]
    assert url == "https://wisetime.test/connect/api/tag/upsert/batch"
    assert payload["upsertTagRequests"][0]["name"] == "WT-1"
    assert payload["upsertTagRequests"][0]["externalId"] == "1"


def test_upsert_batch_http_error_not_retried(client):
    client.session.post.return_value = _response(401)
    with pytest.raises(TagApiError) as exc:
        client.upsert_batch([_request()])
    assert exc.value.status_code == 401
    assert client.session.post.call_count == 1


def test_upsert_batch_retries_connection_errors(client):
    client.session.post.side_effect = [requests.exceptions.ConnectionError("down"), _response(200)]
    client.upsert_batch([_request()])
    assert client.session.post.call_count == 2


def test_delete_tag_quotes_name(client):
    client.session.delete.return_value = _response(200)
    client.delete_tag("WT 1/2")
    assert client.session.delete.call_args.args[0] == "https://wisetime.test/connect/api/tag/WT%201%2F2"
