from __future__ import annotations
import logging
from typing import Sequence
from urllib.parse import quote
import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from jiraconnector.errors import TagApiError
from jiraconnector.models import UpsertTagRequest

RETRYABLE = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


def _error_message(response: requests.Response) -> str:
    messages = {
        401: "Tag API: Authentication failed. Check the API key!",
        403: "Tag API: Access denied. Check the API key permissions!",
        404: "Tag API: Resource not found. Check the API base URL!",
        429: "Tag API: Too many requests.",
    }
    return messages.get(response.status_code, f"Tag API: HTTP {response.status_code} - {response.text}")


class TagApiClient:
    def __init__(self, base_url: str, api_key: str, timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "x-api-key": api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        self.log = logging.getLogger("tags")

    def _check(self, response: requests.Response) -> None:
        if not response.ok:
            raise TagApiError(_error_message(response), response.status_code)

    @retry(
        retry=retry_if_exception_type(RETRYABLE),
        stop=stop_after_attempt(5),
        wait=wait_exponential(min=1, max=30),
        reraise=True,
    )
    def upsert_batch(self, upsert_requests: Sequence[UpsertTagRequest]) -> None:
        payload = {"upsertTagRequests": [r.to_payload() for r in upsert_requests]}
        response = self.session.post(f"{self.base_url}/tag/upsert/batch", json=payload, timeout=self.timeout)
        self._check(response)
        self.log.debug("Upserted %s tags", len(upsert_requests))

    @retry(
        retry=retry_if_exception_type(RETRYABLE),
        stop=stop_after_attempt(5),
        wait=wait_exponential(min=1, max=30),
        reraise=True,
    )
    def delete_tag(self, tag_name: str) -> None:
        response = self.session.delete(f"{self.base_url}/tag/{quote(tag_name, safe='')}", timeout=self.timeout)
        self._check(response)
        self.log.info("Deleted tag %s", tag_name)

    def close(self) -> None:
        self.session.close()
