from urllib.parse import urlencode

import requests


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.url = ""

    def json(self):
        return self._payload

    def raise_for_status(self):
        # same wording as requests, including the full URL with its query string
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error: for url: {self.url}", response=self)


class FakeSession:
    """Stands in for requests.Session; replays queued responses and records calls."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        full_url = f"{url}?{urlencode(kwargs['params'])}" if kwargs.get("params") else url
        if not self.responses:
            raise requests.ConnectionError(f"Max retries exceeded with url: {full_url}")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        resp.url = full_url
        return resp

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)


def gemini_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
