from __future__ import annotations

from dataclasses import dataclass
import requests


@dataclass(frozen=True)
class HttpClient:
    base_url: str
    timeout_s: float = 30.0

    def post(self, path: str, *, json: dict | None = None) -> requests.Response:
        url = self.base_url.rstrip("/") + "/" + path.lstrip("/")
        return requests.post(
            url,
            json=json,
            headers={"Accept": "application/json"},
            timeout=self.timeout_s,
        )
