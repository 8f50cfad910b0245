from __future__ import annotations

"""HTTP helpers: file downloads and a small GitHub REST client.

CONTRACT
- Inputs: URLs, destination paths, an optional GitHub token
- Outputs (required):
  - download() writes the response body to dest (atomically via a .part file)
  - GitHubClient.list_repos() returns every repo across all result pages
  - GitHubClient.add_ssh_key() returns False when GitHub already has the key
- Invariants:
  - The token is only ever sent in the Authorization header, never logged
  - Redirects are followed (release downloads redirect to CDNs)
- Failure:
  - Raises HttpError (with the token redacted) on transport or status errors
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from ..errors import HttpError
from .redaction import Redactor

GITHUB_API = "https://api.github.com"


def download(
    url: str,
    dest: Path,
    *,
    timeout_s: float = 60.0,
    transport: httpx.BaseTransport | None = None,
) -> Path:
    logger.debug("GET {} -> {}", url, dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")
    try:
        with httpx.Client(timeout=timeout_s, follow_redirects=True, transport=transport) as http:
            with http.stream("GET", url) as resp:
                resp.raise_for_status()
                with tmp.open("wb") as f:
                    for chunk in resp.iter_bytes():
                        f.write(chunk)
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        tmp.unlink(missing_ok=True)
        raise HttpError(f"Download failed: {url}: {e}") from e
    tmp.replace(dest)
    return dest


def fetch_text(url: str, *, timeout_s: float = 30.0, transport: httpx.BaseTransport | None = None) -> str:
    try:
        with httpx.Client(timeout=timeout_s, follow_redirects=True, transport=transport) as http:
            resp = http.get(url)
            resp.raise_for_status()
            return resp.text
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        raise HttpError(f"Fetch failed: {url}: {e}") from e


@dataclass
class GitHubClient:
    """Minimal GitHub REST v3 client.

    Usable as a context manager; each call otherwise opens a short-lived
    connection.
    """

    token: str | None = None
    base_url: str = GITHUB_API
    timeout_s: float = 15.0
    transport: httpx.BaseTransport | None = None
    _http: httpx.Client | None = field(default=None, init=False, repr=False)

    def __enter__(self) -> GitHubClient:
        self._http = self._new_client()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None

    def _new_client(self) -> httpx.Client:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout_s,
            follow_redirects=True,
            transport=self.transport,
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        http = self._http or self._new_client()
        try:
            resp = http.request(method, url, **kwargs)
            logger.debug("{} {} -> {}", method, url, resp.status_code)
            return resp
        except httpx.RequestError as e:
            raise HttpError(self._redact(f"GitHub request failed: {method} {url}: {e}")) from e
        finally:
            if http is not self._http:
                http.close()

    def _redact(self, text: str) -> str:
        return Redactor().with_secrets(self.token).redact(text)

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_success:
            return
        try:
            message = resp.json().get("message", "")
        except ValueError:
            message = resp.text[:200]
        raise HttpError(
            self._redact(
                f"GitHub API {resp.request.method} {resp.request.url.path} "
                f"returned {resp.status_code}: {message}"
            )
        )

    def _paginate(self, url: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        next_url: str | None = url
        next_params = params
        while next_url:
            resp = self._request("GET", next_url, params=next_params)
            self._raise_for_status(resp)
            page = resp.json()
            if not isinstance(page, list):
                raise HttpError(f"Expected a list from {next_url}, got {type(page).__name__}")
            items.extend(page)
            next_url = resp.links.get("next", {}).get("url")
            # The next link already carries the query string.
            next_params = None
        return items

    def list_repos(self, user: str | None = None) -> list[dict[str, Any]]:
        """Repositories owned by `user`, or by the token owner when user is None.

        Only the token-owner listing includes private repositories.
        """
        if user is None:
            return self._paginate("/user/repos", {"affiliation": "owner", "per_page": 100})
        return self._paginate(f"/users/{user}/repos", {"type": "owner", "per_page": 100})

    def authenticated_user(self) -> str:
        resp = self._request("GET", "/user")
        self._raise_for_status(resp)
        return str(resp.json()["login"])

    def list_ssh_keys(self) -> list[str]:
        keys = self._paginate("/user/keys", {"per_page": 100})
        return [str(k.get("key", "")).strip() for k in keys]

    def add_ssh_key(self, title: str, public_key: str) -> bool:
        """Upload a public key. False when GitHub already has it."""
        resp = self._request("POST", "/user/keys", json={"title": title, "key": public_key.strip()})
        if resp.status_code == 422 and "already in use" in resp.text:
            return False
        self._raise_for_status(resp)
        return True
