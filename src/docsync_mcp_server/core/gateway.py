"""HTTP gateway to a GitHub-style repository contents API.

Reads, writes and deletes single files and lists directories. Bodies are
base64 on the wire and UTF-8 text in memory; the blob ``sha`` is the
version token.
"""

import base64
import binascii
import logging
import threading
from dataclasses import dataclass
from typing import Any

import requests

from ..config import Config
from ..errors import (
    AuthFailure,
    NotFound,
    RateLimited,
    RemoteError,
    RemoteFault,
    ValidationFault,
    VersionConflict,
)

logger = logging.getLogger(__name__)

USER_AGENT = "docsync-mcp-server"


@dataclass(frozen=True, slots=True)
class RemoteFile:
    """A file read from the contents API, content already decoded."""

    path: str
    name: str
    content: str
    version_token: str


@dataclass(frozen=True, slots=True)
class ContentsEntry:
    """One directory listing entry."""

    name: str
    path: str
    type: str
    version_token: str = ""

    @property
    def is_file(self) -> bool:
        return self.type == "file"


def encode_content(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(payload: str) -> str:
    """Decode a base64 body; the API wraps long payloads with newlines."""
    try:
        raw = base64.b64decode("".join(payload.split()), validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise RemoteFault(f"Undecodable file content: {e}") from e


class RemoteGateway:
    """Stateless adapter over a GitHub-style contents API.

    Every call is single-shot: errors are translated into the typed
    taxonomy from ``errors`` and never retried here.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        if not hasattr(self._thread_local, "session"):
            session = requests.Session()
            session.verify = not self.config.insecure
            session.headers.update(
                {
                    "Accept": "application/vnd.github.v3+json",
                    "User-Agent": USER_AGENT,
                }
            )
            self._thread_local.session = session
        return self._thread_local.session

    def contents_url(self, owner: str, repo: str, path: str) -> str:
        api_path = path.strip("/")
        return f"{self.config.api_url}/repos/{owner}/{repo}/contents/{api_path}"

    def _request(
        self,
        method: str,
        owner: str,
        repo: str,
        path: str,
        credential: str,
        body: dict | None = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON payload.
        """
        url = self.contents_url(owner, repo, path)
        headers = {"Authorization": f"token {credential}"}
        logger.debug("%s %s", method, url)
        try:
            response = self._get_session().request(
                method,
                url,
                json=body,
                headers=headers,
                timeout=(10, self.config.timeout),
            )
        except requests.RequestException as e:
            raise RemoteFault(f"Request to {url} failed: {e}") from e

        logger.debug("%s %s -> %s", method, url, response.status_code)

        content_type = response.headers.get("Content-Type", "")
        if "json" not in content_type:
            raise RemoteFault(
                f"Unexpected non-JSON response ({content_type or 'no content type'}): "
                f"{response.text[:200]}",
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteFault(
                f"Malformed JSON response: {e}", status=response.status_code
            ) from e

        if not response.ok:
            raise translate_http_error(response, payload)
        return payload

    def fetch_file(
        self, owner: str, repo: str, path: str, credential: str
    ) -> RemoteFile:
        """
        Read one file.

        Raises:
            NotFound, AuthFailure, RateLimited, RemoteFault
        """
        data = self._request("GET", owner, repo, path, credential)
        if not isinstance(data, dict) or "content" not in data:
            raise RemoteFault(f"'{path}' is not a file")
        sha = data.get("sha")
        if not sha:
            raise RemoteFault(f"Response for '{path}' carries no sha")
        return RemoteFile(
            path=data.get("path", path),
            name=data.get("name") or path.rsplit("/", 1)[-1],
            content=decode_content(data["content"] or ""),
            version_token=sha,
        )

    def fetch_listing(
        self, owner: str, repo: str, path: str, credential: str
    ) -> list[ContentsEntry]:
        """
        List a directory.

        Raises:
            NotFound, AuthFailure, RateLimited, RemoteFault
        """
        data = self._request("GET", owner, repo, path, credential)
        if not isinstance(data, list):
            raise RemoteFault(f"'{path}' is not a directory")
        try:
            return [
                ContentsEntry(
                    name=item["name"],
                    path=item["path"],
                    type=item["type"],
                    version_token=item.get("sha", ""),
                )
                for item in data
            ]
        except (KeyError, TypeError) as e:
            raise RemoteFault(f"Malformed listing entry: {e}") from e

    def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        credential: str,
        content: str,
        version_token: str = "",
        message: str | None = None,
    ) -> str:
        """
        Create (empty token) or update (token given) a file.

        Returns:
            The new version token.

        Raises:
            VersionConflict: If *version_token* no longer matches the remote.
            AuthFailure, ValidationFault, RateLimited, RemoteFault
        """
        body: dict[str, Any] = {
            "message": message or f"Update {path}",
            "content": encode_content(content),
        }
        if version_token:
            body["sha"] = version_token
        data = self._request("PUT", owner, repo, path, credential, body)
        try:
            return data["content"]["sha"]
        except (KeyError, TypeError) as e:
            raise RemoteFault(
                f"Write response for '{path}' carries no sha"
            ) from e

    def delete_file(
        self,
        owner: str,
        repo: str,
        path: str,
        credential: str,
        version_token: str,
        message: str | None = None,
    ) -> None:
        """
        Delete a file whose current token is known.

        Raises:
            ValueError: If *version_token* is empty.
            VersionConflict, AuthFailure, ValidationFault, NotFound,
            RateLimited, RemoteFault
        """
        if not version_token:
            raise ValueError("A version token is required to delete a file")
        body = {"message": message or f"Delete {path}", "sha": version_token}
        self._request("DELETE", owner, repo, path, credential, body)

    def validate_credential(
        self, owner: str, repo: str, base_path: str, credential: str
    ) -> int:
        """
        Check a binding by listing its base path.

        Returns:
            Number of file entries found.
        """
        entries = self.fetch_listing(owner, repo, base_path, credential)
        return sum(1 for e in entries if e.is_file)


def translate_http_error(
    response: requests.Response, payload: Any
) -> RemoteError:
    """Map a non-2xx response onto the error taxonomy."""
    status = response.status_code
    message = ""
    if isinstance(payload, dict):
        message = str(payload.get("message") or "")
    message = message or response.reason or f"HTTP {status}"
    lowered = message.lower()

    match status:
        case 401:
            return AuthFailure(message, status)
        case 429:
            return RateLimited(message, status)
        case 403 if response.headers.get("X-RateLimit-Remaining") == "0" or (
            "rate limit" in lowered
        ):
            return RateLimited(message, status)
        case 403 if "credential" in lowered or "token" in lowered:
            return AuthFailure(message, status)
        case 404:
            return NotFound(message, status)
        case 409:
            return VersionConflict(message, status)
        case 422 if "sha" in lowered:
            # "sha wasn't supplied" or "does not match"
            return VersionConflict(message, status)
        case 400 | 422:
            return ValidationFault(message, status)
        case _:
            return RemoteFault(message, status)
