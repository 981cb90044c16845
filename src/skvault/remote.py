"""
Remote secret stores -- where the ciphertext travels.

Each store speaks the same three calls (save, get, list) and knows nothing
about plaintext. The factory picks one from the configured URL once, at
start-up; the sync core only ever sees ``RemoteStore``.

HTTP:  JSON over ``requests`` with bearer-token auth and urllib3 retries.
File:  one JSON document per secret on a local or mounted filesystem,
       for USB drives, NAS shares, or tests.
"""

from __future__ import annotations

import base64
import contextlib
import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urlparse

import requests
from pydantic import ValidationError as ModelValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .contracts import RemoteStore
from .errors import ConfigError, TransportError
from .models import Secret, SecretType, utcnow

logger = logging.getLogger("skvault.remote")

RETRY_TOTAL = 3
RETRY_BACKOFF = 0.5
RETRY_STATUSES = (502, 503, 504)


def owner_key(token: str) -> str:
    """Stable, non-reversible owner id derived from a bearer token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:24]


def _b64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _secret_key(name: str, secret_type: SecretType) -> str:
    digest = hashlib.sha256(f"{secret_type.value}\0{name}".encode("utf-8"))
    return digest.hexdigest()[:32]


class HttpRemoteStore(RemoteStore):
    """Vault server reached over HTTP(S).

    Endpoints:
        POST /secret/save   body: secret_name, secret_type, ciphertext, aes_key_enc
        POST /secret/get    body: secret_name, secret_type  (404 = not found)
        GET  /secret/list
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or self._build_session()

    @staticmethod
    def _build_session() -> requests.Session:
        retry = Retry(
            total=RETRY_TOTAL,
            backoff_factor=RETRY_BACKOFF,
            status_forcelist=RETRY_STATUSES,
            allowed_methods=frozenset({"GET", "POST"}),
            raise_on_status=False,
        )
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    @property
    def name(self) -> str:
        return "http"

    def _request(
        self,
        method: str,
        path: str,
        token: str,
        operation: str,
        body: Optional[dict[str, Any]] = None,
        secret_name: Optional[str] = None,
        secret_type: Optional[SecretType] = None,
    ) -> requests.Response:
        type_value = secret_type.value if secret_type is not None else None
        try:
            resp = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers={"Authorization": f"Bearer {token}"},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(operation, str(exc), secret_name, type_value) from exc
        logger.debug("%s %s -> %s", method, path, resp.status_code)
        return resp

    @staticmethod
    def _raise_for_status(
        resp: requests.Response,
        operation: str,
        secret_name: Optional[str] = None,
        secret_type: Optional[SecretType] = None,
    ) -> None:
        if resp.status_code >= 400:
            raise TransportError(
                operation,
                f"server returned {resp.status_code} {resp.reason}",
                secret_name,
                secret_type.value if secret_type is not None else None,
            )

    @staticmethod
    def _decode(
        resp: requests.Response,
        operation: str,
        secret_name: Optional[str] = None,
        secret_type: Optional[SecretType] = None,
    ) -> Any:
        type_value = secret_type.value if secret_type is not None else None
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(
                operation, f"invalid JSON response: {exc}", secret_name, type_value
            ) from exc

    def save(
        self,
        name: str,
        secret_type: SecretType,
        ciphertext: bytes,
        wrapped_key: bytes,
        token: str,
    ) -> None:
        secret_type = SecretType(secret_type)
        body = {
            "secret_name": name,
            "secret_type": secret_type.value,
            "ciphertext": _b64(ciphertext),
            "aes_key_enc": _b64(wrapped_key),
        }
        resp = self._request(
            "POST", "/secret/save", token, "save", body, name, secret_type
        )
        self._raise_for_status(resp, "save", name, secret_type)

    def get(
        self, name: str, secret_type: SecretType, token: str
    ) -> Optional[Secret]:
        secret_type = SecretType(secret_type)
        body = {"secret_name": name, "secret_type": secret_type.value}
        resp = self._request(
            "POST", "/secret/get", token, "get", body, name, secret_type
        )
        if resp.status_code == 404:
            return None
        self._raise_for_status(resp, "get", name, secret_type)
        data = self._decode(resp, "get", name, secret_type)
        if not data:
            return None
        try:
            return Secret.from_wire(data)
        except ModelValidationError as exc:
            raise TransportError(
                "get", f"malformed secret: {exc}", name, secret_type.value
            ) from exc

    def list(self, token: str) -> list[Secret]:
        resp = self._request("GET", "/secret/list", token, "list")
        self._raise_for_status(resp, "list")
        data = self._decode(resp, "list")
        if not isinstance(data, list):
            raise TransportError("list", "expected a JSON array")
        try:
            return [Secret.from_wire(item) for item in data]
        except ModelValidationError as exc:
            raise TransportError("list", f"malformed secret: {exc}") from exc


class FileRemoteStore(RemoteStore):
    """Remote store on a filesystem path.

    Layout::

        <root>/<sha256(token)[:24]>/<sha256(type, name)[:32]>.json

    Documents record the hashed token as their owner; the token itself is
    never written. ``save`` stamps ``updated_at`` with the current time the
    way a server would.
    """

    def __init__(self, root: Path) -> None:
        self.root = root.expanduser()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TransportError("open", f"cannot create {self.root}: {exc}") from exc

    @property
    def name(self) -> str:
        return "file"

    def _owner_dir(self, token: str) -> Path:
        return self.root / owner_key(token)

    def _path(self, name: str, secret_type: SecretType, token: str) -> Path:
        return self._owner_dir(token) / f"{_secret_key(name, secret_type)}.json"

    def _read(
        self,
        path: Path,
        operation: str,
        name: Optional[str] = None,
        secret_type: Optional[SecretType] = None,
    ) -> Secret:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Secret.from_wire(data)
        except (OSError, json.JSONDecodeError, ModelValidationError) as exc:
            raise TransportError(
                operation,
                f"unreadable {path.name}: {exc}",
                name,
                secret_type.value if secret_type is not None else None,
            ) from exc

    def _write(self, path: Path, document: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp, path)
        except OSError:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp)
            raise

    def save(
        self,
        name: str,
        secret_type: SecretType,
        ciphertext: bytes,
        wrapped_key: bytes,
        token: str,
    ) -> None:
        secret_type = SecretType(secret_type)
        path = self._path(name, secret_type, token)
        now = utcnow()
        created_at = now
        if path.exists():
            created_at = self._read(path, "save", name, secret_type).created_at

        secret = Secret(
            name=name,
            secret_type=secret_type,
            owner=owner_key(token),
            ciphertext=ciphertext,
            wrapped_key=wrapped_key,
            created_at=created_at,
            updated_at=now,
        )
        try:
            self._write(path, secret.to_wire())
        except OSError as exc:
            raise TransportError("save", str(exc), name, secret_type.value) from exc
        logger.info("Secret %s saved to %s", secret.label, self.root)

    def get(
        self, name: str, secret_type: SecretType, token: str
    ) -> Optional[Secret]:
        secret_type = SecretType(secret_type)
        path = self._path(name, secret_type, token)
        if not path.exists():
            return None
        return self._read(path, "get", name, secret_type)

    def list(self, token: str) -> list[Secret]:
        owner_dir = self._owner_dir(token)
        if not owner_dir.exists():
            return []
        secrets = [self._read(p, "list") for p in sorted(owner_dir.glob("*.json"))]
        return sorted(secrets, key=lambda s: (s.secret_type.value, s.name))


def create_remote(url: str, timeout: Optional[float] = None) -> RemoteStore:
    """Factory function to create the remote store for ``url``.

    Args:
        url: ``http(s)://host[:port]``, ``file:///path``, or a bare path.
        timeout: Optional HTTP timeout in seconds; None means no timeout.

    Returns:
        Instantiated RemoteStore.

    Raises:
        ConfigError: If the URL is empty or its scheme is not supported.
    """
    if not url:
        raise ConfigError("no server URL configured")

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme in ("http", "https"):
        return HttpRemoteStore(url, timeout=timeout)
    if scheme == "file":
        return FileRemoteStore(Path(unquote(parsed.path)))
    if scheme == "":
        return FileRemoteStore(Path(url))
    raise ConfigError(f"Unsupported server URL scheme: {scheme}")
