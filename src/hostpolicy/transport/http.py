"""HTTP(S) transport.

Each file is fetched on demand; there is no local mirror and no caching.
Proxies are picked up from the environment (``HTTP_PROXY``/``HTTPS_PROXY``/
``NO_PROXY``) by the requests session.
"""

from __future__ import annotations

import logging
from urllib.parse import quote, urlparse, urlunparse

import requests

from hostpolicy.transport.base import Transport, TransportOptions

logger = logging.getLogger(__name__)

_SCHEMES = {"http", "https"}


def with_basic_auth(url: str, username: str | None, password: str | None) -> str:
    """Embed basic-auth credentials into the URL userinfo.

    Credentials are only added when both a username and a password are set.
    """

    if not username or not password:
        return url

    parsed = urlparse(url)
    host = parsed.hostname or ""
    if parsed.port is not None:
        host = f"{host}:{parsed.port}"
    netloc = f"{quote(username, safe='')}:{quote(password, safe='')}@{host}"
    return urlunparse(parsed._replace(netloc=netloc))


def _is_qualified(file: str) -> bool:
    parsed = urlparse(file)
    return parsed.scheme.lower() in _SCHEMES and bool(parsed.netloc)


def _same_origin(url: str, prefix: str) -> bool:
    a, b = urlparse(url), urlparse(prefix)
    return (a.hostname, a.port) == (b.hostname, b.port)


def _redact(url: str) -> str:
    parsed = urlparse(url)
    if parsed.password is None:
        return url
    return urlunparse(parsed._replace(netloc=parsed.netloc.replace(parsed.password, "***")))


class HttpTransport(Transport):
    """Fetch files from a URL prefix using requests."""

    name = "http"

    def __init__(
        self,
        options: TransportOptions,
        *,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(options)
        self._session = session or requests.Session()
        self._session.trust_env = True
        self._session.headers.update({"User-Agent": "hostpolicy"})

    def is_available(self) -> bool:
        scheme = urlparse(self.options.prefix).scheme.lower()
        if scheme not in _SCHEMES:
            self._error = f"Prefix is not an HTTP(S) URL: {self.options.prefix!r}"
            return False
        return True

    def url_for(self, prefix: str, file: str) -> str:
        """Expand *file* to a full URL unless it is already fully qualified.

        Credentials are only attached to URLs on the prefix host.
        """

        if _is_qualified(file):
            url = file
            if not _same_origin(url, self.options.prefix):
                return url
        else:
            root = self.options.prefix.rstrip("/")
            url = f"{root}/{prefix.strip('/')}/{file.lstrip('/')}"
            logger.debug("Expanded URL", extra={"url": url})
        return with_basic_auth(url, self.options.username, self.options.password)

    def fetch_contents(self, prefix: str, file: str) -> bytes | None:
        url = self.url_for(prefix, file)
        try:
            resp = self._session.get(url, timeout=self.options.timeout)
        except requests.RequestException as e:
            logger.info(
                "Connection error",
                extra={"url": _redact(url), "error": str(e)},
            )
            return None

        if not resp.ok:
            logger.info(
                "Failed to fetch",
                extra={"url": _redact(url), "status_code": resp.status_code},
            )
            return None

        logger.debug("Fetched", extra={"url": _redact(url), "bytes": len(resp.content)})
        return resp.content

    def close(self) -> None:
        self._session.close()
