"""Transports that carry XML-RPC bodies to an rTorrent daemon.

A transport sends one request body and returns the raw response body.
It knows nothing about XML-RPC; failures to obtain a response surface as
``ConnectivityError``.
"""

from __future__ import annotations

import abc
import itertools
import logging
import socket
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from rpc_errors import ConnectivityError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class Transport(abc.ABC):
    @abc.abstractmethod
    def send(self, body: str) -> str:
        pass

    def close(self) -> None:
        pass


class HTTPTransport(Transport):
    """XML-RPC over HTTP(S), e.g. an nginx/lighttpd ``/RPC2`` mount.

    Cookies are sent with every request for authenticated front ends
    (YunoHost SSO and similar).
    """

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_ssl: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        cookies: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = verify_ssl
        self.session.headers.update({"Content-Type": "text/xml", "User-Agent": "rtorrent-panel"})
        if username:
            self.session.auth = (username, password or "")
        if cookies:
            self.session.cookies.update(cookies)

    def send(self, body: str) -> str:
        try:
            r = self.session.post(self.url, data=body.encode("utf-8"), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("HTTP transport to %s failed: %s", self.url, e)
            raise ConnectivityError(f"{self.url}: {e}") from e
        if r.status_code // 100 != 2:
            raise ConnectivityError(f"{self.url}: HTTP {r.status_code} {r.reason}")
        if not r.content:
            raise ConnectivityError(f"{self.url}: empty response")
        # rTorrent always answers in UTF-8; a bare text/xml header would
        # make requests fall back to ISO-8859-1.
        return r.content.decode("utf-8", errors="replace")

    def close(self) -> None:
        self.session.close()


class SCGITransport(Transport):
    """Raw SCGI over TCP, as exposed by rTorrent's ``network.scgi.open_port``."""

    def __init__(self, host: str, port: int, timeout: float = DEFAULT_TIMEOUT, handler: str = "/") -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.handler = handler or "/"

    def encode_request(self, body: bytes) -> bytes:
        headers = {
            "CONTENT_LENGTH": str(len(body)),
            "SCGI": "1",
            "REQUEST_METHOD": "POST",
            "REQUEST_URI": self.handler,
        }
        content = b"".join(k.encode("ascii") + b"\0" + v.encode("ascii") + b"\0" for k, v in headers.items())
        return str(len(content)).encode("ascii") + b":" + content + b"," + body

    @staticmethod
    def strip_headers(response: str) -> str:
        # rTorrent answers with minimal HTTP-style headers before the body.
        if response.lstrip().startswith("<?xml"):
            return response
        if "\r\n\r\n" in response:
            return response.split("\r\n\r\n", 1)[1]
        if "\n\n" in response:
            return response.split("\n\n", 1)[1]
        return response

    def send(self, body: str) -> str:
        payload = self.encode_request(body.encode("utf-8"))
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as s:
                s.sendall(payload)
                chunks = []
                while True:
                    chunk = s.recv(4096)
                    if not chunk:
                        break
                    chunks.append(chunk)
        except OSError as e:
            logger.warning("SCGI transport to %s:%s failed: %s", self.host, self.port, e)
            raise ConnectivityError(f"scgi://{self.host}:{self.port}: {e}") from e

        if not chunks:
            raise ConnectivityError(f"scgi://{self.host}:{self.port}: empty response")
        return self.strip_headers(b"".join(chunks).decode("utf-8", errors="replace"))


class UbusTransport(Transport):
    """XML-RPC tunnelled through the LuCI ubus JSON-RPC endpoint.

    The router side exposes ``luci.rtorrent rtorrent_rpc {xml}`` and
    answers with ``{xml}`` or ``{error}``.
    """

    UBUS_OBJECT = "luci.rtorrent"
    UBUS_METHOD = "rtorrent_rpc"

    def __init__(
        self,
        url: str,
        session_id: str,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.session_id = session_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = verify_ssl
        self._ids = itertools.count(1)

    def send(self, body: str) -> str:
        request = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "call",
            "params": [self.session_id, self.UBUS_OBJECT, self.UBUS_METHOD, {"xml": body}],
        }
        try:
            r = self.session.post(self.url, json=request, timeout=self.timeout)
            r.raise_for_status()
            reply = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("ubus transport to %s failed: %s", self.url, e)
            raise ConnectivityError(f"{self.url}: {e}") from e

        if "error" in reply:
            raise ConnectivityError(f"ubus error: {reply['error']}")
        result = reply.get("result") or []
        if not result or result[0] != 0:
            raise ConnectivityError(f"ubus call failed with status {result[0] if result else None}")
        data = result[1] if len(result) > 1 else {}
        if "error" in data:
            raise ConnectivityError(f"rtorrent_rpc error: {data['error']}")
        if "xml" not in data:
            raise ConnectivityError("rtorrent_rpc returned no xml")
        return data["xml"]

    def close(self) -> None:
        self.session.close()


def make_transport(url: str, username: Optional[str] = None, password: Optional[str] = None, **options: Any) -> Transport:
    """Pick a transport from the URL scheme.

    ``scgi://host:port``, ``http(s)://...`` and ``ubus+http(s)://...``
    (which needs ``session_id``) are understood; a bare ``host:port/RPC2``
    is treated as HTTP.
    """
    if not url.startswith(("http://", "https://", "scgi://", "ubus+http://", "ubus+https://")):
        url = "http://" + url
    p = urlparse(url)
    timeout = options.get("timeout", DEFAULT_TIMEOUT)

    if p.scheme == "scgi":
        if not p.hostname or not p.port:
            raise ValueError(f"SCGI URL needs host and port: {url}")
        return SCGITransport(p.hostname, p.port, timeout=timeout, handler=p.path or "/")

    if p.scheme.startswith("ubus+"):
        session_id = options.get("session_id")
        if not session_id:
            raise ValueError("ubus transport requires session_id")
        return UbusTransport(
            p._replace(scheme=p.scheme[len("ubus+"):]).geturl(),
            session_id,
            timeout=timeout,
            verify_ssl=options.get("verify_ssl", True),
        )

    return HTTPTransport(
        url,
        username=username,
        password=password,
        verify_ssl=options.get("verify_ssl", True),
        timeout=timeout,
        cookies=options.get("cookies"),
    )
