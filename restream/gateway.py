"""Outbound side of the proxy: fetching playlists, segments and licenses upstream."""

import logging
import mimetypes
from urllib.parse import urlsplit

import requests
import urllib3

from .errors import UpstreamFetchFailure

logger = logging.getLogger(__name__)

# Never copied from an upstream response to the client
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-encoding",
}

SEGMENT_HEADERS = {
    "content-length",
    "content-range",
    "accept-ranges",
    "cache-control",
    "etag",
    "last-modified",
}

CONTENT_TYPES = {
    ".ts": "video/MP2T",
    ".aac": "audio/aac",
    ".m4s": "video/iso.segment",
    ".mp4": "video/mp4",
    ".vtt": "text/vtt",
    ".m3u8": "application/vnd.apple.mpegurl",
    ".mpd": "application/dash+xml",
    ".key": "application/octet-stream",
}


def guess_content_type(url):
    path = urlsplit(url).path.lower()
    for ext, content_type in CONTENT_TYPES.items():
        if path.endswith(ext):
            return content_type
    return mimetypes.guess_type(path)[0]


def is_dash_manifest(url):
    return urlsplit(url).path.lower().endswith(".mpd")


def forwardable_headers(upstream, names=None):
    """Pick the upstream response headers that may be relayed to the client.

    Upstream CORS headers are dropped, the proxy sets its own.
    """
    headers = []
    encoded = "Content-Encoding" in upstream.headers
    for name, value in upstream.headers.items():
        lowered = name.lower()
        if names is not None and lowered not in names:
            continue
        if lowered in HOP_BY_HOP_HEADERS or lowered.startswith("access-control-"):
            continue
        # requests decodes compressed bodies, so the upstream length would be wrong
        if encoded and lowered == "content-length":
            continue
        headers.append((name, value))
    return headers


def describe(response):
    return f"{response.status_code} {response.reason or ''}".strip()


class Gateway:
    """Performs upstream requests with a browser identity."""

    def __init__(self, config):
        self.config = config
        self.session = requests.Session()
        self.session.headers.update(config.upstream_headers())
        if not config.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def request(self, method, url, headers=None, data=None, stream=False, debug=False):
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                data=data,
                timeout=self.config.timeout,
                stream=stream,
                verify=self.config.verify_tls,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise UpstreamFetchFailure(url, str(exc)) from exc

        level = logging.INFO if debug else logging.DEBUG
        logger.log(level, "%s %s -> %s", method, url, describe(response))
        logger.log(level, "Request headers: %s", {**self.session.headers, **(headers or {})})
        logger.log(level, "Response headers: %s", dict(response.headers))
        return response

    def fetch_text(self, url, debug=False):
        """Fetch a playlist and return its decoded body."""
        response = self.request("GET", url, debug=debug)
        self._raise_for_status(url, response)
        return response.text

    def open_stream(self, url, range_header=None, debug=False, check_status=True):
        """Start a streamed GET; the caller owns (and must close) the response."""
        headers = {"Range": range_header} if range_header else None
        response = self.request("GET", url, headers=headers, stream=True, debug=debug)
        if check_status:
            try:
                self._raise_for_status(url, response)
            except UpstreamFetchFailure:
                response.close()
                raise
        return response

    def post_license(self, url, body, content_type=None, key=None, debug=False):
        headers = {}
        if content_type:
            headers["Content-Type"] = content_type
        if key:
            headers["Authorization"] = f"Bearer {key}"
        return self.request("POST", url, headers=headers, data=body, stream=True, debug=debug)

    def close(self):
        self.session.close()

    @staticmethod
    def _raise_for_status(url, response):
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            logger.error("Upstream %s answered %s", url, describe(response))
            raise UpstreamFetchFailure(url, str(exc), status=response.status_code) from exc
