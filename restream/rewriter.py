"""HLS playlist rewriting.

Every reference a player would follow (variant playlists, media segments
and encryption keys) is replaced with a URL that points back at this
proxy. All other lines are passed through untouched and in order, so the
output has exactly as many lines as the input.
"""

import enum
import logging
import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote

from .resolver import BaseContext, resolve

logger = logging.getLogger(__name__)

STREAM_INF_TAG = "#EXT-X-STREAM-INF"
SEGMENT_INF_TAG = "#EXTINF"
KEY_TAG = "#EXT-X-KEY"

SEGMENT_EXTENSIONS = (".ts", ".aac", ".m4s", ".mp4", ".vtt")

DEBUG_BANNER = (
    "#EXTM3U",
    "#EXT-X-VERSION:3",
    "#EXT-X-INDEPENDENT-SEGMENTS",
    "# Proxied by restream",
)

URI_ATTRIBUTE = re.compile(r'URI="([^"]+)"')


class PlaylistKind(enum.Enum):
    MASTER = "master"
    MEDIA = "media"


class LineKind(enum.Enum):
    BLANK = "blank"
    TAG = "tag"
    STREAM_INF = "stream-inf"
    VARIANT = "variant"
    SEGMENT = "segment"
    KEY = "key"
    OTHER = "other"


class ScanState(enum.Enum):
    IDLE = "idle"
    # A stream-info tag was seen; the next content line is its playlist URI
    EXPECTING_URL = "expecting-url"


@dataclass(frozen=True)
class LineRecord:
    text: str
    kind: LineKind
    upstream_url: Optional[str] = None
    proxy_url: Optional[str] = None
    # Span of the replaced URI value inside a key tag
    span: Optional[tuple] = None

    def render(self) -> str:
        if self.proxy_url is None:
            return self.text
        if self.span is not None:
            start, end = self.span
            return self.text[:start] + self.proxy_url + self.text[end:]
        ending = "\r" if self.text.endswith("\r") else ""
        return self.proxy_url + ending


@dataclass(frozen=True)
class PlaylistDocument:
    text: str
    source_url: str

    @property
    def base(self) -> BaseContext:
        return BaseContext.from_url(self.source_url)

    @property
    def kind(self) -> Optional[PlaylistKind]:
        return detect_kind(self.text)


def detect_kind(text: str) -> Optional[PlaylistKind]:
    if STREAM_INF_TAG in text:
        return PlaylistKind.MASTER
    if SEGMENT_INF_TAG in text:
        return PlaylistKind.MEDIA
    return None


def proxy_url(proxy_base_path: str, endpoint: str, upstream_url: str) -> str:
    return f"{proxy_base_path}/{endpoint}?url={quote(upstream_url, safe='')}"


def _is_content(stripped: str) -> bool:
    return bool(stripped) and not stripped.startswith("#")


def _passive_kind(stripped: str) -> LineKind:
    if not stripped:
        return LineKind.BLANK
    if stripped.startswith("#"):
        return LineKind.TAG
    return LineKind.OTHER


def classify_master(lines: List[str], base: BaseContext, proxy_base_path: str) -> List[LineRecord]:
    records = []
    state = ScanState.IDLE
    for line in lines:
        stripped = line.strip()
        if stripped.startswith(STREAM_INF_TAG):
            records.append(LineRecord(line, LineKind.STREAM_INF))
            state = ScanState.EXPECTING_URL
        elif state is ScanState.EXPECTING_URL and _is_content(stripped):
            upstream = resolve(base, stripped)
            records.append(
                LineRecord(line, LineKind.VARIANT, upstream, proxy_url(proxy_base_path, "hls", upstream))
            )
            state = ScanState.IDLE
        else:
            records.append(LineRecord(line, _passive_kind(stripped)))
    return records


def _is_segment(stripped: str) -> bool:
    lowered = stripped.lower()
    return any(ext in lowered for ext in SEGMENT_EXTENSIONS)


def classify_media(lines: List[str], base: BaseContext, proxy_base_path: str) -> List[LineRecord]:
    records = []
    for line in lines:
        stripped = line.strip()
        if _is_content(stripped) and _is_segment(stripped):
            upstream = resolve(base, stripped)
            records.append(
                LineRecord(line, LineKind.SEGMENT, upstream, proxy_url(proxy_base_path, "segment", upstream))
            )
            continue

        if stripped.startswith(KEY_TAG):
            match = URI_ATTRIBUTE.search(line)
            if match:
                upstream = resolve(base, match.group(1))
                records.append(
                    LineRecord(
                        line,
                        LineKind.KEY,
                        upstream,
                        proxy_url(proxy_base_path, "segment", upstream),
                        span=match.span(1),
                    )
                )
                continue
            logger.debug("Key tag without a quoted URI left as is: %s", stripped)

        records.append(LineRecord(line, _passive_kind(stripped)))
    return records


def classify(document: PlaylistDocument, proxy_base_path: str = "") -> Optional[List[LineRecord]]:
    """Split ``document`` into classified lines, or None if it is not a playlist."""
    kind = document.kind
    if kind is None:
        return None
    lines = document.text.split("\n")
    if kind is PlaylistKind.MASTER:
        return classify_master(lines, document.base, proxy_base_path)
    return classify_media(lines, document.base, proxy_base_path)


def rewrite(raw_text: str, source_url: str, proxy_base_path: str = "", debug: bool = False) -> str:
    """Rewrite the references in a playlist so they route through the proxy.

    Text that is neither a master nor a media playlist is returned as is.
    With ``debug`` a short banner is put in front of rewritten playlists.
    """
    document = PlaylistDocument(raw_text, source_url)
    records = classify(document, proxy_base_path)
    if records is None:
        logger.debug("No playlist markers in %s, passing through", source_url)
        return raw_text

    output = "\n".join(record.render() for record in records)
    if debug:
        rewritten = sum(1 for record in records if record.proxy_url is not None)
        logger.info("Rewrote %d references in %s playlist %s", rewritten, document.kind.value, source_url)
        output = "\n".join(DEBUG_BANNER) + "\n" + output
    return output
