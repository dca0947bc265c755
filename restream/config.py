import os
from dataclasses import dataclass

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Sent on every upstream request regardless of configuration
FETCH_METADATA_HEADERS = {
    "Accept-Encoding": "identity",  # No compression
    "Connection": "keep-alive",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "cross-site",
}

TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def normalize_base_path(path):
    """'api/' -> '/api', '' and '/' -> ''."""
    path = (path or "").strip().strip("/")
    return f"/{path}" if path else ""


@dataclass(frozen=True)
class ProxyConfig:
    proxy_base_path: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = "*/*"
    accept_language: str = "en-US,en;q=0.9"
    origin: str = ""
    referer: str = ""
    timeout: float = 30.0
    verify_tls: bool = True
    chunk_size: int = 16384
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            proxy_base_path=normalize_base_path(env.get("PROXY_BASE_PATH", "")),
            user_agent=env.get("UPSTREAM_USER_AGENT", DEFAULT_USER_AGENT),
            accept=env.get("UPSTREAM_ACCEPT", "*/*"),
            accept_language=env.get("UPSTREAM_ACCEPT_LANGUAGE", "en-US,en;q=0.9"),
            origin=env.get("UPSTREAM_ORIGIN", ""),
            referer=env.get("UPSTREAM_REFERER", ""),
            timeout=float(env.get("UPSTREAM_TIMEOUT", 30)),
            verify_tls=parse_bool(env.get("UPSTREAM_VERIFY_TLS"), default=True),
            chunk_size=int(env.get("CHUNK_SIZE", 16384)),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", 8000)),
        )

    def upstream_headers(self):
        """Browser identity presented to upstream servers."""
        headers = {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
        }
        if self.origin:
            headers["Origin"] = self.origin
        if self.referer:
            headers["Referer"] = self.referer
        headers.update(FETCH_METADATA_HEADERS)
        return headers
