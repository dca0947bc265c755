"""HLS/DASH restreaming proxy that routes every player request back through itself."""

from .app import create_app
from .config import ProxyConfig
from .resolver import BaseContext, resolve
from .rewriter import PlaylistKind, rewrite

__all__ = ["create_app", "ProxyConfig", "BaseContext", "resolve", "PlaylistKind", "rewrite"]
