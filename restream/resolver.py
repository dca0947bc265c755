"""Resolution of playlist references against the playlist's own URL."""

from dataclasses import dataclass
from urllib.parse import urlsplit


@dataclass(frozen=True)
class BaseContext:
    scheme: str
    netloc: str
    directory_path: str = "/"

    @classmethod
    def from_url(cls, url):
        try:
            parts = urlsplit(url.strip())
        except ValueError:
            # Unsplittable URL (bad IPv6 literal etc.): resolve everything as a relative path
            return cls("", "", "/")
        path = parts.path
        directory = path[: path.rfind("/") + 1] if "/" in path else "/"
        if not directory.startswith("/"):
            directory = "/" + directory
        return cls(parts.scheme, parts.netloc, directory)

    @property
    def origin(self):
        if not self.scheme:
            return self.netloc
        return f"{self.scheme}://{self.netloc}"

    @property
    def directory_url(self):
        return self.origin + self.directory_path


def is_absolute(reference):
    return reference[:8].lower().startswith(("http://", "https://"))


def resolve(base, reference):
    """Return the fully qualified upstream URL for ``reference``.

    Absolute references come back unchanged, ``//host/x`` borrows the base
    scheme, ``/x`` is joined to the origin and anything else to the base
    directory. ``..`` segments are left as they are.
    """
    reference = reference.strip()
    if is_absolute(reference):
        return reference
    if reference.startswith("//"):
        return f"{base.scheme}:{reference}" if base.scheme else reference
    if reference.startswith("/"):
        return base.origin + reference
    return base.directory_url + reference
