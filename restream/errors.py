class ProxyError(Exception):
    """Base class for errors turned into HTTP responses."""

    status_code = 500


class MissingParameter(ProxyError):
    status_code = 400

    def __init__(self, name="url"):
        super().__init__(f"Missing ?{name}= parameter")
        self.name = name


class UpstreamFetchFailure(ProxyError):
    """The upstream fetch failed: network error, timeout or a 4xx/5xx status."""

    def __init__(self, url, detail, status=None):
        super().__init__(detail)
        self.url = url
        self.status = status
