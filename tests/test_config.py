import pytest

from restream.config import DEFAULT_USER_AGENT, ProxyConfig, normalize_base_path, parse_bool


@pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", " on "])
def test_parse_bool_true(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", ["0", "false", "no", "", "maybe"])
def test_parse_bool_false(value):
    assert parse_bool(value) is False


def test_parse_bool_default():
    assert parse_bool(None, default=True) is True


@pytest.mark.parametrize(
    "raw, expected", [("", ""), ("/", ""), ("api", "/api"), ("/api/", "/api"), (" /v1/proxy ", "/v1/proxy")]
)
def test_normalize_base_path(raw, expected):
    assert normalize_base_path(raw) == expected


def test_from_env_defaults():
    config = ProxyConfig.from_env({})
    assert config.proxy_base_path == ""
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.verify_tls is True
    assert config.timeout == 30.0
    assert config.port == 8000


def test_from_env_overrides():
    config = ProxyConfig.from_env(
        {
            "PROXY_BASE_PATH": "api/",
            "UPSTREAM_USER_AGENT": "TestAgent/1.0",
            "UPSTREAM_ORIGIN": "https://site.example",
            "UPSTREAM_REFERER": "https://site.example/",
            "UPSTREAM_TIMEOUT": "5",
            "UPSTREAM_VERIFY_TLS": "false",
            "CHUNK_SIZE": "1024",
            "LOG_LEVEL": "debug",
            "PORT": "9000",
        }
    )
    assert config.proxy_base_path == "/api"
    assert config.user_agent == "TestAgent/1.0"
    assert config.timeout == 5.0
    assert config.verify_tls is False
    assert config.chunk_size == 1024
    assert config.log_level == "DEBUG"
    assert config.port == 9000
    headers = config.upstream_headers()
    assert headers["Origin"] == "https://site.example"
    assert headers["Referer"] == "https://site.example/"


def test_origin_and_referer_are_omitted_when_unset():
    headers = ProxyConfig().upstream_headers()
    assert "Origin" not in headers
    assert "Referer" not in headers
    assert headers["Accept-Encoding"] == "identity"
    assert headers["Accept"] == "*/*"
