import logging

from flask import Blueprint, Flask, Response, current_app, jsonify, request, stream_with_context
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import ProxyConfig, parse_bool
from .errors import MissingParameter, ProxyError
from .gateway import SEGMENT_HEADERS, Gateway, forwardable_headers, guess_content_type, is_dash_manifest
from .rewriter import rewrite

logger = logging.getLogger(__name__)

PLAYLIST_MIMETYPE = "application/vnd.apple.mpegurl"
DASH_MIMETYPE = "application/dash+xml"

bp = Blueprint("restream", __name__)


def _config():
    return current_app.config["RESTREAM"]


def _gateway():
    return current_app.extensions["restream"]


def _required_url():
    target_url = request.args.get("url")
    if not target_url:
        raise MissingParameter("url")
    return target_url


def _debug():
    return parse_bool(request.args.get("debug"))


def _relay(upstream, headers, content_type=None):
    """Stream an upstream response body to the client and close it afterwards."""
    response = Response(
        stream_with_context(upstream.iter_content(chunk_size=_config().chunk_size)),
        status=upstream.status_code,
        headers=headers,
        content_type=content_type,
        direct_passthrough=True,
    )
    response.call_on_close(upstream.close)
    return response


@bp.route("/hls")
def hls():
    target_url = _required_url()
    debug = _debug()
    text = _gateway().fetch_text(target_url, debug=debug)
    output = rewrite(text, target_url, _config().proxy_base_path, debug=debug)
    return Response(output, mimetype=PLAYLIST_MIMETYPE, headers={"Cache-Control": "no-cache"})


@bp.route("/segment")
def segment():
    target_url = _required_url()
    upstream = _gateway().open_stream(target_url, request.headers.get("Range"), debug=_debug())

    headers = forwardable_headers(upstream, SEGMENT_HEADERS)
    content_type = (
        upstream.headers.get("Content-Type")
        or guess_content_type(target_url)
        or "application/octet-stream"
    )
    return _relay(upstream, headers, content_type=content_type)


@bp.route("/license", methods=["POST"])
def license_proxy():
    target_url = _required_url()
    upstream = _gateway().post_license(
        target_url,
        request.get_data(),
        content_type=request.headers.get("Content-Type"),
        key=request.args.get("key"),
        debug=_debug(),
    )
    return _relay(upstream, forwardable_headers(upstream))


@bp.route("/stream")
def stream():
    target_url = _required_url()
    upstream = _gateway().open_stream(
        target_url, request.headers.get("Range"), debug=_debug(), check_status=False
    )
    headers = forwardable_headers(upstream)
    if is_dash_manifest(target_url):
        headers = [(name, value) for name, value in headers if name.lower() != "content-type"]
        headers.append(("Content-Type", DASH_MIMETYPE))
    return _relay(upstream, headers)


@bp.route("/health")
def health():
    return jsonify(status="ok")


def handle_proxy_error(exc):
    return Response(f"Error: {exc}", status=exc.status_code, mimetype="text/plain")


def handle_missing_parameter(exc):
    return Response(str(exc), status=exc.status_code, mimetype="text/plain")


def handle_unexpected_error(exc):
    if isinstance(exc, HTTPException):
        return exc
    logger.exception("Unhandled error while proxying %s", request.url)
    return Response(f"Error: {exc}", status=500, mimetype="text/plain")


def create_app(config=None, gateway=None):
    config = config or ProxyConfig.from_env()

    app = Flask(__name__)
    app.config["RESTREAM"] = config
    app.extensions["restream"] = gateway or Gateway(config)

    CORS(app)
    app.register_blueprint(bp, url_prefix=config.proxy_base_path or None)

    app.register_error_handler(MissingParameter, handle_missing_parameter)
    app.register_error_handler(ProxyError, handle_proxy_error)
    app.register_error_handler(Exception, handle_unexpected_error)
    return app


def configure_logging(config):
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    config = ProxyConfig.from_env()
    configure_logging(config)
    app = create_app(config)
    app.run(host=config.host, port=config.port, threaded=True)
