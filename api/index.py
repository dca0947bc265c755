from restream.app import configure_logging, create_app
from restream.config import ProxyConfig

config = ProxyConfig.from_env()
configure_logging(config)

# Picked up by the serverless runtime
app = create_app(config)

if __name__ == '__main__':
    app.run(host=config.host, port=config.port, threaded=True, debug=True)
