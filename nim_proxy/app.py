from flask import Flask
from flask_cors import CORS

from nim_proxy.proxy.config import NIM_API_BASE, NIM_API_KEY, PORT, PROXY_HOST
from nim_proxy.proxy.logger import logger
from nim_proxy.proxy.routes import register_routes


def create_app():
    app = Flask(__name__)
    app.url_map.strict_slashes = False
    CORS(app)
    register_routes(app)
    return app


app = create_app()


def main():
    logger.info("Starting proxy on %s:%s (upstream=%s)", PROXY_HOST, PORT, NIM_API_BASE)
    logger.info("Health check: http://localhost:%s/health", PORT)
    logger.info("NIM API key: %s", "set" if NIM_API_KEY else "MISSING")
    app.run(host=PROXY_HOST, port=PORT, threaded=True)


if __name__ == "__main__":
    main()
