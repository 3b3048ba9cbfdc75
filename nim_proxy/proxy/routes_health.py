from flask import jsonify

from .config import SERVICE_NAME


def register_health_routes(app):
    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "service": SERVICE_NAME})
