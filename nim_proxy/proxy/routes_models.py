from flask import jsonify

from .model_map import _model_list


def register_model_routes(app):
    @app.get("/v1/models")
    def list_models():
        return jsonify(_model_list())
