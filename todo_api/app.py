from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from todo_api.errors import ApiError, ServerError

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def create_app(config_overrides=None, stores=None):
    app = Flask(__name__, static_folder=None)
    app.config.from_object("todo_api.config.Config")
    if config_overrides:
        app.config.update(config_overrides)
    app.json.sort_keys = app.config["JSON_SORT_KEYS"]

    # Registered before flask-cors so it runs after it and has the last word.
    @app.after_request
    def add_cors_headers(response):
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response

    CORS(
        app,
        resources={r"/*": {"origins": "*"}},
        send_wildcard=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.before_request
    def answer_preflight():
        # Any path, known or not, gets an empty 200.
        if request.method == "OPTIONS":
            return app.response_class(status=200)
        return None

    from todo_api.utils.db import init_app as init_db

    stores = init_db(app, stores)

    from todo_api.routes.auth_routes import auth_bp
    from todo_api.routes.static_routes import static_bp
    from todo_api.routes.task_routes import tasks_bp

    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(tasks_bp, url_prefix="/api/tasks")

    @app.get("/api/health")
    def health():
        return jsonify(status="ok", service="To-Do API", backend=stores.backend), 200

    # Catch-all last
    app.register_blueprint(static_bp)

    @app.errorhandler(ApiError)
    def api_error(exc):
        if isinstance(exc, ServerError):
            app.logger.error("Server error on %s %s: %s", request.method, request.path, exc,
                             exc_info=exc)
            return jsonify(error=ServerError.default_message), 500
        return jsonify(error=exc.message), exc.status_code

    @app.errorhandler(HTTPException)
    def http_error(exc):
        status = exc.code or 500
        if status == 405 and request.path.startswith("/api/"):
            status = 404
        if status == 404:
            return jsonify(error="Not Found"), 404
        return jsonify(error=exc.name), status

    @app.errorhandler(500)
    def server_error(_):
        return jsonify(error="Internal Server Error"), 500

    return app


def main():
    from todo_api.logging_setup import setup_logging
    from todo_api.config import Config

    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
    app = create_app()
    app.logger.info("Server running at http://%s:%s", Config.HOST, Config.PORT)
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.DEBUG, threaded=True)


if __name__ == "__main__":
    # Direct run support: python -m todo_api.app
    main()
