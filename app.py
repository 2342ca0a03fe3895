from todo_api.app import create_app
from todo_api.config import Config
from todo_api.logging_setup import setup_logging

setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)

# Expose a module-level `app` for WSGI servers (gunicorn expects `app:app`).
app = create_app()


if __name__ == "__main__":
    # Local development only: run the built-in server.
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.DEBUG, threaded=True)
