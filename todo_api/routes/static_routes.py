import os

from flask import Blueprint, current_app, send_from_directory

from todo_api.errors import NotFound

static_bp = Blueprint("static_pages", __name__)

# Page aliases without the .html suffix
_PAGE_ALIASES = {
    "/": "reg.html",
    "/index.html": "index.html",
    "/main.html": "index.html",
    "/tasks": "index.html",
}
_SHORT_PAGES = ("log", "reg", "pravila", "plata")


def _pages_dir() -> str:
    return os.path.join(current_app.config["STATIC_DIR"], "pages")


def _page(name: str):
    pages = _pages_dir()
    if not os.path.isfile(os.path.join(pages, name)):
        return _not_found()
    return send_from_directory(pages, name, mimetype="text/html")


def _not_found():
    pages = _pages_dir()
    if os.path.isfile(os.path.join(pages, "404.html")):
        response = send_from_directory(pages, "404.html", mimetype="text/html")
        response.status_code = 404
        return response
    return current_app.response_class("File not found", status=404, mimetype="text/plain")


@static_bp.get("/", defaults={"path": ""})
@static_bp.get("/<path:path>")
def serve_static(path):
    if path == "api" or path.startswith("api/"):
        raise NotFound()

    url_path = "/" + path
    if url_path in _PAGE_ALIASES:
        return _page(_PAGE_ALIASES[url_path])

    if path.startswith("style/"):
        style_dir = os.path.join(current_app.config["STATIC_DIR"], "style")
        name = path[len("style/"):]
        if name and os.path.isfile(os.path.join(style_dir, name)):
            return send_from_directory(style_dir, name, mimetype="text/css")
        return _not_found()

    if path.endswith(".html"):
        return _page(path)
    if path in _SHORT_PAGES:
        return _page(f"{path}.html")

    return _not_found()
