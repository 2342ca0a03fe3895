import weakref

from flask import current_app

from todo_api.stores import Stores, build_stores

_EXTENSION_KEY = "todo_stores"


def init_app(app, stores: Stores = None) -> Stores:
    """Attach the stores to the app, building them from config when not injected.

    Stores built here are owned by the app and closed when it is collected
    or at interpreter exit, whichever comes first.
    """
    if stores is None:
        stores = build_stores(app.config)
        app.extensions[_EXTENSION_KEY + "_finalizer"] = weakref.finalize(app, stores.close)
    app.extensions[_EXTENSION_KEY] = stores
    app.logger.info("Storage backend: %s", stores.backend)
    return stores


def get_stores() -> Stores:
    return current_app.extensions[_EXTENSION_KEY]
