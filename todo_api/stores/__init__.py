from todo_api.stores.base import CredentialStore, StoreError, Stores, TaskStore

BACKENDS = ("json", "sqlite", "mongo")


def build_stores(config, mongo_client=None, clock=None) -> Stores:
    """Open the credential and task stores selected by ``STORE_BACKEND``."""
    backend = str(config.get("STORE_BACKEND", "sqlite")).lower()
    hash_method = config.get("PASSWORD_HASH_METHOD", "scrypt")
    kwargs = {"clock": clock} if clock else {}

    if backend == "json":
        from todo_api.stores.json_store import JsonCredentialStore, JsonTaskStore

        data_dir = config["DATA_DIR"]
        users = JsonCredentialStore(data_dir, password_hash_method=hash_method, **kwargs)
        tasks = JsonTaskStore(data_dir, **kwargs)
    elif backend == "sqlite":
        from todo_api.stores.sqlite_store import open_sqlite_stores

        users, tasks = open_sqlite_stores(
            config["SQLITE_PATH"], password_hash_method=hash_method, clock=clock
        )
    elif backend == "mongo":
        from todo_api.stores.mongo_store import open_mongo_stores

        users, tasks = open_mongo_stores(
            config["MONGO_URI"],
            config["MONGO_DB_NAME"],
            client=mongo_client,
            password_hash_method=hash_method,
            clock=clock,
        )
    else:
        raise ValueError(f"Unknown STORE_BACKEND {backend!r}; expected one of {BACKENDS}")

    return Stores(backend=backend, users=users, tasks=tasks)


__all__ = ["BACKENDS", "CredentialStore", "StoreError", "Stores", "TaskStore", "build_stores"]
