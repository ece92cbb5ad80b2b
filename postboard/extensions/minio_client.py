"""Shared MinIO client for the post media bucket."""
import weakref
from threading import Lock

import urllib3
from flask import current_app
from minio import Minio


_lock = Lock()
_client = None
_client_settings = None
# buckets already confirmed to exist, per client
_ready_buckets = weakref.WeakKeyDictionary()


def _settings(config):
    return {
        "endpoint": config["MINIO_ENDPOINT"],
        "access_key": config["MINIO_ACCESS_KEY"],
        "secret_key": config["MINIO_SECRET_KEY"],
        "secure": config["MINIO_SECURE"],
        "connect_timeout": config["MINIO_CONNECT_TIMEOUT"],
        "read_timeout": config["MINIO_READ_TIMEOUT"],
        "pool_maxsize": config.get("MINIO_HTTP_POOL_MAXSIZE", 32),
    }


def _build_client(settings):
    http_client = urllib3.PoolManager(
        timeout=urllib3.Timeout(
            connect=settings["connect_timeout"],
            read=settings["read_timeout"],
        ),
        retries=False,
        maxsize=settings["pool_maxsize"],
    )
    return Minio(
        settings["endpoint"],
        access_key=settings["access_key"],
        secret_key=settings["secret_key"],
        secure=settings["secure"],
        http_client=http_client,
    )


def get_minio_client():
    """Return the shared client, rebuilt whenever the MinIO settings change."""
    global _client, _client_settings

    settings = _settings(current_app.config)
    with _lock:
        if _client is None or _client_settings != settings:
            _client = _build_client(settings)
            _client_settings = settings
        return _client


def ensure_bucket(client, bucket):
    """Create ``bucket`` on first use; later calls for the same client are free."""
    with _lock:
        if bucket in _ready_buckets.get(client, ()):
            return

    if not client.bucket_exists(bucket):
        client.make_bucket(bucket)

    with _lock:
        _ready_buckets.setdefault(client, set()).add(bucket)
