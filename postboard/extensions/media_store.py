"""Object storage for post media.

Two interchangeable backends sit behind ``get_media_store()``: MinIO (the
default) and a directory on local disk. Both name stored objects
``<path_prefix>/<uuid>.<ext>`` and return that name from ``upload``.
"""
import os
import shutil
import uuid

from flask import current_app, has_request_context, request

from postboard.errors import MediaStorageError
from postboard.extensions.minio_client import ensure_bucket, get_minio_client


EXTENSIONS_BY_MIME_TYPE = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
}


def extension_for(file_storage) -> str:
    mimetype = getattr(file_storage, "mimetype", None) or ""
    if mimetype in EXTENSIONS_BY_MIME_TYPE:
        return EXTENSIONS_BY_MIME_TYPE[mimetype]

    filename = getattr(file_storage, "filename", None) or ""
    _, ext = os.path.splitext(filename)
    if ext:
        return ext.lstrip(".").lower()
    if "/" in mimetype:
        return mimetype.split("/")[-1]
    return "bin"


def _get_stream_and_length(file_storage):
    stream = getattr(file_storage, "stream", file_storage)
    try:
        stream.seek(0, 2)
        length = stream.tell()
        stream.seek(0)
        return stream, length
    except (AttributeError, OSError):
        return stream, -1


def _object_name(path_prefix: str, file_storage) -> str:
    return f"{path_prefix.strip('/')}/{uuid.uuid4().hex}.{extension_for(file_storage)}"


class MinioMediaStore:
    def __init__(self, client, bucket: str, public_base_url: str):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def upload(self, file_storage, path_prefix: str) -> str:
        object_name = _object_name(path_prefix, file_storage)
        stream, length = _get_stream_and_length(file_storage)
        upload_kwargs = {
            "bucket_name": self.bucket,
            "object_name": object_name,
            "data": stream,
            "length": length,
            "content_type": getattr(file_storage, "mimetype", None) or "application/octet-stream",
        }
        if length == -1:
            upload_kwargs["part_size"] = 10 * 1024 * 1024

        try:
            ensure_bucket(self.client, self.bucket)
            self.client.put_object(**upload_kwargs)
        except Exception as e:
            raise MediaStorageError("Media storage is unavailable") from e
        return object_name

    def delete(self, object_name: str):
        try:
            self.client.remove_object(self.bucket, object_name)
        except Exception as e:
            raise MediaStorageError("Media storage is unavailable") from e

    def list(self, path_prefix: str):
        prefix = path_prefix.strip("/") + "/"
        try:
            return sorted(
                obj.object_name
                for obj in self.client.list_objects(self.bucket, prefix=prefix, recursive=True)
            )
        except Exception as e:
            raise MediaStorageError("Media storage is unavailable") from e

    def delete_all(self, path_prefix: str):
        for object_name in self.list(path_prefix):
            self.delete(object_name)

    def url_for(self, object_name: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{object_name}"


class LocalMediaStore:
    def __init__(self, root: str):
        self.root = root

    def _path(self, object_name: str) -> str:
        return os.path.join(self.root, *object_name.split("/"))

    def upload(self, file_storage, path_prefix: str) -> str:
        object_name = _object_name(path_prefix, file_storage)
        absolute_path = self._path(object_name)

        stream = getattr(file_storage, "stream", file_storage)
        try:
            os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
            stream.seek(0)
            with open(absolute_path, "wb") as fh:
                shutil.copyfileobj(stream, fh)
        except OSError as e:
            raise MediaStorageError("Media storage is unavailable") from e
        return object_name

    def delete(self, object_name: str):
        try:
            os.remove(self._path(object_name))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise MediaStorageError("Media storage is unavailable") from e

    def list(self, path_prefix: str):
        prefix = path_prefix.strip("/")
        directory = self._path(prefix)
        if not os.path.isdir(directory):
            return []
        names = []
        for dirpath, _, filenames in os.walk(directory):
            relative = os.path.relpath(dirpath, directory)
            parts = [] if relative == os.curdir else relative.split(os.sep)
            for filename in filenames:
                names.append("/".join([prefix, *parts, filename]))
        return sorted(names)

    def delete_all(self, path_prefix: str):
        directory = self._path(path_prefix.strip("/"))
        if not os.path.isdir(directory):
            return
        try:
            shutil.rmtree(directory)
        except OSError as e:
            raise MediaStorageError("Media storage is unavailable") from e

    def url_for(self, object_name: str) -> str:
        base_url = current_app.config.get("APP_PUBLIC_BASE_URL", "").rstrip("/")
        if not base_url and has_request_context():
            base_url = request.url_root.rstrip("/")
        return f"{base_url}/media/{object_name}"


def get_media_store():
    config = current_app.config
    backend = config.get("MEDIA_STORAGE_BACKEND", "minio")

    if backend == "local":
        root = config.get("MEDIA_LOCAL_ROOT") or os.path.join(
            current_app.static_folder, "uploads"
        )
        return LocalMediaStore(root)

    if backend == "minio":
        return MinioMediaStore(
            get_minio_client(),
            config["MINIO_BUCKET"],
            config["MINIO_PUBLIC_BASE_URL"],
        )

    raise MediaStorageError(f"Unknown media storage backend: {backend}")
