import logging
import math
import mimetypes

from flask import current_app
from sqlalchemy.exc import IntegrityError

from postboard.db import db
from postboard.errors import (
    BadRequestError,
    MediaStorageError,
    NotFoundError,
    ValidationError,
)
from postboard.extensions.media_store import get_media_store
from postboard.repositories import (
    media_repository,
    post_like_repository,
    post_repository,
    user_repository,
)
from postboard.schemas.post_schema import PostDetailSchema, PostRequestSchema


logger = logging.getLogger(__name__)


ALLOWED_IMAGE_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
}

ALLOWED_VIDEO_MIME_TYPES = {
    "video/mp4",
    "video/quicktime",
}


def media_prefix(post_id) -> str:
    return f"{current_app.config['POST_MEDIA_PREFIX']}/{post_id}"


def _validate_request(title, content, files):
    """Return the stripped title and the file list, or raise ``ValidationError``."""
    if isinstance(title, str):
        title = title.strip()
    messages = PostRequestSchema().error_messages_for({"title": title, "content": content})

    files = files or []
    max_files = current_app.config["POST_MAX_MEDIA_FILES"]
    if len(files) > max_files:
        messages.append(f"Maximum {max_files} media files allowed.")

    for file in files:
        if not getattr(file, "filename", ""):
            messages.append("Media file is required.")
            continue
        mimetype = getattr(file, "mimetype", None) or ""
        if mimetype not in ALLOWED_IMAGE_MIME_TYPES | ALLOWED_VIDEO_MIME_TYPES:
            messages.append(f"Unsupported media type: {mimetype or 'unknown'}.")

    if messages:
        raise ValidationError(", ".join(messages))
    return title, files


def _discard_objects(store, object_names):
    for object_name in object_names:
        try:
            store.delete(object_name)
        except MediaStorageError:
            logger.exception("Could not remove orphaned media object %s", object_name)


def _upload_files(store, post_id, files, uploaded):
    """Upload ``files`` in input order, appending ``(object_name, mime_type)``."""
    for file in files:
        object_name = store.upload(file, media_prefix(post_id))
        uploaded.append((object_name, getattr(file, "mimetype", None)))
    return uploaded


def _serialize(post):
    return PostDetailSchema().dump(post)


def add_post(title, content, files, user_id):
    title, files = _validate_request(title, content, files)

    user = user_repository.get_by_id(user_id)
    if not user:
        raise NotFoundError("Invalid member.")

    post = post_repository.create_post(title, content, user)
    post_id = post.id

    if files:
        store = get_media_store()
        uploaded = []
        try:
            _upload_files(store, post_id, files, uploaded)
        except MediaStorageError:
            db.session.rollback()
            logger.warning("Media upload failed; creation of post %s rolled back", post_id)
            try:
                store.delete_all(media_prefix(post_id))
            except MediaStorageError:
                logger.exception("Could not clean up media under %s", media_prefix(post_id))
            raise

        for object_name, mime_type in uploaded:
            media_repository.add_media(
                post_id=post_id,
                object_name=object_name,
                mime_type=mime_type,
            )

    db.session.commit()
    logger.info("Post %s created by user %s with %d media", post_id, user_id, len(files))
    return post_id


def get_post(post_id):
    post = post_repository.get_active_post_detail(post_id)
    if not post:
        raise NotFoundError("Invalid post.")
    return _serialize(post)


def get_posts(page: int, size: int):
    if page is None or page < 0:
        raise ValidationError("Page must be zero or greater.")
    if size is None or size < 1:
        raise ValidationError("Size must be at least 1.")
    size = min(size, current_app.config["POST_MAX_PAGE_SIZE"])

    pagination = post_repository.paginate_active_posts(page, size)
    total = pagination.total or 0
    total_pages = math.ceil(total / size)

    return {
        "items": [_serialize(post) for post in pagination.items],
        "total_count": total,
        "total_pages": total_pages,
        "page": page,
        "size": size,
        "is_first": page == 0,
        "is_last": page >= total_pages - 1,
    }


def modify_post(title, content, files, post_id, user_id):
    title, files = _validate_request(title, content, files)

    post = post_repository.get_active_post(post_id)
    if not post:
        raise NotFoundError("Invalid post.")

    updated = post_repository.update_post(post_id, user_id, title, content)
    if not updated:
        db.session.rollback()
        logger.warning("User %s cannot modify post %s; nothing changed", user_id, post_id)
        return

    # replace only what is stored under this post's own prefix
    store = get_media_store()
    uploaded = []
    try:
        old_object_names = store.list(media_prefix(post_id))
    except MediaStorageError:
        db.session.rollback()
        raise

    if files:
        try:
            _upload_files(store, post_id, files, uploaded)
        except MediaStorageError:
            db.session.rollback()
            _discard_objects(store, [name for name, _ in uploaded])
            logger.warning("Media upload failed; changes to post %s rolled back", post_id)
            raise

    media_repository.delete_by_post_id(post_id)
    for object_name, mime_type in uploaded:
        media_repository.add_media(
            post_id=post_id,
            object_name=object_name,
            mime_type=mime_type,
        )

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        _discard_objects(store, [name for name, _ in uploaded])
        raise

    _discard_objects(store, old_object_names)
    logger.info(
        "Post %s modified by user %s; media replaced (%d -> %d)",
        post_id, user_id, len(old_object_names), len(uploaded),
    )


def remove_post(post_id, user_id):
    removed = post_repository.soft_delete_post(post_id, user_id)
    db.session.commit()

    if removed:
        logger.info("Post %s removed by user %s", post_id, user_id)
    else:
        logger.warning("User %s cannot remove post %s; nothing changed", user_id, post_id)


def like_post(post_id, user_id, status: bool):
    if not post_repository.get_active_post(post_id):
        raise NotFoundError("Invalid post.")

    status = bool(status)
    try:
        updated = post_like_repository.set_like_status(post_id, user_id, status)
    except IntegrityError:
        db.session.rollback()
        raise BadRequestError("Post is already liked.")

    if updated < 1:
        db.session.rollback()
        if status:
            raise BadRequestError("Post is already liked.")
        raise BadRequestError("Post is not liked.")

    if not post_repository.adjust_like_count(post_id, 1 if status else -1):
        db.session.rollback()
        raise BadRequestError("Like count cannot go below zero.")
    db.session.commit()
    logger.info("User %s %s post %s", user_id, "liked" if status else "unliked", post_id)


def add_post_media(upload_path, post_id):
    post = post_repository.get_active_post(post_id)
    if not post:
        logger.debug("Post %s not found; media %s not attached", post_id, upload_path)
        return

    mime_type, _ = mimetypes.guess_type(upload_path)
    media_repository.add_media(
        post_id=post.id,
        object_name=upload_path,
        mime_type=mime_type,
    )
    db.session.commit()
