from postboard.models.media_model import PostMedia
from postboard.db import db


def add_media(post_id, object_name, mime_type=None):
    media = PostMedia.of(object_name, post_id, mime_type)
    db.session.add(media)
    return media


def delete_by_post_id(post_id) -> int:
    return (
        PostMedia.query
        .filter(PostMedia.post_id == post_id)
        .delete(synchronize_session="fetch")
    )
