from postboard.db import db
from postboard.models.post_like_model import PostLike


def get_like(post_id, user_id):
    return PostLike.query.filter_by(post_id=post_id, user_id=user_id).first()


def set_like_status(post_id, user_id, status: bool) -> int:
    """Flip the (post, user) like record to ``status`` if it holds the opposite.

    A missing record counts as "not liked". Returns the number of affected
    rows; zero means the record already had the requested status.
    """
    like = get_like(post_id, user_id)

    if like is None:
        if not status:
            return 0
        db.session.add(PostLike(post_id=post_id, user_id=user_id, status=True))
        db.session.flush()
        return 1

    return (
        PostLike.query
        .filter(
            PostLike.id == like.id,
            PostLike.status.is_(not status),
        )
        .update({PostLike.status: status}, synchronize_session="fetch")
    )
