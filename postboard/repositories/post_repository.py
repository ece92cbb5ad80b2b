from sqlalchemy.orm import selectinload

from postboard.db import db
from postboard.models.post_model import Post


def active_posts():
    return Post.query.filter(Post.is_deleted.is_(False))


def create_post(title, content, author):
    post = Post.of(title, content, author)
    db.session.add(post)
    db.session.flush()

    return post


def get_active_post(post_id):
    return active_posts().filter(Post.id == post_id).first()


def get_active_post_detail(post_id):
    return (
        active_posts()
        .options(selectinload(Post.media), selectinload(Post.comments))
        .filter(Post.id == post_id)
        .first()
    )


def paginate_active_posts(page, size):
    """``page`` is zero-based; Flask-SQLAlchemy pages start at 1."""
    query = (
        active_posts()
        .options(selectinload(Post.media), selectinload(Post.comments))
        .order_by(Post.id.desc())
    )
    return query.paginate(page=page + 1, per_page=size, error_out=False, count=True)


def update_post(post_id, user_id, title, content) -> int:
    return (
        active_posts()
        .filter(Post.id == post_id, Post.user_id == user_id)
        .update(
            {Post.title: title, Post.content: content},
            synchronize_session="fetch",
        )
    )


def soft_delete_post(post_id, user_id) -> int:
    return (
        active_posts()
        .filter(Post.id == post_id, Post.user_id == user_id)
        .update({Post.is_deleted: True}, synchronize_session="fetch")
    )


def adjust_like_count(post_id, delta: int) -> int:
    return (
        active_posts()
        .filter(Post.id == post_id, Post.like_count + delta >= 0)
        .update(
            {Post.like_count: Post.like_count + delta},
            synchronize_session="fetch",
        )
    )
