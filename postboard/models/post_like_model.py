from postboard.db import db
from postboard.models.base import TimestampMixin


class PostLike(TimestampMixin, db.Model):
    __tablename__ = "post_likes"

    id = db.Column(db.Integer, primary_key=True)

    post_id = db.Column(db.Integer, db.ForeignKey("posts.id"), nullable=False)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    # True while the user currently likes the post
    status = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.UniqueConstraint(
            "post_id", "user_id",
            name="unique_user_post_like"
        ),
    )
