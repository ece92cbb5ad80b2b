from postboard.db import db
from postboard.models.base import TimestampMixin


class Post(TimestampMixin, db.Model):
    __tablename__ = "posts"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(50), nullable=False)
    content = db.Column(db.Text, nullable=False)
    like_count = db.Column(db.Integer, nullable=False, default=0)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    author = db.relationship("User", lazy="joined")

    media = db.relationship(
        "PostMedia",
        backref="post",
        lazy="select",
        order_by="PostMedia.id",
        cascade="all, delete-orphan"
    )

    comments = db.relationship(
        "Comment",
        backref="post",
        lazy="select",
        order_by="Comment.id",
        cascade="all, delete-orphan"
    )

    likes = db.relationship(
        "PostLike",
        lazy="select",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.CheckConstraint("like_count >= 0", name="ck_posts_like_count_non_negative"),
    )

    @classmethod
    def of(cls, title, content, author):
        return cls(
            title=title,
            content=content,
            like_count=0,
            is_deleted=False,
            author=author,
        )
