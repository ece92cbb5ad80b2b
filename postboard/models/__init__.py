from postboard.models.user_model import User
from postboard.models.post_model import Post
from postboard.models.media_model import PostMedia
from postboard.models.post_like_model import PostLike
from postboard.models.comment_model import Comment

__all__ = ["User", "Post", "PostMedia", "PostLike", "Comment"]
