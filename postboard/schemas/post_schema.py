from marshmallow import ValidationError as FieldValidationError, validate

from postboard.extensions.extensions import ma
from postboard.extensions.media_store import get_media_store


def _not_blank(message):
    def _validator(value):
        if not value or not value.strip():
            raise FieldValidationError(message)
    return _validator


class PostRequestSchema(ma.Schema):
    title = ma.Str(
        required=True,
        validate=[
            _not_blank("Title is required."),
            validate.Length(max=50, error="Title must be 50 characters or fewer."),
        ],
        error_messages={
            "required": "Title is required.",
            "null": "Title is required.",
            "invalid": "Title must be a string.",
        },
    )
    content = ma.Str(
        required=True,
        validate=_not_blank("Content is required."),
        error_messages={
            "required": "Content is required.",
            "null": "Content is required.",
            "invalid": "Content must be a string.",
        },
    )

    def error_messages_for(self, payload):
        """Flatten ``validate()`` output into messages, in field order."""
        errors = self.validate(payload)
        messages = []
        for field_name in self.fields:
            for message in errors.get(field_name, []):
                messages.append(message)
        return messages


class AuthorSchema(ma.Schema):
    id = ma.Int()
    username = ma.Str()
    name = ma.Method("get_name")

    def get_name(self, user):
        return user.name or user.username


class MediaSchema(ma.Schema):
    id = ma.Int()
    path = ma.Str(attribute="object_name")
    url = ma.Method("get_url")
    mime_type = ma.Str()

    def get_url(self, media):
        return get_media_store().url_for(media.object_name)


class CommentSummarySchema(ma.Schema):
    id = ma.Int()
    content = ma.Str()
    author_id = ma.Int(attribute="user_id")
    created_at = ma.DateTime()


class PostDetailSchema(ma.Schema):
    id = ma.Int()
    title = ma.Str()
    content = ma.Str()
    like_count = ma.Int()
    created_at = ma.DateTime()
    updated_at = ma.DateTime()
    author = ma.Nested(AuthorSchema)
    media = ma.List(ma.Nested(MediaSchema))
    comments = ma.Method("get_comments")
    comment_count = ma.Method("get_comment_count")

    @staticmethod
    def _visible_comments(post):
        return [comment for comment in post.comments if not comment.is_deleted]

    def get_comments(self, post):
        return CommentSummarySchema(many=True).dump(self._visible_comments(post))

    def get_comment_count(self, post):
        return len(self._visible_comments(post))
