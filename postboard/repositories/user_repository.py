from postboard.models.user_model import User
from postboard.db import db


def get_by_id(user_id):
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def create_user(username, name=None):
    user = User(
        username=username,
        name=(name or username).strip(),
    )
    db.session.add(user)
    db.session.flush()
    return user
