import io
import os
import shutil
import tempfile
import unittest

from werkzeug.datastructures import FileStorage


def _file(name="pic.png", content_type="image/png", data=b"fake-image-bytes"):
    return FileStorage(stream=io.BytesIO(data), filename=name, content_type=content_type)


class TestPostService(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        db_fd, cls.db_path = tempfile.mkstemp(suffix=".db")
        os.close(db_fd)
        cls.media_root = tempfile.mkdtemp()

        from postboard import create_app
        from postboard.db import db
        from postboard.errors import MediaStorageError, NotFoundError, ValidationError
        from postboard.models import Comment, Post, PostMedia
        from postboard.repositories import user_repository
        from postboard.services import post_service

        cls.app = create_app({
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_path}",
            "MEDIA_STORAGE_BACKEND": "local",
            "MEDIA_LOCAL_ROOT": cls.media_root,
        })
        cls.db = db
        cls.Comment = Comment
        cls.Post = Post
        cls.PostMedia = PostMedia
        cls.MediaStorageError = MediaStorageError
        cls.NotFoundError = NotFoundError
        cls.ValidationError = ValidationError
        cls.user_repository = user_repository
        cls.post_service = post_service

    @classmethod
    def tearDownClass(cls):
        if os.path.exists(cls.db_path):
            os.remove(cls.db_path)
        shutil.rmtree(cls.media_root, ignore_errors=True)

    def setUp(self):
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.db.drop_all()
        self.db.create_all()
        for entry in os.listdir(self.media_root):
            shutil.rmtree(os.path.join(self.media_root, entry), ignore_errors=True)

        self.alice = self.user_repository.create_user("alice").id
        self.bob = self.user_repository.create_user("bob", name="Bob").id
        self.db.session.commit()

    def tearDown(self):
        self.db.session.remove()
        self.ctx.pop()

    def _stored(self, object_name):
        return os.path.exists(os.path.join(self.media_root, *object_name.split("/")))

    def _media_names(self, post_id):
        return [
            media.object_name
            for media in self.PostMedia.query.filter_by(post_id=post_id).order_by(self.PostMedia.id)
        ]

    def test_create_post_starts_with_zero_likes_and_not_deleted(self):
        post_id = self.post_service.add_post("A", "B", [], self.alice)

        post = self.db.session.get(self.Post, post_id)
        self.assertEqual(post.title, "A")
        self.assertEqual(post.content, "B")
        self.assertEqual(post.like_count, 0)
        self.assertFalse(post.is_deleted)
        self.assertEqual(post.user_id, self.alice)
        self.assertIsNotNone(post.created_at)

    def test_create_post_uploads_media_under_post_prefix_in_order(self):
        post_id = self.post_service.add_post(
            "A", "B",
            [_file("one.png", "image/png"), _file("two.mp4", "video/mp4")],
            self.alice,
        )

        names = self._media_names(post_id)
        self.assertEqual(len(names), 2)
        for name in names:
            self.assertTrue(name.startswith(f"posts/media/{post_id}/"))
            self.assertTrue(self._stored(name))
        self.assertTrue(names[0].endswith(".png"))
        self.assertTrue(names[1].endswith(".mp4"))

    def test_create_post_rejects_invalid_fields(self):
        with self.assertRaises(self.ValidationError) as ctx:
            self.post_service.add_post("", "  ", [], self.alice)

        self.assertEqual(ctx.exception.message, "Title is required., Content is required.")
        self.assertEqual(self.Post.query.count(), 0)

    def test_create_post_rejects_long_title_and_missing_content(self):
        with self.assertRaises(self.ValidationError) as ctx:
            self.post_service.add_post("x" * 51, None, [], self.alice)

        self.assertEqual(
            ctx.exception.message,
            "Title must be 50 characters or fewer., Content is required.",
        )

    def test_create_post_title_length_checked_after_strip(self):
        post_id = self.post_service.add_post("  " + "x" * 50 + "  ", "B", [], self.alice)

        self.assertEqual(self.db.session.get(self.Post, post_id).title, "x" * 50)

        with self.assertRaises(self.ValidationError):
            self.post_service.add_post(" " + "x" * 51, "B", [], self.alice)

    def test_create_post_rejects_unsupported_media(self):
        with self.assertRaises(self.ValidationError) as ctx:
            self.post_service.add_post(
                "A", "B", [_file("doc.pdf", "application/pdf")], self.alice
            )

        self.assertIn("Unsupported media type: application/pdf", ctx.exception.message)
        self.assertEqual(self.Post.query.count(), 0)
        self.assertEqual(os.listdir(self.media_root), [])

    def test_create_post_rejects_more_than_8_media_files(self):
        files = [_file(f"{i}.png") for i in range(9)]

        with self.assertRaises(self.ValidationError) as ctx:
            self.post_service.add_post("A", "B", files, self.alice)

        self.assertIn("Maximum 8 media files allowed.", ctx.exception.message)

    def test_create_post_with_unknown_user(self):
        with self.assertRaises(self.NotFoundError) as ctx:
            self.post_service.add_post("A", "B", [], 999)

        self.assertEqual(ctx.exception.message, "Invalid member.")
        self.assertEqual(self.Post.query.count(), 0)

    def test_get_post_returns_detail_view(self):
        post_id = self.post_service.add_post("A", "B", [_file()], self.bob)
        self.db.session.add(self.Comment(post_id=post_id, user_id=self.alice, content="nice"))
        self.db.session.add(
            self.Comment(post_id=post_id, user_id=self.alice, content="gone", is_deleted=True)
        )
        self.db.session.commit()

        detail = self.post_service.get_post(post_id)

        self.assertEqual(detail["id"], post_id)
        self.assertEqual(detail["title"], "A")
        self.assertEqual(detail["content"], "B")
        self.assertEqual(detail["like_count"], 0)
        self.assertEqual(detail["author"], {"id": self.bob, "username": "bob", "name": "Bob"})
        self.assertEqual(len(detail["media"]), 1)
        self.assertEqual(detail["media"][0]["mime_type"], "image/png")
        self.assertTrue(detail["media"][0]["url"].startswith(f"/media/posts/media/{post_id}/"))
        self.assertEqual(detail["comment_count"], 1)
        self.assertEqual(detail["comments"][0]["content"], "nice")
        self.assertEqual(detail["comments"][0]["author_id"], self.alice)

    def test_get_post_missing_or_deleted(self):
        with self.assertRaises(self.NotFoundError):
            self.post_service.get_post(12345)

        post_id = self.post_service.add_post("A", "B", [], self.alice)
        self.post_service.remove_post(post_id, self.alice)

        with self.assertRaises(self.NotFoundError) as ctx:
            self.post_service.get_post(post_id)
        self.assertEqual(ctx.exception.message, "Invalid post.")

    def test_get_posts_orders_newest_first_and_skips_deleted(self):
        ids = [self.post_service.add_post(f"T{i}", "C", [], self.alice) for i in range(7)]
        self.post_service.remove_post(ids[2], self.alice)
        self.post_service.remove_post(ids[5], self.alice)
        expected = sorted(set(ids) - {ids[2], ids[5]}, reverse=True)

        for size in (1, 2, 3, 10):
            seen = []
            page = 0
            while True:
                result = self.post_service.get_posts(page, size)
                seen.extend(item["id"] for item in result["items"])
                self.assertEqual(result["total_count"], 5)
                self.assertEqual(result["is_first"], page == 0)
                if result["is_last"]:
                    break
                page += 1
            self.assertEqual(seen, expected)

    def test_get_posts_page_metadata(self):
        for i in range(5):
            self.post_service.add_post(f"T{i}", "C", [], self.alice)

        result = self.post_service.get_posts(1, 2)

        self.assertEqual(len(result["items"]), 2)
        self.assertEqual(result["total_count"], 5)
        self.assertEqual(result["total_pages"], 3)
        self.assertEqual(result["page"], 1)
        self.assertEqual(result["size"], 2)
        self.assertFalse(result["is_first"])
        self.assertFalse(result["is_last"])

        last = self.post_service.get_posts(2, 2)
        self.assertEqual(len(last["items"]), 1)
        self.assertTrue(last["is_last"])

    def test_get_posts_empty_and_size_cap(self):
        empty = self.post_service.get_posts(0, 10)
        self.assertEqual(empty["items"], [])
        self.assertEqual(empty["total_pages"], 0)
        self.assertTrue(empty["is_first"])
        self.assertTrue(empty["is_last"])

        capped = self.post_service.get_posts(0, 500)
        self.assertEqual(capped["size"], 50)

    def test_get_posts_rejects_bad_paging(self):
        with self.assertRaises(self.ValidationError):
            self.post_service.get_posts(-1, 10)
        with self.assertRaises(self.ValidationError):
            self.post_service.get_posts(0, 0)

    def test_modify_post_replaces_media(self):
        post_id = self.post_service.add_post("A", "B", [_file("old.png")], self.alice)
        old_names = self._media_names(post_id)

        self.post_service.modify_post("A2", "B2", [_file("f1.jpg", "image/jpeg")], post_id, self.alice)
        f1_names = self._media_names(post_id)

        self.assertEqual(len(f1_names), 1)
        self.assertTrue(f1_names[0].endswith(".jpeg"))
        self.assertTrue(self._stored(f1_names[0]))
        self.assertFalse(self._stored(old_names[0]))

        self.post_service.modify_post("A2", "B2", [], post_id, self.alice)

        self.assertEqual(self._media_names(post_id), [])
        self.assertFalse(self._stored(f1_names[0]))
        detail = self.post_service.get_post(post_id)
        self.assertEqual(detail["title"], "A2")
        self.assertEqual(detail["content"], "B2")
        self.assertEqual(detail["media"], [])

    def test_modify_post_validation_and_missing_post(self):
        post_id = self.post_service.add_post("A", "B", [], self.alice)

        with self.assertRaises(self.ValidationError):
            self.post_service.modify_post("", "B", [], post_id, self.alice)

        with self.assertRaises(self.NotFoundError):
            self.post_service.modify_post("A", "B", [], 999, self.alice)

    def test_modify_post_by_other_user_is_a_no_op(self):
        post_id = self.post_service.add_post("A", "B", [_file()], self.alice)
        names = self._media_names(post_id)

        self.post_service.modify_post("hacked", "hacked", [], post_id, self.bob)

        post = self.db.session.get(self.Post, post_id)
        self.assertEqual(post.title, "A")
        self.assertEqual(post.content, "B")
        self.assertEqual(self._media_names(post_id), names)
        self.assertTrue(self._stored(names[0]))

    def test_modify_post_keeps_objects_outside_its_prefix(self):
        donor_id = self.post_service.add_post("A", "B", [_file()], self.alice)
        shared = self._media_names(donor_id)[0]
        post_id = self.post_service.add_post("C", "D", [], self.alice)
        self.post_service.add_post_media(shared, post_id)

        self.post_service.modify_post("C2", "D2", [], post_id, self.alice)

        self.assertEqual(self._media_names(post_id), [])
        self.assertEqual(self._media_names(donor_id), [shared])
        self.assertTrue(self._stored(shared))

    def test_modify_post_clears_unreferenced_objects_under_prefix(self):
        post_id = self.post_service.add_post("A", "B", [], self.alice)
        stray_dir = os.path.join(self.media_root, "posts", "media", str(post_id))
        os.makedirs(stray_dir)
        with open(os.path.join(stray_dir, "stray.png"), "wb") as fh:
            fh.write(b"left over")

        self.post_service.modify_post("A2", "B2", [_file()], post_id, self.alice)

        names = self._media_names(post_id)
        self.assertEqual(len(names), 1)
        self.assertTrue(self._stored(names[0]))
        self.assertFalse(self._stored(f"posts/media/{post_id}/stray.png"))

    def test_unwritable_media_root_fails_as_storage_error(self):
        post_id = self.post_service.add_post("A", "B", [], self.alice)
        blocker = os.path.join(self.media_root, "not-a-directory")
        with open(blocker, "wb") as fh:
            fh.write(b"")

        original_root = self.app.config["MEDIA_LOCAL_ROOT"]
        self.app.config["MEDIA_LOCAL_ROOT"] = blocker
        try:
            with self.assertRaises(self.MediaStorageError):
                self.post_service.add_post("New", "B", [_file()], self.alice)
            with self.assertRaises(self.MediaStorageError):
                self.post_service.modify_post("A2", "B2", [_file()], post_id, self.alice)
        finally:
            self.app.config["MEDIA_LOCAL_ROOT"] = original_root

        self.assertEqual(self.Post.query.count(), 1)
        self.assertEqual(self.db.session.get(self.Post, post_id).title, "A")

    def test_remove_post_soft_deletes(self):
        post_id = self.post_service.add_post("A", "B", [], self.alice)

        self.post_service.remove_post(post_id, self.alice)

        post = self.db.session.get(self.Post, post_id)
        self.assertIsNotNone(post)
        self.assertTrue(post.is_deleted)
        self.assertEqual(self.post_service.get_posts(0, 10)["total_count"], 0)

    def test_remove_post_by_other_user_is_a_no_op(self):
        post_id = self.post_service.add_post("A", "B", [], self.alice)

        self.post_service.remove_post(post_id, self.bob)
        self.post_service.remove_post(999, self.alice)

        post = self.db.session.get(self.Post, post_id)
        self.assertFalse(post.is_deleted)

    def test_add_post_media_attaches_to_existing_post(self):
        post_id = self.post_service.add_post("A", "B", [], self.alice)

        self.post_service.add_post_media(f"posts/media/{post_id}/extra.png", post_id)
        self.post_service.add_post_media("posts/media/999/extra.png", 999)

        media = self.PostMedia.query.all()
        self.assertEqual(len(media), 1)
        self.assertEqual(media[0].post_id, post_id)
        self.assertEqual(media[0].mime_type, "image/png")


if __name__ == "__main__":
    unittest.main()
