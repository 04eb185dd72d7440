"""Seed sample data for a local gallery admin database."""
from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

from gallery_admin import db as database  # noqa: E402
from gallery_admin import models  # noqa: E402
from gallery_admin.config import get_settings  # noqa: E402
from gallery_admin.services.activity_recorder import ActivityRecorder  # noqa: E402
from gallery_admin.utils.tokens import hash_password  # noqa: E402


def main() -> None:
    settings = get_settings()
    print(f"Using database: {settings.database_url}")

    database.create_all()
    session = database.get_sessionmaker()()

    try:
        admin = models.User(
            email="admin@example.com",
            name="Admin",
            role=models.UserRole.ADMIN,
            password_hash=hash_password("admin-password"),
        )
        editor = models.User(
            email="editor@example.com",
            name="Editor",
            role=models.UserRole.EDITOR,
            password_hash=hash_password("editor-password"),
        )
        landscapes = models.Category(name="Landscapes", description="Mountains, coasts and skies")
        portraits = models.Category(name="Portraits")
        session.add_all([admin, editor, landscapes, portraits])
        session.commit()

        sunset = models.Image(
            title="Sunset over the bay",
            category_id=landscapes.id,
            uploaded_by_id=editor.id,
            storage_key="seed/sunset.jpg",
            thumbnail_url="https://img.example.com/seed/sunset_thumb.jpg",
            original_url="https://img.example.com/seed/sunset.jpg",
            file_size=482_113,
        )
        sunset.tag_list = ["sunset", "sea"]
        session.add(sunset)
        session.commit()

        recorder = ActivityRecorder(session)
        recorder.log_user_create(editor.email, editor.role.value, actor_id=admin.id)
        recorder.log_category_create(landscapes.name, actor_id=admin.id)
        recorder.log_category_create(portraits.name, actor_id=admin.id)
        recorder.log_image_upload(sunset.id, sunset.title, actor_id=editor.id)
        print("Seed data inserted.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
