import os
import sys

from sqlalchemy import select

from gallery_admin.db import get_sessionmaker, init_engine
from gallery_admin.models.user import User, UserRole
from gallery_admin.utils.tokens import hash_password


def main() -> None:
    # Credentials come from argv first, then the environment.
    email = (sys.argv[1] if len(sys.argv) > 1 else os.getenv("ADMIN_EMAIL", "admin@example.com")).lower()
    password = sys.argv[2] if len(sys.argv) > 2 else os.getenv("ADMIN_PASSWORD", "change-me-now")

    init_engine()
    SessionLocal = get_sessionmaker()
    db = SessionLocal()

    try:
        existing = db.scalars(select(User).where(User.email == email)).first()
        if existing is not None:
            print(f"User {email} already exists (id={existing.id}, role={existing.role.value}).")
            return

        admin = User(
            email=email,
            name="Administrator",
            role=UserRole.ADMIN,
            password_hash=hash_password(password),
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)

        print("==========================================")
        print("Admin user created successfully")
        print(f"    email: {admin.email}")
        print("Sign in with POST /auth/login to obtain a bearer token.")
        print(f"(DB id: {admin.id}, role: {admin.role.value})")
        print("==========================================")
    finally:
        db.close()


if __name__ == "__main__":
    main()
