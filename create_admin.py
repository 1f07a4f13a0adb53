import sys
import uuid
from datetime import datetime, timezone
import psycopg2
from sqlalchemy import create_engine
from app.core.security import hash_password
from app.core.config import settings
from app.models.base import Base
from app.models import activity, follow_up, lead, user  # noqa: F401  registers tables
from urllib.parse import urlparse


def sync_database_url() -> str:
    return settings.DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://")


def create_tables() -> None:
    engine = create_engine(sync_database_url().replace("postgresql://", "postgresql+psycopg2://"))
    Base.metadata.create_all(engine)
    engine.dispose()


def create_admin_user(username: str, password: str, full_name: str | None = None) -> bool:
    """Create the builder account, which sees every lead."""
    try:
        db_url = urlparse(sync_database_url())

        conn = psycopg2.connect(
            host=db_url.hostname or "localhost",
            port=db_url.port or 5432,
            user=db_url.username or "postgres",
            password=db_url.password or "postgres",
            database=db_url.path.lstrip("/") or "postgres"
        )
    except psycopg2.Error as e:
        print(f"Error connecting to database: {e}")
        return False

    try:
        with conn, conn.cursor() as cursor:
            cursor.execute("SELECT id FROM users WHERE username = %s", (username,))
            if cursor.fetchone():
                print(f"Error: User '{username}' already exists")
                return False

            user_id = str(uuid.uuid4())
            # Enum columns store the member name
            cursor.execute(
                "INSERT INTO users (id, username, password_hash, role, full_name, created_at) "
                "VALUES (%s, %s, %s, %s, %s, %s)",
                (user_id, username, hash_password(password), "ADMIN",
                 full_name or username, datetime.now(timezone.utc))
            )

        print(f"Admin user '{username}' created successfully")
        print(f"User ID: {user_id}")
        print("Role: admin")
        return True
    except psycopg2.Error as e:
        print(f"Error creating admin user: {e}")
        return False
    finally:
        conn.close()


def main():
    if len(sys.argv) < 3:
        print("Usage: python create_admin.py <username> <password> [full name]")
        sys.exit(1)

    username = sys.argv[1]
    password = sys.argv[2]
    full_name = " ".join(sys.argv[3:]) or None

    if not username or not password:
        print("Error: username and password cannot be empty")
        sys.exit(1)

    create_tables()
    success = create_admin_user(username, password, full_name)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
