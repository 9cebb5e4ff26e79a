import os
from dotenv import load_dotenv

load_dotenv()


def _sqlite_url(db_path: str) -> str:
    return f"sqlite+aiosqlite:///{db_path}"


class Settings:
    db_path: str = os.getenv("DB_PATH", "./database/inventory.db")
    database_url: str = os.getenv("DATABASE_URL", _sqlite_url(db_path))
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"

    # Uploads (photos + PDF receipts)
    upload_dir: str = os.getenv("UPLOAD_DIR", "./uploads")
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    cors_origin: str = os.getenv("CORS_ORIGIN", "http://localhost:3000")
    environment: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    port: int = int(os.getenv("PORT", "5000"))

    @classmethod
    def for_database(cls, db_path: str, upload_dir: str) -> "Settings":
        """Settings pointing at an explicit database file and upload folder."""
        s = cls()
        s.db_path = db_path
        s.database_url = _sqlite_url(db_path)
        s.upload_dir = upload_dir
        return s

    @property
    def photos_dir(self) -> str:
        return os.path.join(self.upload_dir, "photos")

    @property
    def receipts_dir(self) -> str:
        return os.path.join(self.upload_dir, "receipts")


settings = Settings()
