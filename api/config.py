from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm import declarative_base
from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
    """Service configuration, read from the environment (and .env)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./group-progress.db"
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Identity: tokens are minted by the external identity provider with this secret.
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Permission collaborator: "static" (in-process grants) or "http" (group service).
    permissions_backend: str = "static"
    permissions_default_allow: bool = True
    groups_api_url: str = "http://localhost:3000"
    groups_api_timeout: float = 5.0

    max_post_length: int = 10_000


settings = Settings()


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def create_db():
    # Import for side effects: registers the tables on Base.metadata.
    import api.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
