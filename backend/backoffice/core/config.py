# backoffice/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from loguru import logger
from pathlib import Path
import warnings

DEFAULT_SECRET_KEY = "!!!GENERATE_A_STRONG_SECRET_KEY_32_BYTES_HEX!!!"

# Procura o .env subindo a partir deste arquivo e, por fim, no CWD
def find_dotenv_path(filename: str = '.env', raise_error_if_not_found: bool = False) -> str | None:
    current_dir = Path(__file__).resolve().parent
    for _ in range(10):
        env_path = current_dir / filename
        if env_path.is_file():
            logger.debug(f"Found {filename} file at: {env_path}")
            return str(env_path)
        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            break
        current_dir = parent_dir
    env_path_cwd = Path.cwd() / filename
    if env_path_cwd.is_file():
        logger.debug(f"Found {filename} file at CWD: {env_path_cwd}")
        return str(env_path_cwd)
    logger.debug(f"{filename} not found in parent directories or CWD.")
    if raise_error_if_not_found:
        raise IOError(f'{filename} not found')
    return None

def env_files() -> tuple[str, ...]:
    return tuple(p for p in (find_dotenv_path('.env'), find_dotenv_path('.env.local')) if p)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Painel Backoffice API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database
    MONGODB_URI: str
    MONGODB_DB_NAME: str | None = Field(default=None, description="Overrides the DB name parsed from MONGODB_URI")

    # Security
    SECRET_KEY: str # For JWT
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS (lista separada por vírgula)
    FRONTEND_ORIGINS: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        # .env primeiro, depois .env.local (que pode sobrescrever); arquivos ausentes ficam de fora
        env_file=env_files() or None,
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.FRONTEND_ORIGINS.split(",") if origin.strip()]

@lru_cache()
def get_settings() -> Settings:
    """Carrega e valida as configurações da aplicação."""
    logger.info("Loading application settings...")
    env_files_found = env_files()
    if env_files_found:
        logger.info(f"Loading environment variables from: {', '.join(env_files_found)}")
    else:
        logger.warning("No .env file found. Loading settings from system environment variables only.")

    try:
        settings_instance = Settings()

        required_vars = ['MONGODB_URI', 'SECRET_KEY']
        missing = [k for k in required_vars if not getattr(settings_instance, k, None)]
        if missing:
            logger.critical(f"Missing critical environment variables: {', '.join(missing)}")
            raise ValueError(f"Missing critical environment variables: {', '.join(missing)}")

        if settings_instance.SECRET_KEY == DEFAULT_SECRET_KEY:
            logger.warning("SECURITY WARNING: Using default SECRET_KEY. Generate a strong key (e.g., `openssl rand -hex 32`) and set it in your environment!")
            warnings.warn("SECURITY WARNING: Using default SECRET_KEY. Please generate and set a strong secret key!")

        logger.info("Settings loaded and validated successfully.")
        return settings_instance
    except ValueError as val_err: # pydantic.ValidationError herda de ValueError
        logger.critical(f"CRITICAL ERROR in settings validation: {val_err}")
        raise SystemExit(f"Settings validation failed: {val_err}")

settings = get_settings()
