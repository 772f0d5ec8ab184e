# tests/core/test_config.py
from backoffice.core import config
from backoffice.core.config import Settings

def test_settings_load_from_environment_without_env_files(monkeypatch):
    """Sem .env nem .env.local as configurações vêm só das variáveis de ambiente."""
    monkeypatch.setattr(config, "find_dotenv_path", lambda filename='.env', raise_error_if_not_found=False: None)
    monkeypatch.setenv("MONGODB_URI", "mongodb://db.internal:27017/painel")
    monkeypatch.setenv("SECRET_KEY", "env-only-secret")

    assert config.env_files() == ()

    settings = Settings(_env_file=config.env_files() or None)
    assert settings.MONGODB_URI == "mongodb://db.internal:27017/painel"
    assert settings.SECRET_KEY == "env-only-secret"

def test_only_existing_env_files_are_read(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PROJECT_NAME=Painel Local\n", encoding="utf-8")
    monkeypatch.setattr(
        config, "find_dotenv_path",
        lambda filename='.env', raise_error_if_not_found=False: str(env_file) if filename == '.env' else None,
    )
    monkeypatch.delenv("PROJECT_NAME", raising=False)

    assert config.env_files() == (str(env_file),)

    settings = Settings(_env_file=config.env_files())
    assert settings.PROJECT_NAME == "Painel Local"

def test_cors_origins_are_split_and_trimmed(monkeypatch):
    monkeypatch.setenv("FRONTEND_ORIGINS", "http://localhost:5173, https://painel.example.com ,")
    settings = Settings(_env_file=None)
    assert settings.cors_origins == ["http://localhost:5173", "https://painel.example.com"]
