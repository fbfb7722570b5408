import pytest

from eco_rewards.core.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("APP_ENVIRONMENT", "SECRET_KEY", "IMPORT_BATCH_SIZE", "REWARD_CARBON_FACTORS"):
        monkeypatch.delenv(name, raising=False)


def test_development_defaults():
    settings = get_settings()

    assert settings.environment == "development"
    assert settings.secret_key == Settings().secret_key


def test_secret_key_required_outside_development(monkeypatch):
    monkeypatch.setenv("APP_ENVIRONMENT", "production")

    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        get_settings()


def test_secret_key_from_environment(monkeypatch):
    monkeypatch.setenv("APP_ENVIRONMENT", "Production")
    monkeypatch.setenv("SECRET_KEY", "s3cret")

    settings = get_settings()

    assert settings.environment == "production"
    assert settings.secret_key == "s3cret"


def test_import_and_reward_tuning(monkeypatch):
    monkeypatch.setenv("IMPORT_BATCH_SIZE", "25")
    monkeypatch.setenv("REWARD_CARBON_FACTORS", '{"Bus": 0.1}')

    settings = get_settings()

    assert settings.import_batch_size == 25
    assert settings.reward_carbon_factors == {"bus": 0.1}


def test_malformed_numbers_are_rejected(monkeypatch):
    monkeypatch.setenv("IMPORT_BATCH_SIZE", "lots")

    with pytest.raises(RuntimeError, match="IMPORT_BATCH_SIZE"):
        get_settings()
