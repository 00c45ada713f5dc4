"""Tests for settings loading."""

from news_spine.config import DEFAULT_NEWSAPI_DOMAINS, Settings, get_settings, reset_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.job_max_attempts == 3
        assert settings.job_backoff_seconds == 30
        assert settings.job_timeout_seconds == 300
        assert settings.http_max_attempts == 3
        assert settings.newsapi_domains == DEFAULT_NEWSAPI_DOMAINS

    def test_domains_from_comma_separated_env(self, monkeypatch):
        monkeypatch.setenv("NEWSAPI_DOMAINS", " wired.com, cnn.com ,,")
        assert Settings(_env_file=None).newsapi_domains == ["wired.com", "cnn.com"]

    def test_celery_urls_fall_back_to_redis(self):
        settings = Settings(_env_file=None, redis_url="redis://cache:6379/1")
        assert settings.broker_url == "redis://cache:6379/1"
        assert settings.result_backend == "redis://cache:6379/1"

        settings = Settings(_env_file=None, celery_broker_url="amqp://broker")
        assert settings.broker_url == "amqp://broker"

    def test_queue_names(self):
        assert Settings(_env_file=None).queue_for("guardian") == "sync_guardian"

    def test_get_settings_is_cached(self, monkeypatch):
        first = get_settings()
        assert get_settings() is first

        monkeypatch.setenv("JOB_MAX_ATTEMPTS", "5")
        reset_settings()
        assert get_settings().job_max_attempts == 5
