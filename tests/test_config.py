"""
Tests for settings parsing and wiring.
"""
from agents.insights.config import (
    SchedulerConfig, chain_client_config, content_config, scheduler_config,
)
from agents.insights.services.factory import build_publisher, build_service, build_text_generator
from agents.insights.services.publisher import LogPublisher, TelegramPublisher
from agents.insights.services.text_generator import ClaudeTextGenerator
from shared.config import Settings, bool_or_default, positive_int_or_default


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestParsing:
    def test_invalid_numbers_fall_back(self):
        s = _settings(RPC_BLOCK_RANGE="-10", RPC_RETRY_ATTEMPTS="many", RPC_CACHE_TTL="0", RPC_RETRY_BASE_DELAY="-1")
        assert s.RPC_BLOCK_RANGE == 100
        assert s.RPC_RETRY_ATTEMPTS == 3
        assert s.RPC_CACHE_TTL == 60_000
        assert s.RPC_RETRY_BASE_DELAY == 1.0

    def test_valid_numbers_are_kept(self):
        s = _settings(RPC_BLOCK_RANGE="250", RPC_CACHE_TTL="5000")
        assert s.RPC_BLOCK_RANGE == 250
        assert s.RPC_CACHE_TTL == 5000

    def test_flags_and_severity(self):
        s = _settings(INSIGHTS_SCHEDULED="yes", INSIGHTS_AUTO_POST="perhaps", INSIGHTS_MIN_SEVERITY="Critical")
        assert s.INSIGHTS_SCHEDULED is True
        assert s.INSIGHTS_AUTO_POST is False
        assert s.INSIGHTS_MIN_SEVERITY == "high"

    def test_env_variables_are_read(self, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://rpc.example.org")
        monkeypatch.setenv("INSIGHTS_CHECK_INTERVAL", "5")
        s = _settings()
        assert s.RPC_URL == "https://rpc.example.org"
        assert s.INSIGHTS_CHECK_INTERVAL == 5

    def test_helpers(self):
        assert positive_int_or_default(True, 7) == 7
        assert positive_int_or_default(" 12 ", 7) == 12
        assert bool_or_default("off", True) is False
        assert bool_or_default("sometimes", True) is True


class TestAgentConfig:
    def test_builders_copy_settings(self):
        s = _settings(RPC_BLOCK_RANGE="20", INSIGHTS_MAX_POSTS="2", NATIVE_SYMBOL="tBNB")
        assert chain_client_config(s).block_range == 20
        assert scheduler_config(s).max_posts_per_cycle == 2
        assert content_config(s).native_symbol == "tBNB"

    def test_scheduler_config_defaults(self):
        config = SchedulerConfig(check_interval_minutes=0, min_post_severity="urgent")
        assert config.check_interval_minutes == 30
        assert config.min_post_severity == "high"
        assert config.enabled is False


class TestFactory:
    def test_dry_run_without_credentials(self):
        s = _settings(TELEGRAM_BOT_TOKEN="", TELEGRAM_CHAT_ID="", ANTHROPIC_API_KEY="")
        assert isinstance(build_publisher(s), LogPublisher)
        assert build_text_generator(s) is None

    def test_real_adapters_with_credentials(self):
        s = _settings(TELEGRAM_BOT_TOKEN="123:abc", TELEGRAM_CHAT_ID="-100", ANTHROPIC_API_KEY="sk-test")
        assert isinstance(build_publisher(s), TelegramPublisher)
        assert isinstance(build_text_generator(s), ClaudeTextGenerator)

    def test_build_service_wires_components(self):
        s = _settings(ANTHROPIC_API_KEY="", NATIVE_SYMBOL="tBNB", RPC_BLOCK_RANGE="40")
        service = build_service(s, publisher=LogPublisher())
        assert service.client.block_range == 40
        assert service.analyzer.native_symbol == "tBNB"
        assert service.twitter.text_generator is None
        assert service.health.status == "uninitialized"
