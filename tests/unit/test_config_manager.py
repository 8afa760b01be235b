"""Tests for config manager module."""

from treelingo.config_manager import (
    ConfigItem,
    ConfigSource,
    get_config_items,
    validate_config,
)


class TestConfigItem:
    """Test ConfigItem class."""

    def test_config_item_creation(self):
        """Test creating a config item."""
        item = ConfigItem(
            key="test_key",
            value="test_value",
            source=ConfigSource.ENVIRONMENT,
            category="Test",
            description="Test description",
            required=True,
        )
        assert item.key == "test_key"
        assert item.value == "test_value"
        assert item.source == ConfigSource.ENVIRONMENT

    def test_api_key_masking(self):
        """Test API key value masking."""
        item = ConfigItem(
            key="deepl_api_key",
            value="dl_test_1234567890abcdefghij",
            source=ConfigSource.ENVIRONMENT,
        )
        display = item.display_value()
        assert display.startswith("dl_te")
        assert display.endswith("ghij")
        assert "***" in display

    def test_token_masking(self):
        """Test store tokens are masked like API keys."""
        item = ConfigItem(key="sanity_token", value="short", source=ConfigSource.ENVIRONMENT)
        assert item.display_value() == "****"

    def test_none_value_display(self):
        """Test display of None value."""
        item = ConfigItem(key="test_key", value=None, source=ConfigSource.NOT_SET)
        assert item.display_value() == "[NOT SET]"

    def test_empty_list_display(self):
        """Test display of an empty list setting."""
        item = ConfigItem(key="custom_field_keys", value=[], source=ConfigSource.DEFAULT)
        assert item.display_value() == "[NOT SET]"

    def test_source_display_environment(self):
        """Test source display for environment variables."""
        item = ConfigItem(key="test_key", value="test", source=ConfigSource.ENVIRONMENT)
        assert "TREELINGO_TEST_KEY" in item.source_display()

    def test_source_display_default(self):
        """Test source display for default values."""
        item = ConfigItem(key="test_key", value="default_value", source=ConfigSource.DEFAULT)
        assert "(default)" in item.source_display()

    def test_status_display_missing_required(self):
        """Test status display for missing required value."""
        item = ConfigItem(key="test_key", value=None, source=ConfigSource.NOT_SET, required=True)
        assert "[MISSING]" in item.status_display()

    def test_status_display_optional(self):
        """Test status display for optional missing value."""
        item = ConfigItem(key="test_key", value=None, source=ConfigSource.NOT_SET)
        assert "[OPTIONAL]" in item.status_display()


class TestGetConfigItems:
    """Test get_config_items function."""

    def test_get_config_items_categories(self):
        """Test that all expected categories are present."""
        items = get_config_items()
        for category in (
            "Provider Configuration",
            "Store Configuration",
            "Engine Configuration",
            "HTTP Configuration",
            "Logging Configuration",
        ):
            assert category in items

    def test_config_items_have_descriptions(self):
        """Test that all config items have descriptions."""
        for config_items in get_config_items().values():
            for item in config_items:
                assert item.description, f"Missing description for {item.key}"

    def test_selected_provider_key_is_required(self, monkeypatch):
        """Test the credential of the selected provider is marked required."""
        monkeypatch.setenv("TREELINGO_PROVIDER", "openai")

        provider_items = {item.key: item for item in get_config_items()["Provider Configuration"]}

        assert provider_items["openai_api_key"].required is True
        assert provider_items["deepl_api_key"].required is False

    def test_environment_source_is_detected(self, monkeypatch):
        """Test values from the environment report their variable."""
        monkeypatch.setenv("TREELINGO_BATCH_SIZE", "10")

        engine_items = {item.key: item for item in get_config_items()["Engine Configuration"]}

        assert engine_items["batch_size"].value == 10
        assert engine_items["batch_size"].source == ConfigSource.ENVIRONMENT


class TestValidateConfig:
    """Test validate_config function."""

    def test_validate_config_returns_tuple(self):
        """Test that validate_config returns a tuple."""
        is_valid, warnings, errors = validate_config()
        assert isinstance(is_valid, bool)
        assert isinstance(warnings, list)
        assert isinstance(errors, list)

    def test_missing_provider_key_is_error(self, monkeypatch):
        """Test validation fails when the selected provider's key is missing."""
        monkeypatch.setenv("TREELINGO_PROVIDER", "deepl")
        monkeypatch.delenv("TREELINGO_DEEPL_API_KEY", raising=False)

        is_valid, warnings, errors = validate_config()

        assert not is_valid
        assert any("deepl_api_key" in e for e in errors)

    def test_valid_with_provider_key(self, monkeypatch):
        """Test validation passes once the provider key is set."""
        monkeypatch.setenv("TREELINGO_PROVIDER", "openai")
        monkeypatch.setenv("TREELINGO_OPENAI_API_KEY", "sk-test")

        is_valid, warnings, errors = validate_config()

        assert is_valid
        assert errors == []

    def test_missing_store_settings_are_warnings(self, monkeypatch):
        """Test missing Sanity settings only warn."""
        monkeypatch.delenv("TREELINGO_SANITY_PROJECT_ID", raising=False)
        monkeypatch.delenv("TREELINGO_SANITY_TOKEN", raising=False)

        is_valid, warnings, errors = validate_config()

        assert any("sanity_project_id" in w for w in warnings)
        assert any("sanity_token" in w for w in warnings)

    def test_invalid_log_level(self, monkeypatch):
        """Test validation fails with invalid log level."""
        monkeypatch.setenv("TREELINGO_LOG_LEVEL", "INVALID_LEVEL")

        is_valid, warnings, errors = validate_config()

        assert not is_valid
        assert any("log_level" in e.lower() for e in errors)

    def test_out_of_range_batch_size(self, monkeypatch):
        """Test validation fails when batch size exceeds the provider limit."""
        monkeypatch.setenv("TREELINGO_BATCH_SIZE", "51")

        is_valid, warnings, errors = validate_config()

        assert not is_valid
        assert any("batch_size" in e for e in errors)


class TestConfigSource:
    """Test ConfigSource enum."""

    def test_config_source_values(self):
        """Test ConfigSource enum values."""
        assert ConfigSource.ENVIRONMENT.value == "env"
        assert ConfigSource.DEFAULT.value == "default"
        assert ConfigSource.NOT_SET.value == "not set"
