"""Tests for layered configuration loading."""

import pytest
from planlens.config import (
    load_analysis_config,
    build_analysis_config,
    load_config,
    get_project_config_path,
)
from planlens.utils.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep real user and project config files out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.setenv("PLANLENS_CONFIG_HOME", str(home))
    monkeypatch.chdir(workdir)
    return {"home": home, "work": workdir}


class TestLoadConfig:
    """Test config tiers."""

    def test_defaults(self):
        """Test packaged defaults load without any user or project file."""
        config = load_analysis_config()

        assert config.rules.is_sensitive_resource("aws_db_instance")
        assert config.rules.is_sensitive_property("aws_instance", "user_data")
        assert config.rules.danger_threshold == 3
        assert config.limits.max_property_changes == 100
        assert config.show_no_ops is False

    def test_user_config_overrides_defaults(self, isolated_config):
        """Test the user config replaces default keys."""
        (isolated_config["home"] / "config.yaml").write_text("plan:\n  danger_threshold: 7\n")

        config = load_analysis_config()

        assert config.rules.danger_threshold == 7
        assert config.limits.max_depth == 64

    def test_project_config_overrides_user(self, isolated_config):
        """Test the project config wins over the user config."""
        (isolated_config["home"] / "config.yaml").write_text("plan:\n  show_no_ops: false\n")
        project_dir = isolated_config["work"] / ".planlens"
        project_dir.mkdir()
        (project_dir / "config.yaml").write_text("plan:\n  show_no_ops: true\n")

        assert get_project_config_path() is not None
        assert load_analysis_config().show_no_ops is True

    def test_explicit_file_wins(self, tmp_path):
        """Test an explicit config file wins over every other tier."""
        explicit = tmp_path / "custom.yaml"
        explicit.write_text(
            "sensitive_resources:\n"
            "  - resource_type: aws_eks_cluster\n"
            "limits:\n"
            "  max_property_changes: 5\n"
        )

        config = load_analysis_config(str(explicit))

        assert config.rules.sensitive_resource_types == frozenset({"aws_eks_cluster"})
        assert config.limits.max_property_changes == 5

    def test_broken_user_config_ignored(self, isolated_config):
        """Test an unreadable user config is skipped."""
        (isolated_config["home"] / "config.yaml").write_text("plan: [unclosed\n")
        assert load_config()["plan"]["danger_threshold"] == 3

    def test_missing_explicit_file(self, tmp_path):
        """Test a missing explicit config file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            load_analysis_config(str(tmp_path / "missing.yaml"))

    def test_invalid_explicit_yaml(self, tmp_path):
        """Test invalid YAML in an explicit config file raises ConfigError."""
        explicit = tmp_path / "bad.yaml"
        explicit.write_text("limits: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_analysis_config(str(explicit))

    def test_show_no_ops_override(self):
        """Test the show_no_ops argument overrides the configured value."""
        assert load_analysis_config(show_no_ops=True).show_no_ops is True


class TestBuildAnalysisConfig:
    """Test validation of raw config dictionaries."""

    def test_bare_resource_type_entries(self):
        """Test sensitive resources may be listed as plain strings."""
        config = build_analysis_config({"sensitive_resources": ["aws_kms_key"]})
        assert config.rules.is_sensitive_resource("aws_kms_key")

    def test_invalid_property_entry(self):
        """Test a sensitive property entry without a property name is rejected."""
        with pytest.raises(ConfigError, match="sensitive_properties"):
            build_analysis_config({"sensitive_properties": [{"resource_type": "aws_instance"}]})

    def test_unknown_limit_rejected(self):
        """Test unknown keys in the limits section are rejected."""
        with pytest.raises(ConfigError, match="Invalid configuration values"):
            build_analysis_config({"limits": {"max_widgets": 3}})

    def test_negative_limit_rejected(self):
        """Test limits below their minimum are rejected."""
        with pytest.raises(ConfigError):
            build_analysis_config({"limits": {"max_property_changes": 0}})

    def test_plan_section_shape(self):
        """Test a plan section that is not a mapping is rejected."""
        with pytest.raises(ConfigError, match="plan section"):
            build_analysis_config({"plan": ["x"]})
