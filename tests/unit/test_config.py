from pathlib import Path

import pytest

from sqlguide.config import GuideConfig
from sqlguide.exceptions import ImproperConfigurationError


def test_defaults_point_at_packaged_guide() -> None:
    """Test the default paths hold the packaged queries and fixtures."""
    config = GuideConfig()

    assert (config.queries_path / "lessons.sql").is_file()
    assert (config.queries_path / "schema.sql").is_file()
    assert (config.fixtures_path / "customer.json").is_file()
    assert config.dialect == "sqlite"
    assert config.render_dialect is None
    assert config.decimal_places == 2


def test_dialect_aliases_normalized() -> None:
    """Test dialect aliases are accepted."""
    config = GuideConfig(render_dialect="PostgreSQL")
    assert config.render_dialect == "postgres"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"dialect": "cobol"},
        {"render_dialect": "cobol"},
        {"decimal_places": -1},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
    ],
)
def test_invalid_values_rejected(kwargs: dict) -> None:
    """Test invalid settings raise ImproperConfigurationError."""
    with pytest.raises(ImproperConfigurationError):
        GuideConfig(**kwargs)


def test_from_env(tmp_path: Path) -> None:
    """Test settings are read from SQLGUIDE_ variables."""
    config = GuideConfig.from_env({
        "SQLGUIDE_DATABASE": str(tmp_path / "guide.db"),
        "SQLGUIDE_RENDER_DIALECT": "mysql",
        "SQLGUIDE_DECIMAL_PLACES": "3",
        "SQLGUIDE_QUERIES_PATH": str(tmp_path),
        "SQLGUIDE_LOG_LEVEL": "debug",
        "UNRELATED": "ignored",
    })

    assert config.database == str(tmp_path / "guide.db")
    assert config.render_dialect == "mysql"
    assert config.decimal_places == 3
    assert config.queries_path == tmp_path
    assert config.log_level == "debug"


def test_from_env_overrides_win() -> None:
    """Test explicit overrides win over the environment and None is ignored."""
    config = GuideConfig.from_env({"SQLGUIDE_TITLE": "From env"}, title="Explicit", log_level=None)

    assert config.title == "Explicit"
    assert config.log_level == "INFO"


def test_from_env_invalid_integer() -> None:
    """Test a non-integer decimal places setting is rejected."""
    with pytest.raises(ImproperConfigurationError, match="DECIMAL_PLACES"):
        GuideConfig.from_env({"SQLGUIDE_DECIMAL_PLACES": "two"})


def test_with_overrides() -> None:
    """Test copies with overrides leave the original untouched."""
    config = GuideConfig()
    copy = config.with_overrides(render_dialect="tsql", title=None)

    assert copy.render_dialect == "tsql"
    assert copy.title == config.title
    assert config.render_dialect is None
