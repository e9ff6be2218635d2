from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from sqlguide.config import GuideConfig
from sqlguide.guide import Catalog, GuideValidator, load_dataset

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqlguide.guide import Dataset

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture(scope="session")
def guide_config() -> GuideConfig:
    return GuideConfig()


@pytest.fixture(scope="session")
def catalog(guide_config: GuideConfig) -> Catalog:
    return Catalog(guide_config.queries_path, dialect=guide_config.dialect)


@pytest.fixture(scope="session")
def dataset(guide_config: GuideConfig) -> Dataset:
    return load_dataset(guide_config.fixtures_path)


@pytest.fixture
def validator(guide_config: GuideConfig, catalog: Catalog, dataset: Dataset) -> Generator[GuideValidator, None, None]:
    with GuideValidator(guide_config, catalog, dataset) as guide_validator:
        yield guide_validator


@pytest.fixture
def queries_dir(tmp_path: Path, guide_config: GuideConfig) -> Path:
    """A queries directory holding only the schema DDL, for lessons written by a test."""
    directory = tmp_path / "queries"
    directory.mkdir()
    shutil.copy(guide_config.queries_path / "schema.sql", directory / "schema.sql")
    return directory


@pytest.fixture(autouse=True)
def reset_sqlguide_logging() -> Generator[None, None, None]:
    yield
    logger = logging.getLogger("sqlguide")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
