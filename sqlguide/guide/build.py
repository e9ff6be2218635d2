"""Entry points tying the catalog, dataset, validator and renderer together."""

from typing import TYPE_CHECKING, Optional

from sqlguide.guide.catalog import Catalog
from sqlguide.guide.dataset import load_dataset
from sqlguide.guide.render import render_markdown
from sqlguide.guide.validator import GuideValidator
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlguide.config import GuideConfig
    from sqlguide.guide.dataset import Dataset
    from sqlguide.guide.validator import ValidationReport

__all__ = ("build_guide", "load_guide", "validate_guide")

logger = get_logger("guide.build")


def load_guide(config: "GuideConfig") -> "tuple[Catalog, Dataset]":
    """Load the lesson catalog and the dataset named by the configuration."""
    catalog = Catalog(config.queries_path, dialect=config.dialect)
    dataset = load_dataset(config.fixtures_path)
    return catalog, dataset


def validate_guide(
    config: "GuideConfig",
    slugs: "Optional[Sequence[str]]" = None,
    *,
    catalog: "Optional[Catalog]" = None,
    dataset: "Optional[Dataset]" = None,
) -> "ValidationReport":
    """Check the dataset and validate lessons.

    Raises:
        DatasetIntegrityError: If the seeded database breaks a dataset invariant.

    Returns:
        The validation report.
    """
    if catalog is None or dataset is None:
        catalog, dataset = load_guide(config)
    with GuideValidator(config, catalog, dataset) as validator:
        validator.check_dataset()
        return validator.validate(catalog.select(slugs))


def build_guide(
    config: "GuideConfig",
    *,
    validate: bool = True,
    catalog: "Optional[Catalog]" = None,
    dataset: "Optional[Dataset]" = None,
) -> str:
    """Render the guide, validating every lesson first.

    Args:
        config: Guide configuration.
        validate: Run the validator before rendering.
        catalog: Catalog to render instead of the one named by the configuration.
        dataset: Dataset to render instead of the one named by the configuration.

    Raises:
        GuideValidationError: If any lesson fails validation.

    Returns:
        The markdown document.
    """
    if catalog is None or dataset is None:
        catalog, dataset = load_guide(config)
    if validate:
        validate_guide(config, catalog=catalog, dataset=dataset).raise_for_failures()
    else:
        logger.warning("Rendering without validation; documented results are unchecked")
    return render_markdown(
        catalog,
        dataset,
        title=config.title,
        dialect=config.render_dialect,
        places=config.decimal_places,
    )
