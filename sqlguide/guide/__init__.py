"""The guide content: dataset, lesson catalog, validator and renderer."""

from sqlguide.guide.build import build_guide, load_guide, validate_guide
from sqlguide.guide.catalog import LESSONS, Catalog, ExpectedTable, Lesson, LessonDefinition
from sqlguide.guide.dataset import CustomerRow, Dataset, PurchaseRow, load_dataset
from sqlguide.guide.render import render_markdown
from sqlguide.guide.validator import GuideValidator, LessonOutcome, ValidationReport

__all__ = (
    "LESSONS",
    "Catalog",
    "CustomerRow",
    "Dataset",
    "ExpectedTable",
    "GuideValidator",
    "Lesson",
    "LessonDefinition",
    "LessonOutcome",
    "PurchaseRow",
    "ValidationReport",
    "build_guide",
    "load_dataset",
    "load_guide",
    "render_markdown",
    "validate_guide",
)
