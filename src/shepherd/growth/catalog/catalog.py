"""Challenge catalog.

The catalog is a versioned table of templates. The default table ships with
the package; a replacement file can be supplied through configuration so
templates change without touching the engine.
"""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pydantic import ValidationError as SchemaValidationError

from ..errors import ValidationError
from .schemas import CatalogFile, ChallengeCategory, ChallengeTemplate

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_FILE = "templates.json"


class ChallengeCatalog:
    """Ordered, read-only set of challenge templates."""

    def __init__(self, templates: Iterable[ChallengeTemplate], version: str = "1"):
        """Initialize catalog.

        Args:
            templates: Templates in declaration order
            version: Catalog table version
        """
        self.version = version
        self._templates = tuple(templates)
        self._by_id = {t.id: t for t in self._templates}
        if len(self._by_id) != len(self._templates):
            raise ValidationError("Catalog contains duplicate template ids", field="id")

    @classmethod
    def from_dict(cls, data: dict) -> "ChallengeCatalog":
        """Build a catalog from a parsed catalog table."""
        try:
            table = CatalogFile.model_validate(data)
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid challenge catalog: {e}") from e
        return cls(table.templates, version=table.version)

    @classmethod
    def from_file(cls, path: Path) -> "ChallengeCatalog":
        """Load a catalog table from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        logger.info("Loaded challenge catalog %s from %s", catalog.version, path)
        return catalog

    @classmethod
    def default(cls) -> "ChallengeCatalog":
        """Load the catalog table shipped with the package."""
        text = resources.files(__package__).joinpath(DEFAULT_CATALOG_FILE).read_text(
            encoding="utf-8"
        )
        return cls.from_dict(json.loads(text))

    def list_templates(self) -> list[ChallengeTemplate]:
        """All templates in declaration order."""
        return list(self._templates)

    def get(self, template_id: str) -> Optional[ChallengeTemplate]:
        """Get a template by id."""
        return self._by_id.get(template_id)

    def by_category(self, category: ChallengeCategory) -> list[ChallengeTemplate]:
        """Templates in one category, in declaration order."""
        category = ChallengeCategory(category)
        return [t for t in self._templates if t.category == category]

    def available_for(
        self,
        user_id: Optional[str],
        existing_enrollment_challenge_ids: set[str],
    ) -> list[ChallengeTemplate]:
        """Templates the user has never enrolled in.

        Completed enrollments count as existing, so a finished challenge is
        not offered again.

        Args:
            user_id: User the view is for
            existing_enrollment_challenge_ids: Template ids of every
                enrollment the user has, active or completed

        Returns:
            Templates not yet joined, in declaration order
        """
        return [
            t for t in self._templates if t.id not in existing_enrollment_challenge_ids
        ]

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[ChallengeTemplate]:
        return iter(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._by_id


def load_catalog(path: Optional[Path] = None) -> ChallengeCatalog:
    """Load the configured catalog, or the packaged default."""
    if path is not None:
        return ChallengeCatalog.from_file(path)
    return ChallengeCatalog.default()
