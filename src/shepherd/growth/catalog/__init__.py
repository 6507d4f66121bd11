"""Challenge catalog module.

Provides the versioned table of predefined challenge templates and the
"available to join" view.
"""

from .catalog import ChallengeCatalog, load_catalog
from .schemas import (
    CATEGORY_LABELS,
    ChallengeCategory,
    ChallengeData,
    ChallengeTemplate,
    Difficulty,
    ProgressType,
)

__all__ = [
    "ChallengeCatalog",
    "load_catalog",
    "CATEGORY_LABELS",
    "ChallengeCategory",
    "ChallengeData",
    "ChallengeTemplate",
    "Difficulty",
    "ProgressType",
]
