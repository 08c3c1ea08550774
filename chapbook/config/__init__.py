from .loader import load_config
from .models import (
    ChapbookConfig,
    PermalinkConfig,
    TaxonomyConfig,
    WikilinkConfig,
)

__all__ = [
    "ChapbookConfig",
    "PermalinkConfig",
    "TaxonomyConfig",
    "WikilinkConfig",
    "load_config",
]
