"""
Configuration for the material list engine.

Matching thresholds, catalog page sizes and import defaults.
Config is declarative JSON - edit the file, not the code.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path


DEFAULT_CONFIG_PATH = Path(__file__).parent / "material_lists_config.json"

DEFAULT_STOP_WORDS = (
    "de", "la", "el", "los", "las", "del", "al", "en",
    "con", "por", "para", "un", "una", "unos", "unas",
)


@dataclass
class MatchSettings:
    """Settings for name/ISBN matching."""
    stop_words: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_STOP_WORDS))
    min_token_length: int = 2
    score_threshold: int = 40
    partial_token_ratio: float = 0.7
    short_token_min_length: int = 4
    isbn_min_digits: int = 10


@dataclass
class CatalogSettings:
    """Page sizes for the external catalogs."""
    search_per_page: int = 10
    internal_page_size: int = 100
    media_base_url: str = ""


@dataclass
class SearchSettings:
    """Cross-list search limits."""
    min_query_length: int = 2
    # One bulk read, no pagination past this ceiling.
    page_size_ceiling: int = 1000


@dataclass
class ItemDefaults:
    """Defaults applied when a whole list is imported."""
    tipo: str = "util"
    cantidad: int = 1
    obligatorio: bool = True


@dataclass
class Config:
    """Full configuration for the material list engine."""
    matching: MatchSettings = field(default_factory=MatchSettings)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    defaults: ItemDefaults = field(default_factory=ItemDefaults)
    concurrency_check: bool = True


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to material_lists_config.json

    Returns:
        Config object; missing sections fall back to defaults
    """
    path = Path(config_path)
    with open(path, "r") as f:
        data = json.load(f)

    matching_data = data.get("matching", {})
    matching = MatchSettings(
        stop_words=frozenset(matching_data.get("stop_words", DEFAULT_STOP_WORDS)),
        min_token_length=matching_data.get("min_token_length", 2),
        score_threshold=matching_data.get("score_threshold", 40),
        partial_token_ratio=matching_data.get("partial_token_ratio", 0.7),
        short_token_min_length=matching_data.get("short_token_min_length", 4),
        isbn_min_digits=matching_data.get("isbn_min_digits", 10),
    )

    catalog_data = data.get("catalog", {})
    catalog = CatalogSettings(
        search_per_page=catalog_data.get("search_per_page", 10),
        internal_page_size=catalog_data.get("internal_page_size", 100),
        media_base_url=catalog_data.get("media_base_url", ""),
    )

    search_data = data.get("search", {})
    search = SearchSettings(
        min_query_length=search_data.get("min_query_length", 2),
        page_size_ceiling=search_data.get("page_size_ceiling", 1000),
    )

    defaults_data = data.get("defaults", {})
    defaults = ItemDefaults(
        tipo=defaults_data.get("tipo", "util"),
        cantidad=defaults_data.get("cantidad", 1),
        obligatorio=defaults_data.get("obligatorio", True),
    )

    return Config(
        matching=matching,
        catalog=catalog,
        search=search,
        defaults=defaults,
        concurrency_check=data.get("concurrency_check", True),
    )


def default_config() -> Config:
    """In-code defaults, identical to the shipped JSON file."""
    return Config()
