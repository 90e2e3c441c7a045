"""
Category catalog: the known saint categories a bracket can draw from.

Keys match the boolean membership flags on pool records.
"""

from dataclasses import dataclass
from typing import Dict, List

DEFAULT_CATEGORY_COLOR = "#4A5568"


@dataclass(frozen=True)
class CategoryInfo:
    key: str
    name: str
    color: str


CATEGORY_CATALOG: Dict[str, CategoryInfo] = {
    info.key: info
    for info in (
        CategoryInfo("martyrs", "Martyrs", "#B83232"),
        CategoryInfo("confessors", "Confessors", "#2F6F8F"),
        CategoryInfo("doctorsofthechurch", "Doctors of the Church", "#6B4C9A"),
        CategoryInfo("mystics", "Mystics", "#3C7D6B"),
        CategoryInfo("missionaries", "Missionaries", "#C07A2C"),
        CategoryInfo("religious", "Religious", "#5A6E2F"),
        CategoryInfo("royalty", "Royalty", "#8C6D1F"),
        CategoryInfo("bishops", "Bishops", "#7A3E5C"),
        CategoryInfo("popes", "Popes", "#A8842C"),
        CategoryInfo("apostles", "Apostles", "#2C4F8C"),
        CategoryInfo("abbotabbess", "Abbots & Abbesses", "#5C5146"),
        CategoryInfo("hermits", "Hermits", "#46635C"),
    )
}


def is_known_category(key: str) -> bool:
    return key in CATEGORY_CATALOG


def category_info(key: str) -> CategoryInfo:
    """Catalog entry for *key*; unknown keys display as themselves."""
    info = CATEGORY_CATALOG.get(key)
    if info is None:
        return CategoryInfo(key, key, DEFAULT_CATEGORY_COLOR)
    return info


def list_categories() -> List[CategoryInfo]:
    return list(CATEGORY_CATALOG.values())


def category_id_for(year: int, key: str) -> str:
    return f"{year}-{key}"
