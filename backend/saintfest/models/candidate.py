from typing import Any, Dict, FrozenSet, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from saintfest.services.category_catalog import is_known_category

SelectionWeighting = Literal["balanced", "popularity", "random"]

# Record keys that are never category membership flags
_RESERVED_RECORD_KEYS = frozenset({
    "id",
    "name",
    "categories",
    "lastUsedYear",
    "last_used_year",
    "popularitySignal",
    "popularity_signal",
    "imageUrl",
    "image_url",
})


class Candidate(BaseModel):
    """A saint in the candidate pool. Owned by the pool store; never mutated here."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    categories: FrozenSet[str] = frozenset()
    last_used_year: Optional[int] = None
    popularity_signal: Optional[float] = None
    image_url: Optional[str] = None

    def has_category(self, category_key: str) -> bool:
        return category_key in self.categories

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Candidate":
        """
        Build a Candidate from a pool record.

        Accepts the pool store shape, where each category is a top-level
        boolean flag (``{"id": "a1", "name": "...", "martyrs": true, ...}``),
        with camelCase or snake_case optional fields.
        """
        if record.get("id") in (None, "") or not record.get("name"):
            raise ValueError(f"Candidate record requires id and name: {record!r}")

        categories = {
            key for key, value in record.items()
            if key not in _RESERVED_RECORD_KEYS and value is True
        }
        categories.update(record.get("categories") or [])

        last_used = record.get("lastUsedYear", record.get("last_used_year"))
        signal = record.get("popularitySignal", record.get("popularity_signal"))

        return cls(
            id=str(record["id"]),
            name=record["name"],
            categories=frozenset(categories),
            last_used_year=int(last_used) if last_used is not None else None,
            popularity_signal=float(signal) if signal is not None else None,
            image_url=record.get("imageUrl", record.get("image_url")),
        )


class TournamentConfig(BaseModel):
    year: int
    selection_weighting: SelectionWeighting = Field(
        default="balanced",
        validation_alias=AliasChoices("selection_weighting", "selectionWeighting"),
    )
    exclude_recently_used: bool = Field(
        default=True,
        validation_alias=AliasChoices("exclude_recently_used", "excludeRecentlyUsed"),
    )
    years_to_exclude: int = Field(
        default=2,
        ge=0,
        validation_alias=AliasChoices("years_to_exclude", "yearsToExclude"),
    )
    forced_categories: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("forced_categories", "forcedCategories"),
    )

    @field_validator("forced_categories")
    @classmethod
    def _four_distinct_known(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        if len(value) != 4:
            raise ValueError(f"forced_categories must name exactly 4 categories, got {len(value)}")
        if len(set(value)) != 4:
            raise ValueError("forced_categories must not repeat a category")
        unknown = [key for key in value if not is_known_category(key)]
        if unknown:
            raise ValueError(f"Unknown forced categories: {', '.join(unknown)}")
        return value

    def is_recently_used(self, candidate: Candidate) -> bool:
        """True when the candidate falls inside the exclusion window."""
        if not self.exclude_recently_used or candidate.last_used_year is None:
            return False
        return self.year - candidate.last_used_year < self.years_to_exclude
