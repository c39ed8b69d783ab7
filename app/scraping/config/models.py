"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

READINESS_MODES = frozenset({"settle", "grace", "settle_then_grace"})
STRATEGY_KINDS = frozenset({"table", "cards"})


@dataclass(frozen=True)
class ExtractionStrategyConfig:
    """
    Selector family for one extraction strategy.

    `table` strategies map cells to `fields` by position. `cards` strategies
    read each field from `field_selectors` or a text regex in `field_patterns`.
    """

    kind: str
    containers: list[str]
    rows: list[str] = field(default_factory=list)
    cells: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    field_selectors: dict[str, list[str]] = field(default_factory=dict)
    field_patterns: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Primary strategy, structural fallbacks and selectors to await first.
    """

    primary: ExtractionStrategyConfig
    fallbacks: list[ExtractionStrategyConfig] = field(default_factory=list)
    wait_for: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ViewConfig:
    """
    One dashboard view scrape target.
    """

    name: str
    scraper_type: str
    url: str
    extraction: ExtractionConfig
    readiness: str = "settle"
    controls: dict[str, list[str]] = field(default_factory=dict)
    text_hints: dict[str, list[str]] = field(default_factory=dict)
    enabled: bool = True
    scraper_class: str | None = None

    def candidates(self, role: str, **values: object) -> list[str]:
        """Control selectors for `role` with `{placeholder}` values filled in."""

        return [_fill(item, values) for item in self.controls.get(role, [])]

    def hints(self, role: str, **values: object) -> list[str]:
        return [_fill(item, values) for item in self.text_hints.get(role, [])]


@dataclass(frozen=True)
class ViewCatalog:
    """
    All configured views plus page-independent challenge markers.
    """

    views: dict[str, ViewConfig]
    challenge_markers: list[str] = field(default_factory=list)
    challenge_phrases: list[str] = field(default_factory=list)

    def get(self, name: str) -> ViewConfig:
        view = self.views.get(name.strip().lower())
        if view is None or not view.enabled:
            allowed = ", ".join(sorted(key for key, item in self.views.items() if item.enabled))
            raise ValueError(f"Unknown or disabled view '{name}'. Available views: {allowed}.")
        return view


@dataclass(frozen=True)
class ScrapingSettings:
    """
    Runtime settings for browser scraping.
    """

    views_config_path: str
    max_concurrent_sessions: int
    navigation_timeout_ms: int
    settle_timeout_ms: int
    readiness_grace_ms: int
    locator_timeout_ms: int
    extraction_timeout_ms: int
    pipeline_timeout_seconds: float
    navigation_max_attempts: int
    locator_max_attempts: int
    backoff_initial_seconds: float
    backoff_multiplier: float
    headless: bool
    slow_mo_ms: int
    user_agent: str
    locale: str
    snapshot_dir: str | None
    listing_max_clicks: int
    listing_max_scrolls: int
    listing_wait_ms: int


def _fill(template: str, values: dict[str, object]) -> str:
    filled = template
    for key, value in values.items():
        filled = filled.replace("{" + key + "}", str(value))
    return filled
