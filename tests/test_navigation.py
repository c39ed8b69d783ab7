"""
tests/test_navigation.py

Pytest unit tests for navigation, readiness and challenge detection.

Coverage
--------
- Challenge markers and phrases in markup
- Navigation retry on timeouts with a bounded budget
- Readiness grace delay
- Challenge pages rejected with snapshots written
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from app.scraping.challenge import ChallengeDetector
from app.scraping.config import load_view_configs
from app.scraping.diagnostics import SnapshotWriter
from app.scraping.errors import ChallengeDetected, NetworkTimeout
from app.scraping.navigation import NavigationProtocol
from tests.fakes import FakePage, make_settings

URL = "https://example.com/view"
CAPTCHA_PAGE = '<html><body><div class="captcha_verify_container">Drag the slider to fit the puzzle</div></body></html>'


@pytest.fixture()
def detector() -> ChallengeDetector:
    catalog = load_view_configs(config_path="app/scraping/config/views.json")
    return ChallengeDetector(markers=catalog.challenge_markers, phrases=catalog.challenge_phrases)


def _navigation(detector: ChallengeDetector, snapshot_dir: str | None = None, **overrides: object) -> NavigationProtocol:
    return NavigationProtocol(
        settings=make_settings(**overrides),
        detector=detector,
        snapshots=SnapshotWriter(directory=snapshot_dir),
    )


class TestChallengeDetector:
    def test_marker_and_phrase(self, detector: ChallengeDetector) -> None:
        indicators = detector.scan_markup(CAPTCHA_PAGE)

        assert "marker:div[class*='captcha_verify']" in indicators
        assert "phrase:drag the slider to fit the puzzle" in indicators

    def test_phrase_is_case_insensitive(self, detector: ChallengeDetector) -> None:
        assert detector.scan_markup("<body><h1>Please VERIFY you are HUMAN</h1></body>") == [
            "phrase:verify you are human"
        ]

    def test_clean_page(self, detector: ChallengeDetector) -> None:
        assert detector.scan_markup("<body><table><tr><td>fitness</td></tr></table></body>") == []


class TestNavigationProtocol:
    def test_retries_navigation_timeout(self, detector: ChallengeDetector) -> None:
        page = FakePage("<body>ok</body>", goto_failures=1)

        asyncio.run(_navigation(detector).open(page, URL, label="view"))

        assert page.visited == [URL, URL]

    def test_gives_up_after_budget(self, detector: ChallengeDetector) -> None:
        page = FakePage("<body>ok</body>", goto_failures=5)

        with pytest.raises(NetworkTimeout):
            asyncio.run(_navigation(detector, navigation_max_attempts=2).open(page, URL))
        assert len(page.visited) == 2

    def test_grace_delay(self, detector: ChallengeDetector) -> None:
        page = FakePage("<body>ok</body>")

        asyncio.run(_navigation(detector, readiness_grace_ms=250).open(page, URL, readiness="grace"))

        assert page.waits == [250]

    def test_settled_page_skips_grace(self, detector: ChallengeDetector) -> None:
        page = FakePage("<body>ok</body>")
        navigation = _navigation(detector, settle_timeout_ms=500, readiness_grace_ms=250)

        asyncio.run(navigation.open(page, URL, readiness="settle"))

        assert page.waits == []

    def test_challenge_rejected_with_snapshots(self, detector: ChallengeDetector, tmp_path: Path) -> None:
        page = FakePage(CAPTCHA_PAGE)

        with pytest.raises(ChallengeDetected) as excinfo:
            asyncio.run(_navigation(detector, snapshot_dir=str(tmp_path)).open(page, URL, label="music"))

        paths = excinfo.value.snapshot_paths
        assert [Path(path).suffix for path in paths] == [".html", ".png"]
        assert all(Path(path).exists() for path in paths)
        assert excinfo.value.indicators
