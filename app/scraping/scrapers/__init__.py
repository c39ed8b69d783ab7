"""
Scraper subclass exports.
"""

from app.scraping.scrapers.hashtag_scraper import PopularHashtagsScraper
from app.scraping.scrapers.keyword_scraper import KeywordInsightsScraper
from app.scraping.scrapers.music_scraper import PopularMusicScraper

__all__ = ["KeywordInsightsScraper", "PopularHashtagsScraper", "PopularMusicScraper"]
