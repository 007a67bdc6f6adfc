"""
Yahoo Finance press releases / earnings coverage.
Listing: https://finance.yahoo.com/quote/{TICKER}/press-releases
"""
from src.earnings.scrapers.base import SelectorExtractor, SourceAdapter


class YahooFinanceAdapter(SourceAdapter):
    NAME = "Yahoo Finance"
    BASE_URL = "https://finance.yahoo.com"
    LISTING_URL = "https://finance.yahoo.com/quote/{ticker}/press-releases"
    LINK_SELECTORS = ('a[href*="earnings"]',)
    EXTRACTOR = SelectorExtractor(
        selectors=(
            ".caas-body",
            ".article-body",
            ".story-body",
            'div[data-module="ArticleBody"]',
        ),
        min_length=1000,
        per_element=False,
    )

    def _accept_link(self, href: str, title: str, selector: str) -> bool:
        return "earnings" in title.lower()
