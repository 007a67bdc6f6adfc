"""
Seeking Alpha earnings-call transcripts.
Listing: https://seekingalpha.com/symbol/{TICKER}/earnings/transcripts
Highest-priority source: full prepared remarks + Q&A when the article is not paywalled.
"""
from src.earnings.scrapers.base import BROWSER_HEADERS, SelectorExtractor, SourceAdapter


class SeekingAlphaAdapter(SourceAdapter):
    NAME = "Seeking Alpha"
    BASE_URL = "https://seekingalpha.com"
    LISTING_URL = "https://seekingalpha.com/symbol/{ticker}/earnings/transcripts"
    LINK_SELECTORS = (
        'a[href*="earnings-call-transcript"]',
        'a[href*="/article/"]',
    )
    LISTING_HEADERS = {**BROWSER_HEADERS, "Accept-Encoding": "gzip, deflate", "Connection": "keep-alive"}
    EXTRACTOR = SelectorExtractor(
        selectors=(
            '[data-module="ArticleViewer"] .paywall-full-content',
            '[data-module="ArticleViewer"] .content',
            ".article-content",
            '[id*="content-body"]',
            ".paywall-full-content p",
            'div[data-module="ArticleViewer"] p',
        ),
        min_length=1000,
        per_element=True,
        paragraph_min_length=50,
    )

    def _accept_link(self, href: str, title: str, selector: str) -> bool:
        if "earnings-call-transcript" in href:
            return True
        # Generic article links only count when they are clearly about this company's earnings
        lowered = title.lower()
        return self.company_name.lower() in lowered and "earnings" in lowered
