"""
The Motley Fool earnings-call transcripts.
Listing: https://www.fool.com/quote/nasdaq/{ticker_lower}/
Transcript articles live under /earnings/call-transcripts/.
"""
from src.earnings.scrapers.base import SelectorExtractor, SourceAdapter


class MotleyFoolAdapter(SourceAdapter):
    NAME = "Motley Fool"
    BASE_URL = "https://www.fool.com"
    LISTING_URL = "https://www.fool.com/quote/nasdaq/{ticker_lower}/"
    LINK_SELECTORS = ('a[href*="/earnings/call-transcripts/"]',)
    EXTRACTOR = SelectorExtractor(
        selectors=(
            "#article-body-transcript",
            ".article-body",
            ".tailwind-article-body",
            "article p",
        ),
        min_length=1000,
        per_element=True,
        paragraph_min_length=50,
    )

    def _accept_link(self, href: str, title: str, selector: str) -> bool:
        return "transcript" in title.lower() or "earnings call" in title.lower()
