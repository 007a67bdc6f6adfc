"""
Shared bases for transcript scrapers.

- TranscriptFetcher: aiohttp session, one GET per call with a fixed header set and timeout.
- SelectorExtractor: ordered CSS selectors -> plain text, first one over a length threshold wins.
- SourceAdapter: one per provider; link discovery on a listing page plus provider layout.

Adapters never hold state between runs: the fetcher is passed in by the collector
for the duration of one acquisition.
"""
import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from src.core.config import settings
from src.core.exceptions import TransportFailure
from src.core.utils import find_quarter_label, last_completed_quarter, quarters_before
from src.earnings.models import Candidate

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {"User-Agent": USER_AGENT}

BROWSER_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}

ARTICLE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.google.com/",
}

__all__ = ["TranscriptFetcher", "SelectorExtractor", "SourceAdapter", "DEFAULT_HEADERS", "BROWSER_HEADERS", "ARTICLE_HEADERS"]


class TranscriptFetcher:
    """
    Performs single HTTP GETs. No retry at this level: the collector owns the
    retry budget so that content checks can trigger a retry too.

        async with TranscriptFetcher() as fetcher:
            html = await fetcher.fetch(url, headers=BROWSER_HEADERS, timeout=10)
    """

    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = default_timeout or settings.scrape_timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None
        return False

    async def fetch(self, url: str, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> str:
        """GET url and return the body text. Raises TransportFailure on timeout, connection error or non-2xx."""
        if not self.session:
            raise RuntimeError("Fetcher context not entered.")

        client_timeout = aiohttp.ClientTimeout(total=timeout or self.default_timeout)
        try:
            async with self.session.get(url, headers=headers or DEFAULT_HEADERS, timeout=client_timeout) as response:
                if not 200 <= response.status < 300:
                    raise TransportFailure(f"GET {url} -> {response.status}", url=url, status=response.status)
                return await response.text()
        except asyncio.TimeoutError as e:
            raise TransportFailure(f"GET {url} timed out", url=url) from e
        except aiohttp.ClientError as e:
            raise TransportFailure(f"GET {url} failed: {e}", url=url) from e


class SelectorExtractor:
    """
    Turns one provider's article markup into plain text.

    Selectors are tried in order; the first whose text clears `min_length`
    wins. If none does, every <p> longer than `paragraph_min_length` is joined.
    `per_element=True` joins each matched element's text with blank lines;
    otherwise the matched elements' text is concatenated as a block.
    """

    def __init__(
        self,
        selectors: Sequence[str],
        min_length: int = 1000,
        per_element: bool = True,
        paragraph_min_length: int = 0,
    ):
        self.selectors = list(selectors)
        self.min_length = min_length
        self.per_element = per_element
        self.paragraph_min_length = paragraph_min_length

    def extract(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        return self.extract_from_soup(soup)

    def extract_from_soup(self, soup: BeautifulSoup) -> str:
        for selector in self.selectors:
            elements = soup.select(selector)
            if not elements:
                continue
            if self.per_element:
                content = "\n\n".join(el.get_text(" ", strip=True) for el in elements)
            else:
                content = " ".join(el.get_text(" ", strip=True) for el in elements).strip()
            if len(content) > self.min_length:
                return content

        paragraphs = [p.get_text(" ", strip=True) for p in soup.find_all("p")]
        return "\n\n".join(p for p in paragraphs if len(p) > self.paragraph_min_length)


def extract_participants(soup: BeautifulSoup) -> List[str]:
    """Speaker names tagged as CEO/CFO/Analyst in bold or speaker markup."""
    participants: List[str] = []
    for element in soup.select("strong, .participant, .speaker"):
        text = element.get_text(" ", strip=True)
        if "CEO" in text or "CFO" in text or "Analyst" in text:
            name = text.split(",")[0].split(" - ")[0].strip()
            if 2 < len(name) < 50 and name not in participants:
                participants.append(name)
    return participants


class SourceAdapter:
    """
    One transcript provider.

    Subclasses set NAME, BASE_URL, LISTING_URL, LINK_SELECTORS and EXTRACTOR,
    and may override `_accept_link` for provider-specific filtering.
    """

    NAME: str = ""
    BASE_URL: str = ""
    LISTING_URL: str = ""
    # Tried in order; later selectors are only used when earlier ones find nothing.
    LINK_SELECTORS: Sequence[str] = ()
    LISTING_HEADERS: Dict[str, str] = DEFAULT_HEADERS
    ARTICLE_HEADERS: Dict[str, str] = ARTICLE_HEADERS
    EXTRACTOR: SelectorExtractor = SelectorExtractor(())

    def __init__(self, company_name: Optional[str] = None, ticker: Optional[str] = None):
        self.company_name = company_name or settings.company_name
        self.ticker = ticker or settings.company_ticker

    @property
    def listing_url(self) -> str:
        return self.LISTING_URL.format(ticker=self.ticker.upper(), ticker_lower=self.ticker.lower())

    async def discover(self, fetcher: TranscriptFetcher, limit: int, offset: int = 0) -> List[Candidate]:
        """
        Fetch the provider's listing page and return up to `limit` ranked candidates.
        `offset` is how many candidates earlier sources already produced; guessed
        quarters continue from there instead of restarting at the newest one.
        """
        logger.info(f"Searching {self.NAME} for {self.company_name} transcripts...")
        html = await fetcher.fetch(self.listing_url, headers=self.LISTING_HEADERS, timeout=settings.listing_timeout)
        candidates = self.parse_listing(html, limit, offset=offset)
        logger.info(f"Found {len(candidates)} {self.NAME} transcripts")
        return candidates

    def parse_listing(self, html: str, limit: int, offset: int = 0) -> List[Candidate]:
        soup = BeautifulSoup(html, "html.parser")
        fallback_quarters = quarters_before(last_completed_quarter(), offset + max(limit, 1))
        candidates: List[Candidate] = []
        seen_urls = set()

        for selector in self.LINK_SELECTORS:
            for link in soup.select(selector):
                if len(candidates) >= limit:
                    break
                href = link.get("href")
                title = link.get_text(" ", strip=True)
                if not href or not title or not self._accept_link(href, title, selector):
                    continue
                url = urljoin(self.BASE_URL, href)
                if url in seen_urls:
                    continue
                seen_urls.add(url)

                quarter = find_quarter_label(title)
                if quarter is None:
                    # Listings are newest first; assume consecutive quarters back from the last completed one.
                    quarter = fallback_quarters[offset + len(candidates)]
                    logger.warning(f"No quarter in title {title!r}; assuming {quarter}")

                candidates.append(Candidate(
                    url=url,
                    title=title,
                    quarter=quarter,
                    date=self._link_date(link),
                    source=self.NAME,
                ))
            if candidates:
                break

        return candidates

    def _accept_link(self, href: str, title: str, selector: str) -> bool:
        return True

    def _link_date(self, link) -> datetime:
        """Publication date from a nearby <time datetime=...>, else today."""
        container = link.find_parent(["article", "li", "div"]) or link
        time_tag = container.find("time")
        raw = None
        if time_tag is not None:
            raw = time_tag.get("datetime") or time_tag.get_text(strip=True)
        if raw:
            try:
                return date_parser.parse(raw, ignoretz=True)
            except (ValueError, OverflowError):
                logger.debug(f"Unparseable date {raw!r} on {self.NAME} listing")
        today = datetime.utcnow()
        return datetime(today.year, today.month, today.day)

    def parse_article(self, html: str) -> Tuple[str, List[str]]:
        """Return (plain transcript text, participant names) for one article page."""
        soup = BeautifulSoup(html, "html.parser")
        return self.EXTRACTOR.extract_from_soup(soup), extract_participants(soup)
