#!/usr/bin/env python3
"""
People's Daily e-paper scraper.

Fetches the page layouts of one edition, collects article links from each
layout and extracts title and paragraphs from every article page.
"""

import asyncio
import logging
import re
from datetime import date as Date, datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import aiohttp
import pytz
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from ..exceptions import FetchError
from ..models.article import Article, FetchedIssue, PageLayout
from .base import ContentSource

logger = logging.getLogger(__name__)

PAPER_BASE_URL = "http://paper.people.com.cn/rmrb/pc/layout/{year_month}/{day}/node_01.html"

SITE_IDENTIFIERS = ["人民网", "人民日报", "people.com.cn", "People's Daily Online"]
TITLE_SEPARATORS = re.compile(r"( - |——|--)")
FULL_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}|\d{8}")

TITLE_SELECTORS = [
    'div.title_container h1.title', 'div.title_area h1', 'div.article_title h1',
    'div.text_c > h1', 'h1.title', '.paper_font_title', '.headline-title', '.news_title', 'h1'
]

CONTENT_SELECTORS = [
    'div#ozoom p', 'div.article_content p', 'div.rmrb_content p', 'div.text_show p',
    'div.content p', 'p.p1', 'section.article p', 'div.article-content p',
    'div.box_con p', '.TRS_Editor p', '.articleCont p'
]


def parse_edition_date(value: str) -> Date:
    """Parse YYYY-MM-DD or YYYYMMDD into a date; partial dates are rejected."""
    try:
        value = value.strip()
        if not FULL_DATE_PATTERN.fullmatch(value):
            raise ValueError(value)
        return date_parser.isoparse(value).date()
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD")


def edition_url(edition: Date) -> str:
    return PAPER_BASE_URL.format(year_month=edition.strftime("%Y%m"), day=edition.strftime("%d"))


def clean_head_title(raw_title: str) -> Optional[str]:
    """Strip site names from a page <title>; None if nothing specific remains."""
    title = (raw_title or "").strip()
    if not title:
        return None

    # Pieces alternate text and separator: [text, sep, text, sep, text]
    pieces = TITLE_SEPARATORS.split(title)
    if len(pieces) > 1:
        last = pieces[-1].strip()
        if any(site in last or (last and last in site) for site in SITE_IDENTIFIERS):
            title = "".join(pieces[:-2]).strip()

    for site in SITE_IDENTIFIERS:
        escaped = re.escape(site)
        title = re.sub(rf"\s*{escaped}\s*$", "", title, flags=re.IGNORECASE).strip()
        title = re.sub(rf"^\s*{escaped}\s*[-—]+\s*", "", title, flags=re.IGNORECASE).strip()

    if len(title) < 5 or any(title.lower() == site.lower() for site in SITE_IDENTIFIERS):
        return None
    return title


def extract_title(soup: BeautifulSoup, url: str) -> str:
    head_title = soup.title.get_text() if soup.title else ""
    title = clean_head_title(head_title)
    if title:
        return title

    for selector in TITLE_SELECTORS:
        element = soup.select_one(selector)
        if element and element.get_text(strip=True):
            return element.get_text(strip=True)

    for tag in ('h3', 'h2'):
        element = soup.find(tag)
        if element and len(element.get_text(strip=True)) > 5:
            return element.get_text(strip=True)

    fallback = f"Article from {url.rsplit('/', 1)[-1].split('.')[0] or 'source'}"
    logger.warning(f"Could not extract a specific title for {url}, using '{fallback}'")
    return fallback


def extract_content(soup: BeautifulSoup) -> str:
    for selector in CONTENT_SELECTORS:
        paragraphs = [p.get_text(strip=True) for p in soup.select(selector)]
        content = "\n\n".join(p for p in paragraphs if p)
        if content:
            return content
    return ""


def extract_layouts(soup: BeautifulSoup, base_url: str) -> List[PageLayout]:
    links = soup.select('div#pageList ul div.right_title-name a')
    if not links:
        logger.debug("Page list not found, trying swiper container")
        links = soup.select('div.swiper-container div.swiper-slide a')

    layouts = []
    for link in links:
        href = link.get('href')
        if href and not href.startswith('http') and not href.startswith('javascript:'):
            layouts.append(PageLayout(url=urljoin(base_url, href), title=link.get_text(strip=True)))
    return layouts


def extract_article_links(soup: BeautifulSoup, layout_url: str) -> List[str]:
    items = soup.select('div#titleList ul > li')
    if not items:
        items = soup.select('ul.news-list li')

    urls: List[str] = []
    for item in items:
        for link in item.find_all('a'):
            href = link.get('href') or ''
            if 'content' in href and href.endswith(('.htm', '.html')):
                url = urljoin(layout_url, href)
                if url not in urls:
                    urls.append(url)
    return urls


class PeoplesDailySource(ContentSource):
    """ContentSource for the People's Daily e-paper."""

    name = "peoples_daily"

    def __init__(self, timeout: int = 15, max_concurrent: int = 4,
                 reference_timezone: str = "Asia/Shanghai",
                 user_agent: str = "Mozilla/5.0 (compatible; FrontPagePublisher/1.0)",
                 config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.timezone = pytz.timezone(reference_timezone)
        self.user_agent = user_agent

    def today(self) -> Date:
        """Current date in the edition's timezone."""
        return datetime.now(self.timezone).date()

    async def _fetch_html(self, session: aiohttp.ClientSession, url: str) -> Optional[BeautifulSoup]:
        try:
            async with session.get(url) as response:
                response.raise_for_status()
                content = await response.read()
                return BeautifulSoup(content, 'html.parser')
        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching {url}")
        except aiohttp.ClientError as e:
            logger.error(f"HTTP error fetching {url}: {e}")
        return None

    async def _fetch_article(self, session: aiohttp.ClientSession, semaphore: asyncio.Semaphore,
                             url: str, layout_url: str) -> Optional[Article]:
        async with semaphore:
            soup = await self._fetch_html(session, url)
        if soup is None:
            return None

        content = extract_content(soup)
        if not content:
            logger.warning(f"No content paragraphs found for article {url}")
            return None
        return Article(title=extract_title(soup, url), content=content, url=url, source_layout_url=layout_url)

    async def fetch(self, date: str, front_page_only: bool = True) -> FetchedIssue:
        """
        Fetch one edition.

        Raises:
            FetchError: Invalid or future date
        """
        try:
            edition = parse_edition_date(date)
        except ValueError as e:
            raise FetchError(self.name, date, str(e))

        today = self.today()
        if edition > today:
            raise FetchError(self.name, date, f"cannot fetch future dates; latest is {today.isoformat()}")

        date_tag = edition.strftime("%Y%m%d")
        front_page_url = edition_url(edition)
        logger.info(f"Fetching People's Daily edition {date_tag} from {front_page_url}")

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={'User-Agent': self.user_agent}
        ) as session:
            front_page = await self._fetch_html(session, front_page_url)
            if front_page is None:
                return FetchedIssue(articles=[], url=front_page_url, date=date_tag,
                                    error=f"Could not load edition page {front_page_url}")

            layouts = extract_layouts(front_page, front_page_url)
            if not layouts:
                layouts = [PageLayout(url=front_page_url, title="01")]

            # The first layout is the front page; keep it even if the list omits it
            if not any('node_01.htm' in layout.url for layout in layouts):
                layouts.insert(0, PageLayout(url=front_page_url, title="01"))

            targets = layouts[:1] if front_page_only else layouts
            semaphore = asyncio.Semaphore(self.max_concurrent)
            articles: List[Article] = []

            for layout in targets:
                layout_soup = front_page if layout.url == front_page_url else await self._fetch_html(session, layout.url)
                if layout_soup is None:
                    continue
                urls = extract_article_links(layout_soup, layout.url)
                logger.info(f"Found {len(urls)} article links on {layout.url}")

                tasks = [self._fetch_article(session, semaphore, url, layout.url) for url in urls]
                results = await asyncio.gather(*tasks, return_exceptions=True)
                for url, result in zip(urls, results):
                    if isinstance(result, Exception):
                        logger.error(f"Error fetching article {url}: {result}")
                    elif result is not None:
                        articles.append(result)

        if not articles:
            return FetchedIssue(
                articles=[], url=front_page_url, date=date_tag, layouts=layouts,
                error=(f"No content could be retrieved for {edition.isoformat()}. No articles may have been "
                       f"published that day or the source was unreachable.")
            )

        logger.info(f"Fetched {len(articles)} articles for {date_tag}")
        return FetchedIssue(articles=articles, url=front_page_url, date=date_tag, layouts=layouts)
