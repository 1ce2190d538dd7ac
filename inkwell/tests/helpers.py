from pathlib import Path
from typing import Any, Dict, List, Optional

from inkwell.sources.base import PublisherRef

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def article_dict(
    url: str = "https://www.404media.co/test-article/",
    body: Optional[List[Dict[str, Any]]] = None,
    publisher_id: str = "404-media",
    **metadata: Any,
) -> Dict[str, Any]:
    meta = {"title": "Test Article", "language": "en", "publishedAt": "2024-03-14T15:00:00.000Z"}
    meta.update(metadata)
    return {
        "version": "1.0",
        "extractedAt": "2024-03-14T16:00:00.000Z",
        "source": {"url": url, "publisherId": publisher_id, "cmsType": "ghost", "ingestionMethod": "scrape"},
        "metadata": meta,
        "authors": [{"name": "Jane Reporter"}],
        "body": body if body is not None else [{"type": "paragraph", "text": "Hello world.", "format": "text"}],
    }


class FakeSource:
    """In-memory source: discovery returns `listing`, scraping looks URLs up in `pages`."""

    cms_type = "fake"
    homepage_url = "https://fake.example.com/"

    def __init__(self, listing=None, pages=None, failures=None, id="fake", discovery_error=None):
        self.id = id
        self.publishers = [PublisherRef(id="fake-pub", homepage_url=self.homepage_url)]
        self.listing = listing or []
        self.pages = pages or {}
        self.failures = failures or {}
        self.discovery_error = discovery_error
        self.scraped: List[str] = []
        self.init_calls = 0
        self.dispose_calls = 0

    def matches(self, url: str) -> bool:
        return url.startswith(self.homepage_url)

    def parse_article(self, html, url):
        return self.pages[url]

    def parse_articles(self, html, url):
        return list(self.listing)

    def scrape_article(self, url):
        self.scraped.append(url)
        if url in self.failures:
            raise self.failures[url]
        return self.pages[url]

    def scrape_articles(self, url=None):
        if self.discovery_error is not None:
            raise self.discovery_error
        return list(self.listing)

    def init(self):
        self.init_calls += 1

    def dispose(self):
        self.dispose_calls += 1
