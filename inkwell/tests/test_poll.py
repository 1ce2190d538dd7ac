import json
import tempfile
import unittest
from pathlib import Path

from inkwell.errors import ExtractionError, FetchError
from inkwell.pipeline.poll import poll_all, poll_publisher
from inkwell.pipeline.store import STATUS_FAILED, STATUS_SCRAPED, Store
from inkwell.publishers import PublisherConfig
from inkwell.sources.base import SourceRegistry
from inkwell.tests.helpers import FakeSource, article_dict

HOMEPAGE = "https://fake.example.com/"
GOOD_URL = "https://fake.example.com/good-story"
BAD_URL = "https://fake.example.com/bad-story"

LISTING = [
    {"url": GOOD_URL, "title": "Good", "sourceId": "fake-pub"},
    {"url": BAD_URL, "title": "Bad", "sourceId": "fake-pub"},
]


def _config(source_id="fake", publisher_id="fake-pub"):
    return PublisherConfig(id=publisher_id, name="Fake", source_id=source_id, homepage_url=HOMEPAGE)


class PollPublisherTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self._tmp.name) / "output"
        self.store = Store(str(Path(self._tmp.name) / "inkwell.db"))

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def _source(self, failures=None):
        pages = {
            GOOD_URL: article_dict(url=GOOD_URL, publisher_id="fake-pub"),
            BAD_URL: article_dict(url=BAD_URL, publisher_id="fake-pub"),
        }
        return FakeSource(listing=LISTING, pages=pages, failures=failures)

    def test_failures_are_isolated_per_article(self):
        source = self._source(failures={BAD_URL: ExtractionError("No content container found", url=BAD_URL)})
        result = poll_publisher(_config(), source, self.store, output_dir=self.output_dir)

        self.assertEqual((result.discovered, result.scraped, result.failed, result.skipped), (2, 1, 1, 0))
        self.assertEqual(result.errors, [{"url": BAD_URL, "error": "No content container found"}])
        self.assertEqual(self.store.get_article(GOOD_URL).status, STATUS_SCRAPED)
        self.assertEqual(self.store.get_article(BAD_URL).status, STATUS_FAILED)
        written = Path(self.store.get_article(GOOD_URL).output_path)
        self.assertEqual(json.loads(written.read_text(encoding="utf-8"))["source"]["url"], GOOD_URL)
        self.assertEqual((source.init_calls, source.dispose_calls), (1, 1))

    def test_second_poll_retries_failed_and_skips_scraped(self):
        poll_publisher(
            _config(),
            self._source(failures={BAD_URL: FetchError("HTTP 503", url=BAD_URL)}),
            self.store,
            output_dir=self.output_dir,
        )
        source = self._source()
        result = poll_publisher(_config(), source, self.store, output_dir=self.output_dir)

        self.assertEqual((result.discovered, result.scraped, result.failed, result.skipped), (0, 1, 0, 1))
        self.assertEqual(source.scraped, [BAD_URL])
        self.assertEqual(self.store.get_article(BAD_URL).status, STATUS_SCRAPED)

    def test_invalid_article_counts_as_failure(self):
        source = self._source()
        source.pages[BAD_URL] = article_dict(url=BAD_URL, body=[])
        result = poll_publisher(_config(), source, self.store, output_dir=self.output_dir)
        self.assertEqual(result.failed, 1)
        self.assertIn("Invalid article", result.errors[0]["error"])

    def test_error_messages_are_redacted(self):
        source = self._source(failures={BAD_URL: FetchError(f"Fetch failed for {BAD_URL}?token=s3cret")})
        result = poll_publisher(_config(), source, self.store, output_dir=self.output_dir)
        self.assertNotIn("s3cret", result.errors[0]["error"])
        self.assertNotIn("s3cret", self.store.get_article(BAD_URL).error)

    def test_anf_documents_written_when_requested(self):
        result = poll_publisher(
            _config(),
            FakeSource(listing=LISTING[:1], pages={GOOD_URL: article_dict(url=GOOD_URL)}),
            self.store,
            output_dir=self.output_dir,
            anf=True,
        )
        self.assertEqual(result.scraped, 1)
        anf_files = list((self.output_dir / "fake-pub" / "anf").glob("*.json"))
        self.assertEqual(len(anf_files), 1)

    def test_source_disposed_when_discovery_fails(self):
        source = FakeSource(discovery_error=FetchError("HTTP 500", url=HOMEPAGE))
        with self.assertRaises(FetchError):
            poll_publisher(_config(), source, self.store, output_dir=self.output_dir)
        self.assertEqual(source.dispose_calls, 1)


class PollAllTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self._tmp.name) / "output"
        self.store = Store(str(Path(self._tmp.name) / "inkwell.db"))

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def test_summary_totals_and_isolation(self):
        registry = SourceRegistry()
        registry.register(FakeSource(listing=LISTING[:1], pages={GOOD_URL: article_dict(url=GOOD_URL)}))
        registry.register(FakeSource(id="broken", discovery_error=FetchError("HTTP 500", url=HOMEPAGE)))
        publishers = [
            _config(),
            _config(source_id="broken", publisher_id="broken-pub"),
            _config(source_id="unregistered", publisher_id="orphan"),
        ]

        summary = poll_all(publishers, registry, self.store, output_dir=self.output_dir)

        self.assertEqual([result.publisher_id for result in summary.results], ["fake-pub", "broken-pub"])
        self.assertEqual(summary.totals, {"discovered": 1, "scraped": 1, "failed": 1, "skipped": 0})
        broken = summary.results[1]
        self.assertEqual(broken.errors, [{"url": HOMEPAGE, "error": "HTTP 500"}])
        payload = summary.to_dict()
        self.assertEqual(payload["results"][0]["publisher_id"], "fake-pub")
        self.assertEqual(payload["totals"]["scraped"], 1)


if __name__ == "__main__":
    unittest.main()
