import unittest
from unittest.mock import MagicMock

from inkwell.errors import ExtractionError
from inkwell.schemas.validate import validate_article, validate_discovery_result
from inkwell.sources.ghost import GhostSource
from inkwell.tests.helpers import load_fixture

ARTICLE_URL = "https://www.404media.co/inside-the-data-broker-industry/"
HOMEPAGE_URL = "https://www.404media.co/"


class GhostArticleTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.article = GhostSource().parse_article(load_fixture("ghost_article.html"), ARTICLE_URL)

    def test_validates(self):
        validate_article(self.article)

    def test_source(self):
        self.assertEqual(
            self.article["source"],
            {
                "url": ARTICLE_URL,
                "canonicalUrl": ARTICLE_URL,
                "publisherId": "404-media",
                "cmsType": "ghost",
                "ingestionMethod": "scrape",
            },
        )

    def test_metadata(self):
        metadata = self.article["metadata"]
        self.assertEqual(metadata["title"], "Inside the Data Broker Industry")
        self.assertEqual(metadata["excerpt"], "How location data is bought and sold.")
        self.assertEqual(metadata["language"], "en-US")
        self.assertEqual(metadata["publishedAt"], "2024-03-14T15:00:00.000Z")
        self.assertEqual(metadata["modifiedAt"], "2024-03-15T08:30:00.000Z")
        self.assertEqual(metadata["keywords"], ["privacy", "data brokers", "surveillance"])
        self.assertEqual(metadata["tags"], ["privacy", "data brokers"])
        self.assertEqual(metadata["section"], "Privacy")
        self.assertEqual(
            metadata["thumbnail"],
            {"url": "https://www.404media.co/content/images/hero.jpg", "width": 2000, "height": 1333},
        )

    def test_authors(self):
        self.assertEqual(
            self.article["authors"],
            [
                {"name": "Joseph Cox", "url": "https://www.404media.co/author/joseph/"},
                {"name": "Emanuel Maiberg"},
            ],
        )

    def test_body_component_sequence(self):
        types = [component["type"] for component in self.article["body"]]
        self.assertEqual(
            types,
            [
                "paragraph",
                "heading",
                "heading",
                "blockquote",
                "list",
                "list",
                "divider",
                "image",
                "image",
                "image",
                "embed",
                "paragraph",
                "video",
                "codeBlock",
                "blockquote",
                "table",
                "pullquote",
                "paragraph",
            ],
        )

    def test_paragraph_keeps_inline_html(self):
        self.assertEqual(
            self.article["body"][0],
            {
                "type": "paragraph",
                "text": 'Location data is <strong>everywhere</strong>. <a href="https://example.com/report">Read the report</a>.',
                "format": "html",
            },
        )

    def test_headings_and_quotes(self):
        body = self.article["body"]
        self.assertEqual(body[1], {"type": "heading", "level": 2, "text": "How it works", "format": "text"})
        self.assertEqual(body[2]["level"], 3)
        self.assertEqual(body[3], {"type": "blockquote", "text": "We sell to anyone.", "attribution": "A broker"})
        self.assertEqual(body[14], {"type": "blockquote", "text": "Got a tip? Contact us."})
        self.assertEqual(body[16], {"type": "pullquote", "text": "Privacy is a right."})

    def test_lists(self):
        body = self.article["body"]
        self.assertEqual(body[4], {"type": "list", "style": "unordered", "items": ["Apps", "SDKs"]})
        self.assertEqual(body[5], {"type": "list", "style": "ordered", "items": ["Collect", "Sell"]})

    def test_image_card_resolves_relative_src(self):
        self.assertEqual(
            self.article["body"][7],
            {
                "type": "image",
                "url": "https://www.404media.co/content/images/2024/03/map.png",
                "caption": "Pings across the US",
                "altText": "A map of pings",
                "width": 1600,
                "height": 900,
            },
        )

    def test_gallery_expands_to_images(self):
        body = self.article["body"]
        self.assertEqual(body[8]["url"], "https://www.404media.co/content/images/g1.jpg")
        self.assertEqual(body[8]["altText"], "First")
        self.assertEqual(body[9], {"type": "image", "url": "https://www.404media.co/content/images/g2.jpg"})

    def test_embed_card(self):
        self.assertEqual(
            self.article["body"][10],
            {
                "type": "embed",
                "platform": "youtube",
                "embedUrl": "https://www.youtube.com/embed/abc123",
                "caption": "The interview",
            },
        )

    def test_bookmark_card_becomes_escaped_link(self):
        self.assertEqual(
            self.article["body"][11]["text"],
            '<a href="https://example.com/story?a=1&amp;b=2">Earlier &quot;story&quot;</a>',
        )

    def test_video_card_skips_placeholder_poster(self):
        self.assertEqual(
            self.article["body"][12],
            {"type": "video", "url": "https://www.404media.co/content/media/clip.mp4", "caption": "Raw footage"},
        )

    def test_code_block_language(self):
        code = self.article["body"][13]
        self.assertEqual(code["language"], "python")
        self.assertEqual(code["code"].strip(), 'print("hi")')

    def test_table(self):
        self.assertEqual(
            self.article["body"][15],
            {"type": "table", "rows": [["Broker", "Records"], ["Acme", "1,000"]], "headerRows": 1},
        )

    def test_paywall_preview_boundary(self):
        self.assertEqual(self.article["paywall"], {"status": "premium", "previewBoundary": len(self.article["body"])})

    def test_ads_and_cta_are_skipped(self):
        texts = [component.get("text", "") for component in self.article["body"]]
        self.assertFalse(any("Advertisement" in text or "Subscribe to keep reading" in text for text in texts))


class GhostEdgeCaseTests(unittest.TestCase):
    def test_missing_content_container_raises(self):
        with self.assertRaises(ExtractionError) as ctx:
            GhostSource().parse_article("<html><body><div>No post here</div></body></html>", ARTICLE_URL)
        self.assertEqual(ctx.exception.url, ARTICLE_URL)

    def test_minimal_page_uses_defaults(self):
        html = '<html><body><div class="gh-content"><p>Only text.</p></div></body></html>'
        article = GhostSource().parse_article(html, "https://ghost.example.org/a-post/")
        self.assertEqual(article["metadata"]["title"], "Untitled")
        self.assertEqual(article["metadata"]["language"], "en")
        self.assertEqual(article["source"]["publisherId"], "ghost-example-org")
        self.assertEqual(article["source"]["canonicalUrl"], "https://ghost.example.org/a-post/")
        self.assertNotIn("paywall", article)
        self.assertEqual(article["authors"], [])
        validate_article(article)

    def test_non_string_json_ld_fields(self):
        html = """
        <html><head>
        <script type="application/ld+json">
        {"@type": "NewsArticle", "headline": ["Listed headline"], "description": {"text": "odd"}}
        </script>
        <meta property="og:description" content="OG excerpt">
        </head><body><div class="gh-content"><p>Body.</p></div></body></html>
        """
        article = GhostSource().parse_article(html, ARTICLE_URL)
        self.assertEqual(article["metadata"]["title"], "Listed headline")
        self.assertEqual(article["metadata"]["excerpt"], "OG excerpt")
        validate_article(article)

    def test_social_embed_card_uses_permalink(self):
        html = """
        <div class="gh-content">
        <figure class="kg-card kg-embed-card">
          <blockquote class="twitter-tweet"><p>Big news today</p>
          <a href="https://twitter.com/someone/status/123">March 1, 2024</a></blockquote>
          <script async src="https://platform.twitter.com/widgets.js"></script>
        </figure>
        </div>
        """
        article = GhostSource().parse_article(html, ARTICLE_URL)
        embed = article["body"][0]
        self.assertEqual(embed["platform"], "x")
        self.assertEqual(embed["embedUrl"], "https://twitter.com/someone/status/123")
        self.assertEqual(embed["fallbackText"], "Big news today March 1, 2024")

    def test_matches(self):
        source = GhostSource()
        self.assertTrue(source.matches("https://www.404media.co/some-story/"))
        self.assertTrue(source.matches("https://404media.co/some-story/"))
        self.assertFalse(source.matches("https://www.itv.com/news/2023-11-02/x"))


class GhostDiscoveryTests(unittest.TestCase):
    def test_post_cards(self):
        articles = GhostSource().parse_articles(load_fixture("ghost_homepage.html"), HOMEPAGE_URL)
        self.assertEqual(
            articles,
            [
                {
                    "url": "https://www.404media.co/first-story/",
                    "title": "First story",
                    "sourceId": "404-media",
                    "excerpt": "The first excerpt.",
                    "thumbnail": {"url": "https://www.404media.co/content/images/first.jpg"},
                    "publishedAt": "2024-03-14T00:00:00.000Z",
                },
                {
                    "url": "https://www.404media.co/second-story/",
                    "title": "Second story",
                    "sourceId": "404-media",
                },
            ],
        )
        validate_discovery_result(
            {
                "articles": articles,
                "discoveredAt": "2024-03-14T16:00:00.000Z",
                "sourceUrl": HOMEPAGE_URL,
                "sourceId": "404-media",
            }
        )

    def test_scrape_articles_fetches_homepage(self):
        fetcher = MagicMock()
        fetcher.fetch_text.return_value = load_fixture("ghost_homepage.html")
        source = GhostSource(fetcher=fetcher)
        articles = source.scrape_articles()
        fetcher.fetch_text.assert_called_once_with(HOMEPAGE_URL)
        self.assertEqual(len(articles), 2)
        source.dispose()
        fetcher.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
