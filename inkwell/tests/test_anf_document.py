import unittest

from inkwell.errors import AnfValidationError
from inkwell.schemas.validate import validate_article
from inkwell.sources.ghost import GhostSource
from inkwell.tests.helpers import article_dict, load_fixture
from inkwell.transformers.anf import (
    WarningType,
    assemble_document,
    build_identifier,
    transform_to_anf,
    validate_anf_document,
)
from inkwell.transformers.anf.models import ANF_VERSION

MIXED_BODY = [
    {"type": "heading", "level": 1, "text": "Breaking", "format": "text"},
    {"type": "paragraph", "text": "<em>First</em> paragraph.", "format": "html"},
    {"type": "image", "url": "https://www.404media.co/content/images/a.jpg", "caption": "An image"},
    {"type": "divider"},
    {"type": "blockquote", "text": "Quoted.", "attribution": "Someone"},
    {"type": "rawHtml", "html": "<div class='widget'></div>"},
]


class IdentifierTests(unittest.TestCase):
    def test_publisher_and_last_path_segment(self):
        self.assertEqual(build_identifier("404-media", "https://www.404media.co/test-article/"), "404-media-test-article")

    def test_truncated_to_64_characters(self):
        identifier = build_identifier("404-media", "https://www.404media.co/" + "a-very-long-slug-" * 8)
        self.assertEqual(len(identifier), 64)
        self.assertTrue(identifier.startswith("404-media-a-very-long-slug"))

    def test_bare_host_falls_back_to_article(self):
        self.assertEqual(build_identifier("itv-news", "https://www.itv.com/"), "itv-news-article")


class AssembleTests(unittest.TestCase):
    def test_mixed_body_maps_in_order_and_drops_raw_html(self):
        result = transform_to_anf(validate_article(article_dict(body=MIXED_BODY)))
        roles = [component.role for component in result.document.components]
        self.assertEqual(roles, ["heading1", "body", "photo", "divider", "quote"])
        self.assertEqual([warning.type for warning in result.warnings], [WarningType.DROPPED_COMPONENT])
        paragraph = result.document.components[1]
        self.assertEqual((paragraph.text, paragraph.format), ("<em>First</em> paragraph.", "html"))

    def test_document_fields(self):
        article = validate_article(
            article_dict(
                subtitle="A subtitle",
                excerpt="Short excerpt",
                modifiedAt="2024-03-15T08:30:00.000Z",
                thumbnail={"url": "https://www.404media.co/content/images/hero.jpg"},
            )
        )
        data = transform_to_anf(article).document.to_dict()
        self.assertEqual(data["version"], ANF_VERSION)
        self.assertEqual(data["identifier"], "404-media-test-article")
        self.assertEqual(data["title"], "Test Article")
        self.assertEqual(data["subtitle"], "A subtitle")
        self.assertEqual(data["language"], "en")
        self.assertEqual(data["layout"], {"columns": 7, "width": 1024})
        metadata = data["metadata"]
        self.assertEqual(metadata["authors"], ["Jane Reporter"])
        self.assertEqual(metadata["excerpt"], "Short excerpt")
        self.assertEqual(metadata["canonicalURL"], "https://www.404media.co/test-article/")
        self.assertEqual(metadata["thumbnailURL"], "https://www.404media.co/content/images/hero.jpg")
        self.assertEqual(metadata["dateCreated"], "2024-03-14T15:00:00.000Z")
        self.assertEqual(metadata["datePublished"], "2024-03-14T15:00:00.000Z")
        self.assertEqual(metadata["dateModified"], "2024-03-15T08:30:00.000Z")

    def test_subtitle_absent_when_missing(self):
        data = transform_to_anf(validate_article(article_dict())).document.to_dict()
        self.assertNotIn("subtitle", data)
        self.assertNotIn("thumbnailURL", data["metadata"])

    def test_canonical_url_drives_identifier(self):
        data = article_dict(url="https://www.404media.co/test-article/?ref=home")
        data["source"]["canonicalUrl"] = "https://www.404media.co/canonical-slug/"
        document = transform_to_anf(validate_article(data)).document
        self.assertEqual(document.identifier, "404-media-canonical-slug")
        self.assertEqual(document.metadata.canonical_url, "https://www.404media.co/canonical-slug/")

    def test_default_text_styles(self):
        styles = transform_to_anf(validate_article(article_dict())).document.component_text_styles
        expected = {"default-body", "default-caption", "default-pullquote", "default-quote", "default-monospace"}
        expected |= {f"default-heading-{level}" for level in range(1, 7)}
        self.assertEqual(set(styles), expected)
        self.assertGreater(styles["default-heading-1"].font_size, styles["default-heading-6"].font_size)

    def test_raw_html_only_body_fails_after_warning(self):
        article = validate_article(article_dict(body=[{"type": "rawHtml", "html": "<div></div>"}]))
        assembled = assemble_document(article)
        self.assertEqual(assembled.document.components, [])
        self.assertEqual([w.type for w in assembled.warnings], [WarningType.DROPPED_COMPONENT])
        with self.assertRaises(AnfValidationError) as ctx:
            transform_to_anf(article)
        self.assertTrue(any(issue["loc"] == "components" for issue in ctx.exception.issues))

    def test_transform_result_to_dict(self):
        payload = transform_to_anf(validate_article(article_dict(body=MIXED_BODY))).to_dict()
        self.assertEqual(payload["document"]["identifier"], "404-media-test-article")
        self.assertEqual(payload["warnings"][0]["type"], "dropped_component")
        self.assertEqual(payload["warnings"][0]["component"], "rawHtml")


class AnfValidationTests(unittest.TestCase):
    def _document(self):
        return transform_to_anf(validate_article(article_dict())).document.to_dict()

    def test_accepts_mapping(self):
        document = validate_anf_document(self._document())
        self.assertEqual(document.components[0].role, "body")

    def test_identifier_longer_than_64_rejected(self):
        data = self._document()
        data["identifier"] = "x" * 65
        with self.assertRaises(AnfValidationError):
            validate_anf_document(data)

    def test_malformed_metadata_rejected(self):
        data = self._document()
        data["metadata"]["canonicalURL"] = "not a url"
        with self.assertRaises(AnfValidationError):
            validate_anf_document(data)
        data = self._document()
        data["metadata"]["datePublished"] = "14 March 2024"
        with self.assertRaises(AnfValidationError):
            validate_anf_document(data)

    def test_empty_title_rejected(self):
        data = self._document()
        data["title"] = ""
        with self.assertRaises(AnfValidationError):
            validate_anf_document(data)

    def test_unknown_component_role_rejected(self):
        data = self._document()
        data["components"].append({"role": "mosaic", "items": []})
        with self.assertRaises(AnfValidationError):
            validate_anf_document(data)


class GhostEndToEndTests(unittest.TestCase):
    def test_ghost_article_transforms(self):
        url = "https://www.404media.co/inside-the-data-broker-industry/"
        article = validate_article(GhostSource().parse_article(load_fixture("ghost_article.html"), url))
        result = transform_to_anf(article)
        roles = [component.role for component in result.document.components]
        self.assertEqual(result.document.identifier, "404-media-inside-the-data-broker-industry")
        self.assertEqual(roles[:3], ["body", "heading2", "heading3"])
        self.assertIn("embedwebvideo", roles)
        self.assertIn("htmltable", roles)
        self.assertIn("pullquote", roles)
        self.assertEqual(result.document.metadata.authors, ["Joseph Cox", "Emanuel Maiberg"])
        self.assertNotIn(WarningType.DROPPED_COMPONENT, [warning.type for warning in result.warnings])


if __name__ == "__main__":
    unittest.main()
