import json
import tempfile
import unittest
from pathlib import Path

from inkwell.errors import ArticleValidationError
from inkwell.pipeline.output import (
    build_anf_output_path,
    build_output_path,
    slug_from_url,
    write_anf_document,
    write_article,
)
from inkwell.schemas.validate import validate_article
from inkwell.tests.helpers import article_dict
from inkwell.transformers.anf import transform_to_anf


class SlugTests(unittest.TestCase):
    def test_slug_from_url(self):
        self.assertEqual(slug_from_url("https://www.404media.co/test-article/"), "test-article")
        self.assertEqual(slug_from_url("https://example.com/2024/05/story.html?x=1"), "story")
        self.assertEqual(slug_from_url("https://example.com/"), "untitled")


class OutputPathTests(unittest.TestCase):
    def test_paths(self):
        article = validate_article(article_dict())
        self.assertEqual(
            build_output_path("404-media", article, "out"),
            Path("out") / "404-media" / "2024-03-14-test-article.json",
        )
        self.assertEqual(
            build_anf_output_path("404-media", article, "out"),
            Path("out") / "404-media" / "anf" / "2024-03-14-test-article.json",
        )


class WriterTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_write_article(self):
        path = write_article("404-media", article_dict(title="Café culture"), self.output_dir)
        self.assertEqual(path, self.output_dir / "404-media" / "2024-03-14-test-article.json")
        text = path.read_text(encoding="utf-8")
        self.assertIn("Café culture", text)
        self.assertEqual(json.loads(text)["metadata"]["title"], "Café culture")

    def test_invalid_article_is_not_written(self):
        with self.assertRaises(ArticleValidationError):
            write_article("404-media", article_dict(body=[]), self.output_dir)
        self.assertEqual(list(self.output_dir.iterdir()), [])

    def test_write_anf_document(self):
        article = validate_article(article_dict())
        document = transform_to_anf(article).document
        path = write_anf_document("404-media", article, document, self.output_dir)
        self.assertEqual(path.parent, self.output_dir / "404-media" / "anf")
        self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["identifier"], "404-media-test-article")


if __name__ == "__main__":
    unittest.main()
