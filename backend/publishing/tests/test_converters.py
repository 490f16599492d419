from django.test import SimpleTestCase

from publishing.converters import bbcode_to_markdown, extract_book_sections, extract_section, html_to_markdown
from publishing.text import excerpt_from_html, normalize_tag_name, purge, render_markdown


class HtmlToMarkdownTests(SimpleTestCase):
    def test_headings_and_emphasis(self):
        markdown = html_to_markdown("<h2>Intro</h2><p>Some <strong>bold</strong> text</p>")
        self.assertIn("## Intro", markdown)
        self.assertIn("**bold**", markdown)

    def test_bbcode_survives(self):
        self.assertIn("[b]kept[/b]", html_to_markdown("<p>[b]kept[/b]</p>"))

    def test_empty(self):
        self.assertEqual(html_to_markdown(None), "")


class BbcodeToMarkdownTests(SimpleTestCase):
    def test_inline_tags(self):
        self.assertEqual(bbcode_to_markdown("[b]bold[/b] and [i]italic[/i]"), "**bold** and *italic*")
        self.assertEqual(bbcode_to_markdown("[url=http://example.com]site[/url]"), "[site](http://example.com)")
        self.assertEqual(bbcode_to_markdown("[img]http://example.com/a.png[/img]"), "![](http://example.com/a.png)")
        self.assertEqual(bbcode_to_markdown("[color=red][u]plain[/u][/color]"), "plain")

    def test_nested_tags(self):
        self.assertEqual(bbcode_to_markdown("[b][i]both[/i][/b]"), "***both***")

    def test_code_blocks_are_left_untouched(self):
        markdown = bbcode_to_markdown("[code=php]echo '[b]x[/b]';[/code]")
        self.assertEqual(markdown, "```php\necho '[b]x[/b]';\n```")

    def test_quote_with_author(self):
        self.assertEqual(bbcode_to_markdown('[quote="bob"]hello[/quote]'), "> **bob:**\n> hello")

    def test_lists(self):
        self.assertEqual(bbcode_to_markdown("[list][*]one[*]two[/list]"), "- one\n- two")
        self.assertEqual(bbcode_to_markdown("[list=1][*]one[*]two[/list]"), "1. one\n2. two")


class BookSectionTests(SimpleTestCase):
    def test_extract_sections(self):
        body = "[isbn]978-0[/isbn][review]Great [b]book[/b][/review][vendorLink]http://shop[/vendorLink]"
        self.assertEqual(extract_section(body, "isbn"), "978-0")
        self.assertIsNone(extract_section(body, "pages"))
        self.assertEqual(
            extract_book_sections(body),
            {"isbn": "978-0", "review": "Great [b]book[/b]", "vendorLink": "http://shop"},
        )


class TextTests(SimpleTestCase):
    def test_render_markdown(self):
        self.assertIn("<h1>Title</h1>", render_markdown("# Title"))
        self.assertEqual(render_markdown("  "), "")

    def test_excerpt(self):
        self.assertEqual(purge("<p>a &amp;   b</p>"), "a & b")
        excerpt = excerpt_from_html("<p>" + "word " * 100 + "</p>")
        self.assertLessEqual(len(excerpt), 300)
        self.assertTrue(excerpt.endswith("…"))

    def test_normalize_tag_name(self):
        self.assertEqual(normalize_tag_name(" Web Development "), "web-development")
