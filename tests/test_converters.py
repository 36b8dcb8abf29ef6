import unittest
from unittest import mock

import yaml

from converters import convert_page
from converters.language_detector import LanguageDetector
from converters.markdown_converter import MarkdownConverter

from conftest import CHILD_ID, DB_ID, HOME_ID, OTHER_ID, build_index, page_html

EXPORT_PATHS = [
    f"Home {HOME_ID}.html",
    f"Home {HOME_ID}/Child {CHILD_ID}.html",
    f"Home {HOME_ID}/image.png",
    f"Other {OTHER_ID}.html",
]

TEX = (
    '<span class="katex"><span class="katex-mathml"><math><semantics><mrow></mrow>'
    '<annotation encoding="application/x-tex">{tex}</annotation></semantics></math></span></span>'
)


class TestMarkdownConversion(unittest.TestCase):
    def setUp(self):
        self.index = build_index(EXPORT_PATHS)
        self.home = self.index.pages[HOME_ID]
        self.converter = MarkdownConverter(self.index)

    def convert(self, body, header='', converter=None):
        return (converter or self.converter).convert_page(self.home, page_html(body, 'Home', header))

    def test_links_to_other_pages(self):
        """Page links point at the resolved note relative to the current note."""
        markdown = self.convert(
            f'<p>See <a href="Other%20{OTHER_ID}.html">Other</a> and '
            f'<a href="Home%20{HOME_ID}/Child%20{CHILD_ID}.html">Child</a></p>'
        )

        self.assertIn('[Other](../Other.md)', markdown)
        self.assertIn('[Child](Child.md)', markdown)
        self.assertEqual(self.converter.last_link_stats['links_internal'], 2)

    def test_unresolved_link_becomes_text(self):
        markdown = self.convert(f'<p>Gone: <a href="Missing%20{DB_ID}.html">Missing</a></p>')

        self.assertIn('Gone: Missing', markdown)
        self.assertNotIn('](', markdown)
        self.assertEqual(self.converter.last_link_stats['broken_links'], [f"Missing%20{DB_ID}.html"])

    def test_external_link_kept(self):
        markdown = self.convert('<p><a href="https://example.com">site</a></p>')
        self.assertIn('[site](https://example.com)', markdown)

    def test_image_with_caption(self):
        markdown = self.convert(
            f'<figure class="image"><a href="Home%20{HOME_ID}/image.png">'
            f'<img style="width:240px" src="Home%20{HOME_ID}/image.png"/></a>'
            '<figcaption>Cap</figcaption></figure>'
        )
        self.assertEqual(markdown, '![Cap](image.png)\n')

    def test_todo_list(self):
        markdown = self.convert(
            '<ul class="to-do-list"><li><div class="checkbox checkbox-on"></div> '
            '<span class="to-do-children-checked">Done</span></li></ul>'
            '<ul class="to-do-list"><li><div class="checkbox checkbox-off"></div> '
            '<span class="to-do-children-unchecked">Open</span></li></ul>'
        )
        self.assertEqual(markdown, '- [x] Done\n- [ ] Open\n')

    def test_bulleted_items_are_merged(self):
        markdown = self.convert(
            '<ul class="bulleted-list"><li>one</li></ul><ul class="bulleted-list"><li>two</li></ul>'
        )
        self.assertEqual(markdown, '- one\n- two\n')

    def test_callout(self):
        markdown = self.convert(
            '<figure class="block-color-gray_background callout" style="display:flex">'
            '<div style="font-size:1.5em"><span class="icon">💡</span></div>'
            '<div style="width:100%">Remember this</div></figure>'
        )
        self.assertIn('> [!note] 💡\n> Remember this', markdown)

    def test_toggle(self):
        markdown = self.convert(
            '<ul class="toggle"><li><details open=""><summary>More</summary>'
            '<p>Hidden text</p></details></li></ul>'
        )
        self.assertIn('> [!note]- More\n> Hidden text', markdown)

    def test_code_language_from_export(self):
        markdown = self.convert(
            '<pre class="code"><code class="language-Python">print(\'hi\')</code></pre>'
        )
        self.assertEqual(markdown, "```python\nprint('hi')\n```\n")

    def test_plain_text_code_has_no_language(self):
        markdown = self.convert(
            '<pre class="code"><code class="language-Plain Text">just words here, nothing to detect</code></pre>'
        )
        self.assertTrue(markdown.startswith('```\n'))

    def test_detection_threshold(self):
        """Snippets at or under the minimum length are never classified."""
        with mock.patch.object(LanguageDetector, 'detect', return_value='sql') as detect:
            short = self.convert('<pre class="code"><code>' + 'x' * 25 + '</code></pre>')
            self.assertFalse(detect.called)
            self.assertTrue(short.startswith('```\n'))

            long = self.convert('<pre class="code"><code>' + 'x' * 26 + '</code></pre>')
            detect.assert_called_once_with('x' * 26)
            self.assertTrue(long.startswith('```sql\n'))

    def test_fence_longer_than_embedded_backticks(self):
        markdown = self.convert('<pre class="code"><code class="language-Markdown">```\ncode\n```</code></pre>')
        self.assertTrue(markdown.startswith('````markdown\n'))

    def test_table_cells_escape_pipes(self):
        markdown = self.convert(
            '<table class="simple-table"><tbody><tr><td>a|b</td><td>c</td></tr>'
            '<tr><td>1</td><td>2</td></tr></tbody></table>'
        )
        self.assertIn('a\\|b', markdown)

    def test_front_matter_from_properties_and_icon(self):
        header = (
            '<div class="page-header-icon undefined"><span class="icon">🚀</span></div>'
            '<table class="properties"><tbody>'
            '<tr class="property-row property-row-multi_select"><th>Tags</th><td>'
            '<span class="selected-value select-value-color-blue">alpha</span>'
            '<span class="selected-value select-value-color-red">beta</span></td></tr>'
            '<tr class="property-row property-row-checkbox"><th>Done</th><td>'
            '<div class="checkbox checkbox-on"></div></td></tr>'
            '<tr class="property-row property-row-date"><th>When</th><td>'
            '<time>@March 4, 2023 → March 9, 2023</time></td></tr>'
            '</tbody></table>'
        )

        markdown = self.convert('<p>Body</p>', header=header)

        self.assertTrue(markdown.startswith('---\n'))
        _, front, body = markdown.split('---\n', 2)
        self.assertEqual(yaml.safe_load(front), {
            'Tags': ['alpha', 'beta'],
            'Done': True,
            'When': '2023-03-04',
            'sticker': '🚀',
        })
        self.assertEqual(body, '\nBody\n')

    def test_icon_property_name_is_configurable(self):
        converter = MarkdownConverter(self.index, {'icon_property_name': 'icon'})
        header = '<div class="page-header-icon"><span class="icon">🚀</span></div>'

        markdown = self.convert('', header=header, converter=converter)

        self.assertEqual(markdown, '---\nicon: 🚀\n---\n')
        self.assertEqual(self.home.icon, '🚀')

    def test_equations(self):
        markdown = self.convert(
            '<figure class="equation"><div class="equation-container"><span class="katex-display">'
            + TEX.format(tex='E=mc^2') + '</span></div></figure>'
            '<p>Area <span class="notion-text-equation-token">' + TEX.format(tex='\\pi r^2')
            + '</span> grows</p>'
        )
        self.assertIn('$$\nE=mc^2\n$$', markdown)
        self.assertIn('Area $\\pi r^2$ grows', markdown)

    def test_highlight(self):
        markdown = self.convert(
            '<p>It is <mark class="highlight-yellow_background">hot</mark> and '
            '<mark class="highlight-red">red</mark></p>'
        )
        self.assertIn('It is ==hot== and red', markdown)

    def test_table_of_contents_removed_by_default(self):
        body = (
            '<nav class="block-color-gray table_of_contents"><div class="table_of_contents-item">'
            '<a class="table_of_contents-link" href="#abc">Intro</a></div></nav>'
            '<h1 id="abc">Intro</h1>'
        )

        self.assertEqual(self.convert(body), '# Intro\n')

        keep = MarkdownConverter(self.index, {'remove_table_of_contents': False})
        self.assertIn('- [Intro](#abc)', self.convert(body, converter=keep))

    def test_bookmark(self):
        markdown = self.convert(
            '<figure class="bookmark"><a href="https://example.com/post" class="bookmark source">'
            '<div class="bookmark-info"><div class="bookmark-text">'
            '<div class="bookmark-title">Great post</div></div></div></a></figure>'
        )
        self.assertEqual(markdown, '[Great post](https://example.com/post)\n')

    def test_empty_page(self):
        self.assertEqual(self.convert(''), '')

    def test_single_line_breaks_keep_code_blocks(self):
        index = build_index(EXPORT_PATHS, single_line_breaks=True)

        markdown = convert_page(
            index,
            index.pages[HOME_ID],
            page_html('<p>One</p><p>Two</p>'
                      '<pre class="code"><code class="language-Python">a = 1\n\nb = 2</code></pre>'),
        )

        self.assertIn('One\nTwo\n```python', markdown)
        self.assertIn('a = 1\n\nb = 2', markdown)


class TestLanguageDetector(unittest.TestCase):
    def test_detects_python(self):
        detector = LanguageDetector(['python', 'plaintext'])
        code = (
            "import os\n\n"
            "def main():\n"
            "    for name in os.listdir('.'):\n"
            "        print(name)\n"
        )
        self.assertEqual(detector.detect(code), 'python')

    def test_detects_html(self):
        detector = LanguageDetector()
        self.assertEqual(detector.detect('<div class="box"><p>Hello <b>world</b></p></div>'), 'html')

    def test_javascript_preferred_over_typescript(self):
        detector = LanguageDetector()
        code = (
            'const box = document.getElementById("app");\n'
            'window.addEventListener("click", function () {\n'
            '  console.log(box.textContent);\n'
            '});\n'
        )
        self.assertEqual(detector.detect(code), 'javascript')

    def test_typescript_syntax_detected(self):
        detector = LanguageDetector(['typescript', 'javascript'])
        code = (
            'interface Box { width: number }\n'
            'const box: Box = { width: 3 };\n'
        )
        self.assertEqual(detector.detect(code), 'typescript')

    def test_prose_is_plain_text(self):
        detector = LanguageDetector(['python', 'plaintext'])
        self.assertIsNone(detector.detect('Remember to water the plants every morning before work.'))

    def test_unknown_language_ignored(self):
        detector = LanguageDetector(['klingon'])
        self.assertIsNone(detector.detect('qapla'))


if __name__ == '__main__':
    unittest.main()
