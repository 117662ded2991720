import unittest

from crawler.parser import SoupExtractor, UNTITLED


class TestSoupExtractor(unittest.TestCase):
    def setUp(self):
        self.extractor = SoupExtractor()

    def test_title(self):
        html = "<html><head><title>  Wealth Management </title></head><body></body></html>"
        self.assertEqual(self.extractor.extract_title(html), "Wealth Management")

    def test_missing_title_is_untitled(self):
        self.assertEqual(self.extractor.extract_title("<html><body>no title</body></html>"), UNTITLED)
        self.assertEqual(self.extractor.extract_title(""), UNTITLED)

    def test_links_in_document_order(self):
        html = '<a href="/a">A</a><p><a href="https://x.test/b">B</a></p><a name="anchor">no href</a>'
        self.assertEqual(self.extractor.extract_links(html), ["/a", "https://x.test/b"])

    def test_headings_are_limited(self):
        h2s = "".join(f"<h2>Section {i}</h2>" for i in range(8))
        html = f"<h1>Main <em>title</em></h1>{h2s}<h3>Detail</h3>"
        headings = self.extractor.extract_headings(html, limit=5)
        self.assertEqual(headings["h1"], "Main title")
        self.assertEqual(headings["h2s"], [f"Section {i}" for i in range(5)])
        self.assertEqual(headings["h3s"], ["Detail"])

    def test_headings_of_empty_document(self):
        self.assertEqual(self.extractor.extract_headings(""), {"h1": "", "h2s": [], "h3s": []})


if __name__ == "__main__":
    unittest.main()
