"""Tests for app.services.sanitizer.sanitize."""

from app.services.sanitizer import sanitize


class TestSanitize:
    def test_removes_script_tags(self):
        soup = sanitize("<p>Text</p><script>alert('xss')</script>")
        assert "alert" not in soup.get_text()

    def test_removes_style_tags(self):
        soup = sanitize("<style>body { color: red; }</style><p>Text</p>")
        assert "color" not in soup.get_text()

    def test_removes_svg_tags(self):
        soup = sanitize("<p>Hello</p><svg><path d='M0 0 L100 100'/></svg>")
        text = soup.get_text()
        assert "M0 0" not in text
        assert "Hello" in text

    def test_removes_canvas_tags(self):
        soup = sanitize("<p>Content</p><canvas>fallback</canvas>")
        assert "fallback" not in soup.get_text()
        assert "Content" in soup.get_text()

    def test_removes_template_tags(self):
        soup = sanitize("<p>Real</p><template><div>tmpl js code</div></template>")
        assert "tmpl js code" not in soup.get_text()
        assert "Real" in soup.get_text()

    def test_removes_html_comments(self):
        soup = sanitize("<p>Visible</p><!-- hidden comment -->")
        assert "hidden comment" not in str(soup)

    def test_removes_display_none_elements(self):
        soup = sanitize('<p>Visible</p><div style="display:none">Hidden</div>')
        assert "Hidden" not in soup.get_text()
        assert "Visible" in soup.get_text()

    def test_removes_visibility_hidden_elements(self):
        soup = sanitize('<span style="visibility: hidden">Ghost</span><p>Real</p>')
        assert "Ghost" not in soup.get_text()
        assert "Real" in soup.get_text()

    def test_strips_inline_style_attribute(self):
        soup = sanitize('<p style="color:red;font-size:14px">Styled text</p>')
        # The text should survive but the style attribute must be gone
        assert "Styled text" in soup.get_text()
        p = soup.find("p")
        assert p is not None
        assert p.get("style") is None

    def test_strips_event_handler_attributes(self):
        soup = sanitize('<a href="/page" onclick="doSomething()">Link</a>')
        a = soup.find("a")
        assert a is not None
        assert a.get("onclick") is None
        # href should still be present
        assert a.get("href") == "/page"

    def test_normal_content_preserved(self):
        html = "<h1>Title</h1><p>Paragraph <strong>bold</strong> text.</p>"
        soup = sanitize(html)
        assert "Title" in soup.get_text()
        assert "Paragraph" in soup.get_text()
        assert "bold" in soup.get_text()

    def test_removes_elements_with_noise_class_tokens(self):
        soup = sanitize('<div class="cookie-banner">Accept all</div><p>Body</p>')
        assert "Accept all" not in soup.get_text()
        assert "Body" in soup.get_text()

    def test_keeps_classes_that_merely_contain_a_keyword(self):
        soup = sanitize('<div class="downloads">Release files</div>')
        assert "Release files" in soup.get_text()

    def test_removes_navigation_role(self):
        soup = sanitize('<div role="navigation">Docs index</div><p>Guide</p>')
        assert "Docs index" not in soup.get_text()
        assert "Guide" in soup.get_text()

    def test_nested_noise_elements_do_not_fail(self):
        soup = sanitize("<aside><nav><a href='/'>Home</a></nav></aside><p>Text</p>")
        assert "Home" not in soup.get_text()
        assert "Text" in soup.get_text()


class TestSanitizeStructuralNoise:
    def test_removes_nav_tag(self):
        soup = sanitize("<nav><a href='/'>Home</a><a href='/about'>About</a></nav><p>Content</p>")
        assert "Home" not in soup.get_text()
        assert "Content" in soup.get_text()

    def test_removes_aside_tag(self):
        soup = sanitize("<p>Main content</p><aside><p>Sidebar widget</p></aside>")
        assert "Sidebar widget" not in soup.get_text()
        assert "Main content" in soup.get_text()

    def test_removes_form_tag(self):
        soup = sanitize("<p>Article text</p><form><input type='text'><button>Submit</button></form>")
        assert "Submit" not in soup.get_text()
        assert "Article text" in soup.get_text()

    def test_removes_body_direct_child_header(self):
        html = "<body><header><a href='/'>Logo</a><nav>Menu</nav></header><main><p>Article</p></main></body>"
        soup = sanitize(html)
        assert "Logo" not in soup.get_text()
        assert "Article" in soup.get_text()

    def test_removes_body_direct_child_footer(self):
        html = "<body><main><p>Content</p></main><footer><p>Copyright 2024</p></footer></body>"
        soup = sanitize(html)
        assert "Copyright 2024" not in soup.get_text()
        assert "Content" in soup.get_text()

    def test_preserves_article_level_header(self):
        html = (
            "<body>"
            "<header><a href='/'>Site Logo</a></header>"
            "<main><article>"
            "<header><h1>Article Title</h1><p>By Author</p></header>"
            "<p>Article body text.</p>"
            "</article></main>"
            "</body>"
        )
        soup = sanitize(html)
        # Site-level header is removed
        assert "Site Logo" not in soup.get_text()
        # Article-level header (not a direct body child) is kept
        assert "Article Title" in soup.get_text()
        assert "Article body text." in soup.get_text()

    def test_preserves_article_level_footer(self):
        html = (
            "<body>"
            "<main><article>"
            "<p>Content here.</p>"
            "<footer><p>Tags: python, scraping</p></footer>"
            "</article></main>"
            "<footer><p>Site copyright</p></footer>"
            "</body>"
        )
        soup = sanitize(html)
        # Article-level footer is kept (inside <article>)
        assert "Tags: python, scraping" in soup.get_text()
        # Site-level footer is removed
        assert "Site copyright" not in soup.get_text()
