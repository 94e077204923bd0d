"""Tests for sanitizer.sanitize."""

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
        assert "Styled text" in soup.get_text()
        p = soup.find("p")
        assert p is not None
        assert p.get("style") is None

    def test_strips_event_handler_attributes(self):
        soup = sanitize('<a href="/page" onclick="doSomething()">Link</a>')
        a = soup.find("a")
        assert a is not None
        assert a.get("onclick") is None
        assert a.get("href") == "/page"

    def test_removes_cookie_banner_by_class(self):
        soup = sanitize('<div class="cookie-consent">We use cookies</div><p>Article</p>')
        assert "We use cookies" not in soup.get_text()
        assert "Article" in soup.get_text()

    def test_body_with_noise_class_is_kept(self):
        soup = sanitize('<body class="has-sidebar"><p>Article body</p></body>')
        assert "Article body" in soup.get_text()


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

    def test_removes_site_header(self):
        html = "<body><header><a href='/'>Logo</a></header><main><p>Article</p></main></body>"
        soup = sanitize(html)
        assert "Logo" not in soup.get_text()
        assert "Article" in soup.get_text()

    def test_removes_site_footer(self):
        html = "<body><main><p>Content</p></main><footer><p>Copyright 2024</p></footer></body>"
        soup = sanitize(html)
        assert "Copyright 2024" not in soup.get_text()
        assert "Content" in soup.get_text()

    def test_preserves_article_level_header_and_footer(self):
        html = (
            "<body>"
            "<header><a href='/'>Site Logo</a></header>"
            "<main><article>"
            "<header><h1>Article Title</h1></header>"
            "<p>Article body text.</p>"
            "<footer><p>Tags: python, scraping</p></footer>"
            "</article></main>"
            "<footer><p>Site copyright</p></footer>"
            "</body>"
        )
        soup = sanitize(html)
        text = soup.get_text()
        assert "Site Logo" not in text
        assert "Site copyright" not in text
        assert "Article Title" in text
        assert "Article body text." in text
        assert "Tags: python, scraping" in text
