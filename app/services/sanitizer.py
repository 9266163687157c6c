import re

from bs4 import BeautifulSoup, Comment, Tag

# Matches `display:none` or `visibility:hidden` in inline style attributes
_HIDDEN_STYLE_RE = re.compile(
    r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE
)

# Tags whose entire subtree should be removed (non-content / binary / scripting)
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "object",
    "embed",
    "applet",
    "link",
    "meta",
    # Vector / canvas graphics produce raw coordinate/path noise in plain text
    "svg",
    "canvas",
    "template",
    # Page chrome
    "nav",
    "aside",
    "form",
    "button",
}

# Site-level chrome; the same tags inside an <article> belong to the article
_CHROME_TAGS = {"header", "footer"}

_NOISE_ROLES = {"navigation", "banner", "contentinfo", "search", "dialog"}

# HTML attributes that contain CSS or JavaScript and should be stripped
# from every element that survives the tree pruning step.
_JUNK_ATTRS = re.compile(r"^(style|on\w+)$", re.IGNORECASE)

# class / id tokens that strongly indicate non-content elements
_NOISE_KEYWORDS = {
    "nav",
    "navbar",
    "navigation",
    "menu",
    "sidebar",
    "sidenav",
    "toc",
    "banner",
    "popup",
    "modal",
    "cookie",
    "cookies",
    "gdpr",
    "ads",
    "advert",
    "advertisement",
    "tracking",
    "footer",
    "header",
    "breadcrumb",
    "breadcrumbs",
    "pagination",
    "social",
    "share",
    "subscribe",
    "newsletter",
    "promo",
    "overlay",
    "skip",
}

_TOKEN_SPLIT_RE = re.compile(r"[-_\s]+")


def _has_noise_attr(tag: Tag) -> bool:
    """Return True when a tag's id, class or ARIA role suggests it is non-content."""
    if not tag.attrs:
        return False
    if str(tag.get("role", "")).lower() in _NOISE_ROLES:
        return True

    values = []
    if tag.get("id"):
        values.append(str(tag["id"]))
    values.extend(tag.get("class", []))

    for value in values:
        tokens = _TOKEN_SPLIT_RE.split(value.lower())
        if any(token in _NOISE_KEYWORDS for token in tokens):
            return True
    return False


def sanitize(html: str) -> BeautifulSoup:
    """Remove noise elements from *html* and return the cleaned BeautifulSoup tree."""
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        if not tag.decomposed:
            tag.decompose()

    for tag in soup.find_all(_CHROME_TAGS):
        if not tag.decomposed and tag.find_parent("article") is None:
            tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    # Elements whose class/id marks them as page chrome, and elements hidden via
    # inline CSS, are dropped; surviving elements lose inline CSS / JS handlers.
    for tag in soup.find_all(True):
        if not isinstance(tag, Tag) or tag.decomposed:
            continue
        if tag.name in ("html", "body", "main", "article"):
            continue
        if _has_noise_attr(tag):
            tag.decompose()
            continue
        inline_style = tag.get("style", "")
        if inline_style and _HIDDEN_STYLE_RE.search(inline_style):
            tag.decompose()
            continue
        junk = [attr for attr in tag.attrs if _JUNK_ATTRS.match(attr)]
        for attr in junk:
            del tag[attr]

    return soup
