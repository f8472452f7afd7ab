#!/usr/bin/env python3
# formatting.py
# Turns fields of a VNDB release record into HTML fragments for feed items

import html
import logging
import re

VNDB_URL = "https://vndb.org"

logger = logging.getLogger(__name__)

# BBCode as documented on https://vndb.org/d9#4, applied in order
BBCODE_RULES = [
    (re.compile(r"\[b\](.*?)\[/b\]"), r"<strong>\1</strong>"),
    (re.compile(r"\[i\](.*?)\[/i\]"), r"<em>\1</em>"),
    (re.compile(r"\[u\](.*?)\[/u\]"), r"<u>\1</u>"),
    (re.compile(r"\[s\](.*?)\[/s\]"), r"<del>\1</del>"),
]
URL_TAG = re.compile(r"\[url=(.*?)\](.*?)\[/url\]")
TAIL_RULES = [
    (re.compile(r"\[spoiler\](.*?)\[/spoiler\]"), r'<span class="spoiler">\1</span>'),
    (re.compile(r"\[quote\](.*?)\[/quote\]"), r"<blockquote>\1</blockquote>"),
    (re.compile(r"\[code\](.*?)\[/code\]"), r"<pre><code>\1</code></pre>"),
    (re.compile(r"\[raw\](.*?)\[/raw\]"), r"\1"),
    # v17, r123, c5.2 ... only when preceded by whitespace
    (re.compile(r"(\s)([cdprsuv]\d+(?:\.\d+)?)"), r'\1<a href="https://vndb.org/\2">\2</a>'),
    # bare URLs collapse to a short "link"
    (re.compile(r"(\s)(https?://.+?)(\s|$)"), r'\1<a href="\2">link</a>\3'),
]


def sanitize_xml_10(s):
    """Drop characters XML 1.0 does not allow (TAB, LF and CR are kept)."""
    if not s:
        return ""
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F]", "", s)


def release_url(release_id):
    return f"{VNDB_URL}/{release_id}"


def release_link(release_id, text):
    return f'<a href="{release_url(release_id)}">{html.escape(text, quote=False)}</a>'


def platforms_html(platforms):
    return " ".join(f"[{p}]" for p in platforms or []) + "<br><br>"


def links_html(extlinks, separator="<br><br>", default_label="link"):
    """Render external links as anchors, each followed by the separator."""
    anchors = []
    for link in extlinks or []:
        url = (link.get("url") or "").strip()
        if not url:
            continue
        label = link.get("label") or default_label
        anchors.append(f'<a href="{html.escape(url)}">{html.escape(label, quote=False)}</a>')
    if not anchors:
        return ""
    return separator.join(anchors) + separator


def _absolute_url_tag(match):
    url, text = match.group(1), match.group(2)
    if url.startswith("/"):
        url = VNDB_URL + url
    return f'<a href="{url}">{text}</a>'


def notes_html(notes):
    """
    Convert the BBCode subset used in VNDB release notes to HTML.
    Tags are matched on a single line, the whole result is wrapped in a blockquote.
    """
    if notes is None:
        return ""
    text = html.escape(notes)
    for pattern, repl in BBCODE_RULES:
        text = pattern.sub(repl, text)
    text = URL_TAG.sub(_absolute_url_tag, text)
    for pattern, repl in TAIL_RULES:
        text = pattern.sub(repl, text)
    text = text.replace("\n", "<br>")
    return f"<blockquote>{text}</blockquote>"


def is_safe_image(image):
    # sexual / violence: 0 = safe/tame, 1 = suggestive/violent, 2 = explicit/brutal
    values = [image.get(key) for key in ("sexual", "violence", "votecount")]
    if not all(isinstance(v, (int, float)) for v in values):
        return False
    sexual, violence, votecount = values
    return sexual < 1 and violence < 1 and votecount >= 1


def images_html(images, display=True, safety_mode="SFW"):
    if not images or not display:
        return ""
    tags = []
    for image in images:
        url = (image.get("url") or "").strip()
        if not url:
            continue
        if safety_mode != "NSFW" and not is_safe_image(image):
            logger.info(f"Exclude image: {url}")
            continue
        tags.append(f'<img src="{html.escape(url)}" alt="Visual Novel Image" class="vndb-image">')
    return "<br>".join(tags)
