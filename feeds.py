#!/usr/bin/env python3
# feeds.py
# Catalogue of published feeds and the VNDB filter expression behind each of them

import html
from datetime import datetime, timezone
from email.utils import format_datetime

import settings

CHINESE = ["or", ["lang", "=", "zh-Hans"], ["lang", "=", "zh-Hant"]]
CHINESE_OR_ENGLISH = ["or", ["lang", "=", "zh-Hans"], ["lang", "=", "zh-Hant"], ["lang", "=", "en"]]
FREE_UNOFFICIAL = [["freeware", "=", 1], ["official", "!=", 1]]
OFFICIAL = [["official", "=", 1]]
RELEASED = ["released", "<=", "today"]

# kind -> (settings name, operator, filter key, wrap in "vn", logical operator)
CUSTOM_FILTERS = {
    "media": ("INCLUDE_MEDIA", "=", "medium", False, "or"),
    "tag": ("EXCLUDE_TAG", "!=", "dtag", True, "and"),
    "version": ("EXCLUDE_VERSION", "!=", "rtype", False, "and"),
    "platform": ("INCLUDE_PLATFORM", "=", "platform", False, "or"),
}
UNOFFICIAL_CUSTOM = ("media", "tag", "platform")
OFFICIAL_CUSTOM = ("media", "tag", "version", "platform")

# "label" is fixed for single language feeds; "labels" is the (English, Chinese)
# pair a combined feed picks from according to the languages of each release.
FEEDS = [
    {
        "path": "/offi-en",
        "title": "Official TL",
        "description": "Official English visual novels",
        "label": "[Official TL]",
        "alttitle": False,
        "conditions": [["lang", "=", "en"]] + OFFICIAL,
        "custom": OFFICIAL_CUSTOM,
    },
    {
        "path": "/uo-en",
        "title": "Fan TL",
        "description": "Fan translated visual novels",
        "label": "[Fan TL]",
        "alttitle": True,
        "conditions": [["lang", "=", "en"]] + FREE_UNOFFICIAL,
        "custom": UNOFFICIAL_CUSTOM,
    },
    {
        "path": "/uo-ch",
        "title": "民间汉化",
        "description": "社区翻译的视觉小说",
        "label": "[民间汉化]",
        "alttitle": True,
        "conditions": [CHINESE] + FREE_UNOFFICIAL,
        "custom": UNOFFICIAL_CUSTOM,
    },
    {
        "path": "/offi-ch",
        "title": "官方中文",
        "description": "官方中文视觉小说",
        "label": "[官方中文]",
        "alttitle": True,
        "conditions": [CHINESE] + OFFICIAL,
        "custom": OFFICIAL_CUSTOM,
    },
    {
        "path": "/offi-jp",
        "title": "公式日本語",
        "description": "Official Japanese visual novels",
        "label": "[公式日本語]",
        "alttitle": True,
        "conditions": [
            ["lang", "!=", "en"],
            ["lang", "!=", "zh-Hans"],
            ["lang", "!=", "zh-Hant"],
            ["lang", "=", "ja"],
            ["vn", "=", ["olang", "=", "ja"]],
        ] + OFFICIAL,
        "custom": OFFICIAL_CUSTOM,
    },
    {
        "path": "/unofficial",
        "title": "民间汉化/Fan TL",
        "description": "免费且非官方的中文视觉小说/Unofficial English translated free visual novels",
        "labels": ("Fan TL", "民间汉化"),
        "conditions": [CHINESE_OR_ENGLISH] + FREE_UNOFFICIAL,
        "custom": UNOFFICIAL_CUSTOM,
    },
    {
        "path": "/official",
        "title": "官方中文/Official TL",
        "description": "有官中的视觉小说(含付费作品)/Official English visual novels (including commercial)",
        "labels": ("Official TL", "官方中文"),
        "conditions": [CHINESE_OR_ENGLISH] + OFFICIAL,
        "custom": OFFICIAL_CUSTOM,
    },
]
FEEDS_BY_PATH = {feed["path"]: feed for feed in FEEDS}


def custom_filters(value, operator, key, wrap_vn=False, logical="or"):
    """
    Build an optional condition from a comma separated setting, e.g.
    "win,lin" -> [["or", ["platform", "=", "win"], ["platform", "=", "lin"]]].
    Returns an empty list when nothing is configured so it can be spliced in.
    """
    values = [v.strip() for v in (value or "").split(",") if v.strip()]
    if not values:
        return []
    condition = [logical] + [[key, operator, v] for v in values]
    if wrap_vn:
        return [["vn", "=", condition]]
    return [condition]


def feed_filters(feed):
    filters = ["and"] + list(feed["conditions"]) + [RELEASED]
    for kind in feed["custom"]:
        setting, operator, key, wrap_vn, logical = CUSTOM_FILTERS[kind]
        filters.extend(custom_filters(getattr(settings, setting), operator, key, wrap_vn, logical))
    return filters


def language_label(feed, release):
    if "labels" not in feed:
        return feed["label"]
    english, chinese = feed["labels"]
    langs = {entry.get("lang") for entry in release.get("languages") or []}
    has_en = "en" in langs
    has_zh = "zh-Hans" in langs or "zh-Hant" in langs
    if has_en and has_zh:
        return f"[{english}/{chinese}]"
    if has_en:
        return f"[{english}]"
    if has_zh:
        return f"[{chinese}]"
    return ""


def entry_title(feed, release, label=None):
    # "title" is usually romaji or English, "alttitle" the original or local name
    if "labels" in feed:
        if label is None:
            label = language_label(feed, release)
        use_alttitle = label == f"[{feed['labels'][1]}]"
    else:
        use_alttitle = feed["alttitle"]
    if use_alttitle:
        return release.get("alttitle") or release.get("title") or ""
    return release.get("title") or ""


def generate_opml(base_url=None, now=None):
    base_url = (base_url or settings.BASE_URL).rstrip("/")
    now = now or datetime.now(timezone.utc)
    outlines = "\n".join(
        f'    <outline type="rss" text="{html.escape(feed["title"])}" '
        f'title="{html.escape(feed["title"])}" xmlUrl="{html.escape(base_url + feed["path"])}"/>'
        for feed in FEEDS
    )
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<opml version="2.0">',
            "  <head>",
            "    <title>VNDB RSS Subscription</title>",
            f"    <dateCreated>{format_datetime(now.astimezone(timezone.utc), usegmt=True)}</dateCreated>",
            "  </head>",
            "  <body>",
            outlines,
            "  </body>",
            "</opml>",
        ]
    )
