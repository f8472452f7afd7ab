#!/usr/bin/env python3
# fetch_and_cache.py
# Queries the VNDB release API, renders RSS feeds and keeps them in an in-memory cache

import logging
import os
import sys
import time
from datetime import datetime, timezone

import requests
from dateutil import parser as dateparser
from feedgen.feed import FeedGenerator

import settings
from feeds import FEEDS_BY_PATH, entry_title, feed_filters, language_label
from formatting import (
    VNDB_URL,
    images_html,
    links_html,
    notes_html,
    platforms_html,
    release_link,
    release_url,
    sanitize_xml_10,
)

FIELDS = (
    "id,title,alttitle,released,extlinks{url,label},platforms,notes,"
    "languages{lang},images{url,sexual,violence,votecount}"
)
# Partial release dates ("2024", "2024-05") fall back to January / the 1st
DEFAULT_DATE = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Logging Setup
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class FeedUnavailable(Exception):
    """Upstream failed and there is no cached copy of the feed to fall back on."""


class FeedCache:
    def __init__(self, clock=time.time):
        self._clock = clock
        self._entries = {}

    def get(self, key):
        entry = self._entries.get(key)
        if entry and self._clock() < entry[1]:
            return entry[0]
        return None

    def get_stale(self, key):
        entry = self._entries.get(key)
        return entry[0] if entry else None

    def set(self, key, value, ttl):
        self._entries[key] = (value, self._clock() + ttl)

    def clear(self):
        self._entries.clear()


CACHE = FeedCache()


def log_message(message, level=logging.INFO):
    """Log message to file and console"""
    logger.log(level, message)
    if not settings.LOG_FILE:
        return
    try:
        with open(settings.LOG_FILE, "a", encoding="utf-8") as f:
            f.write(f"{datetime.now().isoformat()} - {message}\n")
    except OSError as e:
        logger.error(f"Failed to write to log file: {e}")


def cleanup_old_logs():
    path = settings.LOG_FILE
    if not path or not os.path.exists(path):
        return
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
        if len(lines) > settings.LOG_KEEP_LINES:
            with open(path, "w", encoding="utf-8") as f:
                f.writelines(lines[-settings.LOG_KEEP_LINES:])
    except OSError as e:
        logger.error(f"Error cleaning up logs: {e}")


def parse_released(value):
    if not value:
        return None
    try:
        parsed_date = dateparser.parse(value, default=DEFAULT_DATE)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Failed to parse release date {value!r}: {e}")
        return None
    if parsed_date.tzinfo is None:
        parsed_date = parsed_date.replace(tzinfo=timezone.utc)
    return parsed_date


def fetch_releases(filters):
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": settings.USER_AGENT,
    }
    if settings.TOKEN:
        headers["Authorization"] = f"Token {settings.TOKEN}"
    payload = {
        "filters": filters,
        "fields": FIELDS,
        "sort": "released",
        "reverse": True,
        "results": settings.FEED_NUMBER,
    }
    response = requests.post(settings.API_URL, json=payload, headers=headers, timeout=settings.REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()["results"]


def item_description(release, label, title):
    return (
        f"{label} {release_link(release['id'], title)} "
        f"{platforms_html(release.get('platforms'))}"
        f"{links_html(release.get('extlinks'))}"
        f"{notes_html(release.get('notes'))}"
        f"{images_html(release.get('images'), display=settings.DISPLAY_IMAGE, safety_mode=settings.SAFETY_MODE)}"
    )


def build_feed(feed, releases):
    fg = FeedGenerator()
    fg.title(feed["title"])
    fg.link(href=VNDB_URL, rel="alternate")
    fg.link(href=f"{settings.BASE_URL}{feed['path']}", rel="self")
    fg.description(feed["description"])
    fg.language("zh")
    fg.lastBuildDate(datetime.now(timezone.utc))
    fg.generator("VNDB Release Feeds")
    for release in releases:
        label = language_label(feed, release)
        title = entry_title(feed, release, label)
        url = release_url(release["id"])
        fe = fg.add_entry(order="append")
        fe.title(sanitize_xml_10(title or release["id"]))
        fe.link(href=url)
        fe.guid(url, permalink=True)
        fe.description(sanitize_xml_10(item_description(release, label, title)))
        released = parse_released(release.get("released"))
        if released:
            fe.pubDate(released)
    return fg.rss_str(pretty=True)


def generate_feed(feed, cache=None):
    """
    Return the RSS document for a feed, from cache while it is fresh.
    On upstream failure an expired copy is served if there is one.
    """
    cache = CACHE if cache is None else cache
    path = feed["path"]
    cached = cache.get(path)
    if cached is not None:
        return cached
    try:
        releases = fetch_releases(feed_filters(feed))
        xml = build_feed(feed, releases)
    except requests.exceptions.HTTPError as e:
        log_message(f"VNDB returned {e.response.status_code} for {path}: {e.response.text}", logging.ERROR)
        return _fallback(cache, path, e)
    except requests.exceptions.RequestException as e:
        log_message(f"Request error for {path}: {e}", logging.ERROR)
        return _fallback(cache, path, e)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        log_message(f"Unexpected VNDB response for {path}: {e!r}", logging.ERROR)
        return _fallback(cache, path, e)
    cache.set(path, xml, settings.CACHE_TTL)
    log_message(f"Built {path} with {len(releases)} entries")
    return xml


def _fallback(cache, path, error):
    stale = cache.get_stale(path)
    if stale is not None:
        log_message(f"Serving stale cache for {path}", logging.WARNING)
        return stale
    raise FeedUnavailable(path) from error


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    path = "/" + argv[0].lstrip("/") if len(argv) == 1 else None
    if path not in FEEDS_BY_PATH:
        print(f"usage: fetch_and_cache.py {{{'|'.join(FEEDS_BY_PATH)}}}", file=sys.stderr)
        return 2
    cleanup_old_logs()
    sys.stdout.write(generate_feed(FEEDS_BY_PATH[path]).decode("utf-8"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
