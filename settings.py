#!/usr/bin/env python3
# settings.py
# Runtime configuration, read from the environment (and an optional .env file)

import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(__file__)

PORT = int(os.getenv("PORT") or 3000)
HOST = os.getenv("HOST") or "127.0.0.1"
# Public address used in self links and the OPML export
DOMAIN = os.getenv("DOMAIN")
BASE_URL = (DOMAIN or f"http://{HOST}:{PORT}").rstrip("/")

# milliseconds
CACHE_TIME = int(os.getenv("CACHE_TIME") or 300000)
CACHE_TTL = CACHE_TIME / 1000.0

API_URL = os.getenv("VNDB_API_URL") or "https://api.vndb.org/kana/release"
TOKEN = os.getenv("TOKEN")
FEED_NUMBER = int(os.getenv("FEED_NUMBER") or 20)
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT") or 15)
USER_AGENT = "Mozilla/5.0 (VNDBReleaseFeeds/1.0)"

DISPLAY_IMAGE = (os.getenv("DISPLAY_IMAGE") or "true").lower() != "false"
SAFETY_MODE = os.getenv("SAFETY_MODE") or "SFW"

# Comma separated values, empty means no extra condition
INCLUDE_MEDIA = os.getenv("INCLUDE_MEDIA", "")
EXCLUDE_TAG = os.getenv("EXCLUDE_TAG", "")
EXCLUDE_VERSION = os.getenv("EXCLUDE_VERSION", "")
INCLUDE_PLATFORM = os.getenv("INCLUDE_PLATFORM", "")

LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "feed_log.txt"))
LOG_KEEP_LINES = 100
