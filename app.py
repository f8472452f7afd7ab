from flask import Flask, Response, abort, render_template

import settings
from feeds import FEEDS, FEEDS_BY_PATH, generate_opml
from fetch_and_cache import FeedUnavailable, cleanup_old_logs, generate_feed, log_message

app = Flask(__name__)


@app.errorhandler(FeedUnavailable)
def feed_unavailable(error):
    return Response("Generate RSS error", status=500, mimetype="text/plain")


@app.route("/")
def index():
    return render_template("home.html", feeds=FEEDS, base_url=settings.BASE_URL)


@app.route("/export-opml")
def export_opml():
    return Response(generate_opml(), mimetype="application/xml")


@app.route("/<name>")
def rss(name):
    feed = FEEDS_BY_PATH.get(f"/{name}")
    if feed is None:
        abort(404)
    return Response(generate_feed(feed), mimetype="application/rss+xml")


if __name__ == "__main__":
    cleanup_old_logs()
    root = f"http://{settings.HOST}:{settings.PORT}"
    log_message(f"Server is running at {root}")
    log_message(f"- Homepage: {root}/")
    for feed in FEEDS:
        log_message(f"- {feed['title']}: {root}{feed['path']}")
    log_message(f"- Export OPML: {root}/export-opml")
    app.run(host=settings.HOST, port=settings.PORT)
