"""Tests for the data-source clients, with HTTP mocked by responses."""

from datetime import datetime, timezone

import pytest
import requests
import responses

from feedboard.feeds.github import GITHUB_API, fetch_notifications, web_url
from feedboard.feeds.hackernews import HN_API, fetch_stories
from feedboard.feeds.rss import fetch_feeds, merge_feeds, parse_feed
from feedboard.feeds.stocks import fetch_quotes
from feedboard.feeds.twitter_archive import (
    CDX_URL,
    extract_author_from_url,
    fetch_archived_tweets,
    format_wayback_timestamp,
    status_query,
)


@pytest.fixture
def session():
    return requests.Session()


class TestHackerNews:
    @responses.activate
    def test_fetch_skips_deleted(self, session, hn_top_ids, hn_items):
        responses.add(responses.GET, f"{HN_API}/topstories.json", json=hn_top_ids)
        for item_id, item in hn_items.items():
            responses.add(responses.GET, f"{HN_API}/item/{item_id}.json", json=item)
        stories = fetch_stories(session, "top", limit=3)
        assert [s.id for s in stories] == [101, 103]
        assert stories[0].comments == 14
        # Ask HN posts have no URL; they link to the discussion
        assert stories[1].url == stories[1].discussion_url

    @responses.activate
    def test_limit(self, session, hn_top_ids, hn_items):
        responses.add(responses.GET, f"{HN_API}/newstories.json", json=hn_top_ids)
        responses.add(responses.GET, f"{HN_API}/item/101.json", json=hn_items[101])
        assert len(fetch_stories(session, "new", limit=1)) == 1

    @responses.activate
    def test_http_error(self, session):
        responses.add(responses.GET, f"{HN_API}/topstories.json", status=500)
        with pytest.raises(requests.HTTPError):
            fetch_stories(session)

    def test_unknown_story_type(self, session):
        with pytest.raises(ValueError):
            fetch_stories(session, "hot")


class TestStocks:
    @responses.activate
    def test_quotes_in_order(self, session, yahoo_chart):
        responses.add(responses.GET, "https://query1.finance.yahoo.com/v8/finance/chart/AAPL", json=yahoo_chart(110, 100))
        responses.add(responses.GET, "https://query1.finance.yahoo.com/v8/finance/chart/MSFT", json=yahoo_chart(95, 100))
        quotes = fetch_quotes(session, ["AAPL", "MSFT"])
        assert [q.symbol for q in quotes] == ["AAPL", "MSFT"]
        assert quotes[0].change_percent == pytest.approx(10.0)
        assert quotes[1].change == pytest.approx(-5.0)

    @responses.activate
    def test_malformed_payload(self, session):
        responses.add(responses.GET, "https://query1.finance.yahoo.com/v8/finance/chart/BAD", json={"chart": {}})
        with pytest.raises(ValueError):
            fetch_quotes(session, ["BAD"])


class TestRss:
    def test_parse_rss(self, rss_doc):
        items = parse_feed(rss_doc)
        assert [i.title for i in items] == ["Older story", "Newer story"]
        assert items[0].source == "Example News"
        assert items[0].published.year == 2024

    def test_parse_atom(self, atom_doc):
        (item,) = parse_feed(atom_doc)
        assert item.link == "https://blog.example.com/x"
        assert item.source == "Dev Blog"
        assert item.published is not None

    def test_parse_rdf_with_dc_date(self, rdf_doc):
        (item,) = parse_feed(rdf_doc)
        assert item.title == "RDF item"
        assert item.link == "https://weekly.example.org/r1"
        assert item.source == "RDF Weekly"
        assert item.published == datetime(2024, 1, 3, 9, 0, tzinfo=timezone.utc)

    def test_malformed(self):
        with pytest.raises(ValueError):
            parse_feed(b"<rss><channel>")

    def test_not_a_feed(self):
        with pytest.raises(ValueError):
            parse_feed(b"<html><body>hello</body></html>")

    def test_merge_newest_first(self, rss_doc, atom_doc):
        merged = merge_feeds([parse_feed(rss_doc), parse_feed(atom_doc)])
        assert [i.title for i in merged] == ["Newer story", "Atom entry", "Older story"]

    @responses.activate
    def test_one_failing_feed_is_skipped(self, session, rss_doc):
        responses.add(responses.GET, "https://ok.example.com/rss", body=rss_doc)
        responses.add(responses.GET, "https://down.example.com/rss", status=502)
        items = fetch_feeds(session, ["https://ok.example.com/rss", "https://down.example.com/rss"])
        assert len(items) == 2

    @responses.activate
    def test_all_feeds_failing_raises(self, session):
        responses.add(responses.GET, "https://down.example.com/rss", status=502)
        with pytest.raises(requests.HTTPError):
            fetch_feeds(session, ["https://down.example.com/rss"])


class TestGithub:
    @responses.activate
    def test_notifications(self, session):
        responses.add(
            responses.GET,
            f"{GITHUB_API}/notifications",
            json=[
                {"id": "1", "unread": True, "reason": "review_requested", "updated_at": "2024-01-01T00:00:00Z",
                 "subject": {"title": "Fix the thing", "type": "PullRequest"},
                 "repository": {"full_name": "octo/repo"}},
            ],
        )
        (n,) = fetch_notifications(session, "token")
        assert n.title == "Fix the thing"
        assert n.repo == "octo/repo"
        assert n.unread
        assert n.url == "https://github.com/octo/repo"
        assert responses.calls[0].request.headers["Authorization"] == "Bearer token"

    def test_web_url_from_subject(self):
        api = f"{GITHUB_API}/repos/octo/repo/pulls/42"
        assert web_url(api) == "https://github.com/octo/repo/pull/42"
        assert web_url(f"{GITHUB_API}/repos/octo/repo/issues/7") == "https://github.com/octo/repo/issues/7"
        assert web_url(None) == ""

    @responses.activate
    def test_unauthorized(self, session):
        responses.add(responses.GET, f"{GITHUB_API}/notifications", status=401)
        with pytest.raises(requests.HTTPError):
            fetch_notifications(session, "bad")


class TestTwitterArchive:
    def test_format_wayback_timestamp(self):
        assert format_wayback_timestamp("20230615143022") == "2023-06-15 14:30"
        assert format_wayback_timestamp("20230615") == "2023-06-15"
        assert format_wayback_timestamp("2023") == "2023"

    @pytest.mark.parametrize(
        "url, author",
        [
            ("https://twitter.com/gethigher77/status/123456", "@gethigher77"),
            ("http://twitter.com/someuser/status/789", "@someuser"),
            ("https://x.com/testuser/status/111", "@testuser"),
            ("https://www.twitter.com/www_user/status/1", "@www_user"),
            ("https://example.com/foo", None),
        ],
    )
    def test_extract_author(self, url, author):
        assert extract_author_from_url(url) == author

    def test_status_query(self):
        assert status_query("twitter.com/someone/*") == "twitter.com/someone/status/*"
        assert status_query("twitter.com/someone/status/1") == "twitter.com/someone/status/1"

    @responses.activate
    def test_fetch_filters_non_tweets(self, session):
        responses.add(
            responses.GET,
            CDX_URL,
            json=[
                ["timestamp", "original", "statuscode"],
                ["20230615143022", "https://twitter.com/someone/status/123", "200"],
                ["20230616000000", "https://twitter.com/someone/status/", "200"],
                ["20230617000000", "https://twitter.com/someone/status/abc", "200"],
                ["20230618000000", "https://twitter.com/someone/status/456?s=20", "200"],
            ],
        )
        tweets = fetch_archived_tweets(session, "twitter.com/someone")
        assert [t.timestamp for t in tweets] == ["20230615143022", "20230618000000"]
        assert tweets[0].author == "@someone"
        assert tweets[0].archive_url == "https://web.archive.org/web/20230615143022/https://twitter.com/someone/status/123"
        assert tweets[0].date_display == "2023-06-15 14:30"

    @responses.activate
    def test_empty_body(self, session):
        responses.add(responses.GET, CDX_URL, body="")
        assert fetch_archived_tweets(session, "twitter.com/nobody") == []
