"""End-to-end pipeline tests with a fake completion service and extractor."""

import json
import unittest
from datetime import datetime
from urllib.parse import parse_qs, urlsplit

import pytest
import pytz

from gcalagent.config.settings import AppConfig, ExtractionConfig
from gcalagent.core.calendar_links import CalendarLinkGenerator
from gcalagent.core.event_model import RawPost
from gcalagent.core.gemini_client import CompletionService
from gcalagent.core.interpreter import EventInterpreter
from gcalagent.exceptions.errors import (
    ErrorKind,
    ExtractionFailedError,
    InterpretationFailedError,
)
from gcalagent.pipeline import Completed, EventPipeline, Failed

NEW_YORK = pytz.timezone("America/New_York")
NOW = NEW_YORK.localize(datetime(2024, 5, 1, 9, 0, 0))
POST_URL = "https://www.instagram.com/p/C6abc123"


class FakeCompletionService(CompletionService):
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt, system_instruction=None, image=None, timeout=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class StubExtractor:
    """Stands in for the strategy chain."""

    def __init__(self, post=None, error=None):
        self.post = post
        self.error = error
        self.urls = []

    def extract(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.post


def reply_for(start, end, title="Team Standup", **extra):
    payload = {"title": title, "startDateTime": start, "endDateTime": end}
    payload.update(extra)
    return json.dumps(payload)


def make_pipeline(reply="", error=None, post=None, extract_error=None):
    service = FakeCompletionService(reply, error)
    extractor = StubExtractor(post, extract_error)
    pipeline = EventPipeline(
        AppConfig(default_timezone="America/New_York"),
        interpreter=EventInterpreter(service, "America/New_York", clock=lambda: NOW),
        extractor=extractor,
        generator=CalendarLinkGenerator(clock=lambda: NOW),
    )
    return pipeline, service, extractor


def google_params(result):
    query = parse_qs(urlsplit(result.artifacts.google).query)
    return {key: values[0] for key, values in query.items()}


class TestFromText(unittest.TestCase):

    def test_standup_tomorrow_in_local_zone(self):
        pipeline, service, _ = make_pipeline(
            reply_for("2024-05-02T10:00:00", "2024-05-02T11:00:00", location="Room B")
        )

        result = pipeline.from_text("Team standup tomorrow at 10am in Room B")

        self.assertIsInstance(result, Completed)
        self.assertTrue(result.ok)
        event = result.event
        self.assertEqual(event.start.astimezone(NEW_YORK), NEW_YORK.localize(datetime(2024, 5, 2, 10, 0)))
        self.assertEqual((event.end - event.start).total_seconds(), 3600)
        self.assertEqual(event.location, "Room B")
        self.assertIn("2024-05-01T09:00:00-04:00", service.prompts[0])
        self.assertIn("SUMMARY:Team Standup", result.artifacts.apple)
        self.assertIsNone(result.source_url)

    def test_prose_reply_fails_with_invalid_response(self):
        pipeline, _, _ = make_pipeline("I think it's a standup tomorrow morning!")

        result = pipeline.from_text("Team standup tomorrow")

        self.assertIsInstance(result, Failed)
        self.assertFalse(result.ok)
        self.assertEqual(result.kind, ErrorKind.INVALID_RESPONSE)
        self.assertTrue(result.message)

    def test_reversed_interval_is_repaired_end_to_end(self):
        pipeline, _, _ = make_pipeline(
            reply_for("2024-01-01T10:00:00Z", "2024-01-01T09:00:00Z", title="Brunch")
        )

        result = pipeline.from_text("Brunch new year's day at 10")

        self.assertIsInstance(result, Completed)
        self.assertEqual(google_params(result)["dates"], "20240101T100000Z/20240101T110000Z")
        self.assertIn("DTEND:20240101T110000Z", result.artifacts.apple)

    def test_service_failure(self):
        pipeline, _, _ = make_pipeline(error=InterpretationFailedError("Rate limit exceeded"))

        result = pipeline.from_text("standup")

        self.assertEqual(result.kind, ErrorKind.INTERPRETATION_FAILED)
        self.assertIn("Too many requests", result.message)

    def test_invalid_date(self):
        pipeline, _, _ = make_pipeline(reply_for("someday", "2024-05-02T11:00:00"))

        result = pipeline.from_text("standup")

        self.assertEqual(result.kind, ErrorKind.INVALID_DATE)

    def test_repair_overflow_fails_with_invalid_date(self):
        pipeline, _, _ = make_pipeline(
            reply_for("9999-12-31T23:30:00Z", "9999-12-31T23:00:00Z", title="Party")
        )

        result = pipeline.from_text("party")

        self.assertIsInstance(result, Failed)
        self.assertEqual(result.kind, ErrorKind.INVALID_DATE)

    def test_missing_fields_message(self):
        pipeline, _, _ = make_pipeline(json.dumps({"title": "Standup"}))

        result = pipeline.from_text("standup")

        self.assertEqual(result.kind, ErrorKind.INVALID_RESPONSE)
        self.assertIn("endDateTime", result.message)
        self.assertIn("startDateTime", result.message)

    def test_blank_text_is_a_caller_error(self):
        pipeline, service, _ = make_pipeline()
        with self.assertRaises(ValueError):
            pipeline.from_text("   ")
        self.assertEqual(service.prompts, [])

    def test_missing_api_key_fails_cleanly(self):
        result = EventPipeline(AppConfig(api_key=None)).from_text("standup tomorrow")

        self.assertIsInstance(result, Failed)
        self.assertEqual(result.kind, ErrorKind.INTERPRETATION_FAILED)


class TestFromUrl(unittest.TestCase):

    def test_caption_is_interpreted_with_author_context(self):
        post = RawPost(
            source_url=POST_URL,
            caption="Jazz night Friday 8pm at Blue Note",
            author="jazzclub",
        )
        pipeline, service, extractor = make_pipeline(
            reply_for(
                "2024-05-03T20:00:00", "2024-05-03T22:00:00",
                title="Jazz Night", location="Blue Note, 131 W 3rd St, New York",
            ),
            post=post,
        )

        result = pipeline.from_url(POST_URL + "/?igsh=abc")

        self.assertIsInstance(result, Completed)
        self.assertEqual(extractor.urls, [POST_URL])
        self.assertEqual(result.source_url, POST_URL)
        self.assertIn("Context: Instagram post by jazzclub", service.prompts[0])
        self.assertIn("Jazz night Friday 8pm at Blue Note", service.prompts[0])
        self.assertTrue(google_params(result)["details"].endswith(f"Source: {POST_URL}"))
        self.assertIn(POST_URL, result.artifacts.apple.replace("\r\n ", ""))

    def test_unknown_author(self):
        post = RawPost(source_url=POST_URL, caption="Open mic Sunday 7pm")
        pipeline, service, _ = make_pipeline(
            reply_for("2024-05-05T19:00:00", "2024-05-05T20:00:00", title="Open Mic"),
            post=post,
        )

        pipeline.from_url(POST_URL)

        self.assertIn("Instagram post by unknown", service.prompts[0])

    def test_invalid_url_skips_extraction(self):
        pipeline, service, extractor = make_pipeline()

        result = pipeline.from_url("https://example.com/events/42")

        self.assertEqual(result.kind, ErrorKind.INVALID_URL)
        self.assertEqual(extractor.urls, [])
        self.assertEqual(service.prompts, [])

    def test_extraction_failure(self):
        error = ExtractionFailedError(POST_URL, [("oembed", "rate limited (HTTP 429)")])
        pipeline, service, _ = make_pipeline(extract_error=error)

        result = pipeline.from_url(POST_URL)

        self.assertEqual(result.kind, ErrorKind.EXTRACTION_FAILED)
        self.assertIs(result.error, error)
        self.assertEqual(service.prompts, [])

    def test_post_without_caption(self):
        post = RawPost(source_url=POST_URL, thumbnail_url="https://cdn.example.com/t.jpg")
        pipeline, service, _ = make_pipeline(post=post)

        result = pipeline.from_url(POST_URL)

        self.assertEqual(result.kind, ErrorKind.EXTRACTION_FAILED)
        self.assertIn("no caption", result.message)
        self.assertEqual(service.prompts, [])

    def test_ai_fetch_only_without_api_key_fails_cleanly(self):
        config = AppConfig(api_key=None, extraction=ExtractionConfig(strategy_order=("ai_fetch",)))

        result = EventPipeline(config).from_url(POST_URL)

        self.assertIsInstance(result, Failed)
        self.assertEqual(result.kind, ErrorKind.EXTRACTION_FAILED)
        self.assertEqual(
            result.error.failures, [("ai_fetch", "no completion service configured")]
        )


class TestRun:

    def test_dispatches_on_single_input(self):
        pipeline, _, _ = make_pipeline(reply_for("2024-05-02T10:00:00", "2024-05-02T11:00:00"))
        assert isinstance(pipeline.run(text="standup tomorrow"), Completed)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {},
            {"url": POST_URL, "text": "standup"},
            {"text": "standup", "image": b"\x89PNG"},
        ],
    )
    def test_requires_exactly_one_input(self, kwargs):
        pipeline, _, _ = make_pipeline()
        with pytest.raises(ValueError):
            pipeline.run(**kwargs)

    def test_empty_image_is_a_caller_error(self):
        pipeline, _, _ = make_pipeline()
        with pytest.raises(ValueError):
            pipeline.from_image(b"")


if __name__ == "__main__":
    unittest.main()
