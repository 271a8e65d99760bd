"""Tests for sequential page processing and cancellation."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import threading

import pytest

from timecard_app.config import LLMProvider
from timecard_app.documents import DocumentPage
from timecard_app.llm.client import LLMClientError
from timecard_app.processing import CancellationToken, ProcessingJob, process_pages


class FakeClient:
    """Stands in for LLMClient; returns canned responses in order."""

    def __init__(self, responses, on_call=None):
        self.responses = list(responses)
        self.calls = []
        self.on_call = on_call

    def extract_page(self, page):
        self.calls.append(page.name)
        if self.on_call:
            self.on_call(page)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response, LLMProvider.GEMINI


def pages(*names):
    return [DocumentPage(name=name, data=b"png") for name in names]


TABLE = '[{"type": "table", "title": {"yearMonth": "", "name": "A"}, "headers": ["日"], "data": [["1"]]}]'


class TestProcessPages:

    def test_collects_records_in_page_order(self):
        client = FakeClient([TABLE, '[{"type": "transcription", "fileName": "p2", "content": "x"}]'])
        outcome = process_pages(pages("p1", "p2"), client)

        assert client.calls == ["p1", "p2"]
        assert [r["type"] for r in outcome.raw_records] == ["table", "transcription"]
        assert outcome.pages_processed == 2
        assert outcome.cancelled is False

    def test_unparsable_page_is_reported_and_skipped(self):
        client = FakeClient(["sorry, no idea", TABLE])
        outcome = process_pages(pages("p1", "p2"), client)

        assert len(outcome.raw_records) == 1
        assert outcome.errors and outcome.errors[0].startswith("p1:")

    def test_progress_callback(self):
        seen = []
        process_pages(pages("p1", "p2"), FakeClient([TABLE, TABLE]), on_progress=lambda *args: seen.append(args))
        assert seen == [(0, 2, "p1"), (1, 2, "p2")]

    def test_cancel_between_pages(self):
        token = CancellationToken()
        client = FakeClient([TABLE, TABLE, TABLE], on_call=lambda page: token.cancel())

        outcome = process_pages(pages("p1", "p2", "p3"), client, token)

        assert client.calls == ["p1"]
        assert outcome.cancelled is True
        assert outcome.raw_records == []
        assert outcome.pages_processed == 1

    def test_cancel_during_last_page_discards_results(self):
        token = CancellationToken()
        client = FakeClient([TABLE], on_call=lambda page: token.cancel())

        outcome = process_pages(pages("p1"), client, token)

        assert outcome.cancelled is True
        assert outcome.raw_records == []

    def test_llm_failure_propagates(self):
        client = FakeClient([LLMClientError("All providers failed")])
        with pytest.raises(LLMClientError):
            process_pages(pages("p1"), client)


class TestProcessingJob:

    def test_runs_in_background(self):
        job = ProcessingJob(pages("p1", "p2"), FakeClient([TABLE, TABLE])).start()

        outcome = job.result(timeout=5)

        assert job.finished
        assert len(outcome.raw_records) == 2
        assert job.progress == (1, "p2")

    def test_cancel_while_page_in_flight(self):
        started, release = threading.Event(), threading.Event()

        def block(page):
            started.set()
            release.wait(5)

        client = FakeClient([TABLE, TABLE, TABLE], on_call=block)
        job = ProcessingJob(pages("p1", "p2", "p3"), client).start()

        assert started.wait(5)
        job.cancel()
        release.set()
        outcome = job.result(timeout=5)

        assert outcome.cancelled is True
        assert outcome.raw_records == []
        assert client.calls == ["p1"]

    def test_worker_error_is_raised_by_result(self):
        job = ProcessingJob(pages("p1"), FakeClient([LLMClientError("All providers failed")])).start()
        with pytest.raises(LLMClientError):
            job.result(timeout=5)

    def test_result_timeout(self):
        release = threading.Event()
        client = FakeClient([TABLE], on_call=lambda page: release.wait(5))
        job = ProcessingJob(pages("p1"), client).start()

        with pytest.raises(TimeoutError):
            job.result(timeout=0.01)

        release.set()
        assert job.result(timeout=5).pages_processed == 1
