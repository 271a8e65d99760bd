"""
Sequential page processing with cooperative cancellation.

Pages are sent to the LLM one at a time. A cancellation token is checked
between pages; the page in flight is allowed to finish.

ProcessingJob runs the loop on a worker thread so a UI can poll progress and
cancel while the run is in flight.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from timecard_app.documents import DocumentPage
from timecard_app.llm.client import LLMClient
from timecard_app.llm.parser import ResponseParser

logger = logging.getLogger(__name__)


class CancellationToken:
    """Shared flag set by the UI to stop processing."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class ProcessingOutcome:
    """Raw records collected from all pages."""
    raw_records: list[dict] = field(default_factory=list)
    pages_processed: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cancelled: bool = False


def process_pages(
    pages: list[DocumentPage],
    client: LLMClient,
    token: Optional[CancellationToken] = None,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
) -> ProcessingOutcome:
    """
    Extract raw records from every page, one page at a time.

    A page whose response cannot be parsed is reported and skipped. If the
    token is cancelled, the outcome is flagged and holds no records.

    Args:
        pages: Prepared page images
        client: LLM client
        token: Cancellation token checked between pages
        on_progress: Called with (done, total, page name) before each page

    Returns:
        ProcessingOutcome

    Raises:
        LLMClientError: If the LLM cannot be reached for a page
    """
    parser = ResponseParser()
    outcome = ProcessingOutcome()

    for index, page in enumerate(pages):
        if token is not None and token.cancelled:
            logger.info(f"Processing cancelled after {index} of {len(pages)} pages")
            return ProcessingOutcome(pages_processed=index, cancelled=True)

        if on_progress:
            on_progress(index, len(pages), page.name)

        response, provider = client.extract_page(page)
        parsed = parser.parse_response(response, page.name)

        outcome.raw_records.extend(parsed.records)
        outcome.errors.extend(f"{page.name}: {error}" for error in parsed.errors)
        outcome.warnings.extend(f"{page.name}: {warning}" for warning in parsed.warnings)
        outcome.pages_processed = index + 1
        logger.info(f"Page '{page.name}' yielded {len(parsed.records)} records via {provider.value}")

    if token is not None and token.cancelled:
        return ProcessingOutcome(pages_processed=outcome.pages_processed, cancelled=True)

    return outcome


class ProcessingJob:
    """
    process_pages on a daemon thread.

    The caller polls ``finished`` and ``progress`` and collects the outcome
    with ``result()``, which re-raises whatever the worker raised.
    """

    def __init__(self, pages: list[DocumentPage], client: LLMClient):
        self.token = CancellationToken()
        self.total = len(pages)
        self._progress: tuple[int, str] = (0, "")
        self._outcome: Optional[ProcessingOutcome] = None
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(
            target=self._run,
            args=(pages, client),
            daemon=True,
        )

    def start(self) -> "ProcessingJob":
        self._thread.start()
        return self

    def _run(self, pages, client):
        try:
            self._outcome = process_pages(pages, client, self.token, self._on_progress)
        except Exception as e:
            # Handed to the polling thread by result()
            self._error = e

    def _on_progress(self, done: int, total: int, name: str):
        self._progress = (done, name)

    @property
    def progress(self) -> tuple[int, str]:
        """(pages done, name of the page in flight)"""
        return self._progress

    @property
    def finished(self) -> bool:
        return self._thread.ident is not None and not self._thread.is_alive()

    def cancel(self) -> None:
        self.token.cancel()

    def result(self, timeout: Optional[float] = None) -> ProcessingOutcome:
        """
        Wait for the worker and return its outcome.

        Raises:
            TimeoutError: If the worker is still running after ``timeout``
            LLMClientError: If the LLM could not be reached
        """
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError("Processing is still running")
        if self._error is not None:
            raise self._error
        return self._outcome
