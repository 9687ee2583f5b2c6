"""Analysis Orchestrator: one document through generation, parsing and storage.

    idle ──► requesting ──► processing ──► persisted
      │           │                 │
      ▼           ▼                 ▼
   rejected     failed            failed

The summary and bias prompts are sent concurrently and both must succeed;
a failure of either cancels the other and fails the run without
persisting anything. A storage failure keeps the built record on the
raised PersistenceFailure so it can be saved again via ``persist``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Protocol

from app.analysis.aggregation import build_record
from app.analysis.bias_parser import parse_bias_report
from app.analysis.errors import (
    AnalysisError,
    AuthRequired,
    DocumentTooLarge,
    EmptyDocument,
    GenerationFailure,
    GenerationTimeout,
    PersistenceFailure,
)
from app.analysis.normalizer import normalize
from app.analysis.prompts import bias_prompt, summary_prompt
from app.analysis.types import AnalysisRecord, AnalysisState, DocumentMeta, UserIdentity
from app.core.metrics import ANALYSIS_RUNS, GENERATION_DURATION

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
DEFAULT_MAX_CHARS = 200_000


# ---------------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------------


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class AnalysisStore(Protocol):
    async def insert(self, record: AnalysisRecord) -> int: ...


class IdentityProvider(Protocol):
    def current_user(self) -> UserIdentity | None: ...


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class AnalysisOrchestrator:
    """Runs analyses with injected generator, store and identity provider."""

    def __init__(
        self,
        generator: TextGenerator,
        store: AnalysisStore,
        identity: IdentityProvider,
        timeout: float | None = DEFAULT_TIMEOUT,
        max_chars: int = DEFAULT_MAX_CHARS,
    ):
        self.generator = generator
        self.store = store
        self.identity = identity
        self.timeout = timeout
        self.max_chars = max_chars
        self.state = AnalysisState.IDLE
        self.record: AnalysisRecord | None = None

    async def analyze(self, document_text: str, meta: DocumentMeta) -> AnalysisRecord:
        """Summarize and bias-check one document, then persist the record.

        Raises:
            AuthRequired: no authenticated identity; no request was sent.
            EmptyDocument / DocumentTooLarge: text rejected before sending.
            GenerationFailure: either generation request failed (GenerationTimeout
                when the deadline expired).
            PersistenceFailure: the record was built but could not be stored.
        """
        self.state = AnalysisState.IDLE
        self.record = None

        user = self.identity.current_user()
        if user is None:
            raise self._fail(AnalysisState.REJECTED, AuthRequired("Login required to analyze documents"))

        text = (document_text or "").strip()
        if not text:
            raise self._fail(AnalysisState.REJECTED, EmptyDocument("Document contains no text"))
        if len(text) > self.max_chars:
            raise self._fail(AnalysisState.REJECTED, DocumentTooLarge(len(text), self.max_chars))

        self.state = AnalysisState.REQUESTING
        logger.info("Analysis started: owner=%s, file=%s, chars=%d", user.user_id, meta.file_name, len(text))
        summary_raw, bias_raw = await self._generate_both(text)

        self.state = AnalysisState.PROCESSING
        summary_text = normalize(summary_raw)
        bias_text = normalize(bias_raw)
        report = parse_bias_report(bias_text)
        self.record = build_record(report.findings, summary_text, bias_text, meta, user.user_id)

        return await self.persist(self.record)

    async def persist(self, record: AnalysisRecord) -> AnalysisRecord:
        """Store a built record; also the retry path after a PersistenceFailure."""
        self.record = record
        try:
            record_id = await self.store.insert(record)
        except Exception as exc:
            logger.error("Storing analysis failed: owner=%s, file=%s: %s", record.owner_id, record.file_name, exc)
            raise self._fail(AnalysisState.FAILED, PersistenceFailure(record, f"Failed to save analysis: {exc}")) from exc

        stored = replace(record, id=record_id)
        self.record = stored
        self.state = AnalysisState.PERSISTED
        ANALYSIS_RUNS.labels(state=self.state.value, cause="").inc()
        logger.info(
            "Analysis persisted: id=%s, owner=%s, biases=%d, confidence=%.1f",
            record_id,
            stored.owner_id,
            stored.bias_count,
            stored.bias_confidence,
        )
        return stored

    async def _generate_both(self, text: str) -> tuple[str, str]:
        """Send both prompts concurrently and wait for both to settle."""
        tasks = [
            asyncio.create_task(self.generator.generate(summary_prompt(text)), name="summary"),
            asyncio.create_task(self.generator.generate(bias_prompt(text)), name="bias"),
        ]
        start = time.perf_counter()
        try:
            summary_raw, bias_raw = await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            error: AnalysisError = GenerationTimeout(f"Generation did not finish within {self.timeout}s")
            cause: BaseException = exc
        except asyncio.CancelledError:
            self.state = AnalysisState.FAILED
            ANALYSIS_RUNS.labels(state=self.state.value, cause="cancelled").inc()
            raise
        except Exception as exc:
            logger.warning("Generation failed: %s: %s", type(exc).__name__, exc)
            error = GenerationFailure(f"Generation failed: {exc}")
            cause = exc
        else:
            GENERATION_DURATION.observe(time.perf_counter() - start)
            return summary_raw or "", bias_raw or ""
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        # Let the cancelled sibling unwind before reporting
        await asyncio.gather(*tasks, return_exceptions=True)
        raise self._fail(AnalysisState.FAILED, error) from cause

    def _fail(self, state: AnalysisState, error: AnalysisError) -> AnalysisError:
        self.state = state
        ANALYSIS_RUNS.labels(state=state.value, cause=error.cause).inc()
        return error
