"""Batch preprocessing - MIDI files to validated training matrices.

Each document goes through decode, track selection, quantization,
segmentation, rasterization (plus one render per transposition) and
validation. Documents are independent: a failure in one is logged and
recorded, and the batch moves on.
"""

import asyncio
import logging
from concurrent.futures import Future, ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Generator, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..core import PreprocessConfig
from ..core.errors import DocumentError, EmptyTrackError
from ..input import MidiDecoder
from ..processing import Quantizer, Segmenter, TrackSelector, Transposer
from ..raster import MatrixValidator, Rasterizer
from .progress import CancellationToken, ProgressSink, null_progress

logger = logging.getLogger(__name__)

PROGRESS_LABEL = "Preprocessing MIDI files"

SourceLike = Union[bytes, Tuple[str, bytes]]


@dataclass
class DocumentStats:
    """Per-document counters."""

    name: str
    windows: int = 0
    candidates: int = 0
    accepted: int = 0
    rejections: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DocumentOutcome:
    """Rendered (not yet validated) matrices of one document, or its error."""

    stats: DocumentStats
    candidates: List[np.ndarray] = field(default_factory=list)
    error: Optional[DocumentError] = None


@dataclass
class PreprocessResult:
    """Output of a batch run."""

    shape: Tuple[int, int]  # (rows, columns) of every matrix
    matrices: List[np.ndarray] = field(default_factory=list)
    documents: List[DocumentStats] = field(default_factory=list)
    failures: List[Tuple[str, DocumentError]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def candidates(self) -> int:
        """Matrices rendered before validation."""
        return sum(doc.candidates for doc in self.documents)

    @property
    def succeeded(self) -> int:
        """Documents that were rendered without error."""
        return sum(1 for doc in self.documents if doc.ok)

    def to_array(self) -> np.ndarray:
        """Stack every matrix into an (N, rows, columns) float32 array."""
        if not self.matrices:
            return np.zeros((0,) + self.shape, dtype=np.float32)
        return np.stack(self.matrices).astype(np.float32, copy=False)


def render_document(
    raw: bytes,
    name: str,
    config: PreprocessConfig,
    decoder: Optional[MidiDecoder] = None,
) -> DocumentOutcome:
    """
    Render every candidate matrix of one document.

    Candidates come in window order; within a window the untransposed render
    comes first, followed by one render per configured transposition.
    Document-level failures are returned in the outcome instead of raised.

    Args:
        raw: MIDI file contents
        name: Label for logs and errors
        config: Preprocessing configuration
        decoder: Decoder to use (default: MidiDecoder with the config timeout)

    Returns:
        DocumentOutcome with candidates or an error
    """
    stats = DocumentStats(name=name)
    if decoder is None:
        decoder = MidiDecoder(timeout=config.decode_timeout)

    try:
        candidates = _render(raw, name, config, decoder, stats)
    except DocumentError as e:
        stats.error = str(e)
        return DocumentOutcome(stats=stats, error=e)

    return DocumentOutcome(stats=stats, candidates=candidates)


def _render(
    raw: bytes,
    name: str,
    config: PreprocessConfig,
    decoder: MidiDecoder,
    stats: DocumentStats,
) -> List[np.ndarray]:
    document = decoder.decode(raw, name=name)

    if len(document.time_signatures) > 1:
        beats, unit = document.time_signature
        logger.warning(
            "%s declares %d time signatures; using %d/%d for the whole piece",
            name,
            len(document.time_signatures),
            beats,
            unit,
        )

    track = TrackSelector(config.pitched_programs).select(document)
    logger.debug(
        "%s: selected track %r (program %d, %d notes)",
        name,
        track.name,
        track.program,
        track.note_count,
    )

    quantizer = Quantizer(document.ppq, config.horizontal_resolution)
    notes = quantizer.quantize(track.notes, document=name)
    if not notes:
        raise EmptyTrackError("Selected track has no notes", document=name)

    segmenter = Segmenter(document.ppq, document.time_signature, config.step_size_x)
    rasterizer = Rasterizer(config)
    transposer = Transposer()

    candidates = []
    for window in segmenter.segment(notes, document.total_duration_ticks):
        stats.windows += 1
        for shift in config.shifts:
            if shift == 0:
                window_notes = window.notes
            else:
                window_notes = transposer.transpose(window.notes, shift)
            candidates.append(rasterizer.render(window_notes, segmenter.window_ticks))

    stats.candidates = len(candidates)
    return candidates


class BatchPreprocessor:
    """Turn a collection of MIDI files into training matrices."""

    def __init__(
        self,
        config: Optional[PreprocessConfig] = None,
        decoder: Optional[MidiDecoder] = None,
        progress: Optional[ProgressSink] = None,
        workers: int = 1,
    ):
        """
        Initialize BatchPreprocessor.

        Args:
            config: Preprocessing configuration, validated immediately
            decoder: MIDI decoder (default: MidiDecoder with config timeout)
            progress: Callable receiving status strings
            workers: Worker processes; 1 processes documents in-line

        Raises:
            ConfigError: If the configuration is invalid
        """
        self.config = (config or PreprocessConfig()).validate()
        self.decoder = decoder or MidiDecoder(timeout=self.config.decode_timeout)
        self.progress = progress or null_progress
        self.workers = max(1, workers)
        self.validator = MatrixValidator(self.config)

    def run(
        self,
        sources: Iterable[SourceLike],
        cancel: Optional[CancellationToken] = None,
    ) -> PreprocessResult:
        """
        Process every document in order.

        Args:
            sources: (name, bytes) pairs or bare bytes
            cancel: Token checked before each document

        Returns:
            PreprocessResult with all accepted matrices
        """
        result = self._new_result()
        steps = self._steps(sources, cancel, result)
        try:
            pending = next(steps)
            while True:
                value = pending.result() if isinstance(pending, Future) else None
                pending = steps.send(value)
        except StopIteration:
            pass
        finally:
            steps.close()
        return result

    async def run_async(
        self,
        sources: Iterable[SourceLike],
        cancel: Optional[CancellationToken] = None,
    ) -> PreprocessResult:
        """Same as run(), yielding to the event loop between steps.

        With worker processes, rendering results are awaited instead of
        blocking the loop.
        """
        result = self._new_result()
        steps = self._steps(sources, cancel, result)
        try:
            pending = next(steps)
            while True:
                if isinstance(pending, Future):
                    value = await asyncio.wrap_future(pending)
                else:
                    value = None
                    await asyncio.sleep(0)
                pending = steps.send(value)
        except StopIteration:
            pass
        finally:
            steps.close()
        return result

    def _new_result(self) -> PreprocessResult:
        return PreprocessResult(shape=self.config.dimensions.shape)

    def _steps(
        self,
        sources: Iterable[SourceLike],
        cancel: Optional[CancellationToken],
        result: PreprocessResult,
    ) -> Generator[Optional[Future], Optional[DocumentOutcome], None]:
        """Drive the batch.

        Yields after each document and each filtering pass. A yielded future
        must be resolved by the caller and its outcome sent back.
        """
        entries = _named(sources)
        total = len(entries)
        logger.info("Preprocessing %d MIDI files", total)

        if cancel is not None and cancel.cancelled:
            result.cancelled = True
            entries = []

        outcomes = self._outcomes(entries)
        try:
            for index, outcome in enumerate(outcomes, 1):
                if isinstance(outcome, Future):
                    outcome = yield outcome
                stats = outcome.stats
                result.documents.append(stats)
                self.progress(f"{PROGRESS_LABEL}\nFile {index}/{total}: {stats.name}...")

                if outcome.error is not None:
                    logger.warning("Skipping file %d/%d: %s", index, total, outcome.error)
                    result.failures.append((stats.name, outcome.error))
                    yield
                else:
                    yield
                    self._accept(outcome, result)
                    self.progress(
                        f"{PROGRESS_LABEL}\nFile {index}/{total}: "
                        f"kept {stats.accepted}/{stats.candidates} matrices"
                    )
                    yield

                if cancel is not None and cancel.cancelled and index < total:
                    logger.info("Cancelled after %d/%d files", index, total)
                    result.cancelled = True
                    break
        finally:
            outcomes.close()

        self.progress(
            f"{PROGRESS_LABEL}\nDone: {len(result.matrices)} matrices "
            f"from {result.succeeded}/{total} files"
        )
        logger.info(
            "Accepted %d of %d matrices from %d/%d files",
            len(result.matrices),
            result.candidates,
            result.succeeded,
            total,
        )

    def _accept(self, outcome: DocumentOutcome, result: PreprocessResult) -> None:
        """Validation pass over one document's candidates."""
        stats = outcome.stats
        for matrix in outcome.candidates:
            reason = self.validator.rejection_reason(matrix)
            if reason is None:
                result.matrices.append(matrix)
                stats.accepted += 1
            else:
                stats.rejections[reason.value] = stats.rejections.get(reason.value, 0) + 1
        if stats.rejections:
            logger.debug("%s: rejected %s", stats.name, stats.rejections)
        outcome.candidates = []

    def _outcomes(
        self, entries: Sequence[Tuple[str, bytes]]
    ) -> Iterator[Union[DocumentOutcome, Future]]:
        """Rendered documents in input order, as futures when using workers."""
        if self.workers == 1:
            for name, raw in entries:
                yield render_document(raw, name, self.config, self.decoder)
            return

        executor = ProcessPoolExecutor(max_workers=self.workers)
        try:
            futures = [
                executor.submit(render_document, raw, name, self.config, self.decoder)
                for name, raw in entries
            ]
            yield from futures
        finally:
            executor.shutdown(wait=True, cancel_futures=True)


def _named(sources: Iterable[SourceLike]) -> List[Tuple[str, bytes]]:
    """Normalize sources to (name, bytes) pairs."""
    entries = []
    for index, source in enumerate(sources):
        if isinstance(source, (bytes, bytearray, memoryview)):
            entries.append((f"file-{index}", bytes(source)))
        else:
            name, raw = source
            entries.append((str(name), bytes(raw)))
    return entries
