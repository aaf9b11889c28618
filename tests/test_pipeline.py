"""Tests for batch preprocessing."""

import asyncio
import logging

import numpy as np
import pytest

from conftest import PPQ, TrackData, make_midi, melody
from midiraster.core import (
    ConfigError,
    DecodeError,
    Document,
    EmptyTrackError,
    NoValidTrackError,
    Note,
    PreprocessConfig,
    Track,
)
from midiraster.pipeline import (
    BatchPreprocessor,
    CancellationToken,
    StatusMessage,
    render_document,
)


def _config(**options):
    options.setdefault("dimensions", (64, 64))
    options.setdefault("start_octave", 3)
    options.setdefault("horizontal_resolution", "1/8")
    options.setdefault("transpositions", ())
    return PreprocessConfig(**options)


class StubDecoder:
    """Decoder returning a fixed document."""

    def __init__(self, document):
        self.document = document

    def decode(self, raw, name="<bytes>"):
        return self.document


class TestRenderDocument:
    """Tests for single-document rendering."""

    def test_single_note_scenario(self, single_note_midi):
        """One quarter note renders to one matrix with a run from column 0 on row 24."""
        result = BatchPreprocessor(_config()).run([("one.mid", single_note_midi)])

        assert len(result.matrices) == 1
        matrix = result.matrices[0]
        assert matrix.shape == (64, 64)
        assert np.flatnonzero(matrix.any(axis=1)).tolist() == [24]
        assert np.flatnonzero(matrix[24]).tolist() == list(range(16))
        assert matrix[24, 0] == pytest.approx(1.0)

    def test_candidates_per_window(self, melody_midi):
        outcome = render_document(melody_midi, "melody.mid", _config(transpositions=(7, -7)))
        assert outcome.error is None
        assert outcome.stats.windows == 2
        assert len(outcome.candidates) == 2 * 3

    def test_transposed_variants(self, single_note_midi):
        """+7/-7 give three renders with the same columns and shifted rows."""
        outcome = render_document(single_note_midi, "one.mid", _config(transpositions=(7, -7)))
        original, up, down = outcome.candidates

        rows = [np.flatnonzero(m.any(axis=1)).tolist() for m in (original, up, down)]
        assert rows == [[24], [31], [17]]
        columns = [np.flatnonzero(m.any(axis=0)).tolist() for m in (original, up, down)]
        assert columns[0] == columns[1] == columns[2]

    def test_transposition_clipped_out_of_window(self):
        raw = make_midi([TrackData(notes=[(0, PPQ, 99, 100)])])  # row 63
        outcome = render_document(raw, "high.mid", _config(transpositions=(7,)))
        original, up = outcome.candidates
        assert original.any()
        assert not up.any()

    def test_quantization_applied(self):
        # 250..480 snaps to 240..480 on an eighth-note grid (240 ticks)
        raw = make_midi([TrackData(notes=[(250, 230, 60, 127)])])
        outcome = render_document(raw, "late.mid", _config())
        [matrix] = outcome.candidates
        assert np.flatnonzero(matrix[24]).tolist() == list(range(8, 16))

    def test_selects_densest_pitched_track(self, band_midi):
        outcome = render_document(band_midi, "band.mid", _config())
        rows = set()
        for matrix in outcome.candidates:
            rows.update(np.flatnonzero(matrix.any(axis=1)).tolist())
        # Lead plays 64, 67, 71, 72 -> rows 28, 31, 35, 36
        assert rows == {28, 31, 35, 36}

    def test_no_valid_track(self):
        raw = make_midi([TrackData(notes=melody(1, pitches=(36, 38)), is_drum=True)])
        outcome = render_document(raw, "drums.mid", _config())
        assert isinstance(outcome.error, NoValidTrackError)
        assert outcome.candidates == []
        assert "drums.mid" in outcome.stats.error

    def test_empty_selected_track(self):
        document = Document(tracks=(Track(notes=(), program=0),), ppq=480, name="silent.mid")
        outcome = render_document(b"", "silent.mid", _config(), decoder=StubDecoder(document))
        assert isinstance(outcome.error, EmptyTrackError)

    def test_multiple_time_signatures_warn(self, caplog):
        raw = make_midi(
            [TrackData(notes=melody(2))],
            time_signatures=((4, 4, 0), (3, 4, 4 * PPQ)),
        )
        with caplog.at_level(logging.WARNING, logger="midiraster.pipeline.preprocessor"):
            outcome = render_document(raw, "meter.mid", _config())
        assert outcome.error is None
        assert outcome.stats.windows == 2
        assert "time signatures" in caplog.text


class TestBatchPreprocessor:
    """Tests for BatchPreprocessor."""

    def test_invalid_config_fails_eagerly(self):
        with pytest.raises(ConfigError):
            BatchPreprocessor(_config(dimensions=(0, 64)))

    @pytest.mark.parametrize(
        "data",
        [
            {"step_size_x": 2.0},
            {"dimensions": {"x": 64.0, "y": 64}},
            {"dimensions": {"x": "64", "y": 64}},
        ],
    )
    def test_mistyped_config_fails_before_any_document(self, data):
        with pytest.raises(ConfigError):
            BatchPreprocessor(PreprocessConfig.from_dict(data))

    def test_partial_failure_isolation(self, melody_midi, single_note_midi, caplog):
        sources = [
            ("a.mid", melody_midi),
            ("corrupt.mid", b"MThd garbage"),
            ("b.mid", single_note_midi),
        ]
        with caplog.at_level(logging.WARNING):
            result = BatchPreprocessor(_config()).run(sources)

        assert len(result.matrices) == 3  # two melody windows + one note
        assert result.succeeded == 2
        assert len(result.documents) == 3
        [(name, error)] = result.failures
        assert name == "corrupt.mid"
        assert isinstance(error, DecodeError)
        assert "corrupt.mid" in caplog.text

    def test_document_without_tracks(self, empty_midi, single_note_midi):
        result = BatchPreprocessor(_config()).run([("empty.mid", empty_midi), ("one.mid", single_note_midi)])
        assert len(result.matrices) == 1
        [(name, error)] = result.failures
        assert name == "empty.mid"
        assert isinstance(error, NoValidTrackError)

    def test_all_documents_fail(self):
        result = BatchPreprocessor(_config()).run([b"nope", b"still no"])
        assert result.matrices == []
        assert len(result.failures) == 2
        assert result.to_array().shape == (0, 64, 64)

    def test_empty_batch(self):
        result = BatchPreprocessor(_config()).run([])
        assert result.matrices == []
        assert result.documents == []

    def test_bare_bytes_are_named(self, single_note_midi):
        result = BatchPreprocessor(_config()).run([b"bad", single_note_midi])
        assert [doc.name for doc in result.documents] == ["file-0", "file-1"]

    def test_output_order(self):
        first = make_midi([TrackData(notes=[(0, PPQ, 60, 100), (1920, PPQ, 62, 100)])])
        second = make_midi([TrackData(notes=[(0, PPQ, 64, 100)])])
        result = BatchPreprocessor(_config(transpositions=(1,))).run([first, second])

        rows = [np.flatnonzero(m.any(axis=1)).tolist() for m in result.matrices]
        # document order, then window order, then untransposed before transposed
        assert rows == [[24], [25], [26], [27], [28], [29]]

    def test_sparse_window_rejected(self, melody_midi):
        result = BatchPreprocessor(_config(minimum_notes=100)).run([melody_midi])
        assert result.matrices == []
        assert result.documents[0].rejections == {"too_few_notes": 2}

    def test_empty_windows_rejected(self):
        raw = make_midi([TrackData(notes=[(0, PPQ, 60, 100), (3 * 1920, PPQ, 62, 100)])])
        result = BatchPreprocessor(_config()).run([raw])
        assert result.documents[0].windows == 4
        assert len(result.matrices) == 2
        assert result.documents[0].rejections == {"empty": 2}

    def test_shape_invariant(self, band_midi, melody_midi):
        config = _config(dimensions=(48, 36), transpositions=(5, -5), step_size_x=2)
        result = BatchPreprocessor(config).run([band_midi, melody_midi])
        assert result.matrices
        for matrix in result.matrices:
            assert len(matrix) == 36
            assert all(len(row) == 48 for row in matrix)
            assert matrix.min() >= 0.0
            assert matrix.max() <= 1.0
        assert result.to_array().shape == (len(result.matrices), 36, 48)

    def test_threshold_monotonicity(self, band_midi, melody_midi):
        sources = [band_midi, melody_midi]
        counts = [
            len(BatchPreprocessor(_config(minimum_notes=n, transpositions=(3,))).run(sources).matrices)
            for n in (0, 8, 16, 32, 64)
        ]
        assert counts == sorted(counts, reverse=True)

    def test_progress_reported(self, melody_midi):
        status = StatusMessage()
        messages = []

        def sink(message):
            messages.append(message)
            status(message)

        BatchPreprocessor(_config(), progress=sink).run([("a.mid", melody_midi), ("bad.mid", b"x")])

        assert messages[0] == "Preprocessing MIDI files\nFile 1/2: a.mid..."
        assert messages[1].startswith("Preprocessing MIDI files\nFile 1/2: kept 2/2")
        assert messages[2] == "Preprocessing MIDI files\nFile 2/2: bad.mid..."
        assert status.message.startswith("Preprocessing MIDI files\nDone: 2 matrices from 1/2 files")
        assert status.updates == len(messages)

    def test_cancellation_at_document_boundary(self, melody_midi):
        token = CancellationToken()

        def sink(message):
            token.cancel()

        result = BatchPreprocessor(_config(), progress=sink).run(
            [melody_midi, melody_midi, melody_midi], cancel=token
        )
        assert result.cancelled
        assert len(result.documents) == 1
        assert len(result.matrices) == 2  # first document completes

    def test_cancelled_before_start(self, melody_midi):
        token = CancellationToken()
        token.cancel()
        result = BatchPreprocessor(_config()).run([melody_midi], cancel=token)
        assert result.cancelled
        assert result.documents == []

    def test_run_async_matches_run(self, melody_midi, band_midi):
        sources = [melody_midi, b"broken", band_midi]
        preprocessor = BatchPreprocessor(_config(transpositions=(2,)))

        expected = preprocessor.run(sources)
        result = asyncio.run(preprocessor.run_async(sources))

        assert len(result.matrices) == len(expected.matrices)
        for a, b in zip(result.matrices, expected.matrices):
            np.testing.assert_array_equal(a, b)

    def test_run_async_yields_to_event_loop(self, melody_midi):
        ticks = []

        async def ticker():
            for _ in range(100):
                ticks.append(1)
                await asyncio.sleep(0)

        async def main():
            task = asyncio.ensure_future(ticker())
            result = await BatchPreprocessor(_config()).run_async([melody_midi, melody_midi])
            interleaved = len(ticks)
            await task
            return result, interleaved

        result, interleaved = asyncio.run(main())
        assert len(result.matrices) == 4
        assert interleaved > 0

    def test_run_async_with_workers_keeps_loop_responsive(self, melody_midi, band_midi):
        """Worker results are awaited, so other tasks run while documents render."""
        sources = [melody_midi, b"broken", band_midi]
        config = _config(transpositions=(3,))
        expected = BatchPreprocessor(config).run(sources)
        ticks = []

        async def ticker(done):
            while not done.is_set():
                ticks.append(1)
                await asyncio.sleep(0)

        async def main():
            done = asyncio.Event()
            task = asyncio.ensure_future(ticker(done))
            result = await BatchPreprocessor(config, workers=2).run_async(sources)
            done.set()
            await task
            return result

        result = asyncio.run(main())
        assert [d.name for d in result.documents] == [d.name for d in expected.documents]
        assert len(result.failures) == 1
        np.testing.assert_array_equal(result.to_array(), expected.to_array())
        assert ticks

    def test_workers_match_sequential(self, melody_midi, band_midi, single_note_midi):
        sources = [melody_midi, b"broken", band_midi, single_note_midi]
        config = _config(transpositions=(4,))

        expected = BatchPreprocessor(config).run(sources)
        result = BatchPreprocessor(config, workers=2).run(sources)

        assert [d.name for d in result.documents] == [d.name for d in expected.documents]
        assert len(result.failures) == 1
        assert isinstance(result.failures[0][1], DecodeError)
        np.testing.assert_array_equal(result.to_array(), expected.to_array())
