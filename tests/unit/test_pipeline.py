"""Unit tests for the analysis pipeline and its runtime."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from phylolens.core.exceptions import (
    AnalysisComputationError,
    AnalysisTimeoutError,
    UnrecognizedFormatError,
)
from phylolens.core.phylogeny.tree_builder import tip_names
from phylolens.core.pipeline import (
    AnalysisPipeline,
    AnalysisRuntime,
    analyze,
    outgroup_name,
    placeholder_result,
)
from phylolens.models.config import AnalysisConfig
from phylolens.models.results import InputFormat


@pytest.fixture
def runtime():
    """Analysis runtime closed after each test."""
    with AnalysisRuntime() as rt:
        yield rt


class TestCompute:
    """Tests for the synchronous computation."""

    def test_two_sequence_scenario(self, two_seq_fasta: str) -> None:
        result = AnalysisPipeline().compute(two_seq_fasta)

        assert result.newick == "(A:0.2500,B:0.2500);"
        assert result.scores == {"conservation": pytest.approx(0.75)}
        assert result.format == InputFormat.FASTA
        assert result.sequence_ids == ["A", "B"]

    def test_vcf_input(self, simple_vcf: str) -> None:
        """All three samples are 0.75 apart, so the first pair merges first."""
        result = AnalysisPipeline().compute(simple_vcf)

        assert result.format == InputFormat.VCF
        assert result.newick == "(S3:0.3750,(S1:0.3750,S2:0.3750):0.0000);"
        assert result.conservation == pytest.approx(0.5)

    def test_single_sequence_gets_outgroup(self) -> None:
        result = AnalysisPipeline().compute(">X\nACGT\n")

        assert result.newick == "(X:0.5000,outgroup:0.5000);"
        assert result.conservation == 1.0
        assert result.sequence_ids == ["X"]

    def test_no_sequences_gives_placeholder(self) -> None:
        text = "##fileformat=VCFv4.2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\n"

        result = AnalysisPipeline().compute(text)

        assert result.newick == "(A:0.0000,B:0.0000);"
        assert result.conservation == 0.0
        assert result.format == InputFormat.VCF

    def test_ragged_input_is_padded(self, ragged_fasta: str) -> None:
        result = AnalysisPipeline().compute(ragged_fasta)

        assert sorted(tip_names(result.newick)) == ["x", "y", "z"]
        assert 0.0 <= result.conservation <= 1.0

    def test_limits_from_config(self, multi_seq_fasta: str) -> None:
        config = AnalysisConfig(max_sequences=2, max_sequence_length=4)

        result = AnalysisPipeline(config).compute(multi_seq_fasta)

        assert result.sequence_ids == ["seq1", "seq2"]
        assert result.newick == "(seq1:0.0000,seq2:0.0000);"

    def test_unrecognized_format(self) -> None:
        with pytest.raises(UnrecognizedFormatError):
            AnalysisPipeline().compute("not a sequence file")

    def test_idempotent(self, multi_seq_fasta: str) -> None:
        pipeline = AnalysisPipeline()
        assert pipeline.compute(multi_seq_fasta) == pipeline.compute(multi_seq_fasta)

    def test_distances_exclude_outgroup(self) -> None:
        _, dm = AnalysisPipeline().compute_with_distances(">X\nACGT\n")
        assert dm.ids == ["X"]
        assert dm.to_polars().height == 0

    def test_distances_match_tree_input(self, multi_seq_fasta: str) -> None:
        result, dm = AnalysisPipeline().compute_with_distances(multi_seq_fasta)

        assert dm.ids == result.sequence_ids
        assert dm.distance("seq1", "seq2") == 0.1

    def test_placeholder_has_empty_distances(self) -> None:
        text = "##fileformat=VCFv4.2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\n"

        result, dm = AnalysisPipeline().compute_with_distances(text)

        assert result.newick == "(A:0.0000,B:0.0000);"
        assert len(dm) == 0

    def test_single_sequence_named_outgroup(self) -> None:
        """The synthetic leaf never duplicates the input identifier."""
        result = AnalysisPipeline().compute(">outgroup\nACGT\n")

        assert result.newick == "(outgroup:0.5000,outgroup_1:0.5000);"
        assert tip_names(result.newick) == ["outgroup", "outgroup_1"]


class TestOutgroupName:
    """Tests for outgroup_name."""

    def test_default(self) -> None:
        assert outgroup_name(["X"]) == "outgroup"

    def test_collisions(self) -> None:
        assert outgroup_name(["outgroup"]) == "outgroup_1"
        assert outgroup_name(["outgroup", "outgroup_1"]) == "outgroup_2"


class TestRun:
    """Tests for time-bounded execution."""

    def test_run_returns_result(self, runtime: AnalysisRuntime, two_seq_fasta: str) -> None:
        result = AnalysisPipeline(runtime=runtime).run(two_seq_fasta)
        assert result.newick == "(A:0.2500,B:0.2500);"

    def test_timeout(
        self,
        runtime: AnalysisRuntime,
        two_seq_fasta: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        release = threading.Event()

        def slow_compute(self, raw_text):
            release.wait(5)
            return placeholder_result()

        monkeypatch.setattr(AnalysisPipeline, "compute", slow_compute)
        pipeline = AnalysisPipeline(AnalysisConfig(timeout_seconds=0.05), runtime)

        try:
            with pytest.raises(AnalysisTimeoutError) as exc_info:
                pipeline.run(two_seq_fasta)
        finally:
            release.set()

        assert exc_info.value.timeout_seconds == 0.05
        assert "timed out" in exc_info.value.message

    def test_run_with_distances(self, runtime: AnalysisRuntime, two_seq_fasta: str) -> None:
        result, dm = AnalysisPipeline(runtime=runtime).run_with_distances(two_seq_fasta)

        assert result.newick == "(A:0.2500,B:0.2500);"
        assert dm.pairs() == {("A", "B"): 0.5}

    def test_run_with_distances_times_out(
        self,
        runtime: AnalysisRuntime,
        two_seq_fasta: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Distance computation shares the wall-clock budget with the tree."""
        release = threading.Event()

        def slow_compute(self, raw_text):
            release.wait(5)
            return placeholder_result(), None

        monkeypatch.setattr(AnalysisPipeline, "compute_with_distances", slow_compute)
        pipeline = AnalysisPipeline(AnalysisConfig(timeout_seconds=0.05), runtime)

        try:
            with pytest.raises(AnalysisTimeoutError):
                pipeline.run_with_distances(two_seq_fasta)
        finally:
            release.set()

    def test_unrecognized_format_propagates(self, runtime: AnalysisRuntime) -> None:
        with pytest.raises(UnrecognizedFormatError):
            AnalysisPipeline(runtime=runtime).run("hello")

    def test_unexpected_error_is_wrapped(
        self,
        runtime: AnalysisRuntime,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def broken_compute(self, raw_text):
            raise RuntimeError("boom")

        monkeypatch.setattr(AnalysisPipeline, "compute", broken_compute)

        with pytest.raises(AnalysisComputationError) as exc_info:
            AnalysisPipeline(runtime=runtime).run(">A\nAC")

        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_run_requires_runtime(self, two_seq_fasta: str) -> None:
        with pytest.raises(RuntimeError, match="AnalysisRuntime"):
            AnalysisPipeline().run(two_seq_fasta)

    def test_closed_runtime_rejects_work(self, two_seq_fasta: str) -> None:
        rt = AnalysisRuntime()
        rt.close()

        assert rt.closed
        with pytest.raises(RuntimeError, match="closed"):
            AnalysisPipeline(runtime=rt).run(two_seq_fasta)

    def test_concurrent_callers_get_identical_results(
        self,
        runtime: AnalysisRuntime,
        multi_seq_fasta: str,
    ) -> None:
        pipeline = AnalysisPipeline(runtime=runtime)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(pipeline.run, [multi_seq_fasta] * 8))

        assert all(r == results[0] for r in results)


class TestAnalyze:
    """Tests for the one-shot helper."""

    def test_analyze(self, two_seq_fasta: str) -> None:
        result = analyze(two_seq_fasta)

        assert result.to_payload() == {
            "newick": "(A:0.2500,B:0.2500);",
            "scores": {"conservation": 0.75},
        }

    def test_placeholder_result(self) -> None:
        result = placeholder_result()

        assert result.newick == "(A:0.0000,B:0.0000);"
        assert result.format is None
        assert result.n_sequences == 0
