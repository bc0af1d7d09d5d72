"""
Sequence-to-phylogeny analysis pipeline.

Runs format detection, VCF encoding, FASTA parsing, padding, pairwise
distances, UPGMA tree building and conservation scoring, and assembles an
AnalysisResult. Each invocation works on its own local collections, so
the computation itself is a pure function of the input text and config.

The wall-clock budget is enforced by racing the computation against a
timer. Work runs on an AnalysisRuntime, a single-worker executor that the
caller creates and passes in; concurrent invocations therefore queue
rather than interleave. A computation that loses the race is abandoned,
not interrupted: its result is discarded when it eventually finishes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from types import TracebackType
from typing import Self, TypeVar

from phylolens.core.conservation import conservation_score
from phylolens.core.constants import (
    CONSERVATION_KEY,
    EMPTY_TREE_NEWICK,
    OUTGROUP_DISTANCE,
    OUTGROUP_NAME,
)
from phylolens.core.distances import DistanceMatrix, pairwise_distances
from phylolens.core.exceptions import (
    AnalysisComputationError,
    AnalysisTimeoutError,
    PhylolensError,
)
from phylolens.core.formats import prepare_input
from phylolens.core.parsers import pad_sequences, parse_fasta
from phylolens.core.phylogeny.tree_builder import build_newick
from phylolens.models.config import AnalysisConfig
from phylolens.models.results import AnalysisResult, InputFormat

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisRuntime:
    """
    Execution handle for analysis computations.

    Wraps a single-worker thread pool so that at most one heavy computation
    is in flight; further submissions wait in the executor queue. Use as a
    context manager, or call close() when done.

    Example:
        >>> with AnalysisRuntime() as runtime:
        ...     pipeline = AnalysisPipeline(runtime=runtime)
        ...     result = pipeline.run(">A\\nAC\\n>B\\nAG")
    """

    def __init__(self) -> None:
        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="phylolens-analysis",
        )

    @property
    def closed(self) -> bool:
        return self._executor is None

    def submit(self, fn, /, *args, **kwargs) -> Future:
        if self._executor is None:
            msg = "AnalysisRuntime is closed"
            raise RuntimeError(msg)
        return self._executor.submit(fn, *args, **kwargs)

    def close(self) -> None:
        """Stop accepting work without waiting for abandoned computations."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AnalysisPipeline:
    """
    Orchestrates one analysis per call.

    Args:
        config: Limits, timeout and padding settings. Defaults to
            AnalysisConfig().
        runtime: Execution handle used by run(). Not needed for compute().
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        runtime: AnalysisRuntime | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.runtime = runtime

    def run(self, raw_text: str) -> AnalysisResult:
        """
        Analyze ``raw_text`` within the configured wall-clock budget.

        Raises:
            UnrecognizedFormatError: Input is neither FASTA nor VCF.
            AnalysisTimeoutError: The budget elapsed before a result was ready.
            AnalysisComputationError: The computation raised unexpectedly.
        """
        return self._await(self.compute, raw_text)

    def run_with_distances(self, raw_text: str) -> tuple[AnalysisResult, DistanceMatrix]:
        """
        Like run(), also returning the pairwise distances of the analyzed sequences.

        The distances are computed once, inside the same wall-clock budget.
        """
        return self._await(self.compute_with_distances, raw_text)

    def _await(self, fn: Callable[[str], T], raw_text: str) -> T:
        if self.runtime is None:
            msg = "AnalysisPipeline.run() requires an AnalysisRuntime"
            raise RuntimeError(msg)

        timeout = self.config.timeout_seconds
        future = self.runtime.submit(fn, raw_text)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("Analysis exceeded %.1f s; discarding in-flight work", timeout)
            raise AnalysisTimeoutError(timeout) from None
        except PhylolensError:
            raise
        except Exception as e:
            logger.exception("Analysis computation failed")
            raise AnalysisComputationError(e) from e

    def compute(self, raw_text: str) -> AnalysisResult:
        """
        Run every step synchronously, without a time limit.

        Raises:
            UnrecognizedFormatError: Input is neither FASTA nor VCF.
        """
        result, _ = self.compute_with_distances(raw_text)
        return result

    def compute_with_distances(self, raw_text: str) -> tuple[AnalysisResult, DistanceMatrix]:
        """
        Run every step synchronously and keep the distance matrix.

        The matrix covers the analyzed sequences only; a synthetic outgroup
        used for single-sequence trees is not part of it.
        """
        start = time.perf_counter()
        cfg = self.config

        prepared = prepare_input(raw_text, max_variants=cfg.max_variants)
        seqs = parse_fasta(
            prepared.content,
            max_sequences=cfg.max_sequences,
            max_length=cfg.max_sequence_length,
        )
        padded = pad_sequences(seqs, cfg.gap_char)
        ids = list(padded)
        dm = pairwise_distances(ids, padded)
        if not ids:
            logger.info("No sequences parsed; returning placeholder tree")
            return placeholder_result(prepared.format), dm

        newick = self._build_tree(dm)
        score = conservation_score(padded, cfg.gap_char)

        logger.debug(
            "Analyzed %d %s sequence(s) in %.3f s",
            len(ids),
            prepared.format.value,
            time.perf_counter() - start,
        )
        result = AnalysisResult(
            newick=newick,
            scores={CONSERVATION_KEY: score},
            format=prepared.format,
            sequence_ids=ids,
        )
        return result, dm

    def _build_tree(self, dm: DistanceMatrix) -> str:
        if len(dm) == 1:
            # The tree builder always receives at least two leaves
            seq_id = dm.ids[0]
            outgroup = outgroup_name(dm.ids)
            return build_newick([seq_id, outgroup], {(seq_id, outgroup): OUTGROUP_DISTANCE})
        return build_newick(dm.ids, dm, missing_distance=self.config.missing_distance)


def outgroup_name(ids: Sequence[str]) -> str:
    """Name for the synthetic outgroup leaf that differs from every id in ``ids``."""
    taken = set(ids)
    name = OUTGROUP_NAME
    suffix = 1
    while name in taken:
        name = f"{OUTGROUP_NAME}_{suffix}"
        suffix += 1
    return name


def placeholder_result(fmt: InputFormat | None = None) -> AnalysisResult:
    """The fixed two-leaf result used when no sequences are available."""
    return AnalysisResult(newick=EMPTY_TREE_NEWICK, scores={CONSERVATION_KEY: 0.0}, format=fmt)


def analyze(raw_text: str, config: AnalysisConfig | None = None) -> AnalysisResult:
    """
    Analyze ``raw_text`` once with a private runtime.

    Returns:
        AnalysisResult with the Newick tree and a ``conservation`` score.

    Raises:
        UnrecognizedFormatError: Input is neither FASTA nor VCF.
        AnalysisTimeoutError: The configured budget elapsed.

    Example:
        >>> analyze(">A\\nAC\\n>B\\nAG").newick
        '(A:0.2500,B:0.2500);'
    """
    with AnalysisRuntime() as runtime:
        return AnalysisPipeline(config, runtime).run(raw_text)


__all__ = [
    "AnalysisPipeline",
    "AnalysisRuntime",
    "analyze",
    "outgroup_name",
    "placeholder_result",
]
