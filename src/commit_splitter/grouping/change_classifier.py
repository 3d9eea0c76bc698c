"""
Heuristics for classifying staged files into change types.

The classifier weighs the signals produced by
:mod:`commit_splitter.grouping.feature_extractor`. It is intentionally
simple and deterministic so that it can be unit tested without a
repository:

* every signal proposes a change type with the weight of its kind
  (path > content > extension > size); per type the strongest signal counts;
* when path signals disagree, the most specific path rule wins first;
* remaining ties are broken by the fixed priority order in
  :data:`commit_splitter.grouping.change_types.PRIORITY`;
* a file without any signal is a low-confidence ``chore``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from commit_splitter.diff.diff_model import ChangedFile
from commit_splitter.grouping.change_types import ChangeType, Confidence, priority_rank
from commit_splitter.grouping.feature_extractor import (
    FeatureSet,
    Signal,
    SignalKind,
    extract_features,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


_CONFIDENCE = {
    SignalKind.PATH: Confidence.HIGH,
    SignalKind.CONTENT: Confidence.MEDIUM,
    SignalKind.EXTENSION: Confidence.LOW,
    SignalKind.SIZE: Confidence.LOW,
}


@dataclass(frozen=True)
class Classification:
    """The change type chosen for one staged file."""

    file: ChangedFile
    change_type: ChangeType
    confidence: Confidence
    features: Optional[FeatureSet] = None

    @property
    def path(self) -> str:
        return self.file.path


def _most_specific_path_signals(signals: Iterable[Signal]) -> List[Signal]:
    path_signals = [signal for signal in signals if signal.kind is SignalKind.PATH]
    if len({signal.change_type for signal in path_signals}) <= 1:
        return path_signals
    best = max(signal.specificity for signal in path_signals)
    return [signal for signal in path_signals if signal.specificity == best]


def choose_type(features: FeatureSet) -> Tuple[ChangeType, Confidence]:
    """Pick the winning (change_type, confidence) for a feature set."""
    if not features.signals:
        return ChangeType.CHORE, Confidence.LOW

    path_signals = _most_specific_path_signals(features.signals)
    others = [signal for signal in features.signals if signal.kind is not SignalKind.PATH]

    strongest: Dict[ChangeType, Signal] = {}
    for signal in path_signals + others:
        current = strongest.get(signal.change_type)
        if current is None or signal.weight > current.weight:
            strongest[signal.change_type] = signal

    winner = min(
        strongest.values(),
        key=lambda signal: (-signal.weight, priority_rank(signal.change_type)),
    )
    return winner.change_type, _CONFIDENCE[winner.kind]


def classify_change(changed: ChangedFile, large_threshold: Optional[int] = None) -> Classification:
    """Classify a staged file into a change type.

    Parameters
    ----------
    changed : ChangedFile
        The staged file.
    large_threshold : int, optional
        Line count above which the file's size bucket is ``large``.

    Returns
    -------
    Classification
        The chosen type and its confidence.
    """
    features = extract_features(changed, large_threshold)
    change_type, confidence = choose_type(features)
    logger.debug(
        "Classified %s as %s (%s confidence, %d signal(s), %s change)",
        changed.path,
        change_type.value,
        confidence,
        len(features.signals),
        features.size.value,
    )
    return Classification(file=changed, change_type=change_type, confidence=confidence, features=features)


def classify_all(snapshot: Iterable[ChangedFile], large_threshold: Optional[int] = None) -> List[Classification]:
    """Classify every file of a snapshot, preserving order."""
    return [classify_change(changed, large_threshold) for changed in snapshot]
