"""Evaluation of nominal-class classifiers.

Scores are derived from a confusion matrix laid out over the categories of
the class feature, in signature order, so a category that never occurs in
a test fold still has its row and column. Provides stratified k-fold
splitting, cross-validation of any classifier variant, and resubstitution
(training-set) metrics.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from .classifier import Classifier
from .config import ClassifierConfig
from .exceptions import IncompatibleFeatureTypeError, InvalidParameterError
from .models import Instance, Kind, NominalFeature, Signature
from .persistence import create_classifier

logger = logging.getLogger(__name__)


@dataclass
class ClassificationMetrics:
    """Confusion matrix over a fixed category list and the scores derived from it.

    Attributes:
        categories: Class categories, in the order of rows and columns.
        confusion: ``confusion[t][p]`` counts instances of category ``t``
            that were predicted as category ``p``.

    Macro averages run over the observed categories only, i.e. those that
    occur as a true label or as a prediction.
    """

    categories: tuple[str, ...]
    confusion: list[list[int]]

    @classmethod
    def pooled(cls, results: Iterable["ClassificationMetrics"]) -> "ClassificationMetrics":
        """Sum the confusion matrices of several results over the same categories.

        Raises:
            InvalidParameterError: If there is nothing to pool or the
                category lists differ.
        """
        results = list(results)
        if not results:
            raise InvalidParameterError("No metrics to pool")
        categories = results[0].categories
        size = len(categories)
        confusion = [[0] * size for _ in range(size)]
        for result in results:
            if result.categories != categories:
                raise InvalidParameterError("Cannot pool metrics over different categories")
            for t, row in enumerate(result.confusion):
                for p, count in enumerate(row):
                    confusion[t][p] += count
        return cls(categories, confusion)

    @property
    def total(self) -> int:
        return sum(sum(row) for row in self.confusion)

    @property
    def accuracy(self) -> float:
        total = self.total
        if total == 0:
            return 0.0
        return sum(self.confusion[i][i] for i in range(len(self.categories))) / total

    @property
    def support(self) -> dict[str, int]:
        """Number of true instances per category."""
        return {c: sum(row) for c, row in zip(self.categories, self.confusion)}

    def scores(self, index: int) -> tuple[float, float, float]:
        """Precision, recall and F1 of the category at ``index``."""
        hits = self.confusion[index][index]
        predicted = sum(row[index] for row in self.confusion)
        actual = sum(self.confusion[index])
        precision = hits / predicted if predicted else 0.0
        recall = hits / actual if actual else 0.0
        f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0
        return precision, recall, f1

    @property
    def per_class(self) -> dict[str, dict[str, float]]:
        return {
            category: dict(zip(("precision", "recall", "f1"), self.scores(i)))
            for i, category in enumerate(self.categories)
        }

    def _observed(self) -> list[int]:
        return [
            i for i in range(len(self.categories))
            if sum(self.confusion[i]) or sum(row[i] for row in self.confusion)
        ]

    def _macro(self, position: int) -> float:
        observed = self._observed()
        if not observed:
            return 0.0
        return sum(self.scores(i)[position] for i in observed) / len(observed)

    @property
    def macro_precision(self) -> float:
        return self._macro(0)

    @property
    def macro_recall(self) -> float:
        return self._macro(1)

    @property
    def macro_f1(self) -> float:
        return self._macro(2)

    @property
    def weighted_f1(self) -> float:
        total = self.total
        if total == 0:
            return 0.0
        return sum(
            self.scores(i)[2] * sum(row) for i, row in enumerate(self.confusion)
        ) / total

    @property
    def confusion_matrix(self) -> dict[str, dict[str, int]]:
        """``{true: {predicted: count}}`` view of :attr:`confusion`."""
        return {
            true: dict(zip(self.categories, row))
            for true, row in zip(self.categories, self.confusion)
        }

    def to_dict(self) -> dict:
        return {
            "accuracy": round(self.accuracy, 4),
            "macro_precision": round(self.macro_precision, 4),
            "macro_recall": round(self.macro_recall, 4),
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "per_class": {
                category: {name: round(value, 4) for name, value in scores.items()}
                for category, scores in self.per_class.items()
            },
            "confusion_matrix": self.confusion_matrix,
        }


def compute_metrics(
    y_true: Sequence[str],
    y_pred: Sequence[str],
    categories: Optional[Sequence[str]] = None,
) -> ClassificationMetrics:
    """Tabulate true against predicted labels.

    Args:
        y_true: True class categories.
        y_pred: Predicted class categories, aligned with ``y_true``.
        categories: Row/column order of the confusion matrix. Defaults to
            the sorted set of labels that occur.

    Raises:
        InvalidParameterError: If the sequences differ in length or a label
            is not one of ``categories``.
    """
    if len(y_true) != len(y_pred):
        raise InvalidParameterError(
            f"Got {len(y_true)} true labels but {len(y_pred)} predictions"
        )
    if categories is None:
        categories = sorted(set(y_true) | set(y_pred))
    position = {category: i for i, category in enumerate(categories)}
    confusion = [[0] * len(position) for _ in position]
    for true, pred in zip(y_true, y_pred):
        try:
            confusion[position[true]][position[pred]] += 1
        except KeyError as e:
            raise InvalidParameterError(
                f"Label {e.args[0]!r} is not one of {list(categories)}"
            ) from None
    return ClassificationMetrics(tuple(categories), confusion)


def stratified_k_fold(
    labels: Sequence[str],
    k: int = 5,
    seed: int = 42,
) -> list[tuple[list[int], list[int]]]:
    """Split instance indices into ``k`` (train, test) pairs, stratified by label.

    The indices of each label are shuffled and dealt to the test folds in
    turn. Dealing carries on from one label to the next, so test folds
    differ in size by at most one.

    Raises:
        InvalidParameterError: If ``k`` is smaller than 2 or larger than the
            number of instances.
    """
    if k < 2:
        raise InvalidParameterError(f"k must be at least 2, got {k}")
    if k > len(labels):
        raise InvalidParameterError(f"k={k} exceeds the number of instances ({len(labels)})")
    rng = random.Random(seed)

    by_label: dict[str, list[int]] = {}
    for index, label in enumerate(labels):
        by_label.setdefault(label, []).append(index)

    test_sets: list[list[int]] = [[] for _ in range(k)]
    fold = 0
    for label in sorted(by_label):
        members = by_label[label]
        rng.shuffle(members)
        for index in members:
            test_sets[fold].append(index)
            fold = (fold + 1) % k

    folds: list[tuple[list[int], list[int]]] = []
    for test in test_sets:
        held_out = set(test)
        folds.append(([i for i in range(len(labels)) if i not in held_out], sorted(test)))
    return folds


def _class_categories(signature: Signature) -> tuple[str, ...]:
    feature = signature.class_feature
    if not isinstance(feature, NominalFeature):
        raise IncompatibleFeatureTypeError("Evaluation requires a nominal class feature")
    return feature.categories


def _labels(signature: Signature, instances: Sequence[Instance]) -> list[str]:
    _class_categories(signature)
    labels = []
    for instance in instances:
        value = instance.value_at(signature.class_index)
        if value.kind is not Kind.NOMINAL:
            raise IncompatibleFeatureTypeError("Class variable has to be of type NOMINAL.")
        labels.append(value.payload)
    return labels


def _unlabelled(signature: Signature, instance: Instance) -> Instance:
    attributes, _ = signature.split(instance)
    return Instance(attributes)


def predict_all(classifier: Classifier, instances: Sequence[Instance]) -> list[str]:
    """Classify the labelled ``instances`` with their class value removed."""
    signature = classifier.signature
    return [str(classifier.classify(_unlabelled(signature, i)).payload) for i in instances]


def training_metrics(classifier: Classifier, instances: Sequence[Instance]) -> ClassificationMetrics:
    """Resubstitution metrics of an already trained classifier."""
    signature = classifier.signature
    labels = _labels(signature, instances)
    return compute_metrics(labels, predict_all(classifier, instances), _class_categories(signature))


def cross_validate(
    classifier_type: Any,
    signature: Signature,
    instances: Sequence[Instance],
    k: int = 5,
    config: Optional[ClassifierConfig] = None,
    seed: int = 42,
) -> list[ClassificationMetrics]:
    """Run stratified k-fold cross-validation of one classifier variant.

    A fresh classifier is built and trained for every fold.

    Returns:
        One :class:`ClassificationMetrics` per fold, all over the class
        feature's categories.
    """
    labels = _labels(signature, instances)
    categories = _class_categories(signature)
    results: list[ClassificationMetrics] = []

    for fold, (train_idx, test_idx) in enumerate(stratified_k_fold(labels, k=k, seed=seed)):
        classifier = create_classifier(classifier_type, signature, config)
        classifier.train([instances[i] for i in train_idx])
        test = [instances[i] for i in test_idx]
        metrics = compute_metrics(
            [labels[i] for i in test_idx], predict_all(classifier, test), categories
        )
        logger.info("Fold %d/%d accuracy: %.4f", fold + 1, k, metrics.accuracy)
        results.append(metrics)

    return results
