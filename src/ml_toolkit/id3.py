"""ID3 decision-tree induction over nominal attributes.

Quinlan, J. R. 1986. Induction of Decision Trees. Machine Learning 1, 81-106.

The tree is grown greedily: at each node the eligible nominal attribute
with the highest information gain becomes the split and is removed from the
candidates of its children. Numeric attributes are carried in the signature
but never chosen as splits. There is no pruning.

Training is a batch operation that rebuilds the whole tree; callers that
share one ID3 instance across threads must serialize ``train`` themselves.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .classifier import Classifier
from .config import ClassifierConfig, ClassifierType
from .exceptions import (
    IncompatibleFeatureTypeError,
    IncompatibleInstanceError,
    InvalidParameterError,
    InvalidStateError,
)
from .models import Instance, Kind, NominalFeature, Signature, Value

logger = logging.getLogger(__name__)


@dataclass
class DecisionNode:
    """A node of the tree: a labelled leaf or a split on one feature.

    Attributes:
        label: Class category of a leaf, ``None`` for internal nodes.
        feature_index: Signature index of the splitting feature.
        children: Child node per category of the splitting feature.
        candidates: Signature indices still eligible for splitting here.
    """

    label: Optional[str] = None
    feature_index: Optional[int] = None
    children: dict[str, "DecisionNode"] = field(default_factory=dict)
    candidates: frozenset[int] = frozenset()

    @property
    def is_leaf(self) -> bool:
        return self.feature_index is None

    def depth(self) -> int:
        if self.is_leaf:
            return 0
        return 1 + max(child.depth() for child in self.children.values())

    def count_leaves(self) -> int:
        if self.is_leaf:
            return 1
        return sum(child.count_leaves() for child in self.children.values())

    def to_dict(self) -> dict:
        data: dict = {"candidates": sorted(self.candidates)}
        if self.is_leaf:
            data["label"] = self.label
        else:
            data["feature_index"] = self.feature_index
            data["children"] = {k: child.to_dict() for k, child in self.children.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DecisionNode":
        return cls(
            label=data.get("label"),
            feature_index=data.get("feature_index"),
            children={k: cls.from_dict(v) for k, v in data.get("children", {}).items()},
            candidates=frozenset(data.get("candidates", ())),
        )


def entropy(class_counts: Sequence[int]) -> float:
    """Shannon entropy (natural log) of a class-count vector."""
    total = sum(class_counts)
    if total == 0:
        return 0.0
    result = 0.0
    for count in class_counts:
        p = count / total
        if p > 0:
            result -= p * math.log(p)
    return result


class ID3(Classifier):
    """Decision tree for a nominal class over nominal attributes.

    Raises:
        IncompatibleFeatureTypeError: If the class feature is not nominal.
    """

    classifier_type = ClassifierType.ID3

    def __init__(self, signature: Signature, config: Optional[ClassifierConfig] = None) -> None:
        super().__init__(signature, config)
        self._class_feature = self._require_nominal_class()
        self._root: Optional[DecisionNode] = None

    @property
    def root(self) -> Optional[DecisionNode]:
        return self._root

    def _all_candidates(self) -> frozenset[int]:
        return frozenset(self._signature.attribute_indices)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, instances: Iterable[Instance]) -> None:
        """Grow a new tree from a batch of labelled instances.

        Raises:
            IncompatibleInstanceError: If an instance does not comply, or a
                candidate attribute value is missing.
            IncompatibleFeatureTypeError: If a class value is not nominal.
        """
        rows: list[tuple[list[Value], int]] = []
        for instance in instances:
            self._signature.require_compliance(instance, training=True)
            class_value = instance.value_at(self._signature.class_index)
            rows.append((instance.values, self._class_feature.index_of(self._class_category(class_value))))

        self._root = self._grow(rows, self._all_candidates())
        self._trained = True
        logger.info(
            "ID3 trained on %d instances: depth %d, %d leaves",
            len(rows), self._root.depth(), self._root.count_leaves(),
        )

    def _class_counts(self, rows: list[tuple[list[Value], int]]) -> list[int]:
        counts = [0] * self._class_feature.num_categories
        for _, class_index in rows:
            counts[class_index] += 1
        return counts

    def _majority_leaf(self, counts: list[int], candidates: frozenset[int]) -> DecisionNode:
        best_index, best_count = 0, 0
        for index, count in enumerate(counts):
            if count > best_count:
                best_index, best_count = index, count
        return DecisionNode(label=self._class_feature.category_of(best_index), candidates=candidates)

    def _partition(
        self, rows: list[tuple[list[Value], int]], feature_index: int
    ) -> dict[str, list[tuple[list[Value], int]]]:
        feature = self._signature.feature_at(feature_index)
        subsets: dict[str, list[tuple[list[Value], int]]] = defaultdict(list)
        for row in rows:
            value = row[0][feature_index]
            if value.kind is Kind.MISSING:
                raise IncompatibleInstanceError(
                    f"ID3 cannot split on missing values of feature {feature.name!r}"
                )
            if value.payload not in feature:
                raise IncompatibleInstanceError(
                    f"{value.payload!r} is not a category of feature {feature.name!r}"
                )
            subsets[value.payload].append(row)
        return subsets

    def _grow(self, rows: list[tuple[list[Value], int]], candidates: frozenset[int]) -> DecisionNode:
        counts = self._class_counts(rows)
        non_zero = [i for i, c in enumerate(counts) if c > 0]
        if len(non_zero) == 1:
            return DecisionNode(label=self._class_feature.category_of(non_zero[0]), candidates=candidates)

        eligible = [
            i for i in sorted(candidates)
            if isinstance(self._signature.feature_at(i), NominalFeature)
        ]
        if not eligible or not rows:
            return self._majority_leaf(counts, candidates)

        # IG = H(S) - sum_v p(v) * H(S_v)
        set_entropy = entropy(counts)
        best_gain = -1.0
        best_index = eligible[0]
        best_subsets: dict[str, list[tuple[list[Value], int]]] = {}
        for feature_index in eligible:
            subsets = self._partition(rows, feature_index)
            weighted = sum(
                len(subset) / len(rows) * entropy(self._class_counts(subset))
                for subset in subsets.values()
            )
            gain = set_entropy - weighted
            logger.debug(
                "Gain of %r: %.6f", self._signature.feature_at(feature_index).name, gain
            )
            if gain > best_gain:
                best_gain, best_index, best_subsets = gain, feature_index, subsets

        feature = self._signature.feature_at(best_index)
        logger.debug("Split on %r (gain %.6f, %d instances)", feature.name, best_gain, len(rows))
        node = DecisionNode(feature_index=best_index, candidates=candidates)
        child_candidates = candidates - {best_index}
        for category in feature.categories:
            subset = best_subsets.get(category)
            if subset:
                node.children[category] = self._grow(subset, child_candidates)
            else:
                # No training data for this branch: majority class of this node.
                node.children[category] = self._grow(rows, frozenset())
        return node

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def classify(self, instance: Instance) -> Value:
        """Walk the tree from the root to a leaf.

        Raises:
            IncompatibleInstanceError: If the instance does not comply, or
                its value at a split has no branch (unknown or missing).
            InvalidStateError: If the tree has not been trained.
        """
        self._signature.require_compliance(instance, training=False)
        if self._root is None:
            raise InvalidStateError("ID3 classifier has not been trained. Call train() first.")
        node = self._root
        while not node.is_leaf:
            position = self._signature.attribute_position(node.feature_index)
            value = instance.value_at(position)
            child = node.children.get(value.payload) if value.kind is Kind.NOMINAL else None
            if child is None:
                name = self._signature.feature_at(node.feature_index).name
                raise IncompatibleInstanceError(
                    f"No branch for value {str(value)!r} of feature {name!r}"
                )
            node = child
        return Value.nominal(node.label)

    # ------------------------------------------------------------------
    # Introspection & serialization
    # ------------------------------------------------------------------

    def describe(self) -> str:
        header = [
            f"Classifier type: {int(self.classifier_type)} (ID3)",
            f"Signature: {self._signature}",
        ]
        if self._root is None:
            return "\n".join(header + ["(untrained)"])
        return "\n".join(header) + "\n" + self._format(self._root, 0)

    def _format(self, node: DecisionNode, depth: int) -> str:
        if node.is_leaf:
            return f"{node.label}"
        indent = "\t" * (depth + 1)
        lines = [self._signature.feature_at(node.feature_index).name]
        for category, child in node.children.items():
            lines.append(f"{indent}{category} -> {self._format(child, depth + 1)}")
        return "\n".join(lines)

    def _state_to_dict(self) -> dict:
        return {"root": self._root.to_dict() if self._root is not None else None}

    def _load_state(self, state: dict) -> None:
        root = state.get("root")
        self._root = DecisionNode.from_dict(root) if root is not None else None
        if self._root is not None:
            self._validate(self._root)

    def _validate(self, node: DecisionNode) -> None:
        if node.is_leaf:
            if node.label not in self._class_feature:
                raise InvalidParameterError(f"ID3 leaf label {node.label!r} is not a class category")
            return
        if node.feature_index not in self._signature.attribute_indices:
            raise InvalidParameterError(f"ID3 split on invalid feature index {node.feature_index}")
        if not isinstance(self._signature.feature_at(node.feature_index), NominalFeature):
            raise IncompatibleFeatureTypeError("ID3 can only split on nominal features")
        for child in node.children.values():
            self._validate(child)
