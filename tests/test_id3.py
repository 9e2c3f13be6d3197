"""Tests for ID3 decision-tree induction."""

from __future__ import annotations

import math

import pytest

from ml_toolkit import (
    ID3,
    IncompatibleFeatureTypeError,
    IncompatibleInstanceError,
    Instance,
    InvalidStateError,
    NominalFeature,
    NumericFeature,
    Signature,
)
from ml_toolkit.id3 import entropy


def _accuracy(clf: ID3, signature: Signature, instances: list[Instance]) -> float:
    correct = 0
    for instance in instances:
        attributes, class_value = signature.split(instance)
        if clf.classify(Instance(attributes)) == class_value:
            correct += 1
    return correct / len(instances)


# ---------------------------------------------------------------------------
# Entropy
# ---------------------------------------------------------------------------

class TestEntropy:
    def test_pure(self):
        assert entropy([5, 0]) == 0.0

    def test_balanced_uses_natural_log(self):
        assert entropy([3, 3]) == pytest.approx(math.log(2))

    def test_empty(self):
        assert entropy([0, 0]) == 0.0


# ---------------------------------------------------------------------------
# Training and classification
# ---------------------------------------------------------------------------

class TestID3:
    def test_requires_nominal_class(self):
        with pytest.raises(IncompatibleFeatureTypeError):
            ID3(Signature([NominalFeature("a", ["x"]), NumericFeature("y")]))

    def test_learns_and(self, boolean_signature, and_instances):
        clf = ID3(boolean_signature)
        clf.train(and_instances)
        assert _accuracy(clf, boolean_signature, and_instances) == 1.0

    def test_learns_or(self, boolean_signature, or_instances):
        clf = ID3(boolean_signature)
        clf.train(or_instances)
        assert _accuracy(clf, boolean_signature, or_instances) == 1.0

    def test_root_splits_on_determining_feature(self):
        signature = Signature([
            NominalFeature("noise", ["p", "q"]),
            NominalFeature("signal", ["on", "off"]),
            NominalFeature("label", ["yes", "no"]),
        ])
        rows = [
            ["p", "on", "yes"], ["q", "on", "yes"], ["p", "on", "yes"],
            ["q", "off", "no"], ["p", "off", "no"], ["q", "off", "no"],
        ]
        clf = ID3(signature)
        clf.train([signature.make_instance(r, training=True) for r in rows])
        assert clf.root.feature_index == 1
        assert clf.root.depth() == 1
        assert clf.root.count_leaves() == 2

    def test_pure_training_set_is_a_leaf(self, boolean_signature):
        clf = ID3(boolean_signature)
        clf.train([Instance.of("0", "1", "1"), Instance.of("1", "0", "1")])
        assert clf.root.is_leaf
        assert clf.root.label == "1"

    def test_numeric_attributes_are_never_split(self, weather_signature, weather_instances):
        clf = ID3(weather_signature)
        clf.train(weather_instances)
        numeric = {1, 2}
        stack = [clf.root]
        while stack:
            node = stack.pop()
            assert node.feature_index not in numeric
            stack.extend(node.children.values())
        assert clf.root.feature_index == 0

    def test_unseen_branch_uses_parent_majority(self):
        signature = Signature([NominalFeature("a", ["0", "1", "2"]), NominalFeature("c", ["yes", "no"])])
        clf = ID3(signature)
        clf.train([Instance.of("0", "yes"), Instance.of("0", "yes"), Instance.of("1", "no")])
        assert clf.classify(Instance.of("2")).payload == "yes"
        assert clf.classify(Instance.of("1")).payload == "no"

    def test_children_cover_every_category(self, boolean_signature, and_instances):
        clf = ID3(boolean_signature)
        clf.train(and_instances)
        assert set(clf.root.children) == {"0", "1"}

    def test_retrain_replaces_tree(self, boolean_signature, and_instances, or_instances):
        clf = ID3(boolean_signature)
        clf.train(and_instances)
        clf.train(or_instances)
        assert _accuracy(clf, boolean_signature, or_instances) == 1.0

    def test_untrained_raises(self, boolean_signature):
        with pytest.raises(InvalidStateError, match="train"):
            ID3(boolean_signature).classify(Instance.of("0", "0"))

    def test_unknown_value_at_split(self, boolean_signature, and_instances):
        clf = ID3(boolean_signature)
        clf.train(and_instances)
        with pytest.raises(IncompatibleInstanceError, match="No branch"):
            clf.classify(Instance.of("7", "7"))

    def test_missing_value_at_split(self, boolean_signature, and_instances):
        clf = ID3(boolean_signature)
        clf.train(and_instances)
        with pytest.raises(IncompatibleInstanceError):
            clf.classify(Instance.of(None, None))

    def test_missing_training_value_rejected(self, boolean_signature):
        clf = ID3(boolean_signature)
        with pytest.raises(IncompatibleInstanceError, match="missing"):
            clf.train([Instance.of("0", None, "0"), Instance.of("1", "1", "1")])

    def test_undeclared_training_category_rejected(self, boolean_signature):
        clf = ID3(boolean_signature)
        with pytest.raises(IncompatibleInstanceError, match="'2' is not a category of feature 'a'"):
            clf.train([Instance.of("2", "0", "0"), Instance.of("1", "1", "1")])
        assert clf.root is None

    def test_noncompliant_training_instance(self, boolean_signature):
        with pytest.raises(IncompatibleInstanceError):
            ID3(boolean_signature).train([Instance.of("0", "0")])

    def test_describe(self, boolean_signature, and_instances):
        clf = ID3(boolean_signature)
        assert "(untrained)" in clf.describe()
        clf.train(and_instances)
        info = clf.describe()
        assert "1003" in info
        assert "\t0 -> " in info
