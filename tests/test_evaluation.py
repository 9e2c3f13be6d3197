"""Tests for metrics, stratified folds and cross-validation."""

from __future__ import annotations

import pytest

from ml_toolkit import (
    ClassificationMetrics,
    ClassifierConfig,
    ClassifierType,
    IncompatibleFeatureTypeError,
    InvalidParameterError,
    MAX_CLUSTER_DISTANCE,
    NaiveBayes,
    NominalFeature,
    NumericFeature,
    Signature,
    compute_metrics,
    cross_validate,
    stratified_k_fold,
    training_metrics,
)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestMetrics:
    """Tests for compute_metrics."""

    def test_perfect_predictions(self):
        m = compute_metrics(["yes", "no", "yes"], ["yes", "no", "yes"])
        assert m.accuracy == 1.0
        assert m.macro_f1 == 1.0
        assert m.weighted_f1 == 1.0

    def test_all_wrong_predictions(self):
        m = compute_metrics(["yes", "yes", "no"], ["no", "no", "yes"])
        assert m.accuracy == 0.0
        assert m.macro_f1 == 0.0

    def test_confusion_matrix(self):
        m = compute_metrics(["home", "work", "home", "work"], ["home", "home", "work", "work"])
        assert m.confusion_matrix["home"]["home"] == 1
        assert m.confusion_matrix["work"]["home"] == 1  # work misclassified as home
        assert m.support == {"home": 2, "work": 2}

    def test_class_never_predicted(self):
        m = compute_metrics(["a", "a", "b"], ["a", "a", "a"])
        assert m.per_class["b"]["precision"] == 0.0
        assert m.per_class["b"]["recall"] == 0.0
        assert m.per_class["a"]["recall"] == 1.0

    def test_mismatched_lengths_raises(self):
        with pytest.raises(InvalidParameterError, match="1 true labels but 2 predictions"):
            compute_metrics(["a"], ["a", "b"])

    def test_label_outside_categories_raises(self):
        with pytest.raises(InvalidParameterError, match="'c' is not one of"):
            compute_metrics(["a", "c"], ["a", "a"], categories=["a", "b"])

    def test_declared_categories_order_the_matrix(self):
        m = compute_metrics(["yes", "yes"], ["yes", "no"], categories=["no", "maybe", "yes"])
        assert m.categories == ("no", "maybe", "yes")
        assert m.confusion == [[0, 0, 0], [0, 0, 0], [1, 0, 1]]
        assert m.support == {"no": 0, "maybe": 0, "yes": 2}
        assert m.confusion_matrix["maybe"] == {"no": 0, "maybe": 0, "yes": 0}
        # "maybe" is neither true nor predicted, so it stays out of the macro average
        assert m.macro_recall == pytest.approx((0.0 + 0.5) / 2)

    def test_to_dict(self):
        m = compute_metrics(["a", "b", "a", "b"], ["a", "b", "b", "b"])
        d = m.to_dict()
        assert d["accuracy"] == 0.75
        assert d["per_class"]["b"]["precision"] == pytest.approx(0.6667)
        assert d["confusion_matrix"] == {"a": {"a": 1, "b": 1}, "b": {"a": 0, "b": 2}}

    def test_pooled_sums_confusion(self):
        first = compute_metrics(["a", "b"], ["a", "a"], categories=["a", "b"])
        second = compute_metrics(["b"], ["b"], categories=["a", "b"])
        pooled = ClassificationMetrics.pooled([first, second])
        assert pooled.confusion == [[1, 0], [1, 1]]
        assert pooled.accuracy == pytest.approx(2 / 3)

    def test_pooled_rejects_different_categories(self):
        first = compute_metrics(["a"], ["a"], categories=["a", "b"])
        second = compute_metrics(["a"], ["a"], categories=["b", "a"])
        with pytest.raises(InvalidParameterError, match="different categories"):
            ClassificationMetrics.pooled([first, second])


# ---------------------------------------------------------------------------
# Stratified folds
# ---------------------------------------------------------------------------

class TestStratifiedKFold:
    def test_partition(self):
        labels = ["a"] * 10 + ["b"] * 10
        folds = stratified_k_fold(labels, k=5)
        assert len(folds) == 5
        all_test: set[int] = set()
        for train_idx, test_idx in folds:
            assert not set(train_idx) & set(test_idx)
            all_test.update(test_idx)
        assert all_test == set(range(20))

    def test_class_balance(self):
        labels = ["a"] * 20 + ["b"] * 20
        for _, test_idx in stratified_k_fold(labels, k=5):
            test_labels = [labels[i] for i in test_idx]
            assert test_labels.count("a") == test_labels.count("b") == 4

    def test_reproducible_with_seed(self):
        labels = ["a"] * 10 + ["b"] * 10
        assert stratified_k_fold(labels, k=5, seed=7) == stratified_k_fold(labels, k=5, seed=7)

    def test_k_too_small(self):
        with pytest.raises(InvalidParameterError, match="at least 2"):
            stratified_k_fold(["a", "b"], k=1)

    def test_k_larger_than_dataset(self):
        with pytest.raises(InvalidParameterError, match="exceeds"):
            stratified_k_fold(["a", "b", "a"], k=4)

    def test_uneven_labels_keep_fold_sizes_close(self):
        labels = ["a"] * 7 + ["b"] * 4
        sizes = [len(test_idx) for _, test_idx in stratified_k_fold(labels, k=3)]
        assert sorted(sizes) == [3, 4, 4]


# ---------------------------------------------------------------------------
# Classifier evaluation
# ---------------------------------------------------------------------------

class TestCrossValidate:
    def test_returns_one_result_per_fold(self, weather_signature, weather_instances):
        results = cross_validate(ClassifierType.NAIVE_BAYES, weather_signature, weather_instances, k=3)
        assert len(results) == 3
        assert all(isinstance(r, ClassificationMetrics) for r in results)

    def test_density_clusters_are_separable(self, gps_signature, gps_instances):
        config = ClassifierConfig({MAX_CLUSTER_DISTANCE: 1000.0})
        results = cross_validate("density-clustering", gps_signature, gps_instances, k=5, config=config)
        assert all(r.accuracy == 1.0 for r in results)

    def test_requires_nominal_class(self):
        signature = Signature([NominalFeature("a", ["x"]), NumericFeature("y")])
        instances = [signature.make_instance(["x", 1.0], training=True)] * 4
        with pytest.raises(IncompatibleFeatureTypeError):
            cross_validate(ClassifierType.ZERO_R, signature, instances, k=2)

    def test_training_metrics(self, boolean_signature, and_instances):
        clf = NaiveBayes(boolean_signature)
        clf.train(and_instances)
        m = training_metrics(clf, and_instances)
        assert sum(m.support.values()) == 4
        assert 0.0 <= m.accuracy <= 1.0

    def test_metrics_cover_declared_but_unseen_class(self):
        signature = Signature([
            NominalFeature("f", ["u", "v"]), NominalFeature("label", ["a", "b", "c"]),
        ])
        instances = [signature.make_instance(row, training=True)
                     for row in (["u", "a"], ["v", "b"], ["u", "a"], ["v", "b"])]
        clf = NaiveBayes(signature)
        clf.train(instances)
        m = training_metrics(clf, instances)
        assert m.categories == ("a", "b", "c")
        assert m.support["c"] == 0
        assert m.confusion_matrix["c"] == {"a": 0, "b": 0, "c": 0}

    def test_folds_share_the_class_categories(self, weather_signature, weather_instances):
        results = cross_validate(ClassifierType.ZERO_R, weather_signature, weather_instances, k=3)
        assert {r.categories for r in results} == {("yes", "no")}
