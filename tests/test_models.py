"""Tests for values, features, signatures and instances."""

from __future__ import annotations

import math

import pytest

from ml_toolkit import (
    IncompatibleInstanceError,
    Instance,
    InvalidParameterError,
    Kind,
    NominalFeature,
    NumericFeature,
    Signature,
    Value,
)
from ml_toolkit.models import Feature


# ---------------------------------------------------------------------------
# Value
# ---------------------------------------------------------------------------

class TestValue:
    def test_nominal(self):
        v = Value.nominal("red")
        assert v.kind is Kind.NOMINAL
        assert v.payload == "red"
        assert not v.is_missing

    def test_numeric_is_stored_as_float(self):
        v = Value.numeric(3)
        assert v.kind is Kind.NUMERIC
        assert isinstance(v.payload, float)
        assert v.payload == 3.0

    def test_missing_ignores_payload(self):
        v = Value("anything", Kind.MISSING)
        assert v.is_missing
        assert math.isnan(v.payload)

    def test_missing_values_compare_equal(self):
        assert Value.missing() == Value(42, Kind.MISSING)

    def test_kind_accepts_string(self):
        assert Value("x", "nominal").kind is Kind.NOMINAL

    def test_nominal_payload_must_be_string(self):
        with pytest.raises(InvalidParameterError, match="string"):
            Value(1.0, Kind.NOMINAL)

    def test_numeric_payload_must_be_number(self):
        with pytest.raises(InvalidParameterError, match="number"):
            Value("1.0", Kind.NUMERIC)

    def test_numeric_rejects_bool(self):
        with pytest.raises(InvalidParameterError):
            Value.numeric(True)

    def test_unknown_kind(self):
        with pytest.raises(InvalidParameterError, match="kind"):
            Value(1.0, "ordinal")

    def test_infer(self):
        assert Value.infer("a") == Value.nominal("a")
        assert Value.infer(2) == Value.numeric(2.0)
        assert Value.infer(None).is_missing

    def test_dict_roundtrip(self):
        for v in (Value.nominal("a"), Value.numeric(1.5), Value.missing()):
            assert Value.from_dict(v.to_dict()) == v

    def test_str(self):
        assert str(Value.missing()) == "?"
        assert str(Value.nominal("a")) == "a"


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

class TestNominalFeature:
    def test_index_lookup_follows_insertion_order(self):
        f = NominalFeature("color", ["red", "green", "blue"])
        assert f.index_of("red") == 0
        assert f.index_of("blue") == 2
        assert f.category_of(1) == "green"
        assert f.num_categories == 3

    def test_categories_are_immutable(self):
        categories = ["a", "b"]
        f = NominalFeature("f", categories)
        categories.append("c")
        assert f.categories == ("a", "b")
        assert isinstance(f.categories, tuple)

    def test_unknown_category_raises(self):
        f = NominalFeature("color", ["red"])
        with pytest.raises(IncompatibleInstanceError, match="not a category"):
            f.index_of("purple")

    def test_duplicate_categories_rejected(self):
        with pytest.raises(InvalidParameterError, match="unique"):
            NominalFeature("f", ["a", "a"])

    def test_non_string_category_rejected(self):
        with pytest.raises(InvalidParameterError):
            NominalFeature("f", ["a", 1])

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidParameterError, match="name"):
            NumericFeature("")

    def test_contains(self):
        f = NominalFeature("f", ["a"])
        assert "a" in f
        assert "b" not in f

    def test_dict_roundtrip(self):
        for f in (NominalFeature("f", ["x", "y"]), NumericFeature("n")):
            assert Feature.from_dict(f.to_dict()) == f

    def test_unsupported_type(self):
        with pytest.raises(InvalidParameterError, match="Unsupported"):
            Feature.from_dict({"name": "d", "type": "date"})


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------

class TestSignature:
    @pytest.fixture
    def signature(self) -> Signature:
        return Signature([
            NumericFeature("x"),
            NominalFeature("shape", ["round", "square"]),
            NominalFeature("label", ["a", "b"]),
        ])

    def test_class_index_defaults_to_last(self, signature: Signature):
        assert signature.class_index == 2
        assert signature.class_feature.name == "label"
        assert [f.name for f in signature.attribute_features] == ["x", "shape"]
        assert len(signature) == 3

    @pytest.mark.parametrize("class_index", [-1, 3, 10])
    def test_class_index_out_of_range(self, class_index):
        with pytest.raises(InvalidParameterError, match="out of range"):
            Signature([NumericFeature("x"), NumericFeature("y"), NumericFeature("z")], class_index)

    def test_empty_signature_rejected(self):
        with pytest.raises(InvalidParameterError):
            Signature([])

    def test_duplicate_names_rejected(self):
        with pytest.raises(InvalidParameterError, match="unique"):
            Signature([NumericFeature("x"), NumericFeature("x")])

    def test_training_instance_complies(self, signature: Signature):
        assert signature.check_compliance(Instance.of(1.0, "round", "a"), training=True)

    def test_unlabelled_instance_complies(self, signature: Signature):
        assert signature.check_compliance(Instance.of(1.0, "round"), training=False)

    def test_length_depends_on_training_flag(self, signature: Signature):
        assert not signature.check_compliance(Instance.of(1.0, "round"), training=True)
        assert not signature.check_compliance(Instance.of(1.0, "round", "a"), training=False)

    def test_kind_mismatch_rejected(self, signature: Signature):
        assert not signature.check_compliance(Instance.of("1.0", "round", "a"), training=True)
        assert not signature.check_compliance(Instance.of(1.0, 2.0), training=False)

    def test_missing_values_pass(self, signature: Signature):
        assert signature.check_compliance(Instance.of(None, None, None), training=True)
        assert signature.check_compliance(Instance.of(None, "square"), training=False)

    def test_require_compliance_raises(self, signature: Signature):
        with pytest.raises(IncompatibleInstanceError, match="not compatible"):
            signature.require_compliance(Instance.of(1.0), training=False)

    def test_unlabelled_layout_skips_class_feature(self):
        signature = Signature(
            [NominalFeature("label", ["a", "b"]), NumericFeature("x"), NominalFeature("c", ["u"])],
            class_index=0,
        )
        assert signature.check_compliance(Instance.of("a", 1.0, "u"), training=True)
        assert signature.check_compliance(Instance.of(1.0, "u"), training=False)
        assert not signature.check_compliance(Instance.of("u", 1.0), training=False)
        assert signature.attribute_position(2) == 1

    def test_split(self, signature: Signature):
        attributes, class_value = signature.split(Instance.of(1.0, "round", "b"))
        assert attributes == [Value.numeric(1.0), Value.nominal("round")]
        assert class_value == Value.nominal("b")

    def test_make_instance_converts_by_feature_kind(self, signature: Signature):
        instance = signature.make_instance(["2.5", "square", "?"], training=True)
        assert instance.value_at(0) == Value.numeric(2.5)
        assert instance.value_at(1) == Value.nominal("square")
        assert instance.value_at(2).is_missing

    def test_make_instance_wrong_length(self, signature: Signature):
        with pytest.raises(IncompatibleInstanceError, match="Expected 2"):
            signature.make_instance([1.0], training=False)

    def test_make_instance_bad_number(self, signature: Signature):
        with pytest.raises(IncompatibleInstanceError, match="expects a number"):
            signature.make_instance(["abc", "round"], training=False)

    def test_dict_roundtrip(self, signature: Signature):
        restored = Signature.from_dict(signature.to_dict())
        assert restored == signature
        assert restored.class_index == signature.class_index

    def test_str(self, signature: Signature):
        assert "[x(numeric)]" in str(signature)
        assert "[label(nominal)]" in str(signature)


class TestInstance:
    def test_of_infers_kinds(self):
        instance = Instance.of("a", 1, None)
        assert [v.kind for v in instance] == [Kind.NOMINAL, Kind.NUMERIC, Kind.MISSING]
        assert len(instance) == 3

    def test_mutation(self):
        instance = Instance()
        instance.add_value(Value.numeric(1.0))
        instance.set_value_at(0, Value.nominal("x"))
        assert instance.value_at(0) == Value.nominal("x")

    def test_raw(self):
        assert Instance.of("a", 2.0, None).raw() == ["a", 2.0, None]
