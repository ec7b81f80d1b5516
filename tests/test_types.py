import pytest

from polyinside.types import Classification, OutcomeKind, TraversalOutcome


def test_parity_of_definite_outcomes():
    assert TraversalOutcome.definite(0).side is Classification.OUTSIDE
    assert TraversalOutcome.definite(1).side is Classification.INSIDE
    assert TraversalOutcome.definite(2).side is Classification.OUTSIDE
    assert TraversalOutcome.definite(7).classification() is Classification.INSIDE
    assert TraversalOutcome.definite(3).crossings == 3


def test_boundary_and_indeterminate():
    b = TraversalOutcome.boundary()
    assert b.kind is OutcomeKind.BOUNDARY
    assert b.classification() is Classification.ON_BOUNDARY
    assert not b.is_indeterminate

    i = TraversalOutcome.indeterminate()
    assert i.is_indeterminate
    assert i.side is None
    with pytest.raises(ValueError):
        i.classification()


def test_side_must_match_kind():
    with pytest.raises(ValueError):
        TraversalOutcome(OutcomeKind.DEFINITE)
    with pytest.raises(ValueError):
        TraversalOutcome(OutcomeKind.DEFINITE, Classification.ON_BOUNDARY)
    with pytest.raises(ValueError):
        TraversalOutcome(OutcomeKind.BOUNDARY, Classification.INSIDE)


def test_classification_str():
    assert str(Classification.INSIDE) == "inside"
    assert str(Classification.ON_BOUNDARY) == "on_boundary"
    assert [str(c) for c in Classification] == [
        "inside", "outside", "on_boundary", "inconclusive"]
