"""
Tests for the category/creator diversity pass.
"""

from collections import Counter

from content_service.recommendations import ScoredCandidate, apply_diversity


def _ranked(item_factory, specs):
    """specs: (id, category, creator) tuples, best first."""
    return [
        ScoredCandidate(item=item_factory(item_id, category=category, creator_id=creator), score=100 - index)
        for index, (item_id, category, creator) in enumerate(specs)
    ]


def _ids(candidates):
    return [candidate.item.id for candidate in candidates]


def test_category_cap_applies_in_first_pass(item_factory):
    ranked = _ranked(item_factory, [
        ("c1", "Comedy", "a"), ("c2", "Comedy", "b"), ("c3", "Comedy", "c"),
        ("c4", "Comedy", "d"), ("n1", "News", "e"), ("m1", "Music", "f"),
    ])
    selected = apply_diversity(ranked, 5)
    assert _ids(selected) == ["c1", "c2", "c3", "n1", "m1"]


def test_creator_cap_applies_in_first_pass(item_factory):
    ranked = _ranked(item_factory, [
        ("a1", "A", "same"), ("a2", "B", "same"), ("a3", "C", "same"),
        ("a4", "D", "same"), ("x1", "E", "other"),
    ])
    selected = apply_diversity(ranked, 4)
    assert _ids(selected) == ["a1", "a2", "a3", "x1"]


def test_fill_pass_ignores_caps_when_short(item_factory):
    ranked = _ranked(item_factory, [
        ("c1", "Comedy", "a"), ("c2", "Comedy", "b"), ("c3", "Comedy", "c"),
        ("c4", "Comedy", "d"), ("c5", "Comedy", "e"), ("n1", "News", "f"),
    ])
    selected = apply_diversity(ranked, 6)
    assert _ids(selected) == ["c1", "c2", "c3", "n1", "c4", "c5"]
    assert len(selected) == 6


def test_result_size_is_min_of_limit_and_pool(item_factory):
    ranked = _ranked(item_factory, [("x", "Comedy", "a"), ("y", "Comedy", "a")])
    assert len(apply_diversity(ranked, 10)) == 2
    assert apply_diversity(ranked, 0) == []
    assert apply_diversity([], 5) == []


def test_custom_caps(item_factory):
    ranked = _ranked(item_factory, [
        ("c1", "Comedy", "a"), ("c2", "Comedy", "b"), ("n1", "News", "c"),
    ])
    selected = apply_diversity(ranked, 2, max_per_category=1, max_per_creator=1)
    assert _ids(selected) == ["c1", "n1"]


def test_cap_holds_whenever_pool_allows(item_factory):
    specs = [(f"c{i}", "Comedy", f"u{i}") for i in range(6)] + [(f"o{i}", f"Other{i}", f"v{i}") for i in range(4)]
    selected = apply_diversity(_ranked(item_factory, specs), 7)
    counts = Counter(candidate.item.category for candidate in selected)
    assert counts["Comedy"] == 3
    assert len(selected) == 7
