"""Pure marketplace and review helpers."""

from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

from tradetide.constants.constants import MarketplaceSort, SessionStatus, SkillMatchType
from tradetide.models.review import Review
from tradetide.models.session import SkillSession
from tradetide.utils.marketplace.matching import (
    clean_skill_list,
    filter_by_any_skill,
    filter_by_skill,
    is_mutual_match,
    match_quality,
    mutual_matches,
    sort_users,
)
from tradetide.utils.reviews.stats import pending_review_sessions, review_stats, summarize_reviews


def person(name, offered, wanted):
    return SimpleNamespace(username=name, skills_offered=offered, skills_wanted=wanted)


X = person("x", ["A"], ["B"])
Y = person("y", ["B"], ["A"])
Z = person("z", ["C"], ["D"])


def test_mutual_match_requires_both_directions():
    assert is_mutual_match(X, Y)
    assert is_mutual_match(Y, X)
    assert not is_mutual_match(X, Z)

    one_sided = person("w", ["B"], ["C"])
    assert not is_mutual_match(X, one_sided)


def test_skill_names_compare_case_insensitively():
    shouty = person("y", [" b "], ["a"])
    assert is_mutual_match(X, shouty)


def test_match_quality_bounds():
    assert match_quality(X, Z) == 0.0
    assert match_quality(X, Y) == 100.0
    assert match_quality(person("n", [], []), person("m", [], [])) == 0.0


def test_match_quality_partial_overlap():
    broad = person("x", ["A", "C"], ["B"])
    assert match_quality(broad, Y) == 66.7


def test_mutual_matches_sorted_by_quality():
    partial = person("p", ["B", "E", "F"], ["A"])
    assert [u.username for u in mutual_matches(X, [Z, partial, Y])] == ["y", "p"]


def test_filter_by_skill_kinds():
    users = [X, Y, Z]
    assert filter_by_skill(users, "a", SkillMatchType.offered) == [X]
    assert filter_by_skill(users, "A", SkillMatchType.wanted) == [Y]
    assert filter_by_skill(users, "A", SkillMatchType.any) == [X, Y]
    assert filter_by_skill(users, None) == users


def test_filter_by_any_skill_is_set_membership():
    users = [X, Y, Z]
    assert filter_by_any_skill(users, offered=["A", "C"]) == [X, Z]
    assert filter_by_any_skill(users, offered=["A", "C"], wanted=["B"]) == [X]
    assert filter_by_any_skill(users) == users


def test_clean_skill_list_trims_and_dedupes():
    assert clean_skill_list([" Yoga", "yoga", "", "Web Development ", "  "]) == ["Yoga", "Web Development"]


def test_sort_users_orders():
    entries = [
        {"username": "bob", "rating": None, "match_quality": 50.0, "created_at": datetime(2024, 1, 2)},
        {"username": "Alice", "rating": 4.5, "match_quality": 10.0, "created_at": datetime(2024, 1, 1)},
        {"username": "carol", "rating": 5.0, "match_quality": 90.0, "created_at": datetime(2024, 1, 3)},
    ]
    names = lambda sort: [e["username"] for e in sort_users(entries, sort)]

    assert names(MarketplaceSort.rating) == ["carol", "Alice", "bob"]
    assert names(MarketplaceSort.match_quality) == ["carol", "bob", "Alice"]
    assert names(MarketplaceSort.newest) == ["carol", "bob", "Alice"]
    assert names(MarketplaceSort.alphabetical) == ["Alice", "bob", "carol"]
    assert names(None) == ["bob", "Alice", "carol"]


def test_review_stats_and_summary():
    reviews = [
        Review(reviewer_id="u2", reviewee_id="u1", session_id="s1", rating=4),
        Review(reviewer_id="u3", reviewee_id="u1", session_id="s2", rating=5),
        Review(reviewer_id="u1", reviewee_id="u2", session_id="s1", rating=3),
    ]
    assert review_stats(reviews, "u1") == {"average_rating": 4.5, "count": 2}
    assert review_stats(reviews, "nobody") == {"average_rating": None, "count": 0}
    assert summarize_reviews(reviews, "u1") == {"total_received": 2, "average_rating": 4.5, "total_given": 1}


def test_pending_review_sessions():
    done = SkillSession(session_id="s1", scheduled_by="u1", participant_id="u2", status=SessionStatus.completed)
    reviewed = SkillSession(session_id="s2", scheduled_by="u2", participant_id="u1", status=SessionStatus.completed)
    open_session = SkillSession(session_id="s3", scheduled_by="u1", participant_id="u2", status=SessionStatus.accepted)
    elsewhere = SkillSession(session_id="s4", scheduled_by="u3", participant_id="u2", status=SessionStatus.completed)
    reviews = [Review(reviewer_id="u1", reviewee_id="u2", session_id="s2", rating=5)]

    pending = pending_review_sessions([done, reviewed, open_session, elsewhere], reviews, "u1")
    assert [s.session_id for s in pending] == ["s1"]
