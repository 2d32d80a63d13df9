"""Mutual matching, match quality and sort orders for the marketplace.

Skills are identified by name. Names are compared after stripping
surrounding whitespace and case-folding, so "Web Development" and
" web development" are the same skill.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from tradetide.constants.constants import MarketplaceSort, SkillMatchType


def skill_key(name: str) -> str:
    return name.strip().casefold()


def skill_set(names: Optional[Iterable[str]]) -> Set[str]:
    return {skill_key(n) for n in (names or []) if n and n.strip()}


def clean_skill_list(names: Optional[Iterable[str]]) -> List[str]:
    """Trim names and drop blanks and duplicates, keeping first spelling and order."""
    seen = set()
    cleaned = []
    for name in names or []:
        stripped = name.strip()
        if not stripped or skill_key(stripped) in seen:
            continue
        seen.add(skill_key(stripped))
        cleaned.append(stripped)
    return cleaned


def _offered(user) -> Set[str]:
    return skill_set(user.skills_offered)


def _wanted(user) -> Set[str]:
    return skill_set(user.skills_wanted)


def is_mutual_match(me, other) -> bool:
    """True when I offer something they want and they offer something I want."""
    you_offer_they_want = bool(_offered(me) & _wanted(other))
    they_offer_you_want = bool(_offered(other) & _wanted(me))
    return you_offer_they_want and they_offer_you_want


def match_quality(me, other) -> float:
    """
    Percentage of offered skills that satisfy the other side's wants.

    (|mine ∩ their wants| + |theirs ∩ my wants|) / max(1, |mine| + |theirs|) * 100
    """
    my_offered, their_offered = _offered(me), _offered(other)
    overlaps = len(my_offered & _wanted(other)) + len(their_offered & _wanted(me))
    divisor = max(1, len(my_offered) + len(their_offered))
    score = overlaps / divisor * 100
    return round(min(100.0, max(0.0, score)), 1)


def has_skill(user, skill: str, kind: SkillMatchType = SkillMatchType.any) -> bool:
    key = skill_key(skill)
    if kind == SkillMatchType.offered:
        return key in _offered(user)
    if kind == SkillMatchType.wanted:
        return key in _wanted(user)
    return key in _offered(user) or key in _wanted(user)


def filter_by_skill(users: Iterable, skill: Optional[str], kind: SkillMatchType = SkillMatchType.any) -> List:
    if not skill or not skill.strip():
        return list(users)
    return [user for user in users if has_skill(user, skill, kind)]


def filter_by_any_skill(users: Iterable, offered: Optional[Iterable[str]] = None,
                        wanted: Optional[Iterable[str]] = None) -> List:
    """Set-membership filter: keep users offering any of `offered` and wanting any of `wanted`."""
    offered_keys, wanted_keys = skill_set(offered), skill_set(wanted)
    result = []
    for user in users:
        if offered_keys and not (_offered(user) & offered_keys):
            continue
        if wanted_keys and not (_wanted(user) & wanted_keys):
            continue
        result.append(user)
    return result


def mutual_matches(me, users: Iterable) -> List:
    """Users that mutually match `me`, best match first."""
    matches = [user for user in users if is_mutual_match(me, user)]
    return sorted(matches, key=lambda user: match_quality(me, user), reverse=True)


def _newest_key(entry: Dict[str, Any]) -> float:
    created: Optional[datetime] = entry.get("created_at")
    return -created.timestamp() if created else float("inf")


_SORT_KEYS: Dict[MarketplaceSort, Callable[[Dict[str, Any]], Any]] = {
    # unrated users go last
    MarketplaceSort.rating: lambda e: (e.get("rating") is None, -(e.get("rating") or 0)),
    MarketplaceSort.match_quality: lambda e: -e.get("match_quality", 0),
    MarketplaceSort.newest: _newest_key,
    MarketplaceSort.alphabetical: lambda e: (e.get("username") or "").casefold(),
}


def sort_users(entries: List[Dict[str, Any]], sort: Optional[MarketplaceSort]) -> List[Dict[str, Any]]:
    """Stable sort of annotated marketplace entries."""
    if sort is None:
        return list(entries)
    return sorted(entries, key=_SORT_KEYS[sort])
