from typing import Dict, Iterable, List, Optional


def review_stats(reviews: Iterable, user_id: str) -> Dict[str, Optional[float]]:
    """Average rating and count of reviews received by a user."""
    ratings = [r.rating for r in reviews if r.reviewee_id == user_id]
    count = len(ratings)
    average = round(sum(ratings) / count, 2) if count else None
    return {"average_rating": average, "count": count}


def ratings_by_user(reviews: Iterable) -> Dict[str, Dict[str, Optional[float]]]:
    """review_stats for every reviewee in one pass."""
    grouped: Dict[str, List[int]] = {}
    for review in reviews:
        grouped.setdefault(review.reviewee_id, []).append(review.rating)
    return {
        user_id: {"average_rating": round(sum(r) / len(r), 2), "count": len(r)}
        for user_id, r in grouped.items()
    }


def summarize_reviews(reviews: Iterable, user_id: str) -> Dict[str, Optional[float]]:
    reviews = list(reviews)
    received = review_stats(reviews, user_id)
    return {
        "total_received": received["count"],
        "average_rating": received["average_rating"],
        "total_given": sum(1 for r in reviews if r.reviewer_id == user_id),
    }


def pending_review_sessions(sessions: Iterable, reviews: Iterable, user_id: str) -> List:
    """Completed sessions the user took part in but has not reviewed yet."""
    reviewed = {r.session_id for r in reviews if r.reviewer_id == user_id}
    return [
        s for s in sessions
        if s.involves(user_id)
        and getattr(s.status, "value", s.status) == "completed"
        and s.session_id not in reviewed
    ]
