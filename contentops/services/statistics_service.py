"""
Post statistics for the dashboard

Pure aggregation over social media posts: status buckets and per-platform
counts within an optional, inclusive creation-date window.
"""
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional

from contentops.models import PostStatus, SocialMediaPost, Statistics, ensure_utc

STATUS_BUCKETS = {
    PostStatus.APPROVED: "approved",
    PostStatus.POSTED: "posted",
    PostStatus.REJECTED: "rejected",
    PostStatus.REVIEW: "review",
    PostStatus.SCHEDULED: "scheduled",
}


def filter_by_created_date(
    posts: Iterable[SocialMediaPost],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[SocialMediaPost]:
    """Posts whose createdDate falls within [start, end]; either bound may be omitted"""
    start = ensure_utc(start) if start is not None else None
    end = ensure_utc(end) if end is not None else None

    return [
        post for post in posts
        if (start is None or post.created_date >= start)
        and (end is None or post.created_date <= end)
    ]


def compute_statistics(
    posts: Iterable[SocialMediaPost],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> Statistics:
    """
    Aggregate post counts by status and platform.

    Args:
        posts: Posts to aggregate
        start: Inclusive lower bound on createdDate (naive values are UTC)
        end: Inclusive upper bound on createdDate (naive values are UTC)

    Returns:
        Statistics with one status bucket per post and one platform increment
        per post per platform. A window with start after end yields zeros.
    """
    filtered = filter_by_created_date(posts, start, end)

    status_counts = Counter(STATUS_BUCKETS[post.status] for post in filtered)
    platform_counts = Counter(
        platform.value
        for post in filtered
        for platform in post.platforms
    )

    return Statistics(
        platform_counts=dict(platform_counts),
        **{bucket: status_counts.get(bucket, 0) for bucket in STATUS_BUCKETS.values()}
    )
