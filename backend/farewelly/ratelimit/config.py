from dataclasses import dataclass

from ..core.config import settings


@dataclass(frozen=True)
class BucketPolicy:
    limit: int
    window_s: int = 60


def bucket_policies() -> dict[str, BucketPolicy]:
    return {
        "write": BucketPolicy(limit=30),
        "financial": BucketPolicy(limit=10),
        "relay": BucketPolicy(limit=settings.relay_rate_limit_per_minute),
    }


def get_policy(bucket: str) -> BucketPolicy:
    policies = bucket_policies()
    try:
        return policies[bucket]
    except KeyError:
        raise ValueError(f"Unknown rate-limit bucket: {bucket}") from None
