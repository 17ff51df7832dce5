from gateway.limiter.rate_limiter import RateDecision, RateLimiter

__all__ = [
    "RateDecision",
    "RateLimiter",
]
