# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Camera snapshot capture modules."""

from creeper.capture.http_snapshot import FetchResult, RetryPolicy, SourceFetcher

__all__ = ["FetchResult", "RetryPolicy", "SourceFetcher"]
