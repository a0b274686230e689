# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Four-camera grid snapshot service.

Fetches four still-image camera feeds, composites them into a 2x2 grid,
applies grayscale, tint and watermark, and publishes the result atomically
for an HTTP client.
"""

__version__ = "0.1.0"
