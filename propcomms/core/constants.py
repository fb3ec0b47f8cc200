"""Application-wide constants.

This module centralizes magic numbers that are used across multiple
modules. For environment-specific configuration, see config.py.
"""

# =============================================================================
# Pagination Defaults
# =============================================================================

# Default page size for thread listings
DEFAULT_PAGE_SIZE: int = 20

# Maximum page size to prevent abuse
MAX_PAGE_SIZE: int = 100

# Default page size for notification inbox
NOTIFICATIONS_PAGE_SIZE: int = 50

# =============================================================================
# Content Limits
# =============================================================================

# Message body upper bound
MESSAGE_BODY_MAX_LENGTH: int = 5000

# Thread subject upper bound
THREAD_SUBJECT_MAX_LENGTH: int = 255

# SMS notifications carry a truncated preview of the message body
SMS_PREVIEW_MAX_LENGTH: int = 100

# Email notifications quote a longer preview
EMAIL_PREVIEW_MAX_LENGTH: int = 200

# Last-message preview in thread listings
LIST_PREVIEW_MAX_LENGTH: int = 100

# Marker appended to truncated previews
PREVIEW_ELLIPSIS: str = "..."

# Error message max length (for truncation)
ERROR_MESSAGE_MAX_LENGTH: int = 500

# =============================================================================
# Caching
# =============================================================================

# Unread in-app notification count cache TTL
UNREAD_COUNT_CACHE_TTL_SECONDS: int = 60  # 1 minute
