"""
모델 패키지
"""

from .post import Post, PostAttachment
from .site_settings import HomeSettings, OfferAccessSettings
from .admin import AdminUser, AdminOTP

__all__ = [
    "Post",
    "PostAttachment",
    "HomeSettings",
    "OfferAccessSettings",
    "AdminUser",
    "AdminOTP",
]
