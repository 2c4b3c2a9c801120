"""
Layer 4: Delivery
- Per-user delivery settings (timezone, hour, email digest)
- Digest drafter (plain-text daily email of drafts and trends)
- Email sender (SMTP/Gmail)
- deliver_daily_digest() lives in layer_4_delivery.deliver_digest
"""
from .user_settings import UserSettingsStorage
from .digest_drafter import DigestDrafter
from .email_sender import EmailSender

__all__ = [
    'UserSettingsStorage',
    'DigestDrafter',
    'EmailSender',
]
