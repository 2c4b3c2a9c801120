"""
Daily digest drafting

Builds the plain-text morning email: today's top trends followed by the
drafts generated in the last 24 hours, ready to review.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from config.settings import settings
from models.draft import Draft
from utils.logger import get_logger

logger = get_logger(__name__)

MAX_DIGEST_TRENDS = 5
MAX_DIGEST_DRAFTS = 9
PREVIEW_CHARS = 280
PLATFORM_LABELS = {'x': 'X', 'linkedin': 'LinkedIn', 'instagram': 'Instagram'}


def _preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    text = " ".join((text or "").split())
    return text if len(text) <= limit else text[:limit - 3].rstrip() + "..."


class DigestDrafter:
    """Formats drafts and trends into the digest email"""

    def __init__(self, product_name: Optional[str] = None):
        self.product_name = product_name or settings.PRODUCT_NAME

    def build_subject(self, digest_date: date, draft_count: int) -> str:
        noun = "draft" if draft_count == 1 else "drafts"
        return f"{self.product_name} daily digest - {digest_date.isoformat()} ({draft_count} {noun} ready)"

    def build_body(self, drafts: Sequence[Draft], trends: Sequence[Dict[str, Any]], digest_date: date) -> str:
        lines: List[str] = [
            f"Good morning! Here is your {self.product_name} digest for {digest_date.strftime('%A, %B %d, %Y')}.",
            "",
        ]

        lines.append("TOP TRENDS")
        lines.append("-" * 40)
        if trends:
            for idx, trend in enumerate(trends[:MAX_DIGEST_TRENDS], 1):
                score = float(trend.get('score') or 0)
                lines.append(f"{idx}. {trend.get('topic')} (momentum {score:.0f})")
                if trend.get('description'):
                    lines.append(f"   {_preview(trend['description'], 160)}")
        else:
            lines.append("No trends detected yet. Add more sources to widen the net.")
        lines.append("")

        lines.append("DRAFTS READY FOR REVIEW")
        lines.append("-" * 40)
        if drafts:
            for idx, draft in enumerate(drafts[:MAX_DIGEST_DRAFTS], 1):
                platform = PLATFORM_LABELS.get(draft.platform, draft.platform)
                topic = f" on '{draft.original_topic}'" if draft.original_topic else ""
                thread = f" ({len(draft.threads)}-part thread)" if draft.is_thread else ""
                lines.append(f"{idx}. [{platform}]{topic}{thread}")
                lines.append(f"   {_preview(draft.content)}")
                lines.append("")
            if len(drafts) > MAX_DIGEST_DRAFTS:
                lines.append(f"...and {len(drafts) - MAX_DIGEST_DRAFTS} more in your dashboard.")
                lines.append("")
        else:
            lines.append("No new drafts in the last 24 hours.")
            lines.append("")

        lines.append("Review, edit and accept your drafts in the dashboard.")
        return "\n".join(lines).rstrip() + "\n"

    def draft_digest(self, drafts: Sequence[Draft], trends: Sequence[Dict[str, Any]],
                     digest_date: Optional[date] = None) -> Dict[str, Any]:
        """
        Build the digest email

        Returns:
            {'subject', 'body', 'draft_count', 'trend_count', 'word_count'}
        """
        digest_date = digest_date or date.today()
        body = self.build_body(drafts, trends, digest_date)
        logger.info(f"Digest drafted with {len(drafts)} drafts and {min(len(trends), MAX_DIGEST_TRENDS)} trends")
        return {
            "subject": self.build_subject(digest_date, len(drafts)),
            "body": body,
            "draft_count": len(drafts),
            "trend_count": min(len(trends), MAX_DIGEST_TRENDS),
            "word_count": len(body.split()),
        }
