"""
Email sending via SMTP
Supports Gmail and other SMTP servers
"""
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from datetime import datetime
from typing import Any, Dict, Optional

from config.settings import settings
from utils.logger import get_logger

logger = get_logger(__name__)


class EmailSender:
    """Send the digest email via SMTP"""

    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT  # 587 for TLS, 465 for SSL
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD  # Gmail needs an App Password
        self.from_email = settings.FROM_EMAIL or self.smtp_username
        self.to_email = settings.TO_EMAIL
        self.use_tls = settings.SMTP_USE_TLS

        if self.smtp_server == "smtp.gmail.com" and self.smtp_username and not self.smtp_password:
            logger.warning("Gmail requires an App Password (not your regular password).")

    def _failure(self, error_msg: str) -> Dict[str, Any]:
        return {"success": False, "error": error_msg, "timestamp": datetime.now().isoformat()}

    def send_email(self, subject: str, body: str,
                   to_email: Optional[str] = None,
                   from_email: Optional[str] = None) -> Dict[str, Any]:
        """
        Send a plain-text email

        Args:
            subject: Email subject
            body: Email body (plain text)
            to_email: Recipient (falls back to TO_EMAIL)
            from_email: Sender (falls back to FROM_EMAIL / SMTP_USERNAME)

        Returns:
            Dictionary with send status and metadata
        """
        to_email = to_email or self.to_email
        from_email = from_email or self.from_email

        if not to_email:
            logger.error("No recipient email configured")
            return self._failure("No recipient email configured")

        if not self.smtp_username or not self.smtp_password:
            logger.error("SMTP credentials not configured")
            return self._failure("SMTP credentials not configured")

        try:
            logger.info(f"Sending email to {to_email}")

            msg = MIMEMultipart()
            msg['From'] = from_email
            msg['To'] = to_email
            msg['Subject'] = subject
            msg.attach(MIMEText(body, 'plain', 'utf-8'))

            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email sent successfully to {to_email}")
            return {
                "success": True,
                "to": to_email,
                "from": from_email,
                "subject": subject,
                "timestamp": datetime.now().isoformat(),
                "word_count": len(body.split()),
            }

        except smtplib.SMTPAuthenticationError as e:
            error_msg = f"SMTP authentication failed: {e}"
            logger.error(error_msg)
            if self.smtp_server == "smtp.gmail.com":
                logger.error("Gmail authentication failed. Use a 16-character App Password in SMTP_PASSWORD "
                             "with 2-Step Verification enabled.")
            return self._failure(error_msg)
        except smtplib.SMTPException as e:
            error_msg = f"SMTP error: {e}"
            logger.error(error_msg)
            return self._failure(error_msg)
        except OSError as e:
            error_msg = f"Could not reach SMTP server: {e}"
            logger.error(error_msg, exc_info=True)
            return self._failure(error_msg)

    def log_send_status(self, digest_key: str, result: Dict[str, Any]):
        """Log the send result for traceability"""
        if result.get("success"):
            logger.info(f"Digest {digest_key} sent:")
            logger.info(f"  To: {result.get('to')}")
            logger.info(f"  Subject: {result.get('subject')}")
            logger.info(f"  Timestamp: {result.get('timestamp')}")
            logger.info(f"  Word count: {result.get('word_count')}")
        else:
            logger.error(f"Digest {digest_key} send failed: {result.get('error')}")
