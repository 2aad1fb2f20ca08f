import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


class Mailer:
    """Envoi d'e-mails transactionnels via l'API REST de Resend."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        sender: str,
        app_url: str,
        api_url: str = "https://api.resend.com",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self.app_url = app_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, *, to: str, subject: str, html: str) -> None:
        if not self.configured:
            raise EmailDeliveryError("Email service is not configured")
        try:
            with httpx.Client(transport=self._transport, timeout=10) as client:
                resp = client.post(
                    f"{self.api_url}/emails",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Email request failed: {e}") from e
        if resp.is_error:
            raise EmailDeliveryError(f"Email provider returned {resp.status_code}: {resp.text}")
        logger.info("Email '%s' sent", subject)

    def send_password_reset_email(self, email: str, token: str) -> None:
        reset_url = f"{self.app_url}/reset-password?token={token}"
        html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h1 style="color: #333; text-align: center;">Reset Your Password</h1>
          <p style="color: #666;">You requested to reset your password. Click the link below to reset it:</p>
          <p style="text-align: center; margin: 30px 0;"><a href="{reset_url}">Reset Password</a></p>
          <p style="color: #666; word-break: break-all;">{reset_url}</p>
          <p style="color: #666;">This link will expire in 24 hours.</p>
          <p style="color: #666;">If you didn't request this, please ignore this email.</p>
        </div>
        """
        self.send(to=email, subject="Reset Your Password", html=html)

    def send_verification_email(self, email: str, name: Optional[str], otp: str, *, ttl_minutes: int = 10) -> None:
        html = f"""
        <h1>Welcome to BlazeHub!</h1>
        <p>Hi {name or "there"},</p>
        <p>Please use the following code to verify your email:</p>
        <h2 style="font-size: 24px; letter-spacing: 2px; text-align: center; padding: 10px; background: #f4f4f4; border-radius: 4px;">{otp}</h2>
        <p>This code will expire in {ttl_minutes} minutes.</p>
        """
        self.send(to=email, subject="Verify your email", html=html)
