"""Notification message builders for the email and SMS channels."""

from html import escape

from propcomms.core.config import settings
from propcomms.core.constants import (
    EMAIL_PREVIEW_MAX_LENGTH,
    PREVIEW_ELLIPSIS,
    SMS_PREVIEW_MAX_LENGTH,
)
from propcomms.notifications.services.email_service import EmailMessage

_ACCENT = "#2563EB"
_BG = "#F8FAFC"
_CARD_BG = "#FFFFFF"
_TEXT = "#0F172A"
_TEXT_MUTED = "#64748B"
_BORDER = "#E2E8F0"


def truncate_preview(body: str, max_length: int) -> str:
    """Trim a message body to ``max_length`` characters plus an ellipsis marker."""
    body = body.strip()
    if len(body) <= max_length:
        return body
    return body[:max_length] + PREVIEW_ELLIPSIS


def build_sms_text(body: str) -> str:
    return truncate_preview(body, SMS_PREVIEW_MAX_LENGTH)


def thread_url(thread_id: object) -> str:
    return f"{settings.FRONTEND_URL}/messages/{thread_id}"


def _wrap_html(inner: str) -> str:
    return f"""\
<html>
<body style="margin: 0; padding: 0; background-color: {_BG}; font-family: 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background-color: {_BG}; padding: 32px 0;">
    <tr>
      <td align="center">
        <table width="600" cellpadding="0" cellspacing="0" style="max-width: 600px; width: 100%;">
          <tr>
            <td style="background-color: {_CARD_BG}; border: 1px solid {_BORDER}; border-radius: 12px; padding: 36px 32px;">
              {inner}
            </td>
          </tr>
          <tr>
            <td align="center" style="padding: 20px 0 0 0;">
              <p style="margin: 0; font-size: 12px; color: {_TEXT_MUTED}; line-height: 1.5;">
                You are receiving this because you take part in this conversation.
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def build_new_message_email(
    recipient_name: str,
    recipient_email: str,
    sender_name: str,
    thread_subject: str,
    message_body: str,
    thread_id: object,
) -> EmailMessage:
    preview = truncate_preview(message_body, EMAIL_PREVIEW_MAX_LENGTH)
    url = thread_url(thread_id)

    inner = f"""\
<h2 style="margin: 0 0 20px 0; font-size: 20px; font-weight: 700; color: {_TEXT};">
  New message in &ldquo;{escape(thread_subject)}&rdquo;
</h2>
<p style="margin: 0 0 16px 0; font-size: 15px; color: {_TEXT_MUTED}; line-height: 1.6;">
  Hi {escape(recipient_name)},
</p>
<p style="margin: 0 0 16px 0; font-size: 15px; color: {_TEXT_MUTED}; line-height: 1.6;">
  <strong style="color: {_TEXT};">{escape(sender_name)}</strong> wrote:
</p>
<div style="background-color: {_BG}; border: 1px solid {_BORDER}; border-radius: 8px; padding: 16px 20px; margin: 0 0 24px 0;">
  <p style="margin: 0; font-size: 14px; color: {_TEXT}; line-height: 1.6; white-space: pre-line;">{escape(preview)}</p>
</div>
<table cellpadding="0" cellspacing="0" style="margin: 0 0 8px 0;">
  <tr>
    <td style="border-radius: 8px; background-color: {_ACCENT};">
      <a href="{url}"
         style="display: inline-block; padding: 12px 28px; font-size: 14px; font-weight: 600;
                color: #ffffff; text-decoration: none; border-radius: 8px;">
        Open conversation
      </a>
    </td>
  </tr>
</table>"""

    text_body = f"""\
New message in "{thread_subject}"

Hi {recipient_name},

{sender_name} wrote:

{preview}

Open conversation: {url}"""

    return EmailMessage(
        to=recipient_email,
        subject=f"New message: {thread_subject}",
        body_html=_wrap_html(inner),
        body_text=text_body,
    )
