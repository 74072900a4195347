# utils/email.py
"""
Transactional email over the Brevo HTTP API.

Transports return a SendResult instead of raising, so callers decide what a
failed send means for them.
"""
import logging
import re
from email.utils import parseaddr

import requests

from config import BREVO_API_KEY, BREVO_API_URL
from schemas.email import EmailMessage, SendResult

logger = logging.getLogger(__name__)


def html_to_text(html: str) -> str:
     """Rough plain-text rendering of an HTML body, used when no text part is given."""
     text = re.sub(r"<style[\s\S]*?</style>", "", html, flags=re.IGNORECASE)
     text = re.sub(r"<script[\s\S]*?</script>", "", text, flags=re.IGNORECASE)
     text = re.sub(r"<br\s*/?>\s*", "\n", text, flags=re.IGNORECASE)
     text = re.sub(r"</(p|div|h[1-6]|li|tr)>", "\n", text, flags=re.IGNORECASE)
     text = re.sub(r"<li>", " - ", text, flags=re.IGNORECASE)
     text = re.sub(r"<[^>]+>", "", text)
     for entity, char in (("&nbsp;", " "), ("&lt;", "<"), ("&gt;", ">"), ("&quot;", '"'), ("&#39;", "'"), ("&amp;", "&")):
          text = text.replace(entity, char)
     text = re.sub(r"\n{3,}", "\n\n", text)
     return text.strip()


def _address(value: str) -> dict:
     name, email = parseaddr(value)
     entry = {"email": email or value}
     if name:
          entry["name"] = name
     return entry


class EmailTransport:
     """Interface for anything that can deliver an EmailMessage."""

     def send(self, message: EmailMessage) -> SendResult:
          raise NotImplementedError


class BrevoTransport(EmailTransport):
     def __init__(self, api_key: str = BREVO_API_KEY, api_url: str = BREVO_API_URL, timeout: int = 10):
          self.api_key = api_key
          self.api_url = api_url
          self.timeout = timeout

     def build_payload(self, message: EmailMessage) -> dict:
          payload = {
               "sender": _address(message.from_address),
               "to": [_address(addr) for addr in message.to],
               "subject": message.subject,
               "textContent": message.text if message.text else html_to_text(message.html or ""),
          }
          if message.html:
               payload["htmlContent"] = message.html

          attachments = []
          for att in message.attachments:
               if att.url:
                    attachments.append({"name": att.filename, "url": att.url})
               elif att.content_base64:
                    attachments.append({"name": att.filename, "content": att.content_base64})
               else:
                    logger.warning("Dropping attachment %s: no content or url", att.filename)
          if attachments:
               payload["attachment"] = attachments
          return payload

     def send(self, message: EmailMessage) -> SendResult:
          if not self.api_key:
               return SendResult(error="BREVO_API_KEY is not set")

          try:
               response = requests.post(
                    self.api_url,
                    headers={
                         "api-key": self.api_key,
                         "Content-Type": "application/json",
                         "Accept": "application/json",
                    },
                    json=self.build_payload(message),
                    timeout=self.timeout,
               )
          except requests.RequestException as exc:
               logger.error("Brevo request failed: %s", exc)
               return SendResult(error=f"Email transport unreachable: {exc}")

          if response.status_code not in (200, 201, 202):
               logger.error("Brevo rejected email to %s: %s %s", message.to, response.status_code, response.text)
               return SendResult(error=f"Brevo error {response.status_code}: {response.text}")

          try:
               message_id = response.json().get("messageId")
          except ValueError:
               message_id = None
          logger.info("Email %s sent to %s", message_id, ", ".join(message.to))
          return SendResult(id=message_id)
