"""Office 365 mail transport via Microsoft Graph (client-credentials flow)."""
import threading
import time
from dataclasses import dataclass

import requests

from common.logger import get_logger
from common.models import MailConfig
from config.settings import MAIL_TIMEOUT_SECONDS

TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
SEND_MAIL_URL = "https://graph.microsoft.com/v1.0/users/{sender}/sendMail"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
TOKEN_REFRESH_MARGIN = 300  # seconds before expiry


class MailTransportError(Exception):
    pass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    content_type: str = "HTML"


class GraphMailTransport:
    """One POST to Graph per send; no retries. Token is cached per instance.

    Sends run on worker threads, so the token refresh is serialised by a lock.
    """

    def __init__(self, config: MailConfig, timeout: float = MAIL_TIMEOUT_SECONDS):
        self.config = config
        self.timeout = timeout
        self.logger = get_logger(self.__class__.__name__)
        self._token: str | None = None
        self._token_expiry = 0.0
        self._token_lock = threading.Lock()

    def _access_token(self) -> str:
        with self._token_lock:
            return self._refresh_token()

    def _refresh_token(self) -> str:
        now = time.time()
        if self._token and self._token_expiry > now + TOKEN_REFRESH_MARGIN:
            return self._token
        data = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "scope": GRAPH_SCOPE,
            "grant_type": "client_credentials",
        }
        try:
            resp = requests.post(TOKEN_URL.format(tenant=self.config.tenant_id),
                                 data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise MailTransportError(f"Azure AD authentication failed: {e}") from e
        if not resp.ok:
            raise MailTransportError(f"Azure AD authentication failed: {resp.status_code} {resp.text[:200]}")
        try:
            payload = resp.json()
            self._token = payload["access_token"]
            self._token_expiry = now + float(payload.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as e:
            raise MailTransportError("Azure AD returned an unusable token response") from e
        return self._token

    def send(self, message: EmailMessage) -> None:
        token = self._access_token()
        body = {
            "message": {
                "subject": message.subject,
                "body": {"contentType": message.content_type, "content": message.body},
                "toRecipients": [{"emailAddress": {"address": message.to}}],
            },
            "saveToSentItems": True,
        }
        try:
            resp = requests.post(
                SEND_MAIL_URL.format(sender=self.config.sender_email),
                json=body,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise MailTransportError(f"Graph sendMail request failed: {e}") from e
        if not resp.ok:
            raise MailTransportError(f"Failed to send email via Graph API: {resp.status_code} {resp.text[:200]}")
        self.logger.info(f"Graph accepted message to {message.to} ({resp.status_code})")
