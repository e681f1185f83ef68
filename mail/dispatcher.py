"""Transactional email dispatcher."""
from datetime import datetime, timezone

from common.logger import get_logger
from common.models import EmailDispatchResult, MailConfig
from mail.transport import EmailMessage

logger = get_logger("mail")


def is_plausible_address(address) -> bool:
    """Shallow check: one '@' with something on both sides, no whitespace."""
    if not isinstance(address, str) or not address.strip():
        return False
    local, sep, domain = address.strip().rpartition("@")
    return bool(sep and local and domain) and not any(ch.isspace() for ch in address.strip())


def dispatch(mail_config: MailConfig, message: EmailMessage, transport) -> EmailDispatchResult:
    """Send *message* through *transport* at most once. Never raises.

    An incomplete config or implausible recipient fails before the transport
    is touched; transport exceptions become ``success=False`` results.
    """
    missing = mail_config.missing_fields()
    if missing:
        logger.error(f"Mail configuration incomplete, not sending: missing {', '.join(missing)}")
        return EmailDispatchResult(
            success=False,
            error=f"Mail configuration incomplete: missing {', '.join(missing)}",
            error_type="configuration",
        )
    if not is_plausible_address(message.to):
        return EmailDispatchResult(
            success=False,
            error=f"Invalid recipient address: {message.to!r}",
            error_type="recipient",
        )

    try:
        transport.send(message)
    except Exception as e:
        logger.error(f"Email to {message.to} failed: {e}")
        return EmailDispatchResult(success=False, error=str(e) or e.__class__.__name__,
                                   error_type="transport")

    sent_at = datetime.now(timezone.utc)
    logger.info(f"Email '{message.subject}' sent to {message.to}")
    return EmailDispatchResult(success=True, timestamp=sent_at)
