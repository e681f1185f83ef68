"""
Verification email templates.

Both builders are pure: the same inputs always give the same body. The
verification URL is inserted exactly as given, never escaped or re-encoded,
so the token it carries survives intact.
"""
import html

BRAND = "Crypto Herald"
VERIFY_SUBJECT = f"Verify your {BRAND} account"


def describe_expiry(hours: int) -> str:
    """24 -> '24 hours', 1 -> '1 hour', 72 -> '3 days'."""
    if hours <= 0:
        raise ValueError(f"expires_in_hours must be positive, got {hours}")
    if hours > 24 and hours % 24 == 0:
        days = hours // 24
        return f"{days} days"
    return "1 hour" if hours == 1 else f"{hours} hours"


def build_verification_email(email: str, verification_url: str, expires_in_hours: int = 24) -> str:
    expiry = describe_expiry(expires_in_hours)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{VERIFY_SUBJECT}</title>
  <style>
    body {{ margin: 0; padding: 0; font-family: 'Inter', -apple-system, 'Segoe UI', Roboto, sans-serif;
           background-color: #000000; color: #FFFFFF; }}
    .container {{ max-width: 600px; margin: 0 auto; }}
    .header {{ padding: 40px 20px; text-align: center; border-bottom: 2px solid #F7931A; }}
    .logo {{ font-size: 28px; font-weight: 800; color: #F7931A; margin: 0; }}
    .content {{ padding: 40px 20px; }}
    .message {{ font-size: 16px; line-height: 1.6; color: rgba(255, 255, 255, 0.8); }}
    .button {{ display: inline-block; padding: 14px 32px; background-color: #F7931A; color: #000000;
              font-weight: 700; text-decoration: none; border-radius: 8px; }}
    .muted {{ font-size: 14px; color: rgba(255, 255, 255, 0.6); }}
    .link {{ color: #F7931A; word-break: break-all; }}
    .footer {{ padding: 30px 20px; text-align: center; border-top: 1px solid rgba(247, 147, 26, 0.2); }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1 class="logo">{BRAND.upper()}</h1>
    </div>
    <div class="content">
      <h2>Verify your email address</h2>
      <p class="message">
        An account was created for <strong>{html.escape(email)}</strong>.
        To finish registration, confirm your email address with the button below.
      </p>
      <p style="text-align: center;">
        <a href="{verification_url}" class="button">Verify Email Address</a>
      </p>
      <p class="muted">This verification link will expire in {expiry}.</p>
      <p class="muted">
        If the button doesn't work, copy and paste this link into your browser:<br>
        <span class="link">{verification_url}</span>
      </p>
      <p class="muted">If you did not create this account, you can ignore this email.</p>
    </div>
    <div class="footer">
      <p class="muted"><strong>{BRAND}</strong></p>
      <p class="muted">This is an automated message. Please do not reply to this email.</p>
    </div>
  </div>
</body>
</html>"""


def build_verification_email_text(email: str, verification_url: str, expires_in_hours: int = 24) -> str:
    expiry = describe_expiry(expires_in_hours)
    rule = "-" * 60
    return "\n".join([
        BRAND.upper(),
        rule,
        "VERIFY YOUR EMAIL ADDRESS",
        "",
        f"An account was created for {email}.",
        "To finish registration, open the link below:",
        "",
        verification_url,
        "",
        f"This verification link will expire in {expiry}.",
        "If you did not create this account, you can ignore this email.",
        rule,
        "This is an automated message. Please do not reply to this email.",
    ])
