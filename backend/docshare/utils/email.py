import logging
import secrets
from datetime import datetime, timedelta

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from docshare.core.config import settings

logger = logging.getLogger("docshare")

async def send_email(to_email: str, subject: str, body: str) -> bool:
    """
    Send an email through the SendGrid API.
    """
    try:
        message = Mail(
            from_email=(settings.EMAIL_FROM, settings.EMAIL_FROM_NAME),
            to_emails=to_email,
            subject=subject,
            html_content=body
        )
        
        sg = SendGridAPIClient(settings.SENDGRID_API_KEY)
        response = sg.send(message)
        
        # SendGrid answers 202 Accepted
        if response.status_code == 202:
            return True
        logger.error("SendGrid API error: %s, %s", response.status_code, response.body)
        return False
            
    except Exception as e:
        logger.error("Sending email through SendGrid failed: %s", e)
        return False

def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)

# in-memory store for password reset tokens
reset_tokens = {}

def prune_reset_tokens(now=None):
    now = now or datetime.now()
    for key in [k for k, record in reset_tokens.items() if now > record['expires_at']]:
        del reset_tokens[key]

def store_reset_token(key: str, token: str):
    prune_reset_tokens()
    expires_at = datetime.now() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_MINUTES)
    reset_tokens[key] = {
        'token': token,
        'expires_at': expires_at,
        'attempts': 0
    }

def verify_reset_token(key: str, token: str) -> bool:
    if key not in reset_tokens:
        return False
        
    record = reset_tokens[key]
    
    if datetime.now() > record['expires_at']:
        del reset_tokens[key]
        return False
        
    if secrets.compare_digest(record['token'], token):
        del reset_tokens[key]
        return True
        
    record['attempts'] += 1
    if record['attempts'] >= 3:
        del reset_tokens[key]
        
    return False
