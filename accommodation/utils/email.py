import os
import logging
import resend

logger = logging.getLogger(__name__)

DEFAULT_SENDER = 'Accommodation Finder <noreply@accommodation-finder.app>'


def _wrap(title, body_html):
    return f"""
    <div style="font-family: Arial, sans-serif; padding: 20px; color: #333;">
        <div style="background-color: #2196F3; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0;">
            <h2 style="margin: 0; font-size: 24px;">{title}</h2>
        </div>
        <div style="background-color: #f9f9f9; padding: 30px; border-radius: 0 0 8px 8px;">
            {body_html}
            <div style="text-align: center; margin-top: 30px; color: #666; font-size: 12px;">
                <p>Accommodation Finder</p>
            </div>
        </div>
    </div>
    """


def send_email(to_email, subject, html_content):
    """Send an email through Resend; returns (sent, provider id or error)"""
    resend.api_key = os.environ.get('RESEND_API_KEY')
    if not resend.api_key:
        logger.warning('RESEND_API_KEY is not set, email to %s skipped', to_email)
        return False, 'email not configured'

    params = {
        "from": os.environ.get('MAIL_FROM', DEFAULT_SENDER),
        "to": [to_email],
        "subject": subject,
        "html": html_content
    }
    try:
        email = resend.Emails.send(params)
    except Exception as e:
        logger.error('Failed to send email to %s: %s', to_email, e)
        return False, str(e)
    return True, email.get('id') if isinstance(email, dict) else None


def send_welcome_email(user):
    frontend_url = os.environ.get('FRONTEND_URL', 'http://localhost:5173')
    body = f"""
        <p>Hi {user.name},</p>
        <p>Your {user.role.value} account is ready. Start exploring at
        <a href="{frontend_url}">{frontend_url}</a>.</p>
    """
    return send_email(user.email, 'Welcome to Accommodation Finder', _wrap('Welcome!', body))


def send_consultation_email(user, consultation, expert_name):
    body = f"""
        <p>Hi {user.name},</p>
        <p>Your consultation with <b>{expert_name}</b> on {consultation.consultation_date.isoformat()}
        from {consultation.window} is now <b>{consultation.status}</b>.</p>
    """
    return send_email(user.email, 'Consultation update', _wrap('Consultation update', body))


def send_support_email(to_email, subject, message):
    return send_email(to_email, subject, _wrap(subject, f'<p>{message}</p>'))
