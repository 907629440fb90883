import os
import logging
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

logger = logging.getLogger(__name__)


def _address(number):
    return number if number.startswith('whatsapp:') else f'whatsapp:{number}'


def send_whatsapp(phone_number, body):
    """
    Send a WhatsApp message via Twilio.
    Returns (sent, message sid or error text).
    """
    account_sid = os.environ.get('TWILIO_ACCOUNT_SID')
    auth_token = os.environ.get('TWILIO_AUTH_TOKEN')
    from_number = os.environ.get('TWILIO_WHATSAPP_NUMBER')

    if not all([account_sid, auth_token, from_number]):
        logger.warning("Twilio credentials missing. WhatsApp message to %s skipped.", phone_number)
        return False, 'whatsapp not configured'

    try:
        client = Client(account_sid, auth_token)
        message = client.messages.create(
            body=body,
            from_=_address(from_number),
            to=_address(phone_number)
        )
        return True, message.sid
    except TwilioRestException as e:
        logger.error("Twilio WhatsApp error for %s: %s", phone_number, e.msg)
        return False, str(e.msg)
    except Exception as e:
        # Transport failures (DNS, timeouts, TLS) surface outside TwilioRestException
        logger.error("WhatsApp delivery to %s failed: %s", phone_number, e)
        return False, str(e)
