import logging
import re

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from .models import Notification

logger = logging.getLogger(__name__)

PHONE_NUMBER_PATTERN = re.compile(r'^\+\d{9,15}$')


def send_notification(user, subject, email_message, sms_message):
    """
    Deliver a notification to a user by email and SMS, where enabled.

    Args:
        user: User object to send notification to
        subject: Email subject
        email_message: Email message content
        sms_message: SMS message content
    """
    if settings.NOTIFICATIONS_EMAIL_ENABLED and user.email:
        send_mail(
            subject=subject,
            message=email_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
            fail_silently=False,
        )
        logger.info(f"Email notification sent to user {user.id}")

    if settings.NOTIFICATIONS_SMS_ENABLED and user.phone_number:
        if not PHONE_NUMBER_PATTERN.match(user.phone_number):
            logger.warning(f"Invalid phone number format for user {user.id}: {user.phone_number}")
            return
        try:
            twilio_client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
            twilio_client.messages.create(
                body=sms_message,
                from_=settings.TWILIO_PHONE_NUMBER,
                to=user.phone_number
            )
            logger.info(f"SMS notification sent to user {user.id}")
        except TwilioRestException as e:
            logger.error(f"Failed to send SMS to {user.phone_number}: {str(e)}")


def notify(recipient, type, title, message, sender=None, gig=None, application_id=None):
    """Store an in-app notification and push it out; failures are logged, never raised."""
    notification = None
    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                recipient=recipient,
                sender=sender,
                type=type,
                title=title,
                message=message,
                gig=gig,
                application_id=application_id,
            )
    except Exception as e:
        logger.error(f"Failed to store {type} notification for user {recipient.pk}: {str(e)}")

    try:
        send_notification(recipient, title, message, message)
    except Exception as e:
        logger.error(f"Failed to deliver {type} notification to user {recipient.pk}: {str(e)}")
    return notification
