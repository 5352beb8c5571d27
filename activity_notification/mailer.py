"""
Notification emails rendered from Django templates.

Templates are looked up under ``activity_notification/mailer/`` by target
resource name and notification key, with ``.`` in the key mapped to ``/``:

    activity_notification/mailer/users/comment/reply.txt
    activity_notification/mailer/users/comment/reply.html   (optional)
    activity_notification/mailer/default/default.txt

Batch emails use ``batch_default`` in the same directories.
"""
import logging
from typing import List, Optional

from django.conf import settings as django_settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import get_template, select_template

from .conf import settings
from .utils import resource_name

logger = logging.getLogger(__name__)

TEMPLATE_ROOT = 'activity_notification/mailer'
DEFAULT_TEMPLATE = 'default'
BATCH_DEFAULT_TEMPLATE = 'batch_default'
BATCH_SUBJECT = 'Batch notification email'


def template_names(target, key: str, fallback: Optional[str] = None) -> List[str]:
    """Candidate template names, without extension, most specific first."""
    resources = resource_name(target)
    key_path = key.replace('.', '/')
    names = [f"{TEMPLATE_ROOT}/{resources}/{key_path}"]
    if fallback:
        names.append(f"{TEMPLATE_ROOT}/{resources}/{fallback}")
    names.append(f"{TEMPLATE_ROOT}/{DEFAULT_TEMPLATE}/{key_path}")
    if fallback:
        names.append(f"{TEMPLATE_ROOT}/{DEFAULT_TEMPLATE}/{fallback}")
    names.append(f"{TEMPLATE_ROOT}/{DEFAULT_TEMPLATE}/{DEFAULT_TEMPLATE}")
    return names


def batch_template_names(target, batch_key: str) -> List[str]:
    resources = resource_name(target)
    return [
        f"{TEMPLATE_ROOT}/{resources}/batch/{batch_key.replace('.', '/')}",
        f"{TEMPLATE_ROOT}/{resources}/{BATCH_DEFAULT_TEMPLATE}",
        f"{TEMPLATE_ROOT}/{DEFAULT_TEMPLATE}/{BATCH_DEFAULT_TEMPLATE}",
    ]


def _render(names: List[str], context: dict):
    """Render the text body and, when an HTML sibling of the chosen template exists, the HTML body."""
    text_template = select_template([f"{name}.txt" for name in names])
    base_name = text_template.template.name[:-len('.txt')]
    text_body = text_template.render(context)
    try:
        html_template = get_template(f"{base_name}.html")
    except TemplateDoesNotExist:
        return text_body, None
    return text_body, html_template.render(context)


def _sender() -> str:
    return settings.MAILER_SENDER or django_settings.DEFAULT_FROM_EMAIL


def notification_subject(notification) -> str:
    notifiable = notification.notifiable
    subject = None
    if hasattr(notifiable, 'notification_email_subject'):
        subject = notifiable.notification_email_subject(notification.target, notification.key)
    return subject or f"Notification of {notifiable.printable_type().lower()}"


def send_notification_email(notification, fallback: Optional[str] = None) -> int:
    """
    Send the email of a single notification to its target.

    Returns the number of sent messages, 0 when the target has no address.
    """
    target = notification.target
    to = target.mailer_to()
    if not to:
        logger.warning(f"No email address for {resource_name(target)} {target.pk}, skipping notification email")
        return 0

    context = {
        'notification': notification,
        'target': target,
        'notifiable': notification.notifiable,
        'parameters': notification.parameters,
    }
    text_body, html_body = _render(template_names(target, notification.key, fallback), context)

    message = EmailMultiAlternatives(
        subject=notification_subject(notification),
        body=text_body,
        from_email=_sender(),
        to=[to],
    )
    if html_body:
        message.attach_alternative(html_body, 'text/html')
    sent = message.send()
    logger.info(f"Sent notification email of {notification.pk} ({notification.key}) to {to}")
    return sent


def send_batch_notification_email(target, notifications, batch_key: Optional[str] = None) -> int:
    """Send one email listing several notifications of the target."""
    notifications = list(notifications)
    to = target.mailer_to()
    if not to or not notifications:
        logger.warning(f"Nothing to send in batch email for {resource_name(target)} {target.pk}")
        return 0

    batch_key = batch_key or notifications[0].key
    context = {
        'target': target,
        'notifications': notifications,
        'batch_key': batch_key,
    }
    text_body, html_body = _render(batch_template_names(target, batch_key), context)

    message = EmailMultiAlternatives(
        subject=BATCH_SUBJECT,
        body=text_body,
        from_email=_sender(),
        to=[to],
    )
    if html_body:
        message.attach_alternative(html_body, 'text/html')
    sent = message.send()
    logger.info(f"Sent batch notification email of {len(notifications)} notifications ({batch_key}) to {to}")
    return sent
