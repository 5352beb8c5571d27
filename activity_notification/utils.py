"""
Helpers shared by the notification roles, models and views.
"""
import inspect
from datetime import datetime, timezone as dt_timezone
from typing import Any, Optional

from django.contrib.contenttypes.models import ContentType
from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .exceptions import InvalidParameterError

TRUE_VALUES = {'1', 'true', 't', 'yes', 'y', 'on'}
FALSE_VALUES = {'0', 'false', 'f', 'no', 'n', 'off', ''}


def resolve_value(instance, value, *args):
    """
    Resolve a configured option value against an instance.

    Callables are called with the instance followed by as many of ``args``
    as they accept. Strings naming an attribute of the instance are read,
    and called the same way when the attribute is a method. Other values
    are returned unchanged.
    """
    if callable(value):
        return _call_with_accepted_args(value, instance, *args)
    if isinstance(value, str) and hasattr(instance, value):
        attr = getattr(instance, value)
        if callable(attr):
            return _call_with_accepted_args(attr, *args)
        return attr
    return value


def _call_with_accepted_args(func, *args):
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return func(*args)

    params = signature.parameters.values()
    if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
        return func(*args)
    positional = [
        p for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    return func(*args[:len(positional)])


def to_boolean(value, default=None):
    """Interpret a request parameter as a boolean."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return default


def parse_time(value) -> datetime:
    """Parse a datetime or ISO 8601 string into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(str(value))
        except ValueError:
            parsed = None
        if parsed is None:
            raise InvalidParameterError(f"Invalid time as ISO 8601 format: {value}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def type_name(obj_or_model) -> str:
    """Return the ``app_label.model`` name used to store polymorphic types."""
    return obj_or_model._meta.label_lower


def content_type_for(obj_or_model) -> ContentType:
    return ContentType.objects.get_for_model(obj_or_model, for_concrete_model=False)


def split_type_name(name: str):
    """Split ``app_label.model`` into its parts, or return None when invalid."""
    if not name or '.' not in str(name):
        return None
    app_label, model = str(name).lower().rsplit('.', 1)
    return app_label, model


def object_id_of(obj) -> Optional[str]:
    if obj is None or obj.pk is None:
        return None
    return str(obj.pk)


def resource_name(obj_or_model) -> str:
    """Pluralized resource name of a model, e.g. ``users`` for ``User``."""
    name = getattr(obj_or_model, 'notification_resource_name', None)
    return str(name or f"{obj_or_model._meta.model_name}s")


def printable_type(obj_or_model) -> str:
    return str(obj_or_model._meta.verbose_name).capitalize()


def as_polymorphic_json(obj) -> Optional[dict]:
    """Small JSON representation of a polymorphic record."""
    if obj is None:
        return None
    if hasattr(obj, 'as_notification_json'):
        return obj.as_notification_json()
    return {
        'id': object_id_of(obj),
        'type': type_name(obj),
        'printable_type': printable_type(obj),
        'printable_name': str(obj),
    }


def is_blank(value: Any) -> bool:
    return value is None or value == '' or value == [] or value == {}


def find_by_pk(queryset, pk):
    """First record of ``queryset`` with primary key ``pk``, None for a missing or malformed id."""
    try:
        pk = queryset.model._meta.pk.to_python(pk)
    except ValidationError:
        return None
    if pk is None:
        return None
    return queryset.filter(pk=pk).first()
