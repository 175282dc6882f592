"""Shared resolver helpers: access checks and service error translation"""
import logging

from graphql import GraphQLError
from rest_framework.exceptions import ValidationError

from protekcms.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def require_user(info):
    user = getattr(info.context, 'user', None)
    if user is None or not user.is_authenticated:
        raise GraphQLError('Access denied')
    return user


def require_admin(info):
    user = require_user(info)
    if not user.is_admin:
        raise GraphQLError('Insufficient permissions')
    return user


def get_or_error(queryset, pk, label):
    """Fetch one object or raise `<label> not found`"""
    obj = queryset.filter(pk=pk).first()
    if obj is None:
        raise GraphQLError(f'{label} not found')
    return obj


def _flatten(detail, prefix=''):
    if isinstance(detail, dict):
        for key, value in detail.items():
            name = key if key != 'non_field_errors' else ''
            yield from _flatten(value, f'{prefix}.{name}' if prefix and name else prefix or name)
    elif isinstance(detail, list):
        for item in detail:
            yield from _flatten(item, prefix)
    else:
        yield f'{prefix}: {detail}' if prefix else str(detail)


def run_service(func, *args, **kwargs):
    """
    Call a service function and turn its errors into GraphQL errors.

    ServiceError keeps its message; DRF validation errors are flattened into
    one message and the structured detail goes into `extensions.fields`.
    """
    try:
        return func(*args, **kwargs)
    except ServiceError as e:
        raise GraphQLError(str(e.detail))
    except ValidationError as e:
        message = '; '.join(_flatten(e.detail)) or 'Invalid input'
        logger.debug(f"GraphQL validation error in {func.__name__}: {message}")
        raise GraphQLError(message, extensions={'code': 'BAD_USER_INPUT', 'fields': e.detail})
