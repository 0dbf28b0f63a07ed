import math

from rest_framework import permissions

from core.exceptions import ValidationError


class IsStore(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_store


class IsWorker(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_worker


class IsStoreOrWorker(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_store or request.user.is_worker


def format_pagination_response(data, page, limit, total):
    """Wrap a page of serialized items in the list envelope used by every listing."""
    return {
        'data': data,
        'pagination': {
            'current': page,
            'total': math.ceil(total / limit) if limit else 0,
            'count': total,
            'has_next': page * limit < total,
            'has_prev': page > 1,
        }
    }


MAX_PAGE_SIZE = 100


def parse_pagination(page=1, limit=10):
    """Coerce 1-indexed page/limit values, raising ValidationError when out of range."""
    try:
        page = int(page)
        limit = int(limit)
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers.")
    if page < 1:
        raise ValidationError("page must be 1 or greater.")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}.")
    return page, limit
