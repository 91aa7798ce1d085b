import logging

from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import NotFound
from ..serializers import PullRequestShortSerializer, UserSerializer
from ..services import UserService
from .responses import domain_error, server_error, validation_error

logger = logging.getLogger('reviews.views')


@api_view(['POST'])
def user_set_active(request):
    """POST /users/setIsActive - Установить флаг активности пользователя"""
    user_id = request.data.get('user_id')
    is_active = request.data.get('is_active')

    if user_id is None or is_active is None:
        return validation_error('user_id and is_active are required')

    if not isinstance(is_active, bool):
        return validation_error('is_active must be a boolean')

    try:
        user = UserService.set_user_active_status(user_id, is_active)
        return Response({
            'user': UserSerializer(user).data
        })

    except NotFound as e:
        logger.warning("Failed to set is_active for '%s': %s", user_id, e)
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while updating user '%s'", user_id)
        return server_error()


@api_view(['GET'])
def users_get_review(request):
    """GET /users/getReview - Получить PR'ы, где пользователь назначен ревьювером"""
    user_id = request.query_params.get('user_id')

    if not user_id:
        return validation_error('user_id parameter is required')

    try:
        assigned_prs = UserService.get_user_review_assignments(user_id)
        return Response({
            'user_id': user_id,
            'pull_requests': PullRequestShortSerializer(assigned_prs, many=True).data
        })

    except NotFound as e:
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while fetching reviews of '%s'", user_id)
        return server_error()
