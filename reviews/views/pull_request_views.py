import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import NotFound, ReviewError
from ..serializers import PullRequestSerializer
from ..services import PullRequestService
from .responses import domain_error, server_error, validation_error

logger = logging.getLogger('reviews.views')


@api_view(['POST'])
def pullrequest_create(request):
    """POST /pullRequest/create - Создать PR и назначить ревьюверов"""
    pr_id = request.data.get('pull_request_id')
    pr_name = request.data.get('pull_request_name')
    author_id = request.data.get('author_id')

    if not all([pr_id, pr_name, author_id]):
        return validation_error('pull_request_id, pull_request_name, and author_id are required')

    try:
        pr = PullRequestService().create_pull_request(pr_id, pr_name, author_id)
        return Response({
            'pr': PullRequestSerializer(pr).data
        }, status=status.HTTP_201_CREATED)

    except (NotFound, ReviewError) as e:
        logger.warning("Failed to create PR '%s' (author '%s'): %s", pr_id, author_id, e)
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while creating PR '%s'", pr_id)
        return server_error()


@api_view(['POST'])
def pullrequest_merge(request):
    """POST /pullRequest/merge - Пометить PR как MERGED"""
    pr_id = request.data.get('pull_request_id')

    if not pr_id:
        return validation_error('pull_request_id is required')

    try:
        pr = PullRequestService().merge_pull_request(pr_id)
        return Response({
            'pr': PullRequestSerializer(pr).data
        })

    except NotFound as e:
        logger.warning("Failed to merge PR '%s': %s", pr_id, e)
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while merging PR '%s'", pr_id)
        return server_error()


@api_view(['POST'])
def pullrequest_reassign(request):
    """POST /pullRequest/reassign - Переназначить ревьювера"""
    pr_id = request.data.get('pull_request_id')
    old_user_id = request.data.get('old_user_id')

    if not all([pr_id, old_user_id]):
        return validation_error('pull_request_id and old_user_id are required')

    try:
        pr, new_reviewer = PullRequestService().reassign_reviewer(pr_id, old_user_id)
        return Response({
            'pr': PullRequestSerializer(pr).data,
            'replaced_by': new_reviewer.id
        })

    except (NotFound, ReviewError) as e:
        logger.warning("Failed to reassign '%s' on PR '%s': %s", old_user_id, pr_id, e)
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while reassigning '%s' on PR '%s'", old_user_id, pr_id)
        return server_error()
