import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import NotFound, ReviewError
from ..serializers import DeactivationResultSerializer, TeamSerializer
from ..services import TeamService
from .responses import domain_error, server_error, validation_error

logger = logging.getLogger('reviews.views')

MEMBER_FIELDS = ('user_id', 'username', 'is_active')


@api_view(['POST'])
def team_add(request):
    """POST /team/add - Создать команду с участниками"""
    team_name = request.data.get('team_name')
    members_data = request.data.get('members', [])

    if not team_name:
        return validation_error('team_name is required')

    if not isinstance(members_data, list):
        return validation_error('members must be a list')

    for i, member in enumerate(members_data):
        if not isinstance(member, dict) or not all(key in member for key in MEMBER_FIELDS):
            return validation_error(f'Member at index {i} is missing required fields')
        if not isinstance(member['is_active'], bool):
            return validation_error(f'Member at index {i}: is_active must be a boolean')

    try:
        team = TeamService.create_team_with_members(team_name, members_data)
        return Response({
            'team': TeamSerializer(team).data
        }, status=status.HTTP_201_CREATED)

    except ReviewError as e:
        logger.warning("Failed to create team '%s': %s", team_name, e.detail)
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while creating team '%s'", team_name)
        return server_error()


@api_view(['GET'])
def team_get(request):
    """GET /team/get - Получить команду с участниками"""
    team_name = request.query_params.get('team_name')

    if not team_name:
        return validation_error('team_name parameter is required')

    try:
        team = TeamService.get_team_with_members(team_name)
        return Response(TeamSerializer(team).data)

    except NotFound as e:
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while fetching team '%s'", team_name)
        return server_error()


@api_view(['POST'])
def team_deactivate(request):
    """POST /team/deactivate - Деактивировать всех участников команды"""
    team_name = request.data.get('team_name') or request.query_params.get('team_name')

    if not team_name:
        return validation_error('team_name is required')

    try:
        result = TeamService.deactivate_team(team_name)
        return Response(DeactivationResultSerializer(result._asdict()).data)

    except (NotFound, ReviewError) as e:
        logger.warning("Failed to deactivate team '%s': %s", team_name, e)
        return domain_error(e)
    except Exception:
        logger.exception("Unexpected error while deactivating team '%s'", team_name)
        return server_error()
