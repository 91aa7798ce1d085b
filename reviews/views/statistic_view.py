import logging

from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import NotFound
from ..serializers import AssignmentStatsSerializer, StatsSerializer
from ..services import StatsService
from .responses import domain_error, server_error, validation_error

logger = logging.getLogger('reviews.views')


@api_view(['GET'])
def stats_overview(request):
    """
    GET /statistic - Общая статистика системы
    """
    try:
        stats = StatsService.get_review_stats()
        return Response(StatsSerializer(stats).data)

    except Exception:
        logger.exception('Failed to build review statistics')
        return server_error()


@api_view(['GET'])
def assignment_stats(request):
    """
    GET /statistics - Назначения по участникам команды
    """
    team_name = request.query_params.get('team_name')

    if not team_name:
        return validation_error('team_name parameter is required')

    try:
        stats = StatsService.get_assignment_stats(team_name)
        return Response(AssignmentStatsSerializer(stats, many=True).data)

    except NotFound as e:
        return domain_error(e)
    except Exception:
        logger.exception("Failed to build assignment statistics for team '%s'", team_name)
        return server_error()
