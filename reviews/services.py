import logging
from time import monotonic
from typing import NamedTuple

from django.conf import settings
from django.db import models, transaction
from django.db.models import Count
from django.utils import timezone

from .coordinator import consistent_write
from .errors import (
    AuthorNotFoundOrInactive,
    ConstraintViolation,
    DeactivationTooSlow,
    NoReplacementFound,
    PullRequestAlreadyExists,
    PullRequestAlreadyMerged,
    PullRequestNotFound,
    ReviewerNotAssigned,
    ReviewerNotFound,
    TeamAlreadyExists,
    TeamNotFound,
    UserNotFound,
)
from .models import PullRequest, ReviewerAssignment, Team, User
from .selection import ReviewerSelector

logger = logging.getLogger('reviews.services')


class DeactivationResult(NamedTuple):
    team_name: str
    deactivated_users: int
    cleared_pull_requests: int
    removed_assignments: int


class TeamService:
    """
    Сервис для управления командами и пользователями
    """

    @classmethod
    def create_team_with_members(cls, team_name: str, members_data: list) -> Team:
        """
        Создает команду с пользователями.
        Существующие пользователи переносятся в новую команду.
        """
        if Team.objects.filter(name=team_name).exists():
            raise TeamAlreadyExists(team_name=team_name)

        with consistent_write(TeamAlreadyExists, team_name=team_name):
            team = Team.objects.create(name=team_name)
            for member_data in members_data:
                cls._create_or_update_user(team, member_data)

        logger.info("Team '%s' created with %d members", team_name, len(members_data))
        return cls.get_team_with_members(team_name)

    @classmethod
    def _create_or_update_user(cls, team: Team, member_data: dict) -> User:
        user_id = member_data['user_id']
        username = member_data['username']
        is_active = member_data['is_active']

        try:
            user = User.objects.get(id=user_id)
            user.username = username
            user.is_active = is_active
            user.team = team
            user.save()
        except User.DoesNotExist:
            user = User.objects.create(
                id=user_id,
                username=username,
                team=team,
                is_active=is_active
            )

        return user

    @classmethod
    def get_team_with_members(cls, team_name: str) -> Team:
        try:
            return Team.objects.prefetch_related('members').get(name=team_name)
        except Team.DoesNotExist:
            raise TeamNotFound(team_name=team_name)

    @classmethod
    def deactivate_team(cls, team_name: str) -> DeactivationResult:
        """
        Деактивирует всех активных участников команды и снимает все назначения
        ревьюверов с открытых PR, авторы которых состоят в команде.

        Обе части выполняются в одной транзакции. Замена ревьюверов не ищется:
        такие PR остаются без ревьюверов до переназначения или мержа.
        """
        started = monotonic()

        with transaction.atomic():
            try:
                team = Team.objects.get(name=team_name)
            except Team.DoesNotExist:
                raise TeamNotFound(team_name=team_name)

            deactivated = User.objects.filter(team=team, is_active=True).update(is_active=False)
            if deactivated == 0:
                logger.info("Team '%s' has no active members, nothing to deactivate", team_name)
                return DeactivationResult(team_name, 0, 0, 0)

            assignments = ReviewerAssignment.objects.filter(
                pull_request__in=PullRequest.objects.open_for_team(team)
            )
            cleared = assignments.values('pull_request_id').distinct().count()
            removed, _ = assignments.delete()

            cls._check_duration(team_name, started)

        logger.info(
            "Team '%s' deactivated: %d users, %d assignments removed from %d open PRs",
            team_name, deactivated, removed, cleared,
        )
        return DeactivationResult(team_name, deactivated, cleared, removed)

    @classmethod
    def _check_duration(cls, team_name: str, started: float):
        elapsed_ms = (monotonic() - started) * 1000
        limit_ms = settings.TEAM_DEACTIVATION_WARNING_MS
        if elapsed_ms <= limit_ms:
            return

        if settings.TEAM_DEACTIVATION_SLOW_POLICY.lower() == 'fail':
            logger.error(
                "Deactivation of team '%s' took %.1f ms (limit %d ms), rolling back",
                team_name, elapsed_ms, limit_ms,
            )
            raise DeactivationTooSlow(team_name=team_name, elapsed_ms=int(elapsed_ms), limit_ms=limit_ms)

        logger.warning(
            "Deactivation of team '%s' took %.1f ms, threshold is %d ms",
            team_name, elapsed_ms, limit_ms,
        )


class UserService:
    """
    Сервис для управления пользователями
    """

    @classmethod
    def set_user_active_status(cls, user_id: str, is_active: bool) -> User:
        # Уже назначенные ревью остаются за пользователем
        try:
            user = User.objects.select_related('team').get(id=user_id)
        except User.DoesNotExist:
            raise UserNotFound(user_id=user_id)

        user.is_active = is_active
        user.save(update_fields=['is_active'])
        logger.info("User '%s' is_active set to %s", user_id, is_active)
        return user

    @classmethod
    def get_user_review_assignments(cls, user_id: str) -> list:
        if not User.objects.filter(id=user_id).exists():
            raise UserNotFound(user_id=user_id)

        return list(
            PullRequest.objects
            .filter(assignments__user_id=user_id)
            .order_by('created_at', 'id')
        )


class PullRequestService:
    """
    Сервис для управления Pull Request'ами: создание с автоназначением
    ревьюверов, мерж и переназначение.
    """

    def __init__(self, selector: ReviewerSelector = None):
        self.selector = selector if selector is not None else ReviewerSelector.from_settings()

    def create_pull_request(self, pr_id: str, pr_name: str, author_id: str) -> PullRequest:
        # PK в базе ловит PR, созданный параллельно между проверкой и вставкой
        with consistent_write(PullRequestAlreadyExists, pr_id=pr_id):
            if self._pull_request_exists(pr_id):
                raise PullRequestAlreadyExists(pr_id=pr_id)

            try:
                author = User.objects.find_active(author_id)
            except User.DoesNotExist:
                raise AuthorNotFoundOrInactive(user_id=author_id)

            candidates = User.objects.active_members(author.team, exclude_ids=[author.id])
            reviewers = self.selector.pick_initial(candidates)

            pr = PullRequest.objects.create(id=pr_id, name=pr_name, author=author)
            assigned = []
            for reviewer in reviewers:
                self._assign(pr, reviewer, assigned)

        logger.info("PR '%s' created by '%s', reviewers: %s", pr_id, author_id, assigned)
        return self._load(pr_id)

    def merge_pull_request(self, pr_id: str) -> PullRequest:
        with transaction.atomic():
            try:
                pr = PullRequest.objects.select_for_update().get(id=pr_id)
            except PullRequest.DoesNotExist:
                raise PullRequestNotFound(pr_id=pr_id)

            if not pr.is_merged:
                pr.status = PullRequest.Status.MERGED
                pr.merged_at = timezone.now()
                pr.save(update_fields=['status', 'merged_at'])
                logger.info("PR '%s' merged", pr_id)

        return self._load(pr_id)

    def reassign_reviewer(self, pr_id: str, old_user_id: str) -> tuple:
        """
        Заменяет ревьювера old_user_id на случайного активного участника его команды.

        Returns:
            tuple: (обновленный PR, новый ревьювер)
        """
        with consistent_write(ConstraintViolation, pr_id=pr_id, user_id=old_user_id):
            try:
                pr = PullRequest.objects.select_for_update().get(id=pr_id)
            except PullRequest.DoesNotExist:
                raise PullRequestNotFound(pr_id=pr_id)

            if pr.is_merged:
                raise PullRequestAlreadyMerged(pr_id=pr_id)

            current_ids = list(pr.assignments.values_list('user_id', flat=True))
            if old_user_id not in current_ids:
                raise ReviewerNotAssigned(pr_id=pr_id, user_id=old_user_id)

            try:
                old_reviewer = User.objects.select_related('team').get(id=old_user_id)
            except User.DoesNotExist:
                raise ReviewerNotFound(pr_id=pr_id, user_id=old_user_id)

            candidates = User.objects.active_members(
                old_reviewer.team,
                exclude_ids=[pr.author_id, *current_ids],
            )
            new_reviewer = self.selector.pick_replacement(candidates)
            if new_reviewer is None:
                raise NoReplacementFound(pr_id=pr_id, user_id=old_user_id)

            pr.assignments.filter(user_id=old_user_id).delete()
            current_ids.remove(old_user_id)
            self._assign(pr, new_reviewer, current_ids)

        logger.info("PR '%s': reviewer '%s' replaced by '%s'", pr_id, old_user_id, new_reviewer.id)
        return self._load(pr_id), new_reviewer

    def _assign(self, pr: PullRequest, reviewer: User, current_ids: list) -> ReviewerAssignment:
        """
        Единственная точка вставки назначения. current_ids - уже назначенные
        ревьюверы PR, дополняется новым id.
        """
        if pr.is_merged:
            raise PullRequestAlreadyMerged(pr_id=pr.id)

        if reviewer.id == pr.author_id:
            raise ConstraintViolation(
                "author '%(user_id)s' cannot review own PR '%(pr_id)s'",
                pr_id=pr.id, user_id=reviewer.id,
            )
        if reviewer.id in current_ids:
            raise ConstraintViolation(
                "reviewer '%(user_id)s' is already assigned to PR '%(pr_id)s'",
                pr_id=pr.id, user_id=reviewer.id,
            )
        if not reviewer.is_active:
            raise ConstraintViolation(
                "inactive user '%(user_id)s' cannot be assigned to PR '%(pr_id)s'",
                pr_id=pr.id, user_id=reviewer.id,
            )
        if len(current_ids) >= self.selector.limit:
            raise ConstraintViolation(
                "PR '%(pr_id)s' already has the maximum number of reviewers",
                pr_id=pr.id, user_id=reviewer.id,
            )

        assignment = ReviewerAssignment.objects.create(pull_request=pr, user=reviewer)
        current_ids.append(reviewer.id)
        return assignment

    @staticmethod
    def _pull_request_exists(pr_id: str) -> bool:
        return PullRequest.objects.filter(id=pr_id).exists()

    @staticmethod
    def _load(pr_id: str) -> PullRequest:
        return PullRequest.objects.with_reviewers().get(id=pr_id)


class StatsService:
    """
    Сервис для сбора статистики
    """

    @classmethod
    def get_review_stats(cls):
        """
        Returns:
            dict: Статистика по пользователям и PR
        """
        user_review_stats = (
            User.objects
            .annotate(
                prs_reviewed=Count('assigned_prs'),
                open_prs_reviewed=Count('assigned_prs', filter=models.Q(assigned_prs__status='OPEN')),
                merged_prs_reviewed=Count('assigned_prs', filter=models.Q(assigned_prs__status='MERGED'))
            )
            .filter(prs_reviewed__gt=0)
            .values('id', 'username', 'prs_reviewed', 'open_prs_reviewed', 'merged_prs_reviewed')
            .order_by('-prs_reviewed', 'id')
        )

        pr_reviewer_stats = (
            PullRequest.objects
            .annotate(
                reviewers_count=Count('reviewers'),
                team_name=models.F('author__team__name')
            )
            .values(
                'id', 'name', 'status', 'team_name',
                'reviewers_count', 'created_at', 'merged_at'
            )
            .order_by('-created_at', 'id')
        )

        return {
            'user_review_stats': list(user_review_stats),
            'pr_reviewer_stats': list(pr_reviewer_stats)
        }

    @classmethod
    def get_assignment_stats(cls, team_name: str) -> list:
        """Количество текущих назначений на каждого участника команды."""
        try:
            team = Team.objects.get(name=team_name)
        except Team.DoesNotExist:
            raise TeamNotFound(team_name=team_name)

        return list(
            User.objects
            .filter(team=team)
            .annotate(assigned_reviews=Count('review_assignments'))
            .values('id', 'username', 'assigned_reviews')
            .order_by('-assigned_reviews', 'id')
        )
