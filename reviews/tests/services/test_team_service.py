from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from unittest.mock import patch

from reviews.errors import DeactivationTooSlow, TeamAlreadyExists, TeamNotFound
from reviews.models import Team, User, PullRequest
from reviews.services import TeamService


class TeamServiceTest(TestCase):
    def setUp(self):
        self.team_name = "backend"
        self.members_data = [
            {"user_id": "u1", "username": "Alice", "is_active": True},
            {"user_id": "u2", "username": "Bob", "is_active": True},
            {"user_id": "u3", "username": "Charlie", "is_active": False},
        ]

    def test_create_team_with_members_success(self):
        """Тест успешного создания команды с пользователями"""
        team = TeamService.create_team_with_members(self.team_name, self.members_data)

        self.assertEqual(team.name, self.team_name)
        self.assertEqual(team.members.count(), 3)

        user1 = User.objects.get(id="u1")
        self.assertEqual(user1.username, "Alice")
        self.assertTrue(user1.is_active)
        self.assertEqual(user1.team, team)

    def test_create_team_duplicate(self):
        """Тест создания дубликата команды"""
        TeamService.create_team_with_members(self.team_name, self.members_data)

        with self.assertRaises(ValidationError) as context:
            TeamService.create_team_with_members(self.team_name, [])

        self.assertIsInstance(context.exception, TeamAlreadyExists)
        self.assertEqual(context.exception.code, 'TEAM_EXISTS')
        self.assertEqual(context.exception.detail, "team_name 'backend' already exists")

    def test_create_team_empty_members(self):
        """Тест создания команды без пользователей"""
        team = TeamService.create_team_with_members("empty_team", [])

        self.assertEqual(team.name, "empty_team")
        self.assertEqual(team.members.count(), 0)

    def test_create_team_moves_existing_user(self):
        """Тест: существующий пользователь переходит в новую команду"""
        TeamService.create_team_with_members(self.team_name, self.members_data)

        team = TeamService.create_team_with_members(
            "platform", [{"user_id": "u1", "username": "Alice B.", "is_active": False}]
        )

        user = User.objects.get(id="u1")
        self.assertEqual(user.team, team)
        self.assertEqual(user.username, "Alice B.")
        self.assertFalse(user.is_active)
        self.assertEqual(Team.objects.get(name="backend").members.count(), 2)

    def test_get_team_with_members_success(self):
        """Тест успешного получения команды с пользователями"""
        TeamService.create_team_with_members(self.team_name, self.members_data)

        team = TeamService.get_team_with_members(self.team_name)

        self.assertEqual(team.name, self.team_name)
        self.assertEqual(team.members.count(), 3)

    def test_get_team_with_members_not_found(self):
        """Тест получения несуществующей команды"""
        with self.assertRaises(TeamNotFound):
            TeamService.get_team_with_members("nonexistent")


class TeamDeactivationTest(TestCase):
    def setUp(self):
        self.team = Team.objects.create(name="backend")
        self.other_team = Team.objects.create(name="frontend")

        self.author = User.objects.create(id="a", username="Author", team=self.team)
        self.r1 = User.objects.create(id="r1", username="Reviewer 1", team=self.team)
        self.r2 = User.objects.create(id="r2", username="Reviewer 2", team=self.team)
        self.outsider = User.objects.create(id="o1", username="Outsider", team=self.other_team)
        self.outsider2 = User.objects.create(id="o2", username="Outsider 2", team=self.other_team)

        self.open_pr = PullRequest.objects.create(id="open", name="Open", author=self.author)
        self.open_pr.reviewers.add(self.r1)
        self.open_pr.reviewers.add(self.r2)

        # Ревьювер из другой команды на PR нашей команды тоже снимается
        self.mixed_pr = PullRequest.objects.create(id="mixed", name="Mixed", author=self.r1)
        self.mixed_pr.reviewers.add(self.outsider)

        self.merged_pr = PullRequest.objects.create(id="merged", name="Merged", author=self.author)
        self.merged_pr.reviewers.add(self.r1)
        self.merged_pr.status = PullRequest.Status.MERGED
        self.merged_pr.save()

        self.foreign_pr = PullRequest.objects.create(id="foreign", name="Foreign", author=self.outsider2)
        self.foreign_pr.reviewers.add(self.r2)

    def test_deactivate_team_cascade(self):
        """Тест массовой деактивации с очисткой ревьюверов открытых PR"""
        result = TeamService.deactivate_team("backend")

        self.assertEqual(result.team_name, "backend")
        self.assertEqual(result.deactivated_users, 3)
        self.assertEqual(result.cleared_pull_requests, 2)
        self.assertEqual(result.removed_assignments, 3)

        self.assertFalse(User.objects.filter(team=self.team, is_active=True).exists())
        self.assertTrue(User.objects.get(id="o1").is_active)

        self.assertEqual(self.open_pr.reviewer_ids(), [])
        self.assertEqual(self.mixed_pr.reviewer_ids(), [])
        self.assertEqual(self.merged_pr.reviewer_ids(), ["r1"])
        self.assertEqual(self.foreign_pr.reviewer_ids(), ["r2"])

    def test_deactivate_team_without_active_members_is_noop(self):
        """Тест: команда без активных участников - успешный no-op"""
        User.objects.filter(team=self.team).update(is_active=False)

        result = TeamService.deactivate_team("backend")

        self.assertEqual(result.deactivated_users, 0)
        self.assertEqual(result.removed_assignments, 0)
        self.assertEqual(sorted(self.open_pr.reviewer_ids()), ["r1", "r2"])

    def test_deactivate_team_not_found(self):
        with self.assertRaises(TeamNotFound) as context:
            TeamService.deactivate_team("nonexistent")

        self.assertEqual(context.exception.identity, {'team_name': 'nonexistent'})

    def test_slow_deactivation_logs_warning(self):
        """Тест: превышение порога только логируется"""
        with patch('reviews.services.monotonic', side_effect=[0.0, 0.5]):
            with self.assertLogs('reviews.services', level='WARNING') as logs:
                result = TeamService.deactivate_team("backend")

        self.assertEqual(result.deactivated_users, 3)
        self.assertIn("took 500.0 ms", logs.output[0])
        self.assertFalse(User.objects.filter(team=self.team, is_active=True).exists())

    @override_settings(TEAM_DEACTIVATION_SLOW_POLICY='fail')
    def test_slow_deactivation_fail_policy_rolls_back(self):
        """Тест: при политике fail медленный каскад откатывается целиком"""
        with patch('reviews.services.monotonic', side_effect=[0.0, 0.5]):
            with self.assertRaises(DeactivationTooSlow) as context:
                TeamService.deactivate_team("backend")

        self.assertEqual(context.exception.code, 'DEACTIVATION_TIMEOUT')
        self.assertEqual(User.objects.filter(team=self.team, is_active=True).count(), 3)
        self.assertEqual(sorted(self.open_pr.reviewer_ids()), ["r1", "r2"])
        self.assertEqual(self.mixed_pr.reviewer_ids(), ["o1"])

    @override_settings(TEAM_DEACTIVATION_SLOW_POLICY='Fail')
    def test_slow_policy_ignores_case(self):
        with patch('reviews.services.monotonic', side_effect=[0.0, 0.5]):
            with self.assertRaises(DeactivationTooSlow):
                TeamService.deactivate_team("backend")

        self.assertEqual(User.objects.filter(team=self.team, is_active=True).count(), 3)
