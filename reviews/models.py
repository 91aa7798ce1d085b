from django.db import models
from django.utils import timezone


class Team(models.Model):
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'teams'


class UserQuerySet(models.QuerySet):

    def find_active(self, user_id: str) -> 'User':
        return self.select_related('team').get(id=user_id, is_active=True)

    def active_members(self, team: Team, exclude_ids=()) -> 'UserQuerySet':
        """
        Активные участники команды, кроме перечисленных id.
        Порядок фиксирован, чтобы выбор с заданным seed был воспроизводим.
        """
        return (
            self.filter(team=team, is_active=True)
            .exclude(id__in=list(exclude_ids))
            .order_by('id')
        )


class User(models.Model):
    id = models.CharField(max_length=50, primary_key=True)
    username = models.CharField(max_length=100)
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='members')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = UserQuerySet.as_manager()

    def __str__(self):
        return f"{self.username} ({self.id})"

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['team', 'is_active'], name='users_team_active_idx'),
        ]


class PullRequestQuerySet(models.QuerySet):

    def with_reviewers(self) -> 'PullRequestQuerySet':
        return self.select_related('author', 'author__team').prefetch_related('assignments__user')

    def open_for_team(self, team: Team) -> 'PullRequestQuerySet':
        return self.filter(status=PullRequest.Status.OPEN, author__team=team)


class PullRequest(models.Model):
    class Status(models.TextChoices):
        OPEN = 'OPEN', 'Open'
        MERGED = 'MERGED', 'Merged'

    id = models.CharField(max_length=100, primary_key=True)
    name = models.CharField(max_length=200)
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='authored_prs')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.OPEN)
    reviewers = models.ManyToManyField(
        User,
        through='ReviewerAssignment',
        related_name='assigned_prs',
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    merged_at = models.DateTimeField(null=True, blank=True)

    objects = PullRequestQuerySet.as_manager()

    @property
    def is_merged(self) -> bool:
        return self.status == self.Status.MERGED

    def reviewer_ids(self) -> list:
        """Id ревьюверов в порядке назначения."""
        assignments = sorted(
            self.assignments.all(),
            key=lambda assignment: (assignment.assigned_at, assignment.user_id),
        )
        return [assignment.user_id for assignment in assignments]

    def clean(self):
        if self.status == self.Status.MERGED and not self.merged_at:
            self.merged_at = timezone.now()

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.id})"

    class Meta:
        db_table = 'pull_requests'
        indexes = [
            models.Index(fields=['status'], name='pull_requests_status_idx'),
        ]


class ReviewerAssignment(models.Model):
    pull_request = models.ForeignKey(PullRequest, on_delete=models.CASCADE, related_name='assignments')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='review_assignments')
    assigned_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.pull_request_id} -> {self.user_id}"

    class Meta:
        db_table = 'pull_request_reviewers'
        constraints = [
            models.UniqueConstraint(fields=['pull_request', 'user'], name='unique_pull_request_reviewer'),
        ]
