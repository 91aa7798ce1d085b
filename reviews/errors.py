"""
Доменные ошибки сервиса назначения ревьюверов.

Ошибки "не найдено" наследуются от ObjectDoesNotExist, остальные от
ValidationError с кодом, поэтому представления обрабатывают их так же,
как стандартные исключения Django. Идентификаторы (pr_id, team_name,
user_id) передаются в params и подставляются в текст сообщения.
"""
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from rest_framework import status


class NotFound(ObjectDoesNotExist):
    code = 'NOT_FOUND'
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'resource not found'

    def __init__(self, message=None, **identity):
        self.identity = identity
        self.message = (message or self.default_message) % identity
        super().__init__(self.message)


class TeamNotFound(NotFound):
    default_message = "team '%(team_name)s' not found"


class UserNotFound(NotFound):
    default_message = "user '%(user_id)s' not found"


class ReviewerNotFound(UserNotFound):
    default_message = "reviewer '%(user_id)s' of PR '%(pr_id)s' not found"


class PullRequestNotFound(NotFound):
    default_message = "PR '%(pr_id)s' not found"


class AuthorNotFoundOrInactive(NotFound):
    default_message = "author '%(user_id)s' not found or inactive"


class ReviewError(ValidationError):
    default_code = 'VALIDATION_ERROR'
    default_message = 'invalid request'
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message=None, **identity):
        super().__init__(message or self.default_message, code=self.default_code, params=identity)
        self.identity = identity

    @property
    def detail(self) -> str:
        return '; '.join(self.messages)

    def __str__(self):
        return self.detail


class AlreadyExists(ReviewError):
    default_code = 'ALREADY_EXISTS'
    default_message = 'resource already exists'


class PullRequestAlreadyExists(AlreadyExists):
    default_code = 'PR_EXISTS'
    default_message = "PR id '%(pr_id)s' already exists"


class TeamAlreadyExists(AlreadyExists):
    default_code = 'TEAM_EXISTS'
    default_message = "team_name '%(team_name)s' already exists"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidState(ReviewError):
    default_code = 'INVALID_STATE'
    default_message = 'operation is not allowed in the current state'


class PullRequestAlreadyMerged(InvalidState):
    default_code = 'PR_MERGED'
    default_message = "cannot change reviewers on merged PR '%(pr_id)s'"


class ReviewerNotAssigned(InvalidState):
    default_code = 'NOT_ASSIGNED'
    default_message = "reviewer '%(user_id)s' is not assigned to PR '%(pr_id)s'"


class ConstraintViolation(ReviewError):
    default_code = 'CONSTRAINT_VIOLATION'
    default_message = "assigning '%(user_id)s' to PR '%(pr_id)s' violates reviewer constraints"


class NoEligibleCandidate(ReviewError):
    default_code = 'NO_CANDIDATE'
    default_message = 'no eligible candidate'


class NoReplacementFound(NoEligibleCandidate):
    default_message = "no active replacement candidate in team for '%(user_id)s' on PR '%(pr_id)s'"


class DeactivationTooSlow(ReviewError):
    default_code = 'DEACTIVATION_TIMEOUT'
    default_message = "deactivation of team '%(team_name)s' took %(elapsed_ms)d ms (limit %(limit_ms)d ms)"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
