import random

from django.conf import settings

_shared_rng = None


def shared_rng() -> random.Random:
    """
    Генератор, общий для всех запросов процесса.

    Создается один раз из REVIEWER_RANDOM_SEED: с заданным seed запросы
    продолжают одну последовательность, а не повторяют первую выборку.
    """
    global _shared_rng
    if _shared_rng is None:
        _shared_rng = random.Random(settings.REVIEWER_RANDOM_SEED)
    return _shared_rng


def reset_shared_rng(setting=None, **kwargs):
    global _shared_rng
    if setting in (None, 'REVIEWER_RANDOM_SEED'):
        _shared_rng = None


class ReviewerSelector:
    """
    Случайный выбор ревьюверов из пула кандидатов.

    Генератор передается явно: в тестах достаточно дать random.Random
    с фиксированным seed, чтобы выбор стал детерминированным.
    """

    def __init__(self, rng: random.Random = None, limit: int = 2):
        if limit < 0:
            raise ValueError('limit must be non-negative')
        self.rng = rng if rng is not None else random.Random()
        self.limit = limit

    @classmethod
    def from_settings(cls) -> 'ReviewerSelector':
        return cls(rng=shared_rng(), limit=settings.REVIEWERS_PER_PULL_REQUEST)

    def pick_initial(self, candidates) -> list:
        candidates = list(candidates)
        if len(candidates) <= self.limit:
            return candidates
        return self.rng.sample(candidates, self.limit)

    def pick_replacement(self, candidates):
        candidates = list(candidates)
        if not candidates:
            return None
        return self.rng.choice(candidates)
