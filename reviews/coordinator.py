"""
Атомарное выполнение изменяющих операций над PR и командами.

Все записи одной операции выполняются в одной транзакции: любое исключение,
включая отмену запроса вызывающей стороной, откатывает их целиком.

Проверки "прочитал, решил, записал" не защищены от параллельного клиента,
который делает то же самое в соседней транзакции. Уникальность держат
ограничения в базе (PK pull_requests, unique_pull_request_reviewer);
нарушение такого ограничения при записи превращается в ту же доменную
ошибку, что дала бы предварительная проверка. Внутрипроцессных блокировок
и повторов здесь нет: при нескольких экземплярах сервиса они бы не помогли.
"""
import logging
from contextlib import contextmanager

from django.db import IntegrityError, transaction

logger = logging.getLogger('reviews.coordinator')


@contextmanager
def consistent_write(conflict, **identity):
    """
    Оборачивает блок в transaction.atomic().

    conflict - класс доменной ошибки, которой заменяется IntegrityError;
    identity - идентификаторы для сообщения об ошибке и лога.
    """
    try:
        with transaction.atomic():
            yield
    except IntegrityError as exc:
        logger.warning('Constraint violation at write time (%s): %s', _describe(identity), exc)
        raise conflict(**identity) from exc


def _describe(identity: dict) -> str:
    return ', '.join(f'{key}={value}' for key, value in sorted(identity.items()))
