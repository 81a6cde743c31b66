"""
Иерархия исключений ядра редактирования.

Ожидаемые проблемы, которые пользователь может исправить сам (битый файл
конфигурации, неизвестные ключи), наследуются от LQEUserError и могут
показываться пользователю как понятные сообщения.

Нарушения контракта со стороны хоста (курсор вне документа, попытка
печатать внутри чипа плейсхолдера) наследуются от ContractError. Это
ошибки программирования: они НЕ наследуются от LQEUserError и никогда
не исправляются молча.

Некорректный синтаксис шаблона ошибкой не является: его поглощает лексер.
"""

from __future__ import annotations


class LQEUserError(Exception):
    """
    Базовый класс всех ошибок, адресованных пользователю.

    Такие ошибки пользователь может исправить сам:
    файлы конфигурации, недопустимые значения опций и т.п.
    """
    pass


class ConfigError(LQEUserError):
    """Конфигурацию редактора не удалось загрузить или проверить."""
    pass


class ContractError(Exception):
    """
    Базовый класс нарушений контракта API ядра вызывающим кодом.

    Ядро детерминированно отвергает такие вызовы, а не угадывает,
    что имелось в виду.
    """
    pass


class InvalidPositionError(ContractError):
    """BufferPosition не адресует документ."""

    def __init__(self, message: str, position: object = None):
        if position is not None:
            message = f"{message}: {position!r}"
        super().__init__(message)
        self.position = position


class ChipEditError(InvalidPositionError):
    """Изменение затронуло бы символы внутри чипа плейсхолдера."""
    pass


__all__ = [
    "LQEUserError",
    "ConfigError",
    "ContractError",
    "InvalidPositionError",
    "ChipEditError",
]
