"""
Сессия редактирования.

Владеет документом одной поверхности редактора и связывает между собой
лексер, рендереры, контроллер правок и сервис вставки
переменных.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from .config import DEFAULT_CONFIG, EditorConfig
from .document import BufferPosition, Document, position_for_offset, resolve
from .editing.controller import AtomicEditController, PickerCallback
from .editing.insertion import VariableCatalog, VariableDescriptor, VariableInsertionService
from .editing.intents import EditIntent, EditOutcome
from .editing.reconciler import reconcile
from .errors import InvalidPositionError
from .template.lexer import tokenize
from .template.tokens import Token
from .view.cleaner import clean
from .view.renderer import ViewMode, render
from .view.tree import DisplayTree, MarkupClasses

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class EditSession:
    """
    Однопоточная сессия редактирования.

    Управляет взаимодействием компонентов:
    - AtomicEditController — намерения от клавиатуры
    - VariableInsertionService — выбор переменной
    - render / clean / reconcile — переключение представлений

    Намерения обрабатываются в порядке поступления; единственное отложенное
    взаимодействие — выбор переменной, его отменяет любое перемещение курсора или потеря фокуса.
    """

    def __init__(
        self,
        raw: str = "",
        *,
        variables: Iterable[VariableDescriptor] = (),
        config: Optional[EditorConfig] = None,
        on_change: Optional[ChangeCallback] = None,
        open_picker: Optional[PickerCallback] = None,
    ):
        """
        Создает сессию с начальным исходным текстом.

        Args:
            raw: Начальный исходный текст (может быть пустым)
            variables: Каталог переменных для выбора
            config: Конфигурация редактора
            on_change: Вызывается с новым исходным текстом после каждого изменения
            open_picker: Вызывается с сохранённой позицией курсора при нажатии клавиши-триггера
        """
        self.config = config or DEFAULT_CONFIG
        self.catalog = VariableCatalog(variables)
        self.mode = ViewMode.RAW
        self._on_change = on_change

        self.controller = AtomicEditController(mode=self.mode, config=self.config, open_picker=open_picker)
        self.inserter = VariableInsertionService(self.config)

        self.document = self._parse(raw)
        self.cursor = self.document.end_position()
        self._tree: Optional[DisplayTree] = None

    # --- состояние ------------------------------------------------------

    @property
    def raw(self) -> str:
        return self.document.raw

    @property
    def classes(self) -> MarkupClasses:
        return MarkupClasses(
            chip=self.config.chip_class,
            marker=self.config.marker_class,
            spacer=self.config.spacer_class,
        )

    @property
    def tree(self) -> DisplayTree:
        """Дерево отображения текущего документа в текущем режиме (кэшируется на документ)."""
        if self._tree is None:
            self._tree = render(self.document.tokens, self.mode, classes=self.classes, spacer=self.config.spacer)
        return self._tree

    @property
    def markup(self) -> str:
        return self.tree.to_markup()

    @property
    def picker_position(self) -> Optional[BufferPosition]:
        return self.controller.picker.position

    @property
    def character_count(self) -> int:
        """Число символов, которые пользователь видит в текущем представлении."""
        return len(self.tree.visible_text())

    # --- намерения ------------------------------------------------------

    def handle(self, intent: EditIntent) -> EditOutcome:
        """
        Применяет намерение редактирования к текущему документу.

        Raises:
            InvalidPositionError: Позиция намерения не адресует документ.
            ChipEditError: Намерение изменило бы текст внутри чипа.
        """
        outcome = self.controller.apply(self.document, intent)
        self._commit(outcome.document, outcome.cursor)
        return outcome

    def type_text(self, text: str) -> EditOutcome:
        """Вводит текст в позиции курсора; в живом режиме клавиша-триггер открывает выбор переменной."""
        if self.mode is ViewMode.LIVE and text == self.config.trigger_key:
            return self.handle(EditIntent.trigger(self.cursor))
        return self.handle(EditIntent.type_text(self.cursor, text))

    def backspace(self) -> EditOutcome:
        return self.handle(EditIntent.backspace(self.cursor))

    def escape(self) -> EditOutcome:
        return self.handle(EditIntent.escape(self.cursor))

    def choose_variable(self, descriptor: VariableDescriptor) -> EditOutcome:
        """
        Вставляет выбранную переменную в сохранённую позицию.

        Без активного выбора переменная добавляется в конец документа.
        """
        position = self.controller.picker.position or self.document.end_position()
        self.controller.picker.cancel()
        outcome = self.inserter.insert(self.document, descriptor, position)
        logger.debug("Variable %r chosen at %r", descriptor.name, position)
        self._commit(outcome.document, outcome.cursor)
        return outcome

    def move_cursor(self, position: BufferPosition) -> None:
        resolve(self.document.tokens, position)
        self.controller.picker.cancel()
        self.cursor = position

    def blur(self) -> None:
        self.controller.picker.cancel()

    # --- операции над документом целиком -----------------------------------

    def toggle_mode(self) -> ViewMode:
        """
        Переключает сырой и живой режимы.

        Текущее представление очищается до исходного текста и токенизируется заново;
        курсор восстанавливается по абсолютному смещению в исходном тексте.

        Returns:
            Новый режим
        """
        offset = self.document.offset_of(self.cursor)
        cleaned = clean(self.tree, keep_line_breaks=self.config.keep_line_breaks, classes=self.classes)

        self.controller.picker.cancel()
        self.mode = ViewMode.LIVE if self.mode is ViewMode.RAW else ViewMode.RAW
        self.controller.mode = self.mode
        logger.debug("Switched to %s mode", self.mode.value)

        document = self.document.with_tokens(self._tokenize(cleaned))
        self._tree = None
        self._commit(document, self._restore_cursor(document, offset))
        return self.mode

    def absorb(self, tree: DisplayTree) -> None:
        """
        Принимает дерево живого режима, отредактированное хостом.

        Порядок чипов и текста берётся из дерева, скрытые директивы
        возвращает на место reconcile.
        """
        offset = self.document.offset_of(self.cursor)
        new_raw = reconcile(tree, self.document.tokens)
        document = self.document.with_tokens(self._tokenize(new_raw))
        self._commit(document, self._restore_cursor(document, offset))

    def absorb_markup(self, markup: str) -> None:
        self.absorb(DisplayTree.from_markup(markup, self.classes))

    def reset(self, raw: str) -> None:
        """Заменяет документ целиком, например когда хост загружает другой шаблон."""
        self.controller.picker.cancel()
        document = self.document.with_tokens(self._tokenize(raw))
        self._commit(document, document.end_position())

    # --- внутреннее -----------------------------------------------------

    def _tokenize(self, raw: str) -> List[Token]:
        return tokenize(raw, opening_tags=self.config.opening_tags, closing_tags=self.config.closing_tags)

    def _parse(self, raw: str) -> Document:
        return Document(tokens=tuple(self._tokenize(raw)))

    def _restore_cursor(self, document: Document, offset: int) -> BufferPosition:
        try:
            return position_for_offset(document.tokens, offset, atomic_chips=self.mode is ViewMode.LIVE)
        except InvalidPositionError as e:
            logger.warning("Cursor could not be restored (%s), moving to end of document", e)
            return document.end_position()

    def _commit(self, document: Document, cursor: BufferPosition) -> None:
        previous_raw = self.document.raw
        if document is not self.document:
            self.document = document
            self._tree = None
        self.cursor = cursor
        if self._on_change is not None and document.raw != previous_raw:
            self._on_change(document.raw)


__all__ = ["ChangeCallback", "EditSession"]
