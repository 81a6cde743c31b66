import pytest

from lqe.document import Document


@pytest.fixture
def doc():
    """Фабрика документов из исходного текста."""
    def _make(raw: str) -> Document:
        return Document.from_raw(raw)
    return _make
