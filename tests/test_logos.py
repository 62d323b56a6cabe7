from models import Logo
from services.logos import DEFAULT_FONTS, LogoService


def test_default_logo_is_not_persisted(file_store):
    logo = LogoService(file_store).get_current()
    assert logo.text == "SheIn"
    assert logo.font_family == "Arial"
    assert logo.color == "#007AFF"
    assert (logo.width, logo.height) == (150, 50)
    assert file_store.load("logos") == []


def test_update_keeps_exactly_one_active(file_store):
    service = LogoService(file_store)
    first = service.update({"type": "text", "text": "First"})
    second = service.update({"type": "text", "text": "Second", "fontSize": 30, "fontFamily": "Georgia"})

    assert (first.id, second.id) == (1, 2)
    stored = file_store.load("logos", Logo)
    assert [l.id for l in stored if l.is_active] == [2]

    current = service.get_current()
    assert current.text == "Second"
    assert current.font_size == 30
    assert current.font_family == "Georgia"


def test_history_is_newest_first(file_store):
    service = LogoService(file_store)
    for text in ("a", "b", "c"):
        service.update({"text": text})
    assert [l.text for l in service.history()] == ["c", "b", "a"]


def test_fonts_seeded_on_first_use(file_store):
    fonts = LogoService(file_store).list_fonts()
    assert len(fonts) == len(DEFAULT_FONTS) == 22
    assert {f.category for f in fonts} == {"chinese", "english", "artistic"}
    assert len(file_store.load("fonts")) == 22


def test_unavailable_fonts_are_hidden(file_store):
    file_store.save("fonts", [
        {"name": "Arial", "displayName": "Arial", "category": "english", "isAvailable": True},
        {"name": "Chiller", "displayName": "恐怖字体", "category": "artistic", "isAvailable": False},
    ])
    assert [f.name for f in LogoService(file_store).list_fonts()] == ["Arial"]
