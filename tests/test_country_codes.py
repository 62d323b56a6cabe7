import pytest

from services.country_codes import CountryCodeService
from services.wallet import NotFoundError, ValidationError


@pytest.fixture
def codes(file_store):
    return CountryCodeService(file_store)


def test_defaults_are_seeded(codes):
    listed = codes.list_all()
    assert [c.code for c in listed] == ["+86", "+1", "+81", "+49", "+44", "+33"]
    assert codes.default().code == "+86"


def test_emptied_catalogue_is_not_reseeded(codes, file_store):
    codes.list_all()
    file_store.save("country_codes", [])
    assert codes.list_all() == []
    assert codes.default() is None


def test_add_validates_and_rejects_duplicates(codes):
    added = codes.add({"countryName": "India", "code": "+91", "flag": "🇮🇳", "sortOrder": 7})
    assert added.id
    assert codes.list_all()[-1].code == "+91"

    with pytest.raises(ValidationError, match="already exists"):
        codes.add({"countryName": "Also China", "code": "+86"})
    with pytest.raises(ValidationError):
        codes.add({"countryName": "Nowhere", "code": "86"})
    with pytest.raises(ValidationError):
        codes.add({"countryName": " ", "code": "+999"})


def test_partial_update(codes):
    updated = codes.update("2", {"enabled": False})
    assert updated.enabled is False
    assert updated.country_name == "United States"
    assert "+1" not in [c.code for c in codes.enabled()]

    with pytest.raises(ValidationError):
        codes.update("3", {"code": "+86"})
    with pytest.raises(NotFoundError):
        codes.update("missing", {"flag": "x"})


def test_set_default_moves_the_flag(codes):
    codes.set_default("3")
    assert [c.code for c in codes.list_all() if c.is_default] == ["+81"]

    codes.update("2", {"enabled": False})
    with pytest.raises(ValidationError):
        codes.set_default("2")


def test_deleting_default_promotes_next_enabled(codes):
    codes.update("2", {"enabled": False})
    codes.delete("1")

    assert "+86" not in [c.code for c in codes.list_all()]
    assert codes.default().code == "+81"
    with pytest.raises(NotFoundError):
        codes.delete("1")


def test_batch_update_sort(codes):
    updated, errors = codes.batch_update_sort([
        {"id": "6", "sortOrder": 0},
        {"id": "missing", "sortOrder": 1},
        {"id": "2", "sortOrder": "x"},
    ])
    assert updated == 1
    assert len(errors) == 2
    assert codes.list_all()[0].code == "+33"
