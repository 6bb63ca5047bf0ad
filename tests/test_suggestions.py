import pytest

from collection_search.suggestions import Suggestion, suggest

from conftest import make_item

SEARCH_ORDER = ("tag", "age", "scale", "category", "name")


@pytest.fixture(scope="module")
def goodsmile_items():
    return [
        make_item(f"G{index:02d}", f"Good Figure {index}", tags=["Goodsmile"], category="Scale Figure")
        for index in range(15)
    ]


def test_limit_caps_results_and_tag_bucket_comes_first(goodsmile_items):
    found = suggest("good", goodsmile_items, limit=10)
    assert 0 < len(found) <= 10
    assert found[0].type == "tag"
    assert found[0].text == "Goodsmile"


def test_repeated_text_falls_through_to_next_field(goodsmile_items):
    found = suggest("good", goodsmile_items, limit=10)
    texts = [suggestion.text.lower() for suggestion in found]
    assert len(texts) == len(set(texts))
    # only the first item can offer the shared tag; later items offer their names
    assert [suggestion.type for suggestion in found] == ["tag"] + ["name"] * 9


def test_each_item_contributes_once(sample_items):
    found = suggest("nendoroid", sample_items, limit=10)
    item_ids = [suggestion.item_id for suggestion in found]
    assert len(item_ids) == len(set(item_ids))
    assert found[0] == Suggestion(type="category", text="Nendoroid", item_id="A1")
    assert found[1] == Suggestion(type="name", text="Alter Nendoroid Miku 2024", item_id="A2")


def test_priority_order_changes_buckets(sample_items):
    catalog = suggest("scale", sample_items)
    search = suggest("scale", sample_items, priority=SEARCH_ORDER)
    assert [(entry.type, entry.text) for entry in catalog] == [("category", "Scale Figure"), ("scale", "Non-Scale")]
    assert [(entry.type, entry.text) for entry in search] == [("scale", "Non-Scale"), ("category", "Scale Figure")]
    assert catalog[0].search_term == "{Scale Figure}"


def test_adult_items_can_be_hidden(sample_items):
    assert [entry.item_id for entry in suggest("asuna", sample_items)] == ["A4"]
    assert suggest("asuna", sample_items, allow_adult=False) == []


def test_empty_query_has_no_suggestions(sample_items):
    assert suggest("   ", sample_items) == []


def test_name_suggestions_search_as_plain_text(sample_items):
    found = suggest("wedding", sample_items)
    assert found[0].type == "name"
    assert found[0].search_term == "Rem Wedding 1/7"
    assert found[0].as_dict()["item_id"] == "A3"


def test_invalid_arguments_raise(sample_items):
    with pytest.raises(TypeError):
        suggest(None, sample_items)
    with pytest.raises(TypeError):
        suggest("miku", None)
    with pytest.raises(ValueError):
        suggest("miku", sample_items, limit=0)
    with pytest.raises(ValueError):
        suggest("miku", sample_items, priority=("tag", "colour"))
