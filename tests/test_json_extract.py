from __future__ import annotations

import json

import pytest

from src.utils.json_extract import (
    PREVIEW_CHARS,
    EmptyPayloadError,
    PayloadRecoveryError,
    UnparsablePayloadError,
    clean_payload_text,
    collapse_whitespace,
    recover_payload,
    repair_json_syntax,
    strip_code_fence,
    trim_to_braces,
)


_EMPTY = {"ingredients": [], "hacksOrTips": []}


def test_clean_input_is_returned_as_is() -> None:
    recipe = {"title": "Dal Tadka", "steps": ["Rinse", "Boil"], "servings": 4}
    raw = json.dumps({"recipe": recipe, "missingSuggestions": {"ingredients": [], "hacksOrTips": []}})

    out = recover_payload(raw)

    assert out.recipe == recipe
    assert out.to_dict() == {"recipe": recipe, "missingSuggestions": _EMPTY}


def test_fenced_block_with_commentary() -> None:
    raw = 'Sure! ```json\n{"recipe":{"title":"Soup"}}\n```\nEnjoy!'
    assert recover_payload(raw).to_dict() == {"recipe": {"title": "Soup"}, "missingSuggestions": _EMPTY}


def test_tilde_fence_without_language_tag() -> None:
    raw = '~~~\n{"recipe": {"title": "Soup"}}\n~~~'
    assert recover_payload(raw).recipe == {"title": "Soup"}


def test_first_fence_wins() -> None:
    raw = '```json\n{"recipe": {"title": "First"}}\n```\nAlternative:\n```json\n{"recipe": {"title": "Second"}}\n```'
    assert recover_payload(raw).recipe == {"title": "First"}


def test_trailing_commas_are_repaired() -> None:
    out = recover_payload('{"recipe": {"title": "Soup",},}')
    assert out.recipe["title"] == "Soup"


def test_trailing_comma_inside_array() -> None:
    out = recover_payload('{"recipe": {"steps": ["a", "b",\n]}}')
    assert out.recipe["steps"] == ["a", "b"]


def test_line_comments_are_removed_but_urls_survive() -> None:
    raw = (
        "{\n"
        '  "recipe": {"title": "Soup", "source": "https://example.com/soup"}, // the recipe\n'
        '  "missingSuggestions": {"ingredients": ["Saffron"], "hacksOrTips": []}\n'
        "}"
    )

    out = recover_payload(raw)

    assert out.recipe == {"title": "Soup", "source": "https://example.com/soup"}
    assert out.missing_suggestions.ingredients == ["Saffron"]


def test_preamble_and_signoff_are_discarded() -> None:
    raw = 'Here is your recipe: {"recipe": {"title": "Soup"}} Let me know if you need changes!'
    assert recover_payload(raw).recipe == {"title": "Soup"}


def test_unescaped_newlines_are_recovered_by_collapsing_whitespace() -> None:
    raw = '{"recipe": {"title": "Soup", "notes": "Serve hot.\nGarnish well."}}'
    out = recover_payload(raw)
    assert out.recipe["notes"] == "Serve hot. Garnish well."


def test_recipe_key_wins_over_json_key() -> None:
    out = recover_payload('{"json": {"title": "A"}, "recipe": {"title": "B"}}')
    assert out.recipe["title"] == "B"


def test_json_key_wins_over_data_key() -> None:
    out = recover_payload('{"data": {"title": "A"}, "json": {"title": "B"}}')
    assert out.recipe["title"] == "B"


def test_data_key_is_used_when_present() -> None:
    out = recover_payload('{"data": {"title": "A"}}')
    assert out.recipe == {"title": "A"}


def test_object_without_wrapper_is_the_recipe() -> None:
    out = recover_payload('{"title": "NoWrapper"}')
    assert out.recipe["title"] == "NoWrapper"
    assert out.missing_suggestions.to_dict() == _EMPTY


def test_recipe_value_is_not_validated() -> None:
    assert recover_payload('{"recipe": 42}').recipe == 42
    assert recover_payload('{"recipe": null}').recipe is None


@pytest.mark.parametrize("raw", ["", None])
def test_empty_input_is_rejected(raw: str | None) -> None:
    with pytest.raises(EmptyPayloadError):
        recover_payload(raw)


def test_whitespace_only_input_is_unparsable() -> None:
    with pytest.raises(UnparsablePayloadError):
        recover_payload("   \n\t ")


def test_total_failure() -> None:
    with pytest.raises(UnparsablePayloadError) as ei:
        recover_payload("not json at all, no braces")
    assert isinstance(ei.value, PayloadRecoveryError)
    assert ei.value.raw_preview == "not json at all, no braces"


def test_top_level_array_is_rejected() -> None:
    with pytest.raises(UnparsablePayloadError):
        recover_payload("[1, 2, 3]")


def test_error_previews_are_bounded() -> None:
    raw = "{" + "x" * 5000
    with pytest.raises(UnparsablePayloadError) as ei:
        recover_payload(raw)
    assert len(ei.value.raw_preview) == PREVIEW_CHARS
    assert len(ei.value.cleaned_preview) <= PREVIEW_CHARS

    with pytest.raises(UnparsablePayloadError) as ei2:
        recover_payload(raw, preview_chars=10)
    assert ei2.value.raw_preview == raw[:10]


def test_missing_suggestions_sub_fields_default_independently() -> None:
    out = recover_payload('{"recipe": {}, "missingSuggestions": {"ingredients": ["Saffron"]}}')
    assert out.missing_suggestions.to_dict() == {"ingredients": ["Saffron"], "hacksOrTips": []}

    out2 = recover_payload('{"recipe": {}, "missingSuggestions": {"hacksOrTips": [{"title": "Bloom spices"}]}}')
    assert out2.missing_suggestions.to_dict() == {"ingredients": [], "hacksOrTips": [{"title": "Bloom spices"}]}


def test_missing_suggestions_odd_shapes() -> None:
    out = recover_payload('{"recipe": {}, "missingSuggestions": {"ingredients": "Saffron", "hacksOrTips": null}}')
    assert out.missing_suggestions.to_dict() == {"ingredients": ["Saffron"], "hacksOrTips": []}

    out2 = recover_payload('{"recipe": {}, "missingSuggestions": ["Saffron"]}')
    assert out2.missing_suggestions.to_dict() == _EMPTY


def test_strip_code_fence_passthrough() -> None:
    assert strip_code_fence('{"a": 1}') == '{"a": 1}'
    assert strip_code_fence('```JSON\n{"a": 1}\n```') == '{"a": 1}'


def test_trim_to_braces_is_independent_on_each_side() -> None:
    assert trim_to_braces('intro {"a": 1}') == '{"a": 1}'
    assert trim_to_braces('{"a": 1} outro') == '{"a": 1}'
    assert trim_to_braces("no braces here") == "no braces here"
    assert trim_to_braces('intro {"a": 1') == '{"a": 1'


def test_repair_json_syntax() -> None:
    assert repair_json_syntax('{"a": [1, 2,], }') == '{"a": [1, 2] }'
    assert repair_json_syntax('{"a": 1, // note\n}') == '{"a": 1 \n}'
    assert repair_json_syntax('{"n": "salt, ] pepper"}') == '{"n": "salt, ] pepper"}'
    assert repair_json_syntax('{"a": 1 // note\n}') == '{"a": 1 \n}'
    assert repair_json_syntax('{"u": "a//b"}') == '{"u": "a//b"}'
    assert repair_json_syntax('{"q": "say \\"hi\\" // x"}') == '{"q": "say \\"hi\\" // x"}'


def test_collapse_whitespace() -> None:
    assert collapse_whitespace('  {"a":\n\t 1}  ') == '{"a": 1}'


def test_clean_payload_text_runs_stages_in_order() -> None:
    raw = '  Note:\n```json\nprefix {"a": 1,} suffix\n```\nbye  '
    assert clean_payload_text(raw) == '{"a": 1}'


def test_commas_inside_strings_are_preserved() -> None:
    recipe = {"title": "Soup", "note": "salt, ] pepper", "tip": "stir, }"}
    out = recover_payload(json.dumps({"recipe": recipe}))
    assert out.recipe == recipe


def test_trailing_comma_before_comment() -> None:
    raw = '{\n  "recipe": {"title": "Soup"}, // the recipe\n}'
    assert recover_payload(raw).recipe == {"title": "Soup"}


def test_tildes_inside_string_are_not_a_fence() -> None:
    out = recover_payload('{"recipe": {"title": "~~~ Fancy ~~~ Soup"}}')
    assert out.recipe["title"] == "~~~ Fancy ~~~ Soup"


def test_tilde_fence_must_be_on_its_own_lines() -> None:
    assert strip_code_fence('~~~json\n{"a": 1}\n~~~') == '{"a": 1}'
    assert strip_code_fence('Here:\n~~~\n{"a": "~~~"}\n~~~\nbye') == '{"a": "~~~"}'
    assert strip_code_fence('{"a": "~~~ x ~~~"}') == '{"a": "~~~ x ~~~"}'
