"""Template renderer: {{dotted.path}} substitution from the run context."""

from app.application.services.template_renderer import render, resolve_path


def test_render_substitutes_nested_path() -> None:
    assert render("Hello {{deal.name}}", {"deal": {"name": "Acme"}}) == "Hello Acme"


def test_render_missing_path_is_empty() -> None:
    assert render("Hello {{deal.name}}", {}) == "Hello "
    assert render("Hello {{deal.name}}", None) == "Hello "


def test_render_without_tokens_returns_template_unchanged() -> None:
    template = "No tokens here { not one }"
    assert render(template, {"a": 1}) is template


def test_render_tolerates_whitespace_inside_braces() -> None:
    assert render("{{  user.email }}", {"user": {"email": "a@b.c"}}) == "a@b.c"


def test_render_stringifies_non_string_values() -> None:
    ctx = {"qty": 3, "ok": True, "none": None, "price": 1.5}
    assert render("{{qty}}|{{ok}}|{{none}}|{{price}}", ctx) == "3|true||1.5"


def test_render_is_single_pass() -> None:
    """A value that looks like a token is not expanded again."""
    ctx = {"a": "{{b}}", "b": "x"}
    assert render("{{a}}", ctx) == "{{b}}"


def test_render_through_non_mapping_segment_is_empty() -> None:
    assert render("{{deal.name.first}}", {"deal": {"name": "Acme"}}) == ""


def test_resolve_path_returns_raw_value() -> None:
    ctx = {"order": {"items": [1, 2]}}
    assert resolve_path(ctx, "order.items") == [1, 2]
    assert resolve_path(ctx, "order.missing") is None


def test_render_leaves_control_blocks_and_filters_alone() -> None:
    ctx = {"x": "b"}
    template = "{% if x %}yes{% endif %} {{ x | upper }} {{x}}"
    assert render(template, ctx) == "{% if x %}yes{% endif %} {{ x | upper }} b"
