from app.templating import evaluate_condition, is_truthy, render_template


def test_placeholders_are_replaced():
    assert render_template("Hello {{guestName}}!", {"guestName": "Alice"}) == "Hello Alice!"


def test_placeholders_tolerate_inner_whitespace():
    assert render_template("Hi {{ name }}", {"name": "Bob"}) == "Hi Bob"


def test_unknown_placeholder_renders_empty():
    assert render_template("Hello {{missing}}.", {}) == "Hello ."


def test_empty_template_renders_empty_string():
    assert render_template(None, {"a": 1}) == ""
    assert render_template("", {"a": 1}) == ""


def test_if_block_with_else():
    template = "{{#if isAttending}}See you there{{else}}We will miss you{{/if}}"
    assert render_template(template, {"isAttending": True}) == "See you there"
    assert render_template(template, {"isAttending": False}) == "We will miss you"


def test_unless_block():
    template = "{{#unless hasResponded}}Please reply{{/unless}}"
    assert render_template(template, {"hasResponded": False}) == "Please reply"
    assert render_template(template, {"hasResponded": True}) == ""


def test_nested_blocks():
    template = (
        "{{#if isAttending}}Yes{{#if hasPlusOne}} with {{plusOneName}}{{/if}}."
        "{{else}}No{{/if}}"
    )
    variables = {"isAttending": True, "hasPlusOne": True, "plusOneName": "Sam"}
    assert render_template(template, variables) == "Yes with Sam."
    variables["hasPlusOne"] = False
    assert render_template(template, variables) == "Yes."
    variables["isAttending"] = False
    assert render_template(template, variables) == "No"


def test_else_only_applies_to_own_block():
    template = "{{#if a}}{{#if b}}AB{{else}}A{{/if}}{{else}}none{{/if}}"
    assert render_template(template, {"a": True, "b": False}) == "A"
    assert render_template(template, {"a": False, "b": True}) == "none"


def test_comparison_conditions():
    template = '{{#if preferredLanguage === "lt"}}Labas{{else}}Hello{{/if}}'
    assert render_template(template, {"preferredLanguage": "lt"}) == "Labas"
    assert render_template(template, {"preferredLanguage": "en"}) == "Hello"
    assert evaluate_condition("rsvp_status != 'pending'", {"rsvp_status": "attending"})
    assert not evaluate_condition("rsvp_status == 'pending'", {"rsvp_status": "attending"})


def test_truthiness_rules():
    assert not is_truthy("")
    assert not is_truthy(None)
    assert not is_truthy(0)
    assert not is_truthy([])
    assert not is_truthy("undefined")
    assert is_truthy("text")
    assert is_truthy(1)
    assert is_truthy(["x"])


def test_unclosed_block_is_left_as_is():
    template = "Start {{#if flag}}never closed"
    assert render_template(template, {"flag": True}) == template


def test_blocks_resolve_before_placeholders():
    template = "{{#if dietary}}Diet: {{dietary}}{{/if}}"
    assert render_template(template, {"dietary": "vegan"}) == "Diet: vegan"
    assert render_template(template, {"dietary": ""}) == ""


def test_malformed_opening_tag_keeps_remainder_and_fills_placeholders():
    template = "Dear {{guestName}}, {{#if isAttending see you soon"
    assert render_template(template, {"guestName": "Alice", "isAttending": True}) == (
        "Dear Alice, {{#if isAttending see you soon"
    )


def test_zero_and_non_empty_list_in_blocks():
    template = "{{#if count}}A{{else}}B{{/if}}"
    assert render_template(template, {"count": 0}) == "B"
    assert render_template(template, {"count": [1]}) == "A"


def test_rendering_output_again_changes_nothing():
    template = (
        "Hi {{guestName}}! {{#if isAttending}}See you, {{plusOneName}}{{else}}Sorry{{/if}}"
        "{{#unless hasResponded}} Reply soon{{/unless}}"
    )
    variables = {"guestName": "Alice", "isAttending": True, "plusOneName": "Sam", "hasResponded": False}

    once = render_template(template, variables)

    assert once == "Hi Alice! See you, Sam Reply soon"
    assert render_template(once, variables) == once
