import pytest

from mercure_hub.templates import TemplateError, template_regexp


@pytest.mark.parametrize(
    ("template", "topic"),
    [
        ("https://example.com/{foo}/bar", "https://example.com/foo/bar"),
        ("https://example.com/{fistname}/{lastname}", "https://example.com/kevin/dunglas"),
        ("http://example.com/reviews/{id}", "http://example.com/reviews/22"),
        ("https://example.com/books/{id}", "https://example.com/books/1"),
        (
            "https://example.com/users/foo/{?topic}",
            "https://example.com/users/foo/?topic=https%3A%2F%2Fexample.com%2Fbooks%2F1",
        ),
        (
            "/.well-known/mercure/subscriptions{/topic}{/subscriber}",
            "/.well-known/mercure/subscriptions/foo/bar",
        ),
        (
            "/.well-known/mercure/subscriptions{/topic}{/subscriber}",
            "/.well-known/mercure/subscriptions",
        ),
    ],
)
def test_matching_expansions(template, topic):
    assert template_regexp(template).fullmatch(topic) is not None
    assert template_regexp(template).match(topic).group(0) == topic


@pytest.mark.parametrize(
    ("template", "topic"),
    [
        ("https://example.com/{foo}/bar", "https://example.com/foo/bar/baz"),
        ("http://example.com/reviews/{id}", "http://example.com/books/1"),
        (
            "https://example.com/users/foo/{?topic}",
            "https://example.com/users/bar/?topic=https%3A%2F%2Fexample.com%2Fbooks%2F1",
        ),
        (
            "/.well-known/mercure/subscriptions/foo{/subscriber}",
            "/.well-known/mercure/subscriptions",
        ),
        (
            "/.well-known/mercure/subscriptions/foo{/subscriber}",
            "/.well-known/mercure/subscriptions/bar",
        ),
    ],
)
def test_non_matching_expansions(template, topic):
    assert template_regexp(template).fullmatch(topic) is None


def test_literal_template_matches_only_itself():
    pattern = template_regexp("https://example.com/foo/bar")
    assert pattern.fullmatch("https://example.com/foo/bar") is not None
    assert pattern.fullmatch("https://example.com/fooXbar") is None


def test_reserved_expansion_allows_slashes():
    pattern = template_regexp("http://example.com{+path}")
    assert pattern.fullmatch("http://example.com/foo/bar") is not None
    assert template_regexp("http://example.com{path}").fullmatch(
        "http://example.com/foo/bar"
    ) is None


def test_prefix_modifier_limits_length():
    pattern = template_regexp("http://example.com/{id:2}")
    assert pattern.fullmatch("http://example.com/22") is not None
    assert pattern.fullmatch("http://example.com/222") is None


@pytest.mark.parametrize(
    "template",
    [
        "http://example.com/hub?topic=faulty{iri",
        "http://example.com/}",
        "http://example.com/{}",
        "http://example.com/{=id}",
        "http://example.com/{a b}",
        "http://example.com/{id:0}",
        "http://example.com/%zz",
        "http://example.com/ {id}",
    ],
)
def test_invalid_templates(template):
    with pytest.raises(TemplateError):
        template_regexp(template)


def test_template_error_is_value_error():
    with pytest.raises(ValueError):
        template_regexp("faulty{iri")