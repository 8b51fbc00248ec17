import pytest

from modelflow.renderers.errors import RenderError
from modelflow.renderers.preflight import preflight_check, strip_leading_directives


def test_strip_leading_directives_skips_theme_config_and_comments():
    markup = "\n".join(
        [
            "%%{init: {'theme': 'dark'}}%%",
            "%% @config",
            "{",
            '  "er": {"fontSize": 12}',
            "}",
            "%%",
            "%% a comment",
            "",
            "erDiagram",
            "  A ||--o{ B : has",
        ]
    )
    assert strip_leading_directives(markup) == "erDiagram\n  A ||--o{ B : has"


def test_strip_leading_directives_handles_multi_line_init():
    markup = "%%{\n  init: {'theme': 'forest'}\n}%%\ngraph TD\n  A --> B"
    assert strip_leading_directives(markup).startswith("graph TD")


def test_preflight_accepts_valid_markup():
    markup = "%%{init: {'theme': 'dark'}}%%\ngraph LR\n  A --> B"
    assert preflight_check(markup) == markup


def test_preflight_rejects_empty_markup():
    with pytest.raises(RenderError, match="empty"):
        preflight_check("  \n ")


def test_preflight_rejects_unknown_diagram_type():
    with pytest.raises(RenderError, match="valid Mermaid syntax"):
        preflight_check("%% only a comment\nUSER ||--o{ POST : writes")


def test_preflight_rejects_unterminated_init_directive():
    with pytest.raises(RenderError, match="Unterminated init directive"):
        preflight_check("%%{init: {\n  'theme': 'dark'\ngraph TD\n  A --> B")
