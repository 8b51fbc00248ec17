import pytest

from modelflow.editor.directives import SnippetKind
from modelflow.editor.splicer import splice_snippet


DARK = "%%{init: {'theme': 'dark'}}%%"
FOREST = "%%{init: {'theme': 'forest'}}%%"

ERD = """erDiagram
    USER {
        string id
    }"""


def test_theme_goes_above_header():
    result = splice_snippet(ERD, DARK, "ER")
    assert result.content == DARK + "\n" + ERD
    assert result.snippet_kind is SnippetKind.THEME
    assert result.title == "Theme Applied"
    assert result.message == "Set theme to: dark"


def test_theme_replaces_existing_theme():
    result = splice_snippet(DARK + "\n" + ERD, FOREST, "ER")
    assert result.content.count("%%{init") == 1
    assert result.content.startswith(FOREST + "\nerDiagram")


def test_layout_replaces_header_and_keeps_misplaced_theme_on_top():
    content = "erDiagram\n" + DARK + "\n  A ||--o{ B : has"
    result = splice_snippet(content, "erDiagram LR", "ER")
    assert result.content == DARK + "\nerDiagram LR\n  A ||--o{ B : has"
    assert result.title == "Layout Applied"
    assert result.message == "Diagram layout set to: erDiagram LR"


def test_duplicate_directives_are_dropped():
    content = "\n".join([DARK, FOREST, "graph TD", "graph LR", "    A --> B"])
    result = splice_snippet(content, "graph LR", "DFD")
    assert result.content == DARK + "\ngraph LR\n    A --> B"


def test_flowchart_header_is_replaced_by_layout():
    result = splice_snippet("flowchart TD\n    A --> B", "graph LR", "DFD")
    assert result.content == "graph LR\n    A --> B"


def test_config_block_replaced_and_placed_after_theme():
    content = "\n".join([DARK, "erDiagram", "%% @config", '{"a": 1}', "%%", "  A ||--o{ B : has"])
    new_config = '%% @config\n{"b": 2}\n%%'
    result = splice_snippet(content, new_config, "ER")
    assert result.content == "\n".join(
        [DARK, "%% @config", '{"b": 2}', "%%", "erDiagram", "  A ||--o{ B : has"]
    )
    assert result.title == "Config Applied"


def test_content_appended_with_blank_separator():
    result = splice_snippet(ERD, "    POST {\n        string id\n    }", "ER")
    assert result.content == ERD + "\n\n    POST {\n        string id\n    }"
    assert result.title == "Snippet Added"


def test_content_after_open_brace_has_no_separator():
    result = splice_snippet("erDiagram\n    USER {", "        string name", "ER")
    assert result.content == "erDiagram\n    USER {\n        string name"


def test_comment_appended_without_separator():
    result = splice_snippet("graph TD\n    A --> B", "    %% This is a comment", "DFD")
    assert result.content == "graph TD\n    A --> B\n    %% This is a comment"
    assert result.snippet_kind is SnippetKind.COMMENT
    assert result.message == "Comment appended to the diagram."


def test_content_without_header_gets_default_header():
    result = splice_snippet("%% just a note", "A --> B", "DFD")
    assert result.content == "%% just a note\ngraph TD\n\nA --> B"


def test_empty_buffer_uses_minimal_content():
    result = splice_snippet(None, DARK, "DFD")
    assert result.content == DARK + "\ngraph TD"
    assert splice_snippet("", "erDiagram LR", "ER").content == "erDiagram LR"


def test_blank_runs_collapse_and_trailing_whitespace_is_removed():
    content = "graph TD\n\n\n\n    A --> B   \n\n"
    result = splice_snippet(content, "%% c", "DFD")
    assert result.content == "graph TD\n\n    A --> B\n%% c"


def test_generic_insert_leaves_directives_alone():
    content = "\n".join([DARK, FOREST, "erDiagram", "  A ||--o{ B : has"])
    result = splice_snippet(content, "  B ||--o{ C : has", "ER")
    assert result.content.count("%%{init") == 2


def test_empty_snippet_rejected():
    with pytest.raises(ValueError):
        splice_snippet(ERD, "   ", "ER")


def test_untitled_kind_rejected():
    with pytest.raises(ValueError):
        splice_snippet(ERD, DARK, "Untitled")


def test_header_with_semicolon_is_not_duplicated():
    result = splice_snippet("graph TD;\n    A --> B;", DARK, "DFD")
    assert result.content == DARK + "\ngraph TD;\n    A --> B;"


def test_layout_replaces_flowchart_header_with_semicolon():
    result = splice_snippet("flowchart LR;\n    A --> B;", "graph TD", "DFD")
    assert result.content == "graph TD\n    A --> B;"


def test_unrecognised_header_suppresses_default_header():
    result = splice_snippet("graph TD %% main flow\n    A --> B", DARK, "DFD")
    assert result.content == DARK + "\ngraph TD %% main flow\n    A --> B"


def test_unterminated_config_block_keeps_entity_body():
    content = "erDiagram\n%% @config\n    USER {\n        string id\n    }"
    result = splice_snippet(content, DARK, "ER")
    assert result.content == "\n".join(
        [DARK, "%% @config", "erDiagram", "    USER {", "        string id", "    }"]
    )
