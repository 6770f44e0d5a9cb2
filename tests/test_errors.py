from __future__ import annotations

from erbmark.errors import TemplateFormatError, UnrecognizedContentError


def test_error_location_and_str() -> None:
    error = UnrecognizedContentError("Unrecognized content: '<?'", filename="a.erb", line=7)
    assert isinstance(error, TemplateFormatError)
    assert error.location == "a.erb:7"
    assert str(error) == "a.erb:7: Unrecognized content: '<?'"


def test_diagnostics() -> None:
    error = TemplateFormatError(
        "Unmatched close tag",
        filename="show.html.erb",
        line=3,
        frame="p",
        formatted="<div>\n  <p>",
        stack=["div: <div>", "p: <p>"],
    )
    assert error.diagnostics() == (
        "show.html.erb:3: in `p'\n"
        "==> FORMATTED:\n"
        "<div>\n"
        "  <p>\n"
        "==> STACK:\n"
        "  div: <div>\n"
        "  p: <p>\n"
        "==> ERROR: Unmatched close tag"
    )


def test_diagnostics_empty_stack() -> None:
    error = TemplateFormatError("Oops")
    assert error.location == "(template):1"
    assert "in `(top level)'" in error.diagnostics()
    assert "==> STACK:\n  (empty)\n" in error.diagnostics()
