from __future__ import annotations

from pathlib import Path

import pytest

from utils.errors import ScanError
from utils.scanner import Scanner, heading_level, scan, scan_lines

DOGEAR = "// test"

DOC = """# Guide

Intro text.

## Basics

```cpp
// setup only, no dogear here
int helper();
```

```cpp
#include <cstdio>
// test
int main() {
    return 0;
}
```

### Details

```python
// test
print("not cpp")
```

```cpp title="with info"
// test
int main(){return 0;}
```
"""


def test_extracts_only_dogeared_language_fences():
    cases = scan(DOC, "cpp", DOGEAR, source_path="docs/guide.md")

    assert len(cases) == 2
    first, second = cases
    assert first.source_path == "docs/guide.md"
    assert first.body == "int main() {\n    return 0;\n}"
    assert second.body == "int main(){return 0;}"


def test_line_numbers_point_at_dogear_and_closing_fence():
    lines = DOC.split("\n")
    first, second = scan(DOC, "cpp", DOGEAR)

    assert lines[first.start_line] == DOGEAR
    assert lines[first.end_line] == "```"
    assert (first.start_line, first.end_line) == (13, 17)
    assert lines[second.start_line] == DOGEAR
    assert first.start_line < first.end_line
    assert second.start_line < second.end_line


def test_heading_context_snapshot():
    first, second = scan(DOC, "cpp", DOGEAR)

    assert first.heading == ["Guide", "Basics"]
    assert second.heading == ["Guide", "Basics", "Details"]
    assert second.heading_at(3) == "Details"
    assert second.heading_at(4) == ""


def test_scan_is_deterministic():
    assert scan(DOC, "cpp", DOGEAR) == scan(DOC, "cpp", DOGEAR)


def test_untagged_fence_ignored_even_with_dogear():
    text = "```\n// test\nint main(){return 0;}\n```\n"
    assert scan(text, "cpp", DOGEAR) == []


def test_other_language_fence_ignored():
    text = "```c\n// test\nint main(){return 0;}\n```\n"
    assert scan(text, "cpp", DOGEAR) == []


def test_tagged_fence_without_dogear_ignored():
    text = "```cpp\nint main(){return 0;}\n```\n"
    assert scan(text, "cpp", DOGEAR) == []


def test_dogear_must_match_exactly():
    text = "```cpp\n  // test\nint main(){return 0;}\n```\n"
    assert scan(text, "cpp", DOGEAR) == []


def test_body_lines_kept_verbatim():
    text = "```cpp\n// test\n\n    indented  \n\tint x;\n```\n"
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.body == "\n    indented  \n\tint x;"


def test_empty_body_after_dogear():
    text = "```cpp\n// test\n```\n"
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.body == ""
    assert (case.start_line, case.end_line) == (1, 2)


def test_second_dogear_line_is_part_of_body():
    text = "```cpp\n// test\nint a;\n// test\n```\n"
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.body == "int a;\n// test"


def test_unterminated_fence_is_dropped():
    text = "```cpp\n// test\nint main(){return 0;}\n"
    assert scan(text, "cpp", DOGEAR) == []


def test_hash_lines_inside_fence_are_not_headings():
    text = (
        "# Real\n"
        "```cpp\n"
        "#define X 1\n"
        "```\n"
        "```cpp\n"
        "// test\n"
        "#include <cstdio>\n"
        "```\n"
    )
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.heading == ["Real"]
    assert case.body == "#include <cstdio>"


def test_headings_are_sticky_across_levels():
    text = (
        "# One\n"
        "## Two\n"
        "### Three\n"
        "# Other\n"
        "```cpp\n"
        "// test\n"
        "```\n"
    )
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.headings == ("Other", "Two", "Three", "")


def test_reset_nested_headings_clears_deeper_levels():
    text = (
        "# One\n"
        "## Two\n"
        "### Three\n"
        "# Other\n"
        "```cpp\n"
        "// test\n"
        "```\n"
    )
    (case,) = scan(text, "cpp", DOGEAR, reset_nested_headings=True)
    assert case.heading == ["Other"]


def test_headings_deeper_than_four_levels_ignored():
    text = "# Top\n##### Too deep\n```cpp\n// test\n```\n"
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.heading == ["Top"]


def test_heading_text_is_trimmed():
    text = "##   Spaced out   \n```cpp\n// test\n```\n"
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.heading_at(2) == "Spaced out"


def test_crlf_line_endings():
    text = "# Title\r\n```cpp\r\n// test\r\nint main(){return 0;}\r\n```\r\n"
    (case,) = scan(text, "cpp", DOGEAR)
    assert case.body == "int main(){return 0;}"
    assert case.heading == ["Title"]


def test_scan_lines_accepts_any_iterable():
    lines = iter(["```cpp", "// test", "int x;", "```"])
    (case,) = scan_lines(lines, "cpp", DOGEAR, source_path="x.md")
    assert case.source_path == "x.md"
    assert case.body == "int x;"


@pytest.mark.parametrize(
    ("line", "level"),
    [("# a", 1), ("#### d", 4), ("##### e", 0), ("plain", 0), ("#", 1)],
)
def test_heading_level(line, level):
    assert heading_level(line) == level


def test_scanner_scan_file(tmp_path: Path, make_settings):
    doc = tmp_path / "page.md"
    doc.write_text("# Page\n```cpp\n// test\nint main(){return 0;}\n```\n")

    (case,) = Scanner(make_settings()).scan_file(doc)

    assert case.source_path == str(doc)
    assert case.heading == ["Page"]


def test_scanner_scan_file_missing(tmp_path: Path, make_settings):
    with pytest.raises(ScanError) as excinfo:
        Scanner(make_settings()).scan_file(tmp_path / "missing.md")
    assert excinfo.value.path.endswith("missing.md")


def test_scanner_uses_settings_language_and_dogear(make_settings):
    settings = make_settings(language="c", dogear="/* run */")
    text = "```c\n/* run */\nint main(void){return 0;}\n```\n```python\n/* run */\n```\n"
    (case,) = Scanner(settings).scan_text(text)
    assert case.body == "int main(void){return 0;}"


def test_language_tag_is_a_prefix_match():
    text = "```cpp\n// test\nint x;\n```\n"
    (case,) = scan(text, "c", DOGEAR)
    assert case.body == "int x;"
