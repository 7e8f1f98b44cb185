import pytest

from docmeta.frontmatter import FrontmatterDetector, ReplacementRangeResolver


def test_full_rewrite_replaces_existing_block() -> None:
    raw = "---\ntitle: Old\n---\n# Old\n"

    rewritten = ReplacementRangeResolver().resolve_for_full_rewrite(raw, "---\ntitle: New\n---")

    assert rewritten == "---\ntitle: New\n---\n# Old\n"


@pytest.mark.parametrize(
    "raw",
    [
        "---\ntitle: A\ndescription: B\n---\n\n# A\n\nText\n",
        "---\ntitle: A\n---\nNo trailing newline",
        "---\ntitle: A\ncustom:\n  - x\n---\n",
    ],
)
def test_rewrite_with_unchanged_block_is_identity(raw: str) -> None:
    block = FrontmatterDetector().detect(raw).block
    final = f"---\n{block}\n---"

    assert ReplacementRangeResolver().resolve_for_full_rewrite(raw, final) == raw


def test_full_rewrite_prepends_when_no_block() -> None:
    raw = "# Title\n\nSome text"

    rewritten = ReplacementRangeResolver().resolve_for_full_rewrite(raw, "---\ntitle: Title\n---")

    assert rewritten == "---\ntitle: Title\n---\n# Title\n\nSome text"


def test_truncated_block_is_left_intact_below_prepend() -> None:
    raw = "---\ntitle: T\nbody"
    final = "---\ntitle: T\ndescription: D\n---"
    resolver = ReplacementRangeResolver()

    assert resolver.resolve_for_full_rewrite(raw, final) == f"{final}\n{raw}"
    suggestion = resolver.resolve_for_suggestion(raw, final)
    assert (suggestion.start_line, suggestion.end_line) == (1, 1)


def test_suggestion_covers_existing_block() -> None:
    raw = "---\ntitle: A\ndescription: B\n---\n\n# A"
    final = "---\ntitle: A\ndescription: C\n---"

    suggestion = ReplacementRangeResolver().resolve_for_suggestion(raw, final)

    assert suggestion.start_line == 1
    assert suggestion.end_line == 4
    assert suggestion.replacement_text == final


def test_suggestion_without_block_keeps_first_line() -> None:
    raw = "# Title\n\nSome text"
    final = "---\ntitle: Title\n---"

    suggestion = ReplacementRangeResolver().resolve_for_suggestion(raw, final)

    assert (suggestion.start_line, suggestion.end_line) == (1, 1)
    assert suggestion.replacement_text == "---\ntitle: Title\n---\n# Title"


def test_suggestion_on_empty_document() -> None:
    suggestion = ReplacementRangeResolver().resolve_for_suggestion("", "---\ntitle: T\n---")

    assert suggestion.end_line >= suggestion.start_line
    assert suggestion.replacement_text == "---\ntitle: T\n---\n"
