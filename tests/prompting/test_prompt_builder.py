from pathlib import Path

from docmeta.frontmatter import FrontmatterDetector
from docmeta.models import Document
from docmeta.prompting.builder import PromptBuilder, sanitize_content


def test_create_prompt_lists_keywords_and_faqs() -> None:
    request = PromptBuilder().build_create("# Install\n\nRun the installer.", faq_count=3, path="a.md")

    prompt = request.user_prompt
    assert request.kind == "create"
    assert prompt.count("- [Keyword") == 5
    assert prompt.count("- question:") == 3
    assert "Run the installer." in prompt
    assert "Do not add `---` delimiters" in prompt
    assert request.system_prompt == PromptBuilder.SYSTEM_PROMPT
    assert request.metadata == {"faq_count": 3, "path": "a.md"}


def test_edit_prompt_includes_current_metadata() -> None:
    request = PromptBuilder().build_edit("title: Old\ncustom: x", "Body", faq_count=2)

    assert request.kind == "edit"
    assert "Current metadata:\ntitle: Old\ncustom: x" in request.user_prompt
    assert request.user_prompt.count("- question:") == 2


def test_build_for_picks_template_from_document() -> None:
    detector = FrontmatterDetector()
    builder = PromptBuilder(max_tokens=120, temperature=0.5)
    with_metadata = Document.from_text("a.md", "---\ntitle: A\n---\nBody", detector)
    without_metadata = Document.from_text("b.md", "# B\n\nBody", detector)

    edit = builder.build_for(with_metadata, faq_count=5)
    create = builder.build_for(without_metadata, faq_count=2)

    assert edit.kind == "edit"
    assert create.kind == "create"
    assert edit.max_tokens == 120
    assert create.temperature == 0.5


def test_templates_dir_overrides_packaged_templates(tmp_path: Path) -> None:
    (tmp_path / "create.j2").write_text("custom {{ faq_count }}: {{ content }}", encoding="utf-8")

    request = PromptBuilder(tmp_path).build_create("Body", faq_count=4)

    assert request.user_prompt == "custom 4: Body"


def test_content_is_truncated_to_limit() -> None:
    request = PromptBuilder(content_limit=10).build_create("x" * 50, faq_count=2)

    assert "x" * 10 in request.user_prompt
    assert "x" * 11 not in request.user_prompt


def test_sanitize_content() -> None:
    assert sanitize_content("a\r\nb\x00c\x07\n\n") == "a\nbc"
    assert sanitize_content(None) == ""
    assert len(sanitize_content("y" * 9000)) == 8000


def test_summary_prompt_points_at_preview_url() -> None:
    request = PromptBuilder(max_tokens=100, temperature=0.2).build_summary(
        "https://main--docs--acme.aem.page/guides/setup", path="src/pages/guides/setup.md"
    )

    assert request.kind == "summary"
    assert request.system_prompt is None
    assert request.user_prompt == (
        "https://main--docs--acme.aem.page/guides/setup "
        "Generate a summary in bulleted list form in 100 words or less"
    )
    assert request.max_tokens == 800
    assert request.temperature == 1.0
    assert request.metadata["path"] == "src/pages/guides/setup.md"
