import pytest

from docmeta.frontmatter import ComplexityClassifier


@pytest.mark.parametrize("body", ["", None])
def test_empty_body_is_low(body) -> None:
    result = ComplexityClassifier().classify(body)

    assert result.score == "low"
    assert result.faq_count == 2


def test_moderate_length_is_medium() -> None:
    result = ComplexityClassifier().classify("a" * 900)

    assert result.score == "medium"
    assert result.faq_count == 3


def test_long_body_with_code_is_high() -> None:
    body = "```\ncode\n```\n" + "x" * 2100

    result = ComplexityClassifier().classify(body)

    assert result.code_block_count == 1
    assert result.score == "high"
    assert result.faq_count == 5


def test_many_headings_raise_the_tier() -> None:
    body = "\n".join(f"## Section {index}" for index in range(7))

    result = ComplexityClassifier().classify(body)

    assert result.heading_count == 7
    assert result.score == "medium"


def test_hashtags_are_not_headings() -> None:
    result = ComplexityClassifier().classify("#tag\n" * 10)

    assert result.heading_count == 0
    assert result.score == "low"


def test_unpaired_fence_is_not_counted() -> None:
    result = ComplexityClassifier().classify("```\nnever closed")

    assert result.code_block_count == 0


def test_classification_is_deterministic() -> None:
    body = "# Title\n\n" + "word " * 500 + "\n```py\nx = 1\n```\n"
    classifier = ComplexityClassifier()

    assert classifier.classify(body) == classifier.classify(body)
