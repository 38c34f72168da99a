from longform_scripts.application.stitcher import (
    CHUNK_SEPARATOR,
    dedupe_chunk_sections,
    remove_duplicate_sections,
    stitch_chunks,
    strip_meta_commentary,
)


def test_chunks_joined_in_order_with_separator():
    script = stitch_chunks(["### One\nFirst part.", "### Two\nSecond part."])
    assert script == "### One\nFirst part." + CHUNK_SEPARATOR + "### Two\nSecond part."


def test_meta_commentary_lines_removed():
    text = "Here's the expanded section:\n### Opening\nReal narration.\nI'll continue with more detail:\nMore narration."
    cleaned = strip_meta_commentary(text)
    assert "Here's the expanded" not in cleaned
    assert "I'll continue" not in cleaned
    assert "Real narration." in cleaned and "More narration." in cleaned


def test_word_count_blocks_removed():
    script = stitch_chunks(["### One\nNarration. [Word count: 1950]", "### Two\nMore. [Total word count added: 300]"])
    assert "Word count" not in script
    assert "word count added" not in script


def test_repeated_header_inside_chunk_dropped():
    text = "### Opening\nWelcome to the show.\n### Opening\nWelcome again to the show."
    assert dedupe_chunk_sections(text) == "### Opening\nWelcome to the show."


def test_near_identical_content_under_new_header_dropped():
    body = "Tacoma Narrows twisted itself apart because wind forcing matched its natural frequency."
    text = f"### The Collapse\n{body}\n### What Happened\n{body}\n### Lessons\nSomething different entirely."
    result = dedupe_chunk_sections(text)
    assert "### The Collapse" in result
    assert "### What Happened" not in result
    assert "### Lessons" in result


def test_text_before_first_header_kept():
    text = "[0:00] Cold open.\n### Opening\nNarration."
    assert dedupe_chunk_sections(text).startswith("[0:00] Cold open.")


def test_final_pass_keeps_first_occurrence_across_chunks():
    script = "## Part\nintro\n### Resonance\nfirst telling\n### Other\nx\n### resonance\nsecond telling"
    result = remove_duplicate_sections(script)
    assert "first telling" in result
    assert "second telling" not in result
    assert result.count("### ") == 2


def test_stitch_removes_cross_chunk_duplicates():
    script = stitch_chunks(["### Resonance\nfirst telling", "### Resonance\nsecond telling", "### End\nbye"])
    assert "first telling" in script
    assert "second telling" not in script
    assert script.rstrip().endswith("bye")
