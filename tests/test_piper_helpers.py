from pathlib import Path

from voice_companion.voice.piper_synthesis import chunk_text, voice_from_model_path


def test_voice_from_model_path_reads_language():
    voice = voice_from_model_path(Path("voices/en_US-amy-medium.onnx"))
    assert voice.display_name == "en_US-amy-medium"
    assert voice.language_tag == "en-US"


def test_voice_from_unconventional_name_has_no_language():
    voice = voice_from_model_path(Path("custom.onnx"))
    assert voice.display_name == "custom"
    assert voice.language_tag == ""


def test_chunk_text_groups_sentences():
    assert chunk_text("One. Two. Three.", 10) == ["One. Two.", "Three."]


def test_chunk_text_splits_long_sentence():
    assert chunk_text("abcdefghijklmnop", 5) == ["abcde", "fghij", "klmno", "p"]


def test_chunk_text_empty():
    assert chunk_text("  ", 100) == []
