"""Tests for CSV vocabulary loading."""

from wquiz.models import WordPair
from wquiz.vocabulary import VocabularyManager


def test_load_vocabularies(vocab_dir):
    (vocab_dir / "basic_verbs.csv").write_text(
        "id,original,translation\n10,comer,eat\n20,beber,drink\n", encoding="utf-8"
    )
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()

    assert manager.get_vocabularies() == [
        {"id": 1, "name": "Animals", "count": 3},
        {"id": 2, "name": "Basic Verbs", "count": 2},
    ]
    assert manager.get_words(1)[2] == WordPair(id=3, original="cão", translation="dog")
    assert [w.id for w in manager.get_words(2)] == [10, 20]


def test_legacy_word_column(tmp_path):
    (tmp_path / "german.csv").write_text("word,translation\nHund,dog\n", encoding="utf-8")
    manager = VocabularyManager(str(tmp_path))
    manager.load_all()
    assert manager.get_words(1) == [WordPair(id=1, original="Hund", translation="dog")]


def test_invalid_files_are_skipped(tmp_path):
    (tmp_path / "broken.csv").write_text("foo,bar\n1,2\n", encoding="utf-8")
    manager = VocabularyManager(str(tmp_path))
    manager.load_all()

    vocabularies = manager.get_vocabularies()
    assert vocabularies == [{"id": 1, "name": "Default Dummy", "count": 5}]


def test_missing_directory_is_created(tmp_path):
    directory = tmp_path / "vocabulary"
    manager = VocabularyManager(str(directory))
    manager.load_all()

    assert directory.exists()
    assert manager.get_words(1)[0].original == "Hund"


def test_select_words_by_id(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()

    assert [w.id for w in manager.get_words(1, [3, 1])] == [1, 3]
    assert manager.get_words(9) == []


def test_remove_and_update_word(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()

    assert manager.remove_word(1, 2)
    assert not manager.remove_word(1, 2)
    assert [w.id for w in manager.get_words(1)] == [1, 3]

    edited = WordPair(id=1, original="gata", translation="cat")
    assert manager.update_word(1, edited)
    assert manager.get_words(1)[0] == edited
    assert not manager.update_word(1, WordPair(id=2, original="x", translation="y"))
