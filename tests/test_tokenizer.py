import pytest

from collection_search.text_utils import split_tags, split_words
from collection_search.tokenizer import TokenSet, Tokenizer


def test_split_words_folds_case_accents_and_punctuation():
    assert split_words("Pokémon: Eevee (Ver. 2)") == ["pokemon", "eevee", "ver", "2"]


def test_split_tags_accepts_commas_and_question_marks():
    assert split_tags("Goodsmile, Vocaloid?Racing,, ") == ["Goodsmile", "Vocaloid", "Racing"]
    assert split_tags(["a", " ", None, "b "]) == ["a", "b"]
    assert split_tags(None) == []


def test_tokenize_separates_core_and_supportive_words(tokenizer):
    tokens = tokenizer.tokenize("Nendoroid Hatsune Miku Racing 2024 Ver.")
    assert tokens.core == ("hatsune", "miku", "racing", "2024")
    assert tokens.supportive == ("nendoroid",)


def test_tokenize_drops_stop_words_and_single_characters(tokenizer):
    tokens = tokenizer.tokenize("The Rem 1/7 Scale PVC Figure")
    assert tokens.core == ("rem",)
    assert tokens.supportive == ()


def test_stop_words_only_yield_empty_token_set(tokenizer):
    tokens = tokenizer.tokenize("the a an")
    assert tokens == TokenSet(core=(), supportive=())
    assert not tokens


def test_multi_word_vendor_names_match_split_or_joined(tokenizer):
    split = tokenizer.tokenize("Good Smile Company Miku")
    joined = tokenizer.tokenize("GoodSmileCompany Miku")
    assert split == joined
    assert split.supportive == ("goodsmilecompany",)
    assert split.core == ("miku",)


def test_words_of_a_vendor_name_stay_core_on_their_own(tokenizer):
    assert tokenizer.tokenize("Zero Two Racing Suit") == TokenSet(core=("zero", "two", "racing", "suit"), supportive=())
    tokens = tokenizer.tokenize("Smile Precure Cure Happy Pop Up")
    assert tokens.supportive == ()
    assert tokens.core == ("smile", "precure", "cure", "happy", "pop", "up")


def test_longest_vendor_phrase_wins(tokenizer):
    tokens = tokenizer.tokenize("Bandai Spirits Goku and Bandai Vegeta")
    assert tokens.supportive == ("bandaispirits", "bandai")
    assert tokens.core == ("goku", "vegeta")
    assert "zero" not in tokenizer.supportive_vocabulary


def test_tokenize_is_idempotent(tokenizer):
    text = "Alter Saber Alter 1/7 2024"
    assert tokenizer.tokenize(text) == tokenizer.tokenize(text)


def test_tokenize_rejects_none(tokenizer):
    with pytest.raises(TypeError):
        tokenizer.tokenize(None)


def test_custom_vocabulary():
    custom = Tokenizer(stop_words=["box"], supportive_vocabulary=["Acme Toys"])
    tokens = custom.tokenize("Acme Toys Robot Box")
    assert tokens.core == ("robot",)
    assert tokens.supportive == ("acmetoys",)
