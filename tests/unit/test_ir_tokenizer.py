"""
Unit tests for the lexical tokenizer (no stemming).
"""

import pytest

from paperhunter.ir.tokenizer import STOPWORDS, Tokenizer, tokenize, tokenize_with_counts

pytestmark = pytest.mark.unit


class TestTokenizer:
    """Test tokenization pipeline"""

    def test_basic_tokenization(self):
        """Test lowercase words are extracted in order"""
        assert tokenize("Graph Neural Networks") == ["graph", "neural", "networks"]

    def test_no_stemming(self):
        """Test that inflected forms stay distinct terms"""
        tokens = tokenize("network networks networking")
        assert tokens == ["network", "networks", "networking"]

    def test_hyphenated_words_are_split(self):
        """Test hyphens separate terms; stopwords inside compounds are dropped"""
        assert tokenize("state-of-the-art") == ["state", "art"]

    def test_punctuation_removal(self):
        """Test punctuation becomes a separator"""
        assert tokenize("Self-supervised ViT-B/16") == ["self", "supervised", "vit", "16"]
        assert tokenize("transformers, attention; (bert)") == ["transformers", "attention", "bert"]

    def test_numbers(self):
        """Test multi-digit numbers are kept, single characters dropped"""
        tokens = tokenize("PostgreSQL 15.3 with Python 3.11")
        assert "15" in tokens
        assert "11" in tokens
        assert "3" not in tokens
        assert "postgresql" in tokens
        assert "python" in tokens

    def test_stopwords_removed(self):
        """Test default stopwords never appear in output"""
        assert tokenize("Attention Is All You Need") == ["attention", "need"]

    def test_single_characters_removed(self):
        assert tokenize("a b c x y z") == []

    def test_non_ascii_letters_are_separators(self):
        """Test characters outside [a-z0-9] split words"""
        assert tokenize("naïve bayes") == ["na", "ve", "bayes"]

    def test_empty_string(self):
        """Test empty string returns empty list"""
        assert tokenize("") == []
        assert tokenize("   ") == []

    def test_only_stopwords(self):
        assert tokenize("the and of is") == []

    def test_duplicates_preserved(self):
        """Test duplicates are kept (term frequency needs them)"""
        assert tokenize("learning deep learning") == ["learning", "deep", "learning"]

    def test_deterministic(self):
        text = "Diffusion Models Beat GANs on Image Synthesis"
        assert tokenize(text) == tokenize(text)


class TestTokenizeWithCounts:
    """Test term counting"""

    def test_counts(self):
        counts = tokenize_with_counts("learning to learn, deep learning")
        assert counts == {"learning": 2, "learn": 1, "deep": 1}

    def test_empty(self):
        assert tokenize_with_counts("") == {}


class TestCustomStopwords:
    """Test tokenizer with a custom stopword set"""

    def test_custom_stopwords_replace_defaults(self):
        tokenizer = Tokenizer(stopwords={"paper"})
        assert tokenizer.tokenize("the paper") == ["the"]

    def test_default_stopwords(self):
        assert Tokenizer().stopwords == STOPWORDS
        assert "the" in STOPWORDS
