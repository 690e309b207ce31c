"""
Tokenizer for lexical (TF-IDF / BM25) text processing.

Tokenization pipeline:
1. Lowercase conversion
2. Replace everything except [a-z0-9], whitespace and hyphens with spaces
3. Split hyphenated words ("state-of-the-art" → "state", "of", "the", "art")
4. Split on whitespace
5. Drop single-character tokens and stopwords

Terms are NOT stemmed: "networks" and "network" are different terms.
"""

import re
from collections import Counter
from typing import Dict, FrozenSet, Iterable, List, Optional

# English stopwords: articles, conjunctions, prepositions, pronouns,
# auxiliary verbs and common quantifiers
STOPWORDS = frozenset([
    'a', 'an', 'the',
    'and', 'or', 'but', 'nor', 'for', 'so', 'yet',
    'in', 'on', 'at', 'to', 'of', 'with', 'by', 'from', 'up', 'about',
    'into', 'through', 'during',
    'i', 'you', 'he', 'she', 'it', 'we', 'they',
    'this', 'that', 'these', 'those',
    'is', 'are', 'was', 'were', 'be', 'been', 'being',
    'have', 'has', 'had', 'having', 'do', 'does', 'did', 'doing', 'done',
    'will', 'would', 'should', 'could', 'can', 'may', 'might', 'must',
    'as', 'if', 'than', 'then', 'when', 'where', 'why', 'how',
    'all', 'each', 'every', 'both', 'few', 'more', 'most', 'other', 'some',
    'such', 'no', 'not', 'only', 'own', 'same', 'too', 'very',
])

_NON_TERM_CHARS = re.compile(r'[^a-z0-9\s-]')


class Tokenizer:
    """
    Deterministic, side-effect free tokenizer shared by the index and scorers.

    The same instance must be used for indexing and querying, otherwise
    query terms and index terms may disagree.
    """

    def __init__(self, stopwords: Optional[Iterable[str]] = None):
        """
        Args:
            stopwords: Custom stopword set (default: STOPWORDS)
        """
        self.stopwords: FrozenSet[str] = frozenset(stopwords) if stopwords is not None else STOPWORDS

    def tokenize(self, text: str) -> List[str]:
        """
        Split text into index terms, preserving order and duplicates.

        Examples:
            >>> Tokenizer().tokenize("Attention Is All You Need!")
            ['attention', 'need']

            >>> Tokenizer().tokenize("Self-supervised ViT-B/16")
            ['self', 'supervised', 'vit', '16']

            >>> Tokenizer().tokenize("")
            []
        """
        if not text:
            return []

        text = text.lower()
        text = _NON_TERM_CHARS.sub(' ', text)
        text = text.replace('-', ' ')

        return [
            word for word in text.split()
            if len(word) > 1 and word not in self.stopwords
        ]

    def tokenize_with_counts(self, text: str) -> Dict[str, int]:
        """Term → occurrence count for the tokens of text."""
        return dict(Counter(self.tokenize(text)))


_default_tokenizer = Tokenizer()


def tokenize(text: str) -> List[str]:
    """Tokenize with the default stopword list."""
    return _default_tokenizer.tokenize(text)


def tokenize_with_counts(text: str) -> Dict[str, int]:
    """Term counts with the default stopword list."""
    return _default_tokenizer.tokenize_with_counts(text)
