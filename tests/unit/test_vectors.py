"""
Unit tests for vector blob encoding and similarity helpers.
"""

import struct

import numpy as np
import pytest

from paperhunter.exceptions import VectorDecodeError
from paperhunter.vectors import (
    average_vectors,
    cosine_similarity,
    decode_vector,
    encode_vector,
    rank_by_similarity,
)

pytestmark = pytest.mark.unit


class TestBlobEncoding:
    """Test float32 blob format"""

    def test_round_trip_is_exact(self):
        original = np.array([0.1, -2.5, 3.0], dtype=np.float32)

        decoded = decode_vector(encode_vector(original))

        assert decoded.dtype == np.float32
        assert np.array_equal(decoded, original)

    def test_little_endian_layout(self):
        """Test bytes match consecutive little-endian float32 values"""
        assert encode_vector([1.0, -2.0]) == struct.pack("<2f", 1.0, -2.0)

    def test_blob_length(self):
        assert len(encode_vector([0.0] * 768)) == 768 * 4

    def test_empty_vector(self):
        assert encode_vector([]) == b""

    def test_truncated_blob_rejected(self):
        blob = encode_vector([1.0, 2.0])[:-1]
        with pytest.raises(VectorDecodeError, match="multiple of 4"):
            decode_vector(blob)

    def test_dimension_mismatch_rejected(self):
        with pytest.raises(VectorDecodeError, match="dimension"):
            decode_vector(encode_vector([1.0, 2.0, 3.0]), expected_dim=768)

    def test_missing_blob_rejected(self):
        with pytest.raises(VectorDecodeError):
            decode_vector(None)

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_vector(b"\x00\x00\x00")


class TestCosineSimilarity:
    """Test cosine similarity"""

    def test_self_similarity(self):
        v = [0.3, -1.2, 4.5]
        assert cosine_similarity(v, v) == pytest.approx(1.0, abs=1e-6)

    def test_orthogonal(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0, abs=1e-9)

    def test_opposite(self):
        assert cosine_similarity([1, 2], [-1, -2]) == pytest.approx(-1.0)

    def test_zero_vector(self):
        assert cosine_similarity([0, 0], [1, 1]) == 0.0

    def test_length_mismatch(self):
        assert cosine_similarity([1, 0, 0], [1, 0]) == 0.0


class TestAverageVectors:
    """Test centroid computation"""

    def test_centroid(self):
        centroid = average_vectors([[1, 0], [0, 1], [1, 1]])

        assert centroid.dtype == np.float32
        assert centroid.tolist() == pytest.approx([0.667, 0.667], abs=1e-3)

    def test_single_vector(self):
        assert average_vectors([[0.5, 1.5]]).tolist() == [0.5, 1.5]

    def test_empty_list(self):
        with pytest.raises(ValueError):
            average_vectors([])

    def test_mixed_dimensions(self):
        with pytest.raises(ValueError, match="different dimensions"):
            average_vectors([[1, 0], [1, 0, 0]])


class TestRankBySimilarity:
    """Test brute-force ranking"""

    def test_sorted_descending(self):
        candidates = [("far", [0, 1]), ("close", [1, 0.1]), ("exact", [1, 0])]

        ranked = rank_by_similarity([1, 0], candidates, top_k=10)

        assert [item for item, _ in ranked] == ["exact", "close", "far"]
        assert ranked[0][1] == pytest.approx(1.0)

    def test_top_k(self):
        candidates = [(i, [1, i]) for i in range(5)]
        assert len(rank_by_similarity([1, 0], candidates, top_k=2)) == 2

    def test_non_positive_top_k(self):
        assert rank_by_similarity([1, 0], [("a", [1, 0])], top_k=0) == []

    def test_ties_keep_input_order(self):
        candidates = [("first", [2, 0]), ("second", [1, 0]), ("third", [3, 0])]
        ranked = rank_by_similarity([1, 0], candidates, top_k=3)
        assert [item for item, _ in ranked] == ["first", "second", "third"]
