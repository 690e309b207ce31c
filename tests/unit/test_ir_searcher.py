"""
Unit tests for the IR search orchestrator.
"""

import threading

import pytest

from paperhunter.exceptions import EmptyIndexError, InvalidQueryError, UnknownAlgorithmError
from paperhunter.ir import BaseScorer, IRSearcher, SearchOptions, Tokenizer
from paperhunter.models import Paper

pytestmark = pytest.mark.unit


@pytest.fixture
def searcher(sample_papers):
    ir = IRSearcher()
    ir.build_index(sample_papers)
    return ir


class ConstantScorer(BaseScorer):
    """Scores every candidate 1.0"""

    name = "constant"

    def score_document(self, query_terms, doc_id):
        return 1.0


class TestBuildIndex:
    """Test index construction"""

    def test_build_empty_fails(self):
        with pytest.raises(InvalidQueryError):
            IRSearcher().build_index([])

    def test_build_indexes_all_documents(self, searcher, sample_papers):
        assert searcher.index.total_docs() == 3
        assert searcher.get_documents() == sample_papers
        assert searcher.get_document(1) is sample_papers[0]

    def test_rebuild_replaces_documents(self, searcher):
        searcher.build_index([Paper(title="Quantum Computing", abstract="")])

        assert searcher.index.total_docs() == 1
        assert searcher.index.document_frequency("learning") == 0
        assert len(searcher.get_documents()) == 1


class TestSearch:
    """Test single-algorithm search"""

    def test_bm25_returns_records(self, searcher, sample_papers):
        results = searcher.search(SearchOptions(query="vision", top_k=5))

        assert len(results) == 1
        assert results[0].document is sample_papers[2]

    def test_tfidf(self, searcher, sample_papers):
        results = searcher.search(SearchOptions(query="reinforcement", algorithm="tfidf"))
        assert [r.document for r in results] == [sample_papers[1]]

    def test_default_top_k(self, searcher):
        """Test top_k <= 0 falls back to 10"""
        results = searcher.search(SearchOptions(query="learning", top_k=0))
        assert len(results) == 3

    def test_empty_algorithm_defaults_to_bm25(self, searcher):
        results = searcher.search(SearchOptions(query="learning", algorithm=""))
        expected = searcher.search(SearchOptions(query="learning", algorithm="bm25"))
        assert [r.doc_id for r in results] == [r.doc_id for r in expected]

    def test_unknown_algorithm(self, searcher):
        with pytest.raises(UnknownAlgorithmError, match="Unknown ranking algorithm: lsi"):
            searcher.search(SearchOptions(query="learning", algorithm="lsi"))

    def test_empty_query(self, searcher):
        with pytest.raises(InvalidQueryError):
            searcher.search(SearchOptions(query="  "))

    def test_empty_index(self):
        with pytest.raises(EmptyIndexError):
            IRSearcher().search(SearchOptions(query="learning"))

    def test_results_sorted_by_score(self, searcher):
        results = searcher.search(SearchOptions(query="learning transformers vision"))
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)


class TestSearchMultiple:
    """Test algorithm comparison"""

    def test_all_algorithms(self, searcher):
        results = searcher.search_multiple("learning", top_k=2)

        assert set(results) == {"tfidf", "bm25"}
        assert all(len(r) == 2 for r in results.values())

    def test_selected_algorithms(self, searcher):
        results = searcher.search_multiple("learning", algorithms=["tfidf"])
        assert list(results) == ["tfidf"]

    def test_unknown_algorithm(self, searcher):
        with pytest.raises(UnknownAlgorithmError):
            searcher.search_multiple("learning", algorithms=["bm25", "lsi"])


class TestAddDocument:
    """Test incremental indexing"""

    def test_add_to_built_index(self, searcher):
        paper = Paper(title="Quantum Error Correction", abstract="")

        doc_id = searcher.add_document(paper)

        assert doc_id == 4
        results = searcher.search(SearchOptions(query="quantum"))
        assert [r.document for r in results] == [paper]

    def test_add_to_empty_index(self):
        ir = IRSearcher()
        assert ir.add_document(Paper(title="Graph Networks")) == 1
        assert not ir.is_empty()

    def test_add_none(self, searcher):
        with pytest.raises(InvalidQueryError):
            searcher.add_document(None)


class TestLifecycle:
    """Test clear, parameters and stats"""

    def test_clear(self, searcher):
        searcher.clear()

        assert searcher.is_empty()
        assert searcher.index.total_docs() == 0
        with pytest.raises(EmptyIndexError):
            searcher.search(SearchOptions(query="learning"))

    def test_clear_keeps_bm25_parameters(self, searcher):
        searcher.set_bm25_parameters(1.2, 0.5)
        searcher.clear()
        assert searcher.get_bm25_parameters() == (1.2, 0.5)

    def test_set_bm25_parameters_changes_scores(self, searcher):
        before = searcher.search(SearchOptions(query="learning"))[0].score
        searcher.set_bm25_parameters(3.0, 0.2)
        after = searcher.search(SearchOptions(query="learning"))[0].score
        assert before != after

    @pytest.mark.parametrize("k1,b", [(0.0, 0.5), (-1.0, 0.5), (1.5, -0.1), (1.5, 1.1)])
    def test_invalid_bm25_parameters(self, searcher, k1, b):
        with pytest.raises(InvalidQueryError):
            searcher.set_bm25_parameters(k1, b)
        assert searcher.get_bm25_parameters() == (1.5, 0.75)

    def test_stats(self, searcher):
        stats = searcher.stats()

        assert stats["total_papers"] == 3
        assert stats["total_docs"] == 3
        assert stats["vocabulary_size"] == searcher.index.vocabulary_size()
        assert stats["average_doc_length"] > 0
        assert stats["bm25_k1"] == 1.5
        assert stats["bm25_b"] == 0.75
        assert stats["algorithms"] == ["tfidf", "bm25"]


class TestRegisterScorer:
    """Test pluggable ranking functions"""

    def test_registered_scorer_is_searchable(self, searcher):
        searcher.register_scorer("constant", ConstantScorer(searcher.index))

        results = searcher.search(SearchOptions(query="learning", algorithm="constant"))

        assert [r.doc_id for r in results] == [1, 2, 3]
        assert all(r.score == 1.0 for r in results)
        assert "constant" in searcher.algorithms

    def test_registered_scorer_uses_searcher_tokenizer(self, searcher):
        """Test a scorer built with another tokenizer is rebound to the index tokenizer"""
        scorer = ConstantScorer(searcher.index, tokenizer=Tokenizer(stopwords={"learning"}))

        searcher.register_scorer("constant", scorer)
        results = searcher.search(SearchOptions(query="learning", algorithm="constant"))

        assert scorer.tokenizer is searcher.tokenizer
        assert [r.doc_id for r in results] == [1, 2, 3]

    def test_registered_scorer_follows_rebuild(self, searcher):
        searcher.register_scorer("constant", ConstantScorer(searcher.index))
        searcher.build_index([Paper(title="Quantum Computing")])

        results = searcher.search(SearchOptions(query="quantum", algorithm="constant"))
        assert [r.doc_id for r in results] == [1]


class TestFindDocument:
    """Test record lookup"""

    def test_found(self, searcher, sample_papers):
        assert searcher.find_document(lambda p: p.id == 102) == (2, sample_papers[1])

    def test_missing(self, searcher):
        assert searcher.find_document(lambda p: p.id == 999) is None


class TestConcurrentRebuild:
    """Test searches never observe a partially built index"""

    def test_search_during_rebuild_and_clear(self):
        small = [Paper(id=i, title=f"Common topic {i}", abstract="shared words") for i in range(3)]
        large = [Paper(id=100 + i, title=f"Common theme {i}", abstract="shared words") for i in range(40)]
        ir = IRSearcher()
        ir.build_index(small)

        stop = threading.Event()
        observed = []
        errors = []

        def writer():
            for i in range(60):
                if i % 10 == 9:
                    ir.clear()
                ir.build_index(large if i % 2 else small)
            stop.set()

        def reader():
            while not stop.is_set():
                try:
                    results = ir.search(SearchOptions(query="common", top_k=100))
                except EmptyIndexError:
                    continue
                except Exception as e:
                    errors.append(e)
                    return
                ids = {r.document.id for r in results}
                stats = ir.stats()
                observed.append((len(results), ids, stats["total_docs"]))

        readers = [threading.Thread(target=reader) for _ in range(4)]
        writer_thread = threading.Thread(target=writer)
        for t in readers:
            t.start()
        writer_thread.start()
        writer_thread.join(timeout=30)
        stop.set()
        for t in readers:
            t.join(timeout=30)

        assert errors == []
        small_ids = {p.id for p in small}
        large_ids = {p.id for p in large}
        for count, ids, total_docs in observed:
            # Every result set is exactly one complete corpus
            assert (count, ids) in ((3, small_ids), (40, large_ids))
            assert total_docs in (0, 3, 40)
