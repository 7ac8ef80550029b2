import pytest

from citegraph.cypher import corpus_queries
from citegraph.service_interfaces import CorpusSchema
from citegraph.validation_and_errors import (
    ContractViolation,
    DataValidator,
    GraphRowDecoder,
    UpstreamFailure,
)


def test_decode_project_sorts_citations_by_score():
    project = GraphRowDecoder.decode_project({
        "projectId": "4:x:1",
        "uid": "u",
        "title": "T",
        "keywords": ["a"],
        "citations": [
            {"id": "1", "title": "one", "authors": "A", "similarityScore": 0.2},
            {"id": "2", "title": "two", "authors": "B", "similarityScore": 0.6},
            {"id": "3", "title": "three", "authors": "C", "similarityScore": 0.2},
        ],
    })
    assert [c.id for c in project.citations] == ["2", "1", "3"]


def test_decode_project_accepts_null_keywords_and_citations():
    project = GraphRowDecoder.decode_project(
        {"projectId": "p", "uid": "u", "title": "T", "keywords": None, "citations": None}
    )
    assert project.keywords == []
    assert project.citations == []


@pytest.mark.parametrize("raw", [
    None,
    [],
    {"uid": "u", "title": "T"},
    {"projectId": 5, "uid": "u", "title": "T"},
    {"projectId": "p", "uid": "u", "title": "T", "keywords": "not-a-list"},
    {"projectId": "p", "uid": "u", "title": "T", "citations": [{"id": "1"}]},
])
def test_decode_project_rejects_bad_shapes(raw):
    with pytest.raises(ContractViolation):
        GraphRowDecoder.decode_project(raw)


def test_decode_citation_rejects_boolean_score():
    with pytest.raises(ContractViolation):
        GraphRowDecoder.decode_citation(
            {"id": "1", "title": "t", "authors": "a", "similarityScore": True}
        )


def test_column_requires_presence():
    assert GraphRowDecoder.column({"a": None}, "a") is None
    with pytest.raises(ContractViolation):
        GraphRowDecoder.column({}, "a")


def test_validate_predictions_rejects_non_finite_values():
    with pytest.raises(ContractViolation):
        DataValidator.validate_predictions(["a"], [[float("nan"), 1.0]])


def test_validate_predictions_rejects_none():
    with pytest.raises(ContractViolation):
        DataValidator.validate_predictions(["a"], None)


@pytest.mark.parametrize("schema", [
    CorpusSchema(label="Movie) DETACH DELETE (x"),
    CorpusSchema(id_property="id}"),
    CorpusSchema(index_name="bad index"),
    CorpusSchema(similarity_function="dot"),
    CorpusSchema(dimensions=0),
])
def test_corpus_schema_names_are_validated(schema):
    with pytest.raises(ContractViolation):
        corpus_queries(schema)


def test_corpus_queries_render_schema_names():
    schema = CorpusSchema(
        label="Paper",
        id_property="paperId",
        title_property="title",
        text_property="abstract",
        score_property="citationCount",
        index_name="paper-index",
        dimensions=1536,
    )
    queries = corpus_queries(schema)

    assert "MATCH (n:Paper)" in queries.fetch_missing
    assert "ORDER BY n.citationCount DESC" in queries.fetch_missing
    assert "{paperId: embedded.id}" in queries.set_embeddings
    assert "`paper-index`" in queries.create_index
    assert "1536" in queries.create_index
    assert "'paper-index'" in queries.similar_by_title


def test_upstream_failure_names_service():
    error = UpstreamFailure("graph", "connection refused")
    assert error.service == "graph"
    assert str(error) == "graph: connection refused"
