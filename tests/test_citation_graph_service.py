import pytest

from citegraph.citation_graph_service import CitationGraphService
from citegraph.service_interfaces import Citation, GraphStoreInterface
from citegraph.validation_and_errors import ContractViolation


def _create(service, uid="user1", title="Graph Learning", citations=None):
    citations = citations if citations is not None else [
        Citation(id="p1", title="GCN", authors="T. Kipf, M. Welling", similarity_score=0.7),
        Citation(id="p2", title="GAT", authors="P. Velickovic", similarity_score=0.9),
    ]
    return service.create_project(
        uid=uid,
        title=title,
        keywords=["graphs"],
        embedding=[1.0, 0.0],
        citations=citations,
    )


def test_projects_by_user_include_scored_citations(citation_service):
    _create(citation_service)

    projects = citation_service.get_projects_by_user("user1")

    assert len(projects) == 1
    project = projects[0]
    assert project.title == "Graph Learning"
    assert project.keywords == ["graphs"]
    # highest score first
    assert [(c.id, c.similarity_score) for c in project.citations] == [("p2", 0.9), ("p1", 0.7)]


def test_projects_by_user_empty(citation_service):
    assert citation_service.get_projects_by_user("nobody") == []


def test_projects_by_user_only_returns_that_users_projects(citation_service):
    _create(citation_service, uid="alice", title="A")
    _create(citation_service, uid="bob", title="B")
    _create(citation_service, uid="alice", title="C")

    titles = [p.title for p in citation_service.get_projects_by_user("alice")]
    assert sorted(titles) == ["A", "C"]


def test_project_with_zero_citations_is_valid(citation_service):
    project_id = _create(citation_service, citations=[])

    project = citation_service.get_project_by_id(project_id)

    assert project is not None
    assert project.citations == []


def test_delete_citation_keeps_paper_node(citation_service, graph_store):
    project_id = _create(citation_service)

    removed = citation_service.delete_citation("user1", project_id, "p1")

    assert removed.id == "p1"
    assert removed.similarity_score == 0.7
    assert {p["id"] for p in graph_store.papers} == {"p1", "p2"}
    project = citation_service.get_project_by_id(project_id)
    assert [c.id for c in project.citations] == ["p2"]


def test_delete_citation_not_found(citation_service):
    project_id = _create(citation_service)

    assert citation_service.delete_citation("user1", project_id, "missing") is None
    assert citation_service.delete_citation("other-user", project_id, "p1") is None


def test_delete_project_cascades_relationships_only(citation_service, graph_store):
    project_id = _create(citation_service)

    removed = citation_service.delete_project("user1", project_id)

    assert removed.project_id == project_id
    assert len(removed.citations) == 2
    assert graph_store.searches == {}
    assert graph_store.relationships == []
    assert len(graph_store.papers) == 2
    assert citation_service.get_project_by_id(project_id) is None


def test_delete_project_not_found_returns_none(citation_service):
    assert citation_service.delete_project("user1", "4:fake:999") is None


def test_delete_project_requires_owner(citation_service):
    project_id = _create(citation_service)
    assert citation_service.delete_project("intruder", project_id) is None
    assert citation_service.get_project_by_id(project_id) is not None


class StaticRows(GraphStoreInterface):
    def __init__(self, rows):
        self.rows = rows

    def initialize(self):
        return True

    def execute(self, connection_name, query, parameters=None):
        return self.rows


def test_malformed_project_row_is_a_contract_violation():
    service = CitationGraphService(StaticRows([{"project": {"projectId": "x", "uid": "u"}}]))
    with pytest.raises(ContractViolation):
        service.get_project_by_id("x")


def test_malformed_citation_score_is_a_contract_violation():
    row = {"citation": {"id": "p", "title": "t", "authors": "a", "similarityScore": "high"}}
    service = CitationGraphService(StaticRows([row]))
    with pytest.raises(ContractViolation):
        service.delete_citation("u", "x", "p")


def test_create_project_requires_exactly_one_row():
    service = CitationGraphService(StaticRows([]))
    with pytest.raises(ContractViolation):
        service.create_project("u", "t", [], [1.0], [])
