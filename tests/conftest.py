"""Shared fakes for the embedding backend, paper search API and graph store."""

import itertools
from typing import Any, Dict, List, Optional

import numpy as np
import pytest

from citegraph import cypher
from citegraph.batch_embedder import BatchEmbedder
from citegraph.citation_graph_service import CitationGraphService
from citegraph.cypher import corpus_queries
from citegraph.security_config import SecureConfig
from citegraph.service_interfaces import (
    Author,
    CorpusSchema,
    EmbeddingInterface,
    GraphStoreInterface,
    Paper,
    PaperSearchInterface,
)
from pipelines.similarity_pipeline import SimilarityPipeline


class FakeEmbedding(EmbeddingInterface):
    """Looks vectors up by text; unknown texts get a default vector"""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, default=None, drop_last=False):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0]
        self.drop_last = drop_last
        self.calls: List[List[str]] = []

    def embed_batch(self, texts):
        self.calls.append(list(texts))
        result = [list(self.vectors.get(t, self.default)) for t in texts]
        if self.drop_last and result:
            result = result[:-1]
        return result

    @property
    def call_sizes(self):
        return [len(c) for c in self.calls]


class FakePaperSearch(PaperSearchInterface):
    def __init__(self, results: Optional[Dict[str, List[Paper]]] = None):
        self.results = results or {}
        self.calls: List[Dict[str, Any]] = []

    def search(self, query, limit=10, fields=None):
        self.calls.append({"query": query, "limit": limit, "fields": set(fields or ())})
        return list(self.results.get(query, []))[:limit]


def _cosine(a, b):
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))


class FakeGraphStore(GraphStoreInterface):
    """
    Dict-backed stand-in for Neo4j that understands the statements in
    citegraph.cypher for the default corpus schema.
    """

    def __init__(self, schema: Optional[CorpusSchema] = None):
        self.schema = schema or CorpusSchema()
        self.corpus_queries = corpus_queries(self.schema)
        self.calls: List[Dict[str, Any]] = []
        self.corpus: Dict[str, Dict[str, Any]] = {}
        self.searches: Dict[str, Dict[str, Any]] = {}
        self.papers: List[Dict[str, Any]] = []
        self.relationships: List[Dict[str, Any]] = []
        self.indexes: List[str] = []
        self._ids = itertools.count(1)

    def initialize(self):
        return True

    def add_entity(self, entity_id, title, text, score, embedding=None):
        self.corpus[entity_id] = {
            "id": entity_id,
            "title": title,
            "text": text,
            "score": score,
            "embedding": embedding,
        }

    def calls_for(self, query):
        return [c for c in self.calls if c["query"] == query]

    def execute(self, connection_name, query, parameters=None):
        params = parameters or {}
        self.calls.append({"connection": connection_name, "query": query, "params": params})
        q = self.corpus_queries

        if query == q.fetch_missing:
            return self._fetch_missing(params["limit"])
        if query == q.set_embeddings:
            for item in params["entities"]:
                if item["id"] in self.corpus:
                    self.corpus[item["id"]]["embedding"] = list(item["embedding"])
            return []
        if query == q.create_index:
            if self.schema.index_name not in self.indexes:
                self.indexes.append(self.schema.index_name)
            return []
        if query == q.similar_by_title:
            return self._similar(params["title"], params["num"])
        if query == cypher.CREATE_PROJECT:
            return self._create_project(params)
        if query == cypher.GET_PROJECTS_BY_USER:
            found = [s for s in self.searches.values() if s["uid"] == params["uid"]]
            found.sort(key=lambda s: s["created"], reverse=True)
            return [{"project": self._project(s)} for s in found]
        if query == cypher.GET_PROJECT_BY_ID:
            search = self.searches.get(params["projectId"])
            return [{"project": self._project(search)}] if search else []
        if query == cypher.DELETE_CITATION:
            return self._delete_citation(params)
        if query == cypher.DELETE_PROJECT:
            return self._delete_project(params)
        raise AssertionError(f"Unexpected query: {query}")

    # corpus -----------------------------------------------------------

    def _fetch_missing(self, limit):
        rows = [
            e for e in self.corpus.values()
            if e["embedding"] is None and e["text"] and (e["score"] or 0) > 0
        ]
        rows.sort(key=lambda e: e["score"], reverse=True)
        return [
            {"id": e["id"], "title": e["title"], "text": e["text"], "score": e["score"]}
            for e in rows[:int(limit)]
        ]

    def _similar(self, title, num):
        matches = [e for e in self.corpus.values() if e["title"] == title and e["embedding"]]
        rows = []
        for m in matches:
            scored = [
                (e, _cosine(m["embedding"], e["embedding"]))
                for e in self.corpus.values() if e["embedding"]
            ]
            scored.sort(key=lambda pair: pair[1], reverse=True)
            for e, score in scored[:num]:
                if e is m:
                    continue
                rows.append({
                    "id": e["id"], "title": e["title"], "text": e["text"],
                    "rating": e["score"], "score": score,
                })
        return sorted(rows, key=lambda r: r["score"], reverse=True)

    # search / paper graph ---------------------------------------------

    def _create_project(self, params):
        n = next(self._ids)
        project_id = f"4:fake:{n}"
        self.searches[project_id] = {
            "projectId": project_id,
            "uid": params["uid"],
            "title": params["title"],
            "keywords": list(params["keywords"]),
            "embedding": list(params["embedding"]),
            "created": n,
        }
        for citation in params["citations"]:
            key = (citation["id"], citation["title"], citation["authors"])
            paper = next(
                (p for p in self.papers if (p["id"], p["title"], p["authors"]) == key),
                None,
            )
            if paper is None:
                paper = {"id": key[0], "title": key[1], "authors": key[2]}
                self.papers.append(paper)
            self.relationships.append({
                "search": project_id,
                "paper": paper,
                "similarityScore": citation["similarityScore"],
            })
        return [{"projectId": project_id}]

    def _citation(self, rel):
        paper = rel["paper"]
        return {
            "id": paper["id"],
            "title": paper["title"],
            "authors": paper["authors"],
            "similarityScore": rel["similarityScore"],
        }

    def _project(self, search):
        return {
            "projectId": search["projectId"],
            "uid": search["uid"],
            "title": search["title"],
            "keywords": search["keywords"],
            "citations": [
                self._citation(r) for r in self.relationships if r["search"] == search["projectId"]
            ],
        }

    def _delete_citation(self, params):
        search = self.searches.get(params["projectId"])
        if not search or search["uid"] != params["uid"]:
            return []
        for rel in self.relationships:
            if rel["search"] == params["projectId"] and rel["paper"]["id"] == params["citationId"]:
                self.relationships.remove(rel)
                return [{"citation": self._citation(rel)}]
        return []

    def _delete_project(self, params):
        search = self.searches.get(params["projectId"])
        if not search or search["uid"] != params["uid"]:
            return []
        project = self._project(search)
        del self.searches[params["projectId"]]
        self.relationships = [r for r in self.relationships if r["search"] != params["projectId"]]
        return [{"project": project}]


def paper(paper_id, title, *authors):
    return Paper(
        paper_id=paper_id,
        title=title,
        authors=[Author(author_id=f"a-{name}", name=name) for name in authors],
    )


@pytest.fixture
def graph_store():
    return FakeGraphStore()


@pytest.fixture
def embedding():
    return FakeEmbedding()


@pytest.fixture
def paper_search():
    return FakePaperSearch()


@pytest.fixture
def citation_service(graph_store):
    return CitationGraphService(graph_store, connection_name="neo4j")


@pytest.fixture
def pipeline(embedding, graph_store, citation_service, paper_search):
    return SimilarityPipeline(
        embedder=BatchEmbedder(embedding, batch_size=100),
        graph_store=graph_store,
        citation_service=citation_service,
        paper_search=paper_search,
        connection_name="neo4j",
    )


@pytest.fixture
def config():
    return SecureConfig(environ={"NEO4J_PASSWORD": "secret", "S2_API_KEY": "s2-key"})
