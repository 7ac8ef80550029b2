"""
Similarity Pipeline
===================

Orchestration layer for:
1. Embedding backfill of a corpus stored in the graph, plus its vector index
2. Nearest-neighbour lookup over that index
3. Query -> candidate papers -> cosine ranking -> persisted Search subtree

Uses dependency injection for every collaborator.
"""

from typing import List, Optional, Sequence

from citegraph.batch_embedder import BatchEmbedder
from citegraph.citation_graph_service import CitationGraphService
from citegraph.cypher import corpus_queries
from citegraph.service_interfaces import (
    Citation,
    CorpusSchema,
    Entity,
    GraphStoreInterface,
    Paper,
    PaperSearchInterface,
    SearchResponse,
    SimilarityResult,
)
from citegraph.similarity import rank_by_similarity
from citegraph.logging_config import Logger, log_performance
from citegraph.validation_and_errors import (
    ContractViolation,
    DataValidator,
    GraphRowDecoder,
)


logger = Logger(__name__)


SEARCH_PAGE_SIZE = 10
SEARCH_FIELDS = {"title", "authors", "paperId"}


class SimilarityPipeline:
    """
    Embedding backfill and similarity-graph construction.
    """

    def __init__(
        self,
        embedder: BatchEmbedder,
        graph_store: GraphStoreInterface,
        citation_service: CitationGraphService,
        paper_search: Optional[PaperSearchInterface] = None,
        corpus: Optional[CorpusSchema] = None,
        connection_name: str = "neo4j",
    ):
        """
        Args:
            embedder: Batch embedder over the embedding backend
            graph_store: Graph database access
            citation_service: Persists and reads Search/Paper subtrees
            paper_search: Candidate source for search_and_store
            corpus: Which nodes the backfill and similar-entity lookup use
            connection_name: Graph connection to run statements on
        """
        self.embedder = embedder
        self.graph_store = graph_store
        self.citation_service = citation_service
        self.paper_search = paper_search
        self.corpus = corpus or CorpusSchema()
        self.queries = corpus_queries(self.corpus)
        self.connection_name = connection_name

    # ------------------------------------------------------------------
    # Backfill & index
    # ------------------------------------------------------------------

    @log_performance
    def backfill_embeddings(self, limit: int) -> int:
        """
        Embed up to `limit` corpus entities that have no embedding yet,
        highest quality score first, and ensure the vector index exists.

        Safe to re-run: entities written by an earlier run no longer match
        the fetch filter.

        Returns:
            Number of entities embedded and written
        """
        DataValidator.validate_non_negative_int(limit, "limit")

        rows = self.graph_store.execute(
            self.connection_name,
            self.queries.fetch_missing,
            {"limit": limit},
        )
        entities = [self._decode_entity(row) for row in rows]
        logger.info(
            f"Backfill found {len(entities)} entities without embeddings",
            operation="backfill_embeddings",
            count=len(entities),
        )

        processed = 0
        for batch in self.embedder.iter_entity_batches(entities):
            self.graph_store.execute(
                self.connection_name,
                self.queries.set_embeddings,
                {"entities": [{"id": e.id, "embedding": e.embedding} for e in batch]},
            )
            processed += len(batch)
            logger.debug(
                f"Wrote embeddings {processed}/{len(entities)}",
                operation="backfill_embeddings",
                count=processed,
            )

        self.graph_store.execute(self.connection_name, self.queries.create_index, {})
        logger.info(
            f"✓ Backfill complete, index '{self.corpus.index_name}' ensured",
            operation="backfill_embeddings",
            count=processed,
        )
        return processed

    def _decode_entity(self, row) -> Entity:
        entity_id = GraphRowDecoder.column(row, "id")
        text = GraphRowDecoder.column(row, "text")
        if entity_id is None or not isinstance(text, str) or not text:
            raise ContractViolation(f"Malformed corpus row: {row!r}")
        score = row.get("score")
        return Entity(
            id=str(entity_id),
            title=row.get("title") or "",
            text=text,
            score=float(score) if score is not None else None,
        )

    @log_performance
    def find_similar_entities(self, title: str, num: int = 10) -> List[SimilarityResult]:
        """
        Nearest neighbours of the entity titled `title` through the vector
        index, excluding the entity itself. Unknown title -> empty list.
        """
        DataValidator.validate_positive_int(num, "num")
        rows = self.graph_store.execute(
            self.connection_name,
            self.queries.similar_by_title,
            {"title": title, "num": num},
        )

        results = []
        for row in rows:
            score = GraphRowDecoder.column(row, "score")
            rating = row.get("rating")
            entity = Entity(
                id=str(GraphRowDecoder.column(row, "id")),
                title=row.get("title") or "",
                text=row.get("text") or "",
                score=float(rating) if rating is not None else None,
            )
            results.append(SimilarityResult(entity=entity, score=float(score)))
        return results

    # ------------------------------------------------------------------
    # Query, rank, persist
    # ------------------------------------------------------------------

    def _fetch_candidates(self, title: str, keywords: Sequence[str]) -> List[Paper]:
        """Title matches first, then keyword matches; duplicates are kept"""
        if self.paper_search is None:
            raise ContractViolation("search_and_store requires a paper search client")

        candidates: List[Paper] = []
        for query in (title, " ".join(keywords)):
            if not query.strip():
                continue
            candidates.extend(
                self.paper_search.search(query, limit=SEARCH_PAGE_SIZE, fields=SEARCH_FIELDS)
            )
        return candidates

    @log_performance
    def search_and_store(
        self,
        title: str,
        keywords: Sequence[str],
        uid: str,
    ) -> SearchResponse:
        """
        Rank candidate papers by cosine similarity of their titles to
        `title`, then persist a new Search node linked to every paper with a
        strictly positive score.
        """
        if not isinstance(title, str) or not title.strip():
            raise ContractViolation("title must be a non-empty string")
        if not uid:
            raise ContractViolation("uid is required")
        keywords = [k for k in keywords if isinstance(k, str) and k.strip()]

        query_embedding = self.embedder.embed_text(title)

        candidates = self._fetch_candidates(title, keywords)
        candidate_embeddings = self.embedder.embed_texts([paper.title for paper in candidates])

        ranked = rank_by_similarity(query_embedding, candidates, candidate_embeddings)
        citations = [
            Citation(
                id=paper.paper_id,
                title=paper.title,
                authors=", ".join(paper.author_names),
                similarity_score=score,
            )
            for paper, score in ranked
        ]
        logger.info(
            f"Ranked {len(citations)} of {len(candidates)} candidates",
            operation="search_and_store",
            user_id=uid,
            count=len(citations),
        )

        project_id = self.citation_service.create_project(
            uid=uid,
            title=title,
            keywords=keywords,
            embedding=query_embedding,
            citations=citations,
        )
        return SearchResponse(title=title, citations=citations, project_id=project_id)
