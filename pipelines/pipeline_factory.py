"""
Pipeline Factory
================

Builds configured service instances from SecureConfig.
Handles service composition and dependency injection.
"""

from typing import Optional

from citegraph.service_interfaces import (
    ChatInterface,
    CorpusSchema,
    EmbeddingInterface,
    GraphStoreInterface,
    PaperSearchInterface,
)
from citegraph.batch_embedder import BatchEmbedder
from citegraph.chat_service import OpenAIChat
from citegraph.citation_graph_service import CitationGraphService
from citegraph.embedding_service import LocalTransformerEmbedding, OpenAIEmbedding
from citegraph.graph_store import Neo4jGraphStore
from citegraph.paper_search import SemanticScholarClient
from citegraph.security_config import SecureConfig, get_config
from citegraph.logging_config import Logger
from pipelines.similarity_pipeline import SimilarityPipeline


logger = Logger(__name__)


class PipelineFactory:
    """
    Creates each collaborator once and hands the same instances to every
    component built by this factory.
    """

    def __init__(
        self,
        config: Optional[SecureConfig] = None,
        embedding: Optional[EmbeddingInterface] = None,
        graph_store: Optional[GraphStoreInterface] = None,
        paper_search: Optional[PaperSearchInterface] = None,
        chat: Optional[ChatInterface] = None,
        corpus: Optional[CorpusSchema] = None,
    ):
        """
        Args:
            config: Configuration; the process-wide one when omitted
            embedding/graph_store/paper_search/chat: Pre-built collaborators
                that replace the configured defaults
            corpus: Corpus schema for backfill and similar-entity lookup;
                by default the movie corpus sized to the configured model
        """
        self.config = config or get_config()
        self._embedding = embedding
        self._graph_store = graph_store
        self._paper_search = paper_search
        self._chat = chat
        self.corpus = corpus or CorpusSchema(dimensions=self.config.settings.embedding_dimensions)

    @property
    def connection_name(self) -> str:
        return self.config.settings.graph_connection_name

    def embedding(self) -> EmbeddingInterface:
        if self._embedding is None:
            settings = self.config.settings
            if settings.embedding_backend == "openai":
                self._embedding = OpenAIEmbedding(
                    api_key=self.config.credentials.openai_api_key,
                    model=settings.embedding_model,
                )
            else:
                self._embedding = LocalTransformerEmbedding(model_name=settings.embedding_model)
            logger.info(f"✓ Embedding backend '{settings.embedding_backend}' created")
        return self._embedding

    def graph_store(self) -> GraphStoreInterface:
        if self._graph_store is None:
            settings = self.config.settings
            store = Neo4jGraphStore()
            store.register(
                self.connection_name,
                uri=settings.neo4j_uri,
                user=settings.neo4j_user,
                password=self.config.credentials.neo4j_password,
                database=settings.neo4j_database,
            )
            self._graph_store = store
            logger.info("✓ Graph store created")
        return self._graph_store

    def paper_search(self) -> PaperSearchInterface:
        if self._paper_search is None:
            self._paper_search = SemanticScholarClient(api_key=self.config.credentials.s2_api_key)
        return self._paper_search

    def chat(self) -> ChatInterface:
        if self._chat is None:
            settings = self.config.settings
            self._chat = OpenAIChat(
                api_key=self.config.credentials.chat_api_key,
                base_url=settings.chat_base_url,
                model=settings.chat_model,
            )
        return self._chat

    def batch_embedder(self) -> BatchEmbedder:
        return BatchEmbedder(self.embedding(), batch_size=self.config.settings.embedding_batch_size)

    def citation_service(self) -> CitationGraphService:
        return CitationGraphService(self.graph_store(), connection_name=self.connection_name)

    def create_pipeline(self) -> SimilarityPipeline:
        pipeline = SimilarityPipeline(
            embedder=self.batch_embedder(),
            graph_store=self.graph_store(),
            citation_service=self.citation_service(),
            paper_search=self.paper_search(),
            corpus=self.corpus,
            connection_name=self.connection_name,
        )
        logger.info("✓ Pipeline created successfully")
        return pipeline
