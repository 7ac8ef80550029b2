"""Core package - service interfaces, backends and the citation graph service"""

from .service_interfaces import (
    EmbeddingInterface,
    ChatInterface,
    PaperSearchInterface,
    GraphStoreInterface,
    Entity,
    SimilarityResult,
    Author,
    Paper,
    Citation,
    Project,
    SearchResponse,
    CorpusSchema,
)
from .logging_config import Logger, setup_logger, log_performance
from .validation_and_errors import (
    CitationGraphError,
    ContractViolation,
    UpstreamFailure,
    DataValidator,
    GraphRowDecoder,
)
from .similarity import cosine_similarity, rank_by_similarity
from .batch_embedder import BatchEmbedder
from .embedding_service import OpenAIEmbedding, LocalTransformerEmbedding
from .graph_store import Neo4jGraphStore
from .paper_search import SemanticScholarClient
from .chat_service import OpenAIChat
from .citation_graph_service import CitationGraphService
from .security_config import SecureConfig, Credentials, SecretsMask, get_config

__all__ = [
    # Interfaces
    "EmbeddingInterface",
    "ChatInterface",
    "PaperSearchInterface",
    "GraphStoreInterface",
    # Data models
    "Entity",
    "SimilarityResult",
    "Author",
    "Paper",
    "Citation",
    "Project",
    "SearchResponse",
    "CorpusSchema",
    # Logging
    "Logger",
    "setup_logger",
    "log_performance",
    # Errors & validation
    "CitationGraphError",
    "ContractViolation",
    "UpstreamFailure",
    "DataValidator",
    "GraphRowDecoder",
    # Similarity
    "cosine_similarity",
    "rank_by_similarity",
    "BatchEmbedder",
    # Implementations
    "OpenAIEmbedding",
    "LocalTransformerEmbedding",
    "Neo4jGraphStore",
    "SemanticScholarClient",
    "OpenAIChat",
    "CitationGraphService",
    # Config
    "SecureConfig",
    "Credentials",
    "SecretsMask",
    "get_config",
]
