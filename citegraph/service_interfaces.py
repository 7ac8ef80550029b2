"""
Service Interfaces
==================

Defines the core abstractions for dependency injection.
Every external collaborator (embedding model, chat model, paper search API,
graph database) is reached through one of these interfaces so the pipeline
can be wired against real backends or in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Set
from dataclasses import dataclass, field


@dataclass
class Entity:
    """A corpus record that can carry an embedding (movie, paper, ...)"""
    id: str
    title: str
    text: str
    score: Optional[float] = None
    embedding: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "text": self.text,
            "score": self.score,
        }


@dataclass
class SimilarityResult:
    """An entity paired with its similarity to a query"""
    entity: Entity
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"entity": self.entity.to_dict(), "score": self.score}


@dataclass
class Author:
    """Paper author as returned by the paper search API"""
    author_id: str
    name: str


@dataclass
class Paper:
    """Candidate paper returned by the paper search API"""
    paper_id: str
    title: str
    authors: List[Author] = field(default_factory=list)

    @property
    def author_names(self) -> List[str]:
        return [a.name for a in self.authors if a.name]


@dataclass
class Citation:
    """A Paper node reached from a Search node, with its RELATED_TO score"""
    id: str
    title: str
    authors: str
    similarity_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "authors": self.authors,
            "similarityScore": self.similarity_score,
        }


@dataclass
class Project:
    """A Search node: one query and its ranked citations"""
    project_id: str
    uid: str
    title: str
    keywords: List[str]
    citations: List[Citation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectId": self.project_id,
            "uid": self.uid,
            "title": self.title,
            "keywords": list(self.keywords),
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass
class SearchResponse:
    """Result of search_and_store"""
    title: str
    citations: List[Citation]
    project_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "projectId": self.project_id,
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass(frozen=True)
class CorpusSchema:
    """
    Where a corpus lives in the graph and which properties the backfill reads.

    The defaults describe the movie corpus (IMDb plots).
    """
    label: str = "Movie"
    id_property: str = "imdbId"
    title_property: str = "title"
    text_property: str = "plot"
    score_property: str = "imdbRating"
    index_name: str = "movie-index"
    dimensions: int = 384
    similarity_function: str = "cosine"


class EmbeddingInterface(ABC):
    """
    Abstract interface for text embeddings.
    Implementations: OpenAIEmbedding, LocalTransformerEmbedding
    """

    @abstractmethod
    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed texts; one vector per text, same order"""
        pass

    def embed_text(self, text: str) -> List[float]:
        """Embed a single text"""
        return self.embed_batch([text])[0]


class ChatInterface(ABC):
    """
    Abstract interface for chat completion models.
    """

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
    ) -> str:
        """Return the model's reply text"""
        pass


class PaperSearchInterface(ABC):
    """
    Abstract interface for a paper search API.
    Implementations: SemanticScholarClient
    """

    @abstractmethod
    def search(
        self,
        query: str,
        limit: int = 10,
        fields: Optional[Set[str]] = None,
    ) -> List[Paper]:
        """Search papers; results in API relevance order"""
        pass

    def get_most_relevant_paper(self, query: str) -> Optional[Paper]:
        """Top hit for a title or keyword string, or None when nothing matches"""
        papers = self.search(query, limit=1)
        return papers[0] if papers else None


class GraphStoreInterface(ABC):
    """
    Abstract interface for graph database operations.
    Implementations: Neo4jGraphStore
    """

    @abstractmethod
    def initialize(self) -> bool:
        """Open connections"""
        pass

    @abstractmethod
    def execute(
        self,
        connection_name: str,
        query: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Run a parameterized query and return rows as plain mappings"""
        pass

    def close(self) -> None:
        """Release connections"""
        pass
