"""
Embedding Generation Service
============================

Black-box text -> vector backends.
Supports: OpenAI embeddings API, local sentence-transformers models.

Backends return exactly one vector per input text, in input order; empty
texts are embedded as-is rather than dropped so positions stay aligned.
"""

from typing import List, Optional

from openai import OpenAI, OpenAIError

from citegraph.service_interfaces import EmbeddingInterface
from citegraph.logging_config import Logger, log_performance
from citegraph.validation_and_errors import UpstreamFailure


logger = Logger(__name__)


class OpenAIEmbedding(EmbeddingInterface):
    """OpenAI embedding service using text-embedding-3-small"""

    def __init__(self, api_key: Optional[str] = None, model: str = "text-embedding-3-small", client=None):
        self.model = model
        self.client = client or OpenAI(api_key=api_key)
        logger.info(f"OpenAI embedding service initialized with {model}")

    @log_performance
    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            response = self.client.embeddings.create(input=list(texts), model=self.model)
        except OpenAIError as e:
            raise UpstreamFailure("embedding", str(e)) from e

        # Sort by index to maintain order
        embeddings: List[List[float]] = [[] for _ in range(len(response.data))]
        for item in response.data:
            if 0 <= item.index < len(embeddings):
                embeddings[item.index] = list(item.embedding)
        return embeddings


class LocalTransformerEmbedding(EmbeddingInterface):
    """Local transformer-based embeddings using sentence-transformers"""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", model=None):
        self.model_name = model_name
        self.model = model

    def _get_model(self):
        """Load the model on first use (first call takes a few seconds)"""
        if self.model is None:
            from sentence_transformers import SentenceTransformer

            self.model = SentenceTransformer(self.model_name)
            logger.info(
                f"Local transformer embedding initialized with {self.model_name} "
                f"(dim={self.model.get_sentence_embedding_dimension()})"
            )
        return self.model

    @log_performance
    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        model = self._get_model()
        try:
            embeddings = model.encode(list(texts), convert_to_numpy=True, show_progress_bar=False)
        except (RuntimeError, ValueError) as e:
            raise UpstreamFailure("embedding", str(e)) from e
        return [e.tolist() for e in embeddings]
