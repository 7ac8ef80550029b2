"""
Batch embedding of large entity sets.

Splits the input into consecutive chunks, calls the embedding backend once
per chunk and writes the vectors back by position. A chunk whose prediction
count does not match its input count aborts the whole call.
"""

from typing import Iterator, List, Optional, Sequence, TypeVar

from citegraph.service_interfaces import EmbeddingInterface, Entity
from citegraph.logging_config import Logger
from citegraph.validation_and_errors import DataValidator


logger = Logger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 100


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Consecutive slices of at most `size` items; the last may be shorter"""
    DataValidator.validate_positive_int(size, "batch_size")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchEmbedder:
    """Embeds texts or entities through an EmbeddingInterface in fixed-size chunks"""

    def __init__(self, client: EmbeddingInterface, batch_size: int = DEFAULT_BATCH_SIZE):
        self.client = client
        self.batch_size = DataValidator.validate_positive_int(batch_size, "batch_size")

    def embed_chunk(self, texts: Sequence[str]) -> List[List[float]]:
        """One backend call, with the prediction count checked"""
        predictions = self.client.embed_batch(list(texts))
        return DataValidator.validate_predictions(texts, predictions)

    def embed_texts(self, texts: Sequence[str], batch_size: Optional[int] = None) -> List[List[float]]:
        size = self.batch_size if batch_size is None else batch_size
        vectors: List[List[float]] = []
        for chunk in chunked(list(texts), size):
            vectors.extend(self.embed_chunk(chunk))
        return vectors

    def embed_text(self, text: str) -> List[float]:
        return self.embed_chunk([text])[0]

    def iter_entity_batches(
        self,
        entities: Sequence[Entity],
        batch_size: Optional[int] = None,
    ) -> Iterator[List[Entity]]:
        """
        Yield each chunk of entities right after it has been embedded, so a
        caller can persist batch N before batch N+1 is computed.
        """
        size = self.batch_size if batch_size is None else batch_size
        for index, chunk in enumerate(chunked(list(entities), size)):
            vectors = self.embed_chunk([entity.text for entity in chunk])
            for entity, vector in zip(chunk, vectors):
                entity.embedding = vector
            logger.debug(f"Embedded batch {index}", count=len(chunk))
            yield list(chunk)

    def embed_batch(self, entities: Sequence[Entity], batch_size: Optional[int] = None) -> List[Entity]:
        """Embed every entity; the returned list has the input's order and length"""
        embedded: List[Entity] = []
        for chunk in self.iter_entity_batches(entities, batch_size):
            embedded.extend(chunk)
        return embedded
