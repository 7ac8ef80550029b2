"""
Validation and Error Handling
=============================

Error kinds raised by the core, argument/shape validation, and the
schema-checked decoders that turn graph rows into Project and Citation
objects.

A missing row is not an error: lookups return None or an empty list.
"""

import math
import re
from typing import List, Dict, Any, Optional, Sequence

from citegraph.service_interfaces import Citation, CorpusSchema, Project
from citegraph.logging_config import Logger


logger = Logger(__name__)


class CitationGraphError(Exception):
    """Base exception for citation graph operations"""
    pass


class ContractViolation(CitationGraphError):
    """Raised when inputs or collaborator outputs break an interface contract"""
    pass


class UpstreamFailure(CitationGraphError):
    """Raised when the embedding model, paper search, chat model or graph store fails"""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class DataValidator:
    """Argument and payload checks shared by the pipeline components"""

    # Cypher identifiers that may be interpolated into query text
    IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
    INDEX_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")
    SIMILARITY_FUNCTIONS = ("cosine", "euclidean")

    @classmethod
    def validate_identifier(cls, name: str, what: str = "identifier") -> str:
        if not isinstance(name, str) or not cls.IDENTIFIER_PATTERN.match(name):
            raise ContractViolation(f"Invalid {what}: {name!r}")
        return name

    @classmethod
    def validate_schema(cls, schema: CorpusSchema) -> CorpusSchema:
        """Check every name that ends up inside Cypher text"""
        cls.validate_identifier(schema.label, "label")
        for prop in (
            schema.id_property,
            schema.title_property,
            schema.text_property,
            schema.score_property,
        ):
            cls.validate_identifier(prop, "property name")
        if not cls.INDEX_NAME_PATTERN.match(schema.index_name):
            raise ContractViolation(f"Invalid index name: {schema.index_name!r}")
        if schema.similarity_function not in cls.SIMILARITY_FUNCTIONS:
            raise ContractViolation(
                f"Unsupported similarity function: {schema.similarity_function!r}"
            )
        cls.validate_positive_int(schema.dimensions, "dimensions")
        return schema

    @staticmethod
    def validate_positive_int(value: Any, name: str) -> int:
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ContractViolation(f"{name} must be a positive integer, got {value!r}")
        return value

    @staticmethod
    def validate_non_negative_int(value: Any, name: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ContractViolation(f"{name} must be a non-negative integer, got {value!r}")
        return value

    @staticmethod
    def validate_predictions(
        texts: Sequence[str],
        predictions: Any,
    ) -> List[List[float]]:
        """
        Check that an embedding backend answered one finite vector per text,
        all of the same dimension.
        """
        if predictions is None or len(predictions) != len(texts):
            got = None if predictions is None else len(predictions)
            logger.error(f"Prediction count mismatch: {got} for {len(texts)} inputs")
            raise ContractViolation(
                f"Embedding backend returned {got} predictions for {len(texts)} inputs"
            )

        vectors: List[List[float]] = []
        dimension: Optional[int] = None
        for i, vector in enumerate(predictions):
            values = [float(v) for v in vector]
            if not values:
                raise ContractViolation(f"Empty embedding at position {i}")
            if dimension is None:
                dimension = len(values)
            elif len(values) != dimension:
                raise ContractViolation(
                    f"Embedding dimension mismatch at position {i}: "
                    f"{len(values)} != {dimension}"
                )
            if not all(math.isfinite(v) for v in values):
                raise ContractViolation(f"Non-finite value in embedding at position {i}")
            vectors.append(values)

        return vectors


class GraphRowDecoder:
    """Decode loosely typed graph rows into Project / Citation"""

    PROJECT_FIELDS = {"projectId": str, "uid": str, "title": str}
    CITATION_FIELDS = {"id": str, "title": str, "authors": str}

    @staticmethod
    def _require_mapping(value: Any, what: str) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise ContractViolation(f"{what} must be a mapping, got {type(value).__name__}")
        return value

    @staticmethod
    def _require_fields(raw: Dict[str, Any], fields: Dict[str, type], what: str):
        for name, expected in fields.items():
            if name not in raw or not isinstance(raw[name], expected):
                raise ContractViolation(
                    f"{what} field {name!r} missing or not {expected.__name__}: {raw.get(name)!r}"
                )

    @classmethod
    def decode_citation(cls, raw: Any) -> Citation:
        raw = cls._require_mapping(raw, "Citation")
        cls._require_fields(raw, cls.CITATION_FIELDS, "Citation")
        score = raw.get("similarityScore")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ContractViolation(f"Citation similarityScore is not a number: {score!r}")
        return Citation(
            id=raw["id"],
            title=raw["title"],
            authors=raw["authors"],
            similarity_score=float(score),
        )

    @classmethod
    def decode_project(cls, raw: Any) -> Project:
        raw = cls._require_mapping(raw, "Project")
        cls._require_fields(raw, cls.PROJECT_FIELDS, "Project")

        keywords = raw.get("keywords") or []
        if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
            raise ContractViolation(f"Project keywords must be a list of strings: {keywords!r}")

        citations_raw = raw.get("citations") or []
        if not isinstance(citations_raw, list):
            raise ContractViolation("Project citations must be a list")
        citations = [cls.decode_citation(c) for c in citations_raw]
        # Highest score first; sorted() is stable for equal scores
        citations = sorted(citations, key=lambda c: c.similarity_score, reverse=True)

        return Project(
            project_id=raw["projectId"],
            uid=raw["uid"],
            title=raw["title"],
            keywords=list(keywords),
            citations=citations,
        )

    @classmethod
    def column(cls, row: Any, name: str) -> Any:
        """Fetch a required column from a result row"""
        row = cls._require_mapping(row, "Row")
        if name not in row:
            raise ContractViolation(f"Row is missing column {name!r}")
        return row[name]
