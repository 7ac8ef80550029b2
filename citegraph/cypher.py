"""
Cypher statements issued by the pipeline and the citation graph service.

Search/Paper statements are fixed strings. Corpus statements are rendered
from a CorpusSchema whose names have been validated as identifiers.
"""

from dataclasses import dataclass

from citegraph.service_interfaces import CorpusSchema
from citegraph.validation_and_errors import DataValidator


# ---------------------------------------------------------------------------
# Search / Paper graph
# ---------------------------------------------------------------------------

# One Search node per call, projectId set to the node's element id so that
# lookups by projectId find it. FOREACH keeps the RETURN row even when there
# are no citations.
CREATE_PROJECT = """
CREATE (s:Search {uid: $uid, title: $title, keywords: $keywords, embedding: $embedding, createdAt: datetime()})
SET s.projectId = elementId(s)
FOREACH (citation IN $citations |
  MERGE (p:Paper {id: citation.id, title: citation.title, authors: citation.authors})
  CREATE (s)-[:RELATED_TO {similarityScore: citation.similarityScore}]->(p)
)
RETURN s.projectId AS projectId
"""

_PROJECT_PROJECTION = """
WITH s, collect(CASE WHEN p IS NULL THEN NULL ELSE {
  id: p.id, title: p.title, authors: p.authors, similarityScore: r.similarityScore
} END) AS citations
RETURN {
  projectId: s.projectId, uid: s.uid, title: s.title, keywords: s.keywords, citations: citations
} AS project
"""

GET_PROJECTS_BY_USER = """
MATCH (s:Search {uid: $uid})
OPTIONAL MATCH (s)-[r:RELATED_TO]->(p:Paper)
""" + _PROJECT_PROJECTION + """
ORDER BY s.createdAt DESC
"""

GET_PROJECT_BY_ID = """
MATCH (s:Search {projectId: $projectId})
OPTIONAL MATCH (s)-[r:RELATED_TO]->(p:Paper)
""" + _PROJECT_PROJECTION

# Removes one relationship; the Paper node stays even if unreferenced.
DELETE_CITATION = """
MATCH (s:Search {uid: $uid, projectId: $projectId})-[r:RELATED_TO]->(p:Paper {id: $citationId})
WITH r, p, r.similarityScore AS score
LIMIT 1
DELETE r
RETURN {id: p.id, title: p.title, authors: p.authors, similarityScore: score} AS citation
"""

# Detaches and deletes the Search node; Paper nodes survive.
DELETE_PROJECT = """
MATCH (s:Search {uid: $uid, projectId: $projectId})
OPTIONAL MATCH (s)-[r:RELATED_TO]->(p:Paper)
WITH s, collect(CASE WHEN p IS NULL THEN NULL ELSE {
  id: p.id, title: p.title, authors: p.authors, similarityScore: r.similarityScore
} END) AS citations
WITH s, {
  projectId: s.projectId, uid: s.uid, title: s.title, keywords: s.keywords, citations: citations
} AS project
DETACH DELETE s
RETURN project
"""


# ---------------------------------------------------------------------------
# Corpus (embedding backfill and vector search)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CorpusQueries:
    """Statements for one corpus schema"""
    fetch_missing: str
    set_embeddings: str
    create_index: str
    similar_by_title: str


def corpus_queries(schema: CorpusSchema) -> CorpusQueries:
    DataValidator.validate_schema(schema)
    label = schema.label
    id_prop = schema.id_property
    title_prop = schema.title_property
    text_prop = schema.text_property
    score_prop = schema.score_property
    index = schema.index_name

    fetch_missing = f"""
MATCH (n:{label})
WHERE n.embedding IS NULL AND n.{text_prop} IS NOT NULL AND n.{text_prop} <> '' AND n.{score_prop} > 0.0
RETURN n.{id_prop} AS id, n.{title_prop} AS title, n.{text_prop} AS text, n.{score_prop} AS score
ORDER BY n.{score_prop} DESC
LIMIT toInteger($limit)
"""

    set_embeddings = f"""
UNWIND $entities AS embedded
MATCH (n:{label} {{{id_prop}: embedded.id}})
SET n.embedding = embedded.embedding
"""

    create_index = f"""
CREATE VECTOR INDEX `{index}` IF NOT EXISTS
FOR (n:{label}) ON (n.embedding)
OPTIONS {{indexConfig: {{
  `vector.dimensions`: {schema.dimensions},
  `vector.similarity_function`: '{schema.similarity_function}'
}}}}
"""

    similar_by_title = f"""
MATCH (m:{label} {{{title_prop}: $title}})
WHERE m.embedding IS NOT NULL
CALL db.index.vector.queryNodes('{index}', $num, m.embedding)
YIELD node AS result, score
WITH * WHERE result <> m
RETURN result.{id_prop} AS id, result.{title_prop} AS title, result.{text_prop} AS text,
       result.{score_prop} AS rating, score
ORDER BY score DESC
"""

    return CorpusQueries(
        fetch_missing=fetch_missing,
        set_embeddings=set_embeddings,
        create_index=create_index,
        similar_by_title=similar_by_title,
    )
