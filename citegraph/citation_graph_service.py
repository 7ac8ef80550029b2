"""
Citation Graph Service
======================

Read, create and delete operations over the Search -> Paper similarity
graph. Every operation is one fixed-shape statement; rows are decoded with
GraphRowDecoder. No matching row means None (or an empty list), not an error.
"""

from typing import List, Optional, Sequence

from citegraph import cypher
from citegraph.service_interfaces import Citation, GraphStoreInterface, Project
from citegraph.logging_config import Logger, log_performance
from citegraph.validation_and_errors import ContractViolation, GraphRowDecoder


logger = Logger(__name__)


class CitationGraphService:
    """CRUD over persisted projects (Search nodes) and their citations"""

    def __init__(self, graph_store: GraphStoreInterface, connection_name: str = "neo4j"):
        self.graph_store = graph_store
        self.connection_name = connection_name

    def _run(self, query: str, **parameters):
        return self.graph_store.execute(self.connection_name, query, parameters)

    @log_performance
    def create_project(
        self,
        uid: str,
        title: str,
        keywords: Sequence[str],
        embedding: Sequence[float],
        citations: Sequence[Citation],
    ) -> str:
        """
        Persist one new Search node and upsert a Paper node plus a
        RELATED_TO relationship per citation, in a single statement.

        Returns:
            The new project's id (the node's element id)
        """
        rows = self._run(
            cypher.CREATE_PROJECT,
            uid=uid,
            title=title,
            keywords=list(keywords),
            embedding=list(embedding),
            citations=[c.to_dict() for c in citations],
        )
        if len(rows) != 1:
            raise ContractViolation(f"Project creation returned {len(rows)} rows")

        project_id = GraphRowDecoder.column(rows[0], "projectId")
        if not isinstance(project_id, str) or not project_id:
            raise ContractViolation(f"Project creation returned invalid id {project_id!r}")

        logger.info(
            f"Created project with {len(citations)} citations",
            operation="create_project",
            user_id=uid,
            project_id=project_id,
            count=len(citations),
        )
        return project_id

    @log_performance
    def get_projects_by_user(self, uid: str) -> List[Project]:
        rows = self._run(cypher.GET_PROJECTS_BY_USER, uid=uid)
        projects = [GraphRowDecoder.decode_project(GraphRowDecoder.column(row, "project")) for row in rows]
        logger.debug("Fetched projects", operation="get_projects_by_user", user_id=uid, count=len(projects))
        return projects

    @log_performance
    def get_project_by_id(self, project_id: str) -> Optional[Project]:
        rows = self._run(cypher.GET_PROJECT_BY_ID, projectId=project_id)
        if not rows:
            logger.info("Project not found", operation="get_project_by_id", project_id=project_id)
            return None
        return GraphRowDecoder.decode_project(GraphRowDecoder.column(rows[0], "project"))

    @log_performance
    def delete_citation(self, uid: str, project_id: str, citation_id: str) -> Optional[Citation]:
        """Remove one RELATED_TO relationship; the Paper node is kept"""
        rows = self._run(
            cypher.DELETE_CITATION,
            uid=uid,
            projectId=project_id,
            citationId=citation_id,
        )
        if not rows:
            logger.info(
                "Citation not found",
                operation="delete_citation",
                user_id=uid,
                project_id=project_id,
            )
            return None

        citation = GraphRowDecoder.decode_citation(GraphRowDecoder.column(rows[0], "citation"))
        logger.info(
            f"Deleted citation {citation_id}",
            operation="delete_citation",
            user_id=uid,
            project_id=project_id,
        )
        return citation

    @log_performance
    def delete_project(self, uid: str, project_id: str) -> Optional[Project]:
        """Delete a Search node and its relationships; Paper nodes are kept"""
        rows = self._run(cypher.DELETE_PROJECT, uid=uid, projectId=project_id)
        if not rows:
            logger.info(
                "Project not found",
                operation="delete_project",
                user_id=uid,
                project_id=project_id,
            )
            return None

        project = GraphRowDecoder.decode_project(GraphRowDecoder.column(rows[0], "project"))
        logger.info(
            "Deleted project",
            operation="delete_project",
            user_id=uid,
            project_id=project_id,
            count=len(project.citations),
        )
        return project
