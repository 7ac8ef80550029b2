"""
Neo4j Graph Store Implementation
================================

Implements GraphStoreInterface on the official neo4j driver. Connections
are registered by name; every statement runs in its own managed
transaction and returns its rows as plain dictionaries.
"""

from typing import List, Dict, Any, Optional

from neo4j import GraphDatabase
from neo4j.exceptions import Neo4jError, DriverError

from citegraph.service_interfaces import GraphStoreInterface
from citegraph.logging_config import Logger, log_performance
from citegraph.security_config import SecretsMask
from citegraph.validation_and_errors import UpstreamFailure


logger = Logger(__name__)


class Neo4jGraphStore(GraphStoreInterface):
    """
    Named Neo4j connections.

    Example:
        store = Neo4jGraphStore()
        store.register("neo4j", "bolt://localhost:7687", "neo4j", "secret")
        store.initialize()
        rows = store.execute("neo4j", "RETURN 1 AS one")
    """

    def __init__(self):
        self._targets: Dict[str, Dict[str, Any]] = {}
        self._drivers: Dict[str, Any] = {}
        self.initialized = False

    def register(
        self,
        name: str,
        uri: str,
        user: str,
        password: Optional[str],
        database: Optional[str] = None,
    ) -> None:
        """Declare a connection; it is opened by initialize()"""
        self._targets[name] = {
            "uri": uri,
            "auth": (user, password or ""),
            "database": database,
        }

    @log_performance
    def initialize(self) -> bool:
        """Open a driver per registered connection and verify it"""
        for name, target in self._targets.items():
            if name in self._drivers:
                continue
            try:
                driver = GraphDatabase.driver(target["uri"], auth=target["auth"])
                driver.verify_connectivity()
            except (Neo4jError, DriverError, OSError) as e:
                logger.error(
                    f"Neo4j connection '{name}' failed at "
                    f"{SecretsMask.mask_string(target['uri'])}: {e}"
                )
                raise UpstreamFailure("graph", f"cannot connect '{name}': {e}") from e
            self._drivers[name] = driver
            logger.info(f"✓ Neo4j connection '{name}' ready")

        self.initialized = True
        return True

    def _driver(self, connection_name: str):
        driver = self._drivers.get(connection_name)
        if driver is None:
            if connection_name not in self._targets:
                raise UpstreamFailure("graph", f"unknown connection '{connection_name}'")
            self.initialize()
            driver = self._drivers[connection_name]
        return driver

    def execute(
        self,
        connection_name: str,
        query: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        driver = self._driver(connection_name)
        database = self._targets[connection_name]["database"]
        try:
            records, summary, _ = driver.execute_query(
                query,
                parameters_=parameters or {},
                database_=database,
            )
        except (Neo4jError, DriverError) as e:
            logger.error(f"Query failed on '{connection_name}': {e}")
            raise UpstreamFailure("graph", str(e)) from e

        rows = [record.data() for record in records]
        logger.debug(
            f"Query returned {len(rows)} rows",
            count=len(rows),
            duration_ms=summary.result_available_after,
        )
        return rows

    def close(self) -> None:
        for name, driver in self._drivers.items():
            driver.close()
            logger.info(f"Neo4j connection '{name}' closed")
        self._drivers.clear()
        self.initialized = False
