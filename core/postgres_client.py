"""
PostgreSQL Client Wrapper

Centralized PostgreSQL access built on an asyncpg connection pool.
Provides config-driven connection settings, a consistent query interface
returning plain dicts, and ambient transactions.

Usage:
    from core.postgres_client import PostgresClientWrapper

    db = PostgresClientWrapper(service_name="dashboard_service")
    await db.connect()

    # Execute queries
    async with db:
        rows = await db.query("SELECT * FROM dashboard.dashboard_approvals WHERE campaign_id = $1", [campaign_id])

    # Group statements into one transaction
    async with db.transaction():
        await db.execute("UPDATE ...", [...])
        await db.execute("INSERT ...", [...])
"""

import contextvars
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

from core.config import InfraConfig

logger = logging.getLogger(__name__)


class PostgresClientWrapper:
    """
    PostgreSQL client wrapper around an asyncpg pool.

    Statements issued inside ``transaction()`` run on the connection bound
    to the current task; everything else borrows a pooled connection per
    statement.
    """

    def __init__(
        self,
        service_name: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        infra_config: Optional[InfraConfig] = None,
    ):
        """
        Initialize PostgreSQL client wrapper.

        Args:
            service_name: Name of the service using this client
            host: PostgreSQL host (defaults to POSTGRES_HOST)
            port: PostgreSQL port (defaults to POSTGRES_PORT)
            database: Database name (defaults to POSTGRES_DB)
            username: Database username
            password: Database password
            infra_config: Infrastructure settings (defaults to environment)
        """
        infra = infra_config or InfraConfig.from_env()

        self.service_name = service_name
        self.host = host or infra.postgres_host
        self.port = port or infra.postgres_port
        self.database = database or infra.postgres_db
        self.username = username or infra.postgres_user
        self.password = password or infra.postgres_password
        self.min_pool_size = infra.postgres_min_pool_size
        self.max_pool_size = infra.postgres_max_pool_size
        self.command_timeout = infra.postgres_command_timeout

        self._pool: Optional[asyncpg.Pool] = None
        self._connection: contextvars.ContextVar[Optional[asyncpg.Connection]] = contextvars.ContextVar(
            f"{service_name}_pg_connection", default=None
        )

        logger.info(f"PostgreSQL client initialized for {service_name}: {self.host}:{self.port}/{self.database}")

    @property
    def pool(self) -> Optional[asyncpg.Pool]:
        """Get underlying asyncpg pool"""
        return self._pool

    async def connect(self) -> None:
        """Create the connection pool if it does not exist yet"""
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.username,
            password=self.password,
            min_size=self.min_pool_size,
            max_size=self.max_pool_size,
            command_timeout=self.command_timeout,
        )
        logger.info(f"PostgreSQL pool ready for {self.service_name}")

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Pool stays open until close()"""
        return False

    @asynccontextmanager
    async def _acquire(self) -> AsyncIterator[asyncpg.Connection]:
        bound = self._connection.get()
        if bound is not None:
            yield bound
            return
        await self.connect()
        async with self._pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Run the enclosed statements in one transaction.

        Nested calls become savepoints on the already bound connection.
        """
        bound = self._connection.get()
        if bound is not None:
            async with bound.transaction():
                yield bound
            return

        await self.connect()
        async with self._pool.acquire() as connection:
            token = self._connection.set(connection)
            try:
                async with connection.transaction():
                    yield connection
            finally:
                self._connection.reset(token)

    async def health_check(self) -> Optional[Dict[str, Any]]:
        """Check database health"""
        try:
            row = await self.query_row("SELECT 1 AS healthy")
            return {"healthy": bool(row and row.get("healthy") == 1)}
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return {"healthy": False, "error": str(e)}

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        async with self._acquire() as connection:
            records = await connection.fetch(sql, *(params or []))
        return [dict(record) for record in records]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        async with self._acquire() as connection:
            record = await connection.fetchrow(sql, *(params or []))
        return dict(record) if record is not None else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement and return the command status"""
        async with self._acquire() as connection:
            return await connection.execute(sql, *(params or []))

    async def close(self):
        """Close connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")

