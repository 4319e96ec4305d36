"""GatewaySyncCoordinator: keeps the gateway's exposed schema list in step with tenants."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from baas_engine.common.exceptions import GatewayConfigError
from baas_engine.gateway.config_file import GatewayConfigDocument
from baas_engine.gateway.locks import GatewayConfigLock
from baas_engine.tenantdb.identifiers import validate_identifier

logger = logging.getLogger(__name__)


def _write_atomic(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class GatewaySyncCoordinator:
    """Adds and removes schemas in the gateway config under an exclusive lock."""

    def __init__(self, config_path: str | Path, lock: GatewayConfigLock):
        self.config_path = Path(config_path)
        self.lock = lock

    async def _read(self) -> GatewayConfigDocument:
        try:
            content = await asyncio.to_thread(self.config_path.read_text, encoding="utf-8")
        except OSError as exc:
            raise GatewayConfigError(
                f"Unable to read gateway config {self.config_path}: {exc}"
            ) from exc
        return GatewayConfigDocument.parse(content)

    async def _write(self, document: GatewayConfigDocument) -> None:
        try:
            await asyncio.to_thread(_write_atomic, self.config_path, document.render())
        except OSError as exc:
            raise GatewayConfigError(
                f"Unable to write gateway config {self.config_path}: {exc}"
            ) from exc

    async def schemas(self) -> list[str]:
        document = await self._read()
        return document.db_schemas

    async def add_schema(self, schema: str) -> bool:
        """Expose a schema. Returns False when it was already listed."""
        validate_identifier(schema)

        async def _add() -> bool:
            document = await self._read()
            current = document.db_schemas
            if schema in current:
                return False
            document.db_schemas = [*current, schema]
            await self._write(document)
            return True

        try:
            changed = await self.lock.run_exclusive(_add)
        except Exception:
            logger.exception("Failed to add schema to gateway config", extra={"schema": schema})
            raise
        logger.info("Gateway schema added", extra={"schema": schema, "changed": changed})
        return changed

    async def remove_schema(self, schema: str) -> bool:
        """Stop exposing a schema. Returns False when it was not listed."""
        validate_identifier(schema)

        async def _remove() -> bool:
            document = await self._read()
            current = document.db_schemas
            if schema not in current:
                return False
            document.db_schemas = [s for s in current if s != schema]
            await self._write(document)
            return True

        try:
            changed = await self.lock.run_exclusive(_remove)
        except Exception:
            logger.exception(
                "Failed to remove schema from gateway config", extra={"schema": schema}
            )
            raise
        logger.info("Gateway schema removed", extra={"schema": schema, "changed": changed})
        return changed
