"""Parser/serializer for the gateway's ``key = value`` config file.

Only the entries that are read or changed are interpreted; comments, blank
lines and unknown lines are written back untouched and in order.
"""

import re
from dataclasses import dataclass
from typing import Optional

from baas_engine.common.exceptions import GatewayConfigError

DB_SCHEMAS_KEY = "db-schemas"

_ENTRY_RE = re.compile(
    r'^(?P<indent>\s*)(?P<key>[A-Za-z0-9_.-]+)\s*=\s*'
    r'(?P<raw_value>"(?:[^"\\]|\\.)*"|[^\s#]*)'
    r'(?P<trailer>\s*(?:#.*)?)$'
)


@dataclass
class _Entry:
    indent: str
    key: str
    raw_value: str
    trailer: str

    @property
    def value(self) -> str:
        if self.raw_value.startswith('"') and self.raw_value.endswith('"'):
            return self.raw_value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
        return self.raw_value

    def render(self) -> str:
        return f"{self.indent}{self.key} = {self.raw_value}{self.trailer}"


class GatewayConfigDocument:
    def __init__(self, lines: list[str | _Entry], trailing_newline: bool = True):
        self._lines = lines
        self._trailing_newline = trailing_newline

    @classmethod
    def parse(cls, content: str) -> "GatewayConfigDocument":
        lines: list[str | _Entry] = []
        for line in content.splitlines():
            match = _ENTRY_RE.match(line)
            if match:
                lines.append(_Entry(**match.groupdict()))
            else:
                lines.append(line)
        return cls(lines, trailing_newline=content.endswith("\n") or not content)

    def render(self) -> str:
        body = "\n".join(
            line.render() if isinstance(line, _Entry) else line for line in self._lines
        )
        return body + "\n" if self._trailing_newline else body

    def _entry(self, key: str) -> Optional[_Entry]:
        for line in self._lines:
            if isinstance(line, _Entry) and line.key == key:
                return line
        return None

    def get(self, key: str) -> Optional[str]:
        entry = self._entry(key)
        return entry.value if entry else None

    def set_string(self, key: str, value: str) -> None:
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        entry = self._entry(key)
        if entry is None:
            raise GatewayConfigError(f'Gateway config has no "{key}" entry')
        entry.raw_value = f'"{escaped}"'

    @property
    def db_schemas(self) -> list[str]:
        raw = self.get(DB_SCHEMAS_KEY)
        if raw is None:
            raise GatewayConfigError(f'Gateway config has no "{DB_SCHEMAS_KEY}" entry')
        return [s.strip() for s in raw.split(",") if s.strip()]

    @db_schemas.setter
    def db_schemas(self, schemas: list[str]) -> None:
        self.set_string(DB_SCHEMAS_KEY, ",".join(schemas))
