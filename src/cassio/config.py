"""Configuration for cassio."""

from dataclasses import dataclass, field
from pathlib import Path

from cassio.models.session import Tool


@dataclass(frozen=True)
class Config:
    """Default source locations, relative to a home directory."""

    home: Path = field(default_factory=Path.home)

    @property
    def claude_projects_dir(self) -> Path:
        return self.home / ".claude" / "projects"

    @property
    def claude_desktop_dir(self) -> Path:
        support = self.home / "Library" / "Application Support"
        return support / "Claude" / "local-agent-mode-sessions"

    @property
    def codex_sessions_dir(self) -> Path:
        return self.home / ".codex" / "sessions"

    @property
    def opencode_storage_dir(self) -> Path:
        return self.home / ".local" / "share" / "opencode" / "storage"

    def source_dir(self, tool: Tool) -> Path:
        match tool:
            case Tool.CLAUDE:
                return self.claude_projects_dir
            case Tool.CLAUDE_DESKTOP:
                return self.claude_desktop_dir
            case Tool.CODEX:
                return self.codex_sessions_dir
            case Tool.OPENCODE:
                return self.opencode_storage_dir

    def existing_sources(self) -> list[tuple[Tool, Path]]:
        """Tools whose default directory exists, in a fixed order."""
        sources = [(tool, self.source_dir(tool)) for tool in Tool]
        return [(tool, path) for tool, path in sources if path.is_dir()]
