import os
from dataclasses import dataclass

from .models.constants import DEFAULT_PAGE_SIZE

TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


@dataclass
class GridSettings:
    """Application settings and configuration."""

    data_path: str = ""
    page_size: int = DEFAULT_PAGE_SIZE
    debug: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "GridSettings":
        """Read METRICGRID_* environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        page_size = DEFAULT_PAGE_SIZE
        raw_page_size = env.get("METRICGRID_PAGE_SIZE", "").strip()
        if raw_page_size.isdigit() and int(raw_page_size) > 0:
            page_size = int(raw_page_size)

        return cls(
            data_path=env.get("METRICGRID_DATA", "").strip(),
            page_size=page_size,
            debug=env.get("METRICGRID_DEBUG", "").strip().lower() in TRUE_STRINGS,
        )

    def page_bounds(self, page_index: int) -> tuple[int, int]:
        """(start_row, end_row) for a zero-based page index."""
        start = max(page_index, 0) * self.page_size
        return start, start + self.page_size

    def page_count(self, total_count: int) -> int:
        """Number of pages needed for total_count rows (at least 1)."""
        return max(1, -(-total_count // self.page_size))
