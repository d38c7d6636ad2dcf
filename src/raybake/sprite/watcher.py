"""Config hot-reload loop for the sprite baker.

ConfigWatcher polls a JSON config file's modification time. Each time it
advances, the file is parsed and one bake runs, writing normal.png and
diffuse.png into the output directory.
"""

import logging
import time
from pathlib import Path

from src.raybake.sprite.settings import RenderSettings

logger = logging.getLogger(__name__)

NORMAL_MAP_NAME = "normal.png"
DIFFUSE_MAP_NAME = "diffuse.png"


class ConfigWatcher:
    """Reports new render settings whenever the config file changes.

    The first successful poll always fires.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_modified: int | None = None

    def poll(self) -> RenderSettings | None:
        """Return fresh settings if the file changed since the last fire.

        Unreadable or malformed files are logged and yield None; they do not
        advance the stored modification time, so a fixed file fires on the
        next poll.
        """
        try:
            modified = self.path.stat().st_mtime_ns
        except OSError as exc:
            logger.warning("Cannot stat %s: %s", self.path, exc)
            return None

        if self._last_modified is not None and modified <= self._last_modified:
            return None

        try:
            settings = RenderSettings.from_json_file(self.path)
        except ValueError as exc:
            logger.error("Ignoring %s: %s", self.path, exc)
            return None

        self._last_modified = modified
        return settings


def bake(settings: RenderSettings, out_dir: str | Path) -> tuple[Path, Path]:
    """Render both sprite passes and write them as PNG files.

    Returns:
        Paths of the normal map and the diffuse map.
    """
    # Allocates Taichi fields, so only import once ti.init() has run
    from src.raybake.preview.export import save_png
    from src.raybake.sprite.renderer import SpriteRenderer

    out_dir = Path(out_dir)
    start = time.perf_counter()

    normal, diffuse = SpriteRenderer(settings).render_pair()
    normal_path = save_png(normal, out_dir / NORMAL_MAP_NAME)
    diffuse_path = save_png(diffuse, out_dir / DIFFUSE_MAP_NAME)

    logger.info("Run time: %.3fs", time.perf_counter() - start)
    return normal_path, diffuse_path


def watch(
    path: str | Path,
    out_dir: str | Path = ".",
    interval: float = 0.1,
    max_passes: int | None = None,
) -> int:
    """Bake every time the config file changes.

    Args:
        path: JSON config file to watch.
        out_dir: Directory receiving normal.png and diffuse.png.
        interval: Seconds to sleep between polls.
        max_passes: Stop after this many bakes. None watches forever.

    Returns:
        Number of bakes that ran.
    """
    watcher = ConfigWatcher(path)
    passes = 0

    logger.info("Watching %s", watcher.path)
    while max_passes is None or passes < max_passes:
        settings = watcher.poll()
        if settings is None:
            time.sleep(interval)
            continue

        try:
            bake(settings, out_dir)
        except (ValueError, RuntimeError) as exc:
            logger.error("Bake failed: %s", exc)
        passes += 1

    return passes
