"""Video file selection for a ready magnet's listing."""

from __future__ import annotations

from magnetarr.domain.entities.media import MediaQuery, VideoFile

VIDEO_EXTENSIONS: tuple[str, ...] = (".mp4", ".mkv", ".avi", ".mov", ".wmv")


def is_video_file(name: str) -> bool:
    return name.lower().endswith(VIDEO_EXTENSIONS)


def select_video_files(files: list[VideoFile]) -> list[VideoFile]:
    """Keep video files; fall back to the full listing if none qualify."""
    videos = [f for f in files if is_video_file(f.name)]
    return videos or list(files)


def matches_episode(name: str, season: int, episode: int) -> bool:
    lowered = name.lower()
    ss, ee = f"s{season:02d}", f"e{episode:02d}"
    return f"{ss}{ee}" in lowered or f"{ss}.{ee}" in lowered


def files_for_query(files: list[VideoFile], query: MediaQuery) -> list[VideoFile]:
    """Movies keep every file; episode queries keep the matching episode only."""
    if query.media_type == "movie" or query.season is None or query.episode is None:
        return list(files)
    return [f for f in files if matches_episode(f.name, query.season, query.episode)]
