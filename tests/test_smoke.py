"""Basic smoke tests for repository health."""

from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def test_repo_layout_exists() -> None:
    """Ensure fundamental project files are present."""
    assert (ROOT / "README.md").is_file()
    assert (ROOT / "pyproject.toml").is_file()
    assert (ROOT / "tests").is_dir()


def test_packages_import() -> None:
    import config  # noqa: F401
    from modules.frame_analyser import FrameAnalyser
    from modules.gallery import GalleryAnalyser

    assert issubclass(GalleryAnalyser, FrameAnalyser)
