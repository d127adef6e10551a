"""
autotrim/sources.py
Input selection:
- Explicit path lists (CLI arguments)
- Directory scans
- Input -> output path mapping
"""

from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Union

from .trimtypes import DEFAULT_SUFFIX

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".bmp", ".tga", ".gif", ".webp", ".tif", ".tiff"}


def is_image_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in IMAGE_EXTS


def scan_images(input_root: Path, recursive: bool = False) -> List[Path]:
    """
    Scan image files in input directory, sorted by path
    """
    if recursive:
        paths = input_root.rglob("*")
    else:
        paths = input_root.iterdir()

    return sorted(p.absolute() for p in paths if is_image_file(p))


class InputSource:
    """Something that yields an ordered list of input image paths"""

    def paths(self) -> List[Path]:
        raise NotImplementedError


class PathListSource(InputSource):
    """
    Explicit list of files, order preserved, duplicates dropped
    Extensions are not filtered: the user asked for these files.
    """

    def __init__(self, paths: Iterable[Union[str, Path]]):
        self._paths = [Path(p) for p in paths]

    def paths(self) -> List[Path]:
        seen = set()
        result = []
        for p in self._paths:
            p = p.absolute()
            if p in seen:
                continue
            seen.add(p)
            result.append(p)
        return result


class DirectorySource(InputSource):
    """Image files inside a directory"""

    def __init__(self, root: Union[str, Path], recursive: bool = False):
        self.root = Path(root)
        self.recursive = recursive

    def paths(self) -> List[Path]:
        return scan_images(self.root, self.recursive)


class CompositeSource(InputSource):
    """Concatenation of several sources, first occurrence wins on duplicates"""

    def __init__(self, sources: Sequence[InputSource]):
        self.sources = list(sources)

    def paths(self) -> List[Path]:
        return PathListSource(p for src in self.sources for p in src.paths()).paths()


def source_from_args(inputs: Iterable[Union[str, Path]], recursive: bool = False) -> InputSource:
    """
    Build a source from CLI arguments: directories are scanned, anything else is taken as a file
    """
    sources: List[InputSource] = []
    files: List[Path] = []
    for arg in inputs:
        path = Path(arg)
        if path.is_dir():
            if files:
                sources.append(PathListSource(files))
                files = []
            sources.append(DirectorySource(path, recursive))
        else:
            files.append(path)
    if files:
        sources.append(PathListSource(files))
    return CompositeSource(sources)


def output_path_for(input_path: Path, output_dir: Path, suffix: str = DEFAULT_SUFFIX) -> Path:
    """name.ext -> <output_dir>/name<suffix>.png"""
    return Path(output_dir) / f"{Path(input_path).stem}{suffix}.png"


def find_collisions(input_paths: Sequence[Path], output_dir: Path, suffix: str = DEFAULT_SUFFIX) -> Dict[Path, List[Path]]:
    """Output paths claimed by more than one input"""
    claimed: Dict[Path, List[Path]] = {}
    for p in input_paths:
        claimed.setdefault(output_path_for(p, output_dir, suffix), []).append(p)
    return {out: ins for out, ins in claimed.items() if len(ins) > 1}
