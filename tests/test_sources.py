from pathlib import Path

from autotrim.sources import (
    DirectorySource,
    PathListSource,
    find_collisions,
    output_path_for,
    scan_images,
    source_from_args,
)


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_scan_images_filters_and_sorts(tmp_path):
    _touch(tmp_path / "b.PNG")
    _touch(tmp_path / "a.jpg")
    _touch(tmp_path / "notes.txt")
    _touch(tmp_path / "sub" / "c.png")

    assert [p.name for p in scan_images(tmp_path)] == ["a.jpg", "b.PNG"]
    assert [p.name for p in scan_images(tmp_path, recursive=True)] == ["a.jpg", "b.PNG", "c.png"]


def test_directory_source_empty(tmp_path):
    assert DirectorySource(tmp_path).paths() == []


def test_path_list_source_keeps_order_and_dedupes(tmp_path):
    a = tmp_path / "a.png"
    b = tmp_path / "b.png"
    paths = PathListSource([b, a, b]).paths()
    assert paths == [b, a]
    assert all(p.is_absolute() for p in paths)


def test_source_from_args_mixes_files_and_dirs(tmp_path):
    first = _touch(tmp_path / "z.png")
    folder = tmp_path / "dir"
    inside = _touch(folder / "x.png")
    last = tmp_path / "missing.png"

    paths = source_from_args([first, folder, last]).paths()
    assert paths == [first, inside, last]


def test_output_path_for():
    out = output_path_for(Path("/in/photo.final.JPG"), Path("/out"))
    assert out == Path("/out/photo.final_trimmed.png")
    assert output_path_for(Path("a.bmp"), Path("o"), "_x") == Path("o/a_x.png")


def test_find_collisions():
    inputs = [Path("/a/img.png"), Path("/b/img.jpg"), Path("/a/other.png")]
    collisions = find_collisions(inputs, Path("/out"))
    assert list(collisions) == [Path("/out/img_trimmed.png")]
    assert collisions[Path("/out/img_trimmed.png")] == inputs[:2]
