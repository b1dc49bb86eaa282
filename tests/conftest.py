from pathlib import Path

import pytest

from buildstage.config import Config


def make_config(workdir: Path, **overrides) -> Config:
    values = dict(
        owner="me",
        workdir=workdir,
        image_dir=workdir / "images",
        source_dir=workdir / "sources",
        package_dir=workdir / "packages",
    )
    values.update(overrides)
    return Config(**values)


def touch(path: Path, text: str = "FROM scratch\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def config(tmp_path):
    return make_config(tmp_path)
