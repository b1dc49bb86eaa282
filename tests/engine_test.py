from pathlib import Path

from buildstage.engine import Engine


def test_canonical():
    engine = Engine("acme", Path("/work"))
    assert engine.canonical("app:latest") == "acme/app:latest"


def test_relative_volume():
    engine = Engine("acme", Path("/work"))
    assert engine.volume("sources/app", "/src") == ["--volume", "/work/sources/app:/src"]
    assert engine.volume("/abs/pkg", "/pkg") == ["--volume", "/abs/pkg:/pkg"]


def test_build_and_run():
    engine = Engine("acme", Path("/work"), binary="podman")
    assert engine.build("app:runtime", Path("images/app/runtime")).cmd == (
        "podman",
        "build",
        "--tag",
        "acme/app:runtime",
        "/work/images/app/runtime",
    )
    assert str(engine.run("app:builder", engine.volume("/s", "/src"))) == (
        "podman run --rm --tty --volume /s:/src acme/app:builder"
    )
