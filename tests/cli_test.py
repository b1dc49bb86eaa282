from buildstage.cli import main

from conftest import touch


_CONFIG_KEYS = (
    "IMG_DIR",
    "SRC_DIR",
    "PKG_DIR",
    "BUILDER",
    "PACKAGER",
    "RUNTIME",
    "MKDIR",
    "ENGINE",
)


def setup_layout(tmp_path, monkeypatch):
    for key in _CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("WORKDIR", str(tmp_path))
    monkeypatch.setenv("DOCKER_OWNER", "acme")
    (tmp_path / "sources" / "app").mkdir(parents=True)
    touch(tmp_path / "images" / "app" / "builder" / "Dockerfile")
    touch(
        tmp_path / "images" / "app" / "latest" / "Dockerfile.erb",
        "FROM <%= namespace %>/base\n",
    )


def test_list_tasks(tmp_path, monkeypatch, capsys):
    setup_layout(tmp_path, monkeypatch)
    assert main(["--tasks"]) == 0
    names = capsys.readouterr().out.split("\n")
    for name in (
        "dockerfile:app:builder",
        "link:app:latest",
        "image:app",
        "build:app",
        "package:app",
        "all",
        "default",
    ):
        assert name in names


def test_dry_run(tmp_path, monkeypatch, capsys):
    setup_layout(tmp_path, monkeypatch)
    assert main(["--dry-run", "build:app"]) == 0
    out = capsys.readouterr().out
    assert "image:app:builder: docker build --tag acme/app:builder" in out
    assert "build:app: docker run --rm --tty --volume" in out
    assert "package:app" not in out


def test_render_target(tmp_path, monkeypatch):
    setup_layout(tmp_path, monkeypatch)
    assert main(["dockerfile:app:latest"]) == 0
    dockerfile = tmp_path / "images" / "app" / "latest" / "Dockerfile"
    assert dockerfile.read_text() == "FROM acme/base\n"


def test_unknown_target(tmp_path, monkeypatch, capsys):
    setup_layout(tmp_path, monkeypatch)
    assert main(["image:nope"]) == 1
    assert "image:nope" in capsys.readouterr().err


def test_strict_rejects_missing_runtime(tmp_path, monkeypatch, capsys):
    setup_layout(tmp_path, monkeypatch)
    assert main(["--strict", "--dry-run"]) == 1
    assert "image:app:runtime" in capsys.readouterr().err


def test_failing_command_stops_dependents(tmp_path, monkeypatch, capsys):
    setup_layout(tmp_path, monkeypatch)
    monkeypatch.setenv("ENGINE", "this-engine-does-not-exist")
    assert main(["package:app"]) == 1
    captured = capsys.readouterr()
    assert "this-engine-does-not-exist" in captured.err
    assert ":/pkg" not in captured.out
