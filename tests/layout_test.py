from buildstage.layout import discover_images, discover_sources, scan

from conftest import make_config, touch


def test_sources(tmp_path):
    (tmp_path / "sources" / "web").mkdir(parents=True)
    (tmp_path / "sources" / "app").mkdir()
    touch(tmp_path / "sources" / "README")
    assert discover_sources(tmp_path / "sources") == ("app", "web")


def test_sources_missing_root(tmp_path):
    assert discover_sources(tmp_path / "nope") == ()


def test_images(tmp_path):
    root = tmp_path / "images"
    touch(root / "app" / "builder" / "Dockerfile")
    touch(root / "app" / "runtime" / "Dockerfile.erb")
    touch(root / "app" / "runtime" / "Dockerfile")
    touch(root / "web" / "Dockerfile.erb")
    touch(root / "app" / "builder" / "notes.txt")

    images, contexts = discover_images(root)
    assert images == {"app": {"builder", "runtime"}, "web": {"latest"}}
    assert contexts[("app", "builder")] == root / "app" / "builder"
    assert contexts[("web", "latest")] == root / "web"


def test_images_ignores_root_dockerfile(tmp_path):
    root = tmp_path / "images"
    touch(root / "Dockerfile")
    assert discover_images(root) == ({}, {})


def test_scan_creates_directories(tmp_path):
    config = make_config(tmp_path / "work")
    catalog = scan(config)
    assert catalog.sources == ()
    assert dict(catalog.images) == {}
    for directory in ("images", "sources", "packages"):
        assert (tmp_path / "work" / directory).is_dir()


def test_scan_without_mkdir(tmp_path):
    config = make_config(tmp_path / "work", mkdir=False)
    scan(config)
    assert not (tmp_path / "work").exists()


def test_scan_is_idempotent(tmp_path):
    config = make_config(tmp_path)
    (tmp_path / "sources" / "app").mkdir(parents=True)
    touch(tmp_path / "images" / "app" / "builder" / "Dockerfile")
    touch(tmp_path / "images" / "app" / "latest" / "Dockerfile")
    touch(tmp_path / "images" / "base" / "Dockerfile.erb")

    first = scan(config)
    second = scan(config)
    assert first == second
    assert str(first) == str(second)
    assert list(first) == [
        ("app", "builder"),
        ("app", "latest"),
        ("base", "latest"),
    ]


def test_catalog_tags(tmp_path):
    config = make_config(tmp_path)
    touch(tmp_path / "images" / "app" / "builder" / "Dockerfile")
    catalog = scan(config)
    assert catalog.tags("app") == frozenset({"builder"})
    assert catalog.tags("unknown") == frozenset()


def test_hidden_directories_skipped(tmp_path):
    config = make_config(tmp_path)
    (tmp_path / "sources" / "app").mkdir(parents=True)
    (tmp_path / "sources" / ".git").mkdir()
    touch(tmp_path / "images" / "app" / "builder" / "Dockerfile")
    touch(tmp_path / "images" / ".cache" / "old" / "Dockerfile")
    touch(tmp_path / "images" / "app" / ".backup" / "Dockerfile.erb")

    catalog = scan(config)
    assert catalog.sources == ("app",)
    assert dict(catalog.images) == {"app": frozenset({"builder"})}
